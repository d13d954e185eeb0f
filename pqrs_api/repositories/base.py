from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple


class PqrsRepository(ABC):
    """
    Data access for PQRS records (table: pqrs)
    Rows are raw dicts; joined `company` / `branch` objects are included
    where the listing needs them.
    """

    # -------------------------
    # Intake / listing
    # -------------------------
    @abstractmethod
    def list_pqrs(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        branch_id: Optional[str] = None,
        company_id: Optional[str] = None,
        pqrs_type: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        """Page of records, newest first, plus the total matching count."""
        pass

    @abstractmethod
    def create_pqrs(self, record: dict) -> dict:
        """Insert and return the stored row (with generated id / created_at)."""
        pass

    @abstractmethod
    def list_by_type(self, pqrs_type: str, limit: int) -> List[dict]:
        """Newest-first records of one category, bounded by limit."""
        pass

    # -------------------------
    # Stats
    # -------------------------
    @abstractmethod
    def count_pqrs(
        self,
        created_since: Optional[str] = None,
        anonymous: Optional[bool] = None,
    ) -> int:
        """
        anonymous=True  -> first_name and last_name are both "Anónimo"
        anonymous=False -> neither is "Anónimo"
        """
        pass

    @abstractmethod
    def list_since(self, created_since: str) -> List[dict]:
        pass

    @abstractmethod
    def recent(self, limit: int) -> List[dict]:
        pass

    # -------------------------
    # Cascades from company / branch deletes
    # -------------------------
    @abstractmethod
    def detach_branches(self, branch_ids: Sequence[str]) -> None:
        pass

    @abstractmethod
    def detach_company(self, company_id: str) -> None:
        pass


class CompanyRepository(ABC):

    @abstractmethod
    def list_companies(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[dict], int]:
        pass

    @abstractmethod
    def create_company(self, company: dict) -> dict:
        pass

    @abstractmethod
    def update_company(self, company_id: str, changes: dict) -> Optional[dict]:
        pass

    @abstractmethod
    def delete_company(self, company_id: str) -> None:
        pass

    @abstractmethod
    def count_companies(self) -> int:
        pass


class BranchRepository(ABC):

    @abstractmethod
    def list_branches(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        company_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[dict], int]:
        pass

    @abstractmethod
    def create_branch(self, branch: dict) -> dict:
        pass

    @abstractmethod
    def update_branch(self, branch_id: str, changes: dict) -> Optional[dict]:
        pass

    @abstractmethod
    def delete_branches(self, branch_ids: Sequence[str]) -> None:
        pass

    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[dict]:
        pass

    @abstractmethod
    def ids_for_company(self, company_id: str) -> List[str]:
        pass

    @abstractmethod
    def count_branches(self) -> int:
        pass


class ResponseRepository(ABC):
    """
    Email responses sent for a PQRS (table: pqrs_responses)
    """

    @abstractmethod
    def list_responses(
        self,
        page: int,
        page_size: int,
        pqrs_id: Optional[str] = None,
        pqrs_ids: Optional[Sequence[str]] = None,
    ) -> Tuple[List[dict], int]:
        pass

    @abstractmethod
    def insert_response(self, response: dict) -> dict:
        pass

    @abstractmethod
    def query_responses(
        self,
        pqrs_id: str,
        offset: int,
        limit: int,
        search: str = "",
        status: str = "",
        date_from: str = "",
        date_to: str = "",
    ) -> Tuple[List[dict], int]:
        """Filtered page, newest first, plus the filtered total."""
        pass

    @abstractmethod
    def statuses(self, pqrs_id: str) -> List[str]:
        """Status of every response of one record (for the summary)."""
        pass


class LogoStorage(ABC):

    @abstractmethod
    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store the file and return its public URL."""
        pass


def page_range(page: int, page_size: int) -> Tuple[int, int]:
    """Inclusive (from, to) offsets, PostgREST .range() style."""
    start = (page - 1) * page_size
    return start, start + page_size - 1


def pick_name(ref) -> Optional[str]:
    """Joined relation may come back as object or single-element list."""
    if isinstance(ref, list):
        ref = ref[0] if ref else None
    if isinstance(ref, dict):
        return ref.get("name")
    return None


ANONYMOUS_NAME = "Anónimo"

# columns matched by the dashboard free-text search
PQRS_SEARCH_COLUMNS = (
    "type", "message", "email", "first_name", "middle_name", "last_name",
    "second_last_name", "national_id", "phone",
)
