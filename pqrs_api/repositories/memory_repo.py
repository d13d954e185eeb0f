import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from pqrs_api.repositories.base import (
    ANONYMOUS_NAME,
    PQRS_SEARCH_COLUMNS,
    BranchRepository,
    CompanyRepository,
    LogoStorage,
    PqrsRepository,
    ResponseRepository,
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _newest_first(rows: List[dict]) -> List[dict]:
    # insertion order breaks created_at ties
    indexed = list(enumerate(rows))
    indexed.sort(key=lambda x: (x[1].get("created_at") or "", x[0]), reverse=True)
    return [r for _, r in indexed]


def _page(rows: List[dict], page: int, page_size: int) -> List[dict]:
    start = (page - 1) * page_size
    return rows[start:start + page_size]


def _contains(value, needle: str) -> bool:
    return needle in str(value or "").lower()


class MemoryStore:
    """
    Shared tables for the in-memory repositories, so joins and
    cascades behave like the database.
    """

    def __init__(self):
        self.companies: List[dict] = []
        self.branches: List[dict] = []
        self.pqrs: List[dict] = []
        self.responses: List[dict] = []
        self.files: Dict[str, bytes] = {}

    def stamp(self, row: dict) -> dict:
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _now())
        return row

    def company(self, company_id: Optional[str]) -> Optional[dict]:
        return next((c for c in self.companies if c["id"] == company_id), None)

    def branch(self, branch_id: Optional[str]) -> Optional[dict]:
        return next((b for b in self.branches if b["id"] == branch_id), None)


class MemoryPqrsRepository(PqrsRepository):

    def __init__(self, store: MemoryStore):
        self.store = store

    def _joined(self, row: dict) -> dict:
        company = self.store.company(row.get("company_id"))
        branch = self.store.branch(row.get("branch_id"))
        return {
            **row,
            "company": dict(company) if company else None,
            "branch": dict(branch) if branch else None,
        }

    def list_pqrs(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        branch_id: Optional[str] = None,
        company_id: Optional[str] = None,
        pqrs_type: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        rows = self.store.pqrs
        if branch_id:
            rows = [r for r in rows if r.get("branch_id") == branch_id]
        if company_id:
            rows = [r for r in rows if r.get("company_id") == company_id]
        if pqrs_type:
            rows = [r for r in rows if r.get("type") == pqrs_type]
        if search:
            needle = search.lower()
            rows = [
                r for r in rows
                if any(_contains(r.get(c), needle) for c in PQRS_SEARCH_COLUMNS)
            ]

        rows = _newest_first(rows)
        return [self._joined(r) for r in _page(rows, page, page_size)], len(rows)

    def create_pqrs(self, record: dict) -> dict:
        row = self.store.stamp(record)
        self.store.pqrs.append(row)
        return dict(row)

    def list_by_type(self, pqrs_type: str, limit: int) -> List[dict]:
        rows = _newest_first([r for r in self.store.pqrs if r.get("type") == pqrs_type])
        return [self._joined(r) for r in rows[:limit]]

    def count_pqrs(
        self,
        created_since: Optional[str] = None,
        anonymous: Optional[bool] = None,
    ) -> int:
        rows = self.store.pqrs
        if created_since:
            rows = [r for r in rows if (r.get("created_at") or "") >= created_since]
        if anonymous is True:
            rows = [
                r for r in rows
                if r.get("first_name") == ANONYMOUS_NAME and r.get("last_name") == ANONYMOUS_NAME
            ]
        elif anonymous is False:
            rows = [
                r for r in rows
                if r.get("first_name") != ANONYMOUS_NAME and r.get("last_name") != ANONYMOUS_NAME
            ]
        return len(rows)

    def list_since(self, created_since: str) -> List[dict]:
        rows = [r for r in self.store.pqrs if (r.get("created_at") or "") >= created_since]
        return list(reversed(_newest_first(rows)))

    def recent(self, limit: int) -> List[dict]:
        return [self._joined(r) for r in _newest_first(self.store.pqrs)[:limit]]

    def detach_branches(self, branch_ids: Sequence[str]) -> None:
        for r in self.store.pqrs:
            if r.get("branch_id") in branch_ids:
                r["branch_id"] = None

    def detach_company(self, company_id: str) -> None:
        for r in self.store.pqrs:
            if r.get("company_id") == company_id:
                r["company_id"] = None


class MemoryCompanyRepository(CompanyRepository):

    def __init__(self, store: MemoryStore):
        self.store = store

    def list_companies(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[dict], int]:
        rows = self.store.companies
        if search:
            rows = [r for r in rows if _contains(r.get("name"), search.lower())]
        if is_active is not None:
            rows = [r for r in rows if r.get("is_active") is is_active]
        rows = _newest_first(rows)
        return [dict(r) for r in _page(rows, page, page_size)], len(rows)

    def create_company(self, company: dict) -> dict:
        row = self.store.stamp(company)
        self.store.companies.append(row)
        return dict(row)

    def update_company(self, company_id: str, changes: dict) -> Optional[dict]:
        row = self.store.company(company_id)
        if row is None:
            return None
        row.update(changes)
        return dict(row)

    def delete_company(self, company_id: str) -> None:
        self.store.companies = [c for c in self.store.companies if c["id"] != company_id]

    def count_companies(self) -> int:
        return len(self.store.companies)


class MemoryBranchRepository(BranchRepository):

    def __init__(self, store: MemoryStore):
        self.store = store

    def _joined(self, row: dict) -> dict:
        company = self.store.company(row.get("company_id"))
        return {**row, "company": dict(company) if company else None}

    def list_branches(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        company_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[dict], int]:
        rows = self.store.branches
        if search:
            rows = [r for r in rows if _contains(r.get("name"), search.lower())]
        if company_id:
            rows = [r for r in rows if r.get("company_id") == company_id]
        if is_active is not None:
            rows = [r for r in rows if r.get("is_active") is is_active]
        rows = _newest_first(rows)
        return [self._joined(r) for r in _page(rows, page, page_size)], len(rows)

    def create_branch(self, branch: dict) -> dict:
        row = self.store.stamp(branch)
        self.store.branches.append(row)
        return self._joined(row)

    def update_branch(self, branch_id: str, changes: dict) -> Optional[dict]:
        row = self.store.branch(branch_id)
        if row is None:
            return None
        row.update(changes)
        return self._joined(row)

    def delete_branches(self, branch_ids: Sequence[str]) -> None:
        self.store.branches = [b for b in self.store.branches if b["id"] not in branch_ids]

    def get_by_slug(self, slug: str) -> Optional[dict]:
        row = next((b for b in self.store.branches if b.get("slug") == slug), None)
        return self._joined(row) if row else None

    def ids_for_company(self, company_id: str) -> List[str]:
        return [b["id"] for b in self.store.branches if b.get("company_id") == company_id]

    def count_branches(self) -> int:
        return len(self.store.branches)


class MemoryResponseRepository(ResponseRepository):

    def __init__(self, store: MemoryStore):
        self.store = store

    def list_responses(
        self,
        page: int,
        page_size: int,
        pqrs_id: Optional[str] = None,
        pqrs_ids: Optional[Sequence[str]] = None,
    ) -> Tuple[List[dict], int]:
        rows = self.store.responses
        if pqrs_id:
            rows = [r for r in rows if r.get("pqrs_id") == pqrs_id]
        elif pqrs_ids:
            rows = [r for r in rows if r.get("pqrs_id") in pqrs_ids]
        rows = _newest_first(rows)
        return [dict(r) for r in _page(rows, page, page_size)], len(rows)

    def insert_response(self, response: dict) -> dict:
        row = self.store.stamp(response)
        self.store.responses.append(row)
        return dict(row)

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
        rows = [r for r in self.store.responses if r.get("pqrs_id") == pqrs_id]
        if search:
            needle = search.lower()
            rows = [
                r for r in rows
                if _contains(r.get("email_subject"), needle) or _contains(r.get("response_text"), needle)
            ]
        if status:
            rows = [r for r in rows if r.get("status") == status]
        if date_from:
            rows = [r for r in rows if (r.get("created_at") or "") >= date_from]
        if date_to:
            rows = [r for r in rows if (r.get("created_at") or "") <= date_to]
        rows = _newest_first(rows)
        return [dict(r) for r in rows[offset:offset + limit]], len(rows)

    def statuses(self, pqrs_id: str) -> List[str]:
        return [r.get("status") for r in self.store.responses if r.get("pqrs_id") == pqrs_id]


class MemoryLogoStorage(LogoStorage):

    def __init__(self, store: MemoryStore, base_url: str = "memory://uploads"):
        self.store = store
        self.base_url = base_url

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        self.store.files[path] = content
        return f"{self.base_url}/{path}"
