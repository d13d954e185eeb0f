from typing import List, Optional, Sequence, Tuple

from pqrs_api.db.supabase_client import get_supabase
from pqrs_api.repositories.base import (
    ANONYMOUS_NAME,
    PQRS_SEARCH_COLUMNS,
    BranchRepository,
    CompanyRepository,
    LogoStorage,
    PqrsRepository,
    ResponseRepository,
    page_range,
)

PQRS_LIST_SELECT = "*, branch:branches(id,name,slug,logo_url), company:companies(id,name,logo_url)"
PQRS_LOOKUP_SELECT = (
    "id, created_at, type, first_name, last_name, email, phone, message, "
    "company_id, branch_id, company:companies(name), branch:branches(name)"
)
PQRS_RECENT_SELECT = (
    "id, created_at, type, first_name, last_name, email, message, "
    "company:companies(name), branch:branches(name)"
)
BRANCH_SELECT = "*, company:companies(id,name,logo_url)"
BRANCH_SLUG_SELECT = "id,name,slug,address,logo_url,is_active,company_id, company:companies(id,name,logo_url)"
RESPONSE_QUERY_SELECT = (
    "id, pqrs_id, sent_by, email_subject, response_text, status, sent_at, "
    "created_at, attachment_count, error_message, retry_count"
)


class SupabasePqrsRepository(PqrsRepository):
    """
    Supabase (Postgres) implementation of PqrsRepository

    - pqrs.id is a uuid generated by the database
    - tracking codes are not stored; callers derive them
    """

    # -------------------------
    # List (dashboard)
    # -------------------------
    def list_pqrs(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        branch_id: Optional[str] = None,
        company_id: Optional[str] = None,
        pqrs_type: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        start, end = page_range(page, page_size)

        query = (
            get_supabase()
            .table("pqrs")
            .select(PQRS_LIST_SELECT, count="exact")
            .order("created_at", desc=True)
            .range(start, end)
        )

        if branch_id:
            query = query.eq("branch_id", branch_id)
        if company_id:
            query = query.eq("company_id", company_id)
        if pqrs_type:
            query = query.eq("type", pqrs_type)
        if search:
            like = f"%{search}%"
            query = query.or_(",".join(f"{col}.ilike.{like}" for col in PQRS_SEARCH_COLUMNS))

        res = query.execute()
        return res.data or [], res.count or 0

    # -------------------------
    # Create (public intake)
    # -------------------------
    def create_pqrs(self, record: dict) -> dict:
        res = (
            get_supabase()
            .table("pqrs")
            .insert(record)
            .execute()
        )
        if not res.data:
            raise RuntimeError("Insert into pqrs returned no row")
        return res.data[0]

    # -------------------------
    # Tracking code scan window
    # -------------------------
    def list_by_type(self, pqrs_type: str, limit: int) -> List[dict]:
        res = (
            get_supabase()
            .table("pqrs")
            .select(PQRS_LOOKUP_SELECT)
            .eq("type", pqrs_type)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []

    # -------------------------
    # Stats
    # -------------------------
    def count_pqrs(
        self,
        created_since: Optional[str] = None,
        anonymous: Optional[bool] = None,
    ) -> int:
        query = get_supabase().table("pqrs").select("id", count="exact", head=True)

        if created_since:
            query = query.gte("created_at", created_since)
        if anonymous is True:
            query = query.eq("first_name", ANONYMOUS_NAME).eq("last_name", ANONYMOUS_NAME)
        elif anonymous is False:
            query = query.neq("first_name", ANONYMOUS_NAME).neq("last_name", ANONYMOUS_NAME)

        res = query.execute()
        return res.count or 0

    def list_since(self, created_since: str) -> List[dict]:
        res = (
            get_supabase()
            .table("pqrs")
            .select("id, created_at, type")
            .gte("created_at", created_since)
            .order("created_at", desc=False)
            .execute()
        )
        return res.data or []

    def recent(self, limit: int) -> List[dict]:
        res = (
            get_supabase()
            .table("pqrs")
            .select(PQRS_RECENT_SELECT)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []

    # -------------------------
    # Cascades (records are preserved, FK set to null)
    # -------------------------
    def detach_branches(self, branch_ids: Sequence[str]) -> None:
        if not branch_ids:
            return
        (
            get_supabase()
            .table("pqrs")
            .update({"branch_id": None})
            .in_("branch_id", list(branch_ids))
            .execute()
        )

    def detach_company(self, company_id: str) -> None:
        (
            get_supabase()
            .table("pqrs")
            .update({"company_id": None})
            .eq("company_id", company_id)
            .execute()
        )


class SupabaseCompanyRepository(CompanyRepository):

    def list_companies(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[dict], int]:
        start, end = page_range(page, page_size)

        query = (
            get_supabase()
            .table("companies")
            .select("*", count="exact")
            .order("created_at", desc=True)
            .range(start, end)
        )
        if search:
            query = query.ilike("name", f"%{search}%")
        if is_active is not None:
            query = query.eq("is_active", is_active)

        res = query.execute()
        return res.data or [], res.count or 0

    def create_company(self, company: dict) -> dict:
        res = get_supabase().table("companies").insert(company).execute()
        if not res.data:
            raise RuntimeError("Insert into companies returned no row")
        return res.data[0]

    def update_company(self, company_id: str, changes: dict) -> Optional[dict]:
        res = (
            get_supabase()
            .table("companies")
            .update(changes)
            .eq("id", company_id)
            .execute()
        )
        return res.data[0] if res.data else None

    def delete_company(self, company_id: str) -> None:
        get_supabase().table("companies").delete().eq("id", company_id).execute()

    def count_companies(self) -> int:
        res = get_supabase().table("companies").select("id", count="exact", head=True).execute()
        return res.count or 0


class SupabaseBranchRepository(BranchRepository):

    def list_branches(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        company_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Tuple[List[dict], int]:
        start, end = page_range(page, page_size)

        query = (
            get_supabase()
            .table("branches")
            .select(BRANCH_SELECT, count="exact")
            .order("created_at", desc=True)
            .range(start, end)
        )
        if search:
            query = query.ilike("name", f"%{search}%")
        if company_id:
            query = query.eq("company_id", company_id)
        if is_active is not None:
            query = query.eq("is_active", is_active)

        res = query.execute()
        return res.data or [], res.count or 0

    def create_branch(self, branch: dict) -> dict:
        res = get_supabase().table("branches").insert(branch).execute()
        if not res.data:
            raise RuntimeError("Insert into branches returned no row")
        return self._with_company(res.data[0])

    def update_branch(self, branch_id: str, changes: dict) -> Optional[dict]:
        res = (
            get_supabase()
            .table("branches")
            .update(changes)
            .eq("id", branch_id)
            .execute()
        )
        return self._with_company(res.data[0]) if res.data else None

    def delete_branches(self, branch_ids: Sequence[str]) -> None:
        if not branch_ids:
            return
        get_supabase().table("branches").delete().in_("id", list(branch_ids)).execute()

    def get_by_slug(self, slug: str) -> Optional[dict]:
        res = (
            get_supabase()
            .table("branches")
            .select(BRANCH_SLUG_SELECT)
            .eq("slug", slug)
            .maybe_single()
            .execute()
        )
        # maybe_single() may hand back None instead of an empty response
        if not res or not res.data:
            return None
        return res.data

    def ids_for_company(self, company_id: str) -> List[str]:
        res = (
            get_supabase()
            .table("branches")
            .select("id")
            .eq("company_id", company_id)
            .execute()
        )
        return [r["id"] for r in (res.data or [])]

    def count_branches(self) -> int:
        res = get_supabase().table("branches").select("id", count="exact", head=True).execute()
        return res.count or 0

    def _with_company(self, branch: dict) -> dict:
        # insert/update cannot embed relations; read the joined row back
        res = (
            get_supabase()
            .table("branches")
            .select(BRANCH_SELECT)
            .eq("id", branch["id"])
            .maybe_single()
            .execute()
        )
        if not res or not res.data:
            return branch
        return res.data


class SupabaseResponseRepository(ResponseRepository):

    def list_responses(
        self,
        page: int,
        page_size: int,
        pqrs_id: Optional[str] = None,
        pqrs_ids: Optional[Sequence[str]] = None,
    ) -> Tuple[List[dict], int]:
        start, end = page_range(page, page_size)

        query = (
            get_supabase()
            .table("pqrs_responses")
            .select("*", count="exact")
            .order("created_at", desc=True)
        )
        if pqrs_id:
            query = query.eq("pqrs_id", pqrs_id)
        elif pqrs_ids:
            query = query.in_("pqrs_id", list(pqrs_ids))

        res = query.range(start, end).execute()
        return res.data or [], res.count or 0

    def insert_response(self, response: dict) -> dict:
        res = get_supabase().table("pqrs_responses").insert(response).execute()
        if not res.data:
            raise RuntimeError("Insert into pqrs_responses returned no row")
        return res.data[0]

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
        query = (
            get_supabase()
            .table("pqrs_responses")
            .select(RESPONSE_QUERY_SELECT, count="exact")
            .eq("pqrs_id", pqrs_id)
        )
        if search:
            query = query.or_(f"email_subject.ilike.%{search}%,response_text.ilike.%{search}%")
        if status:
            query = query.eq("status", status)
        if date_from:
            query = query.gte("created_at", date_from)
        if date_to:
            query = query.lte("created_at", date_to)

        res = (
            query
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return res.data or [], res.count or 0

    def statuses(self, pqrs_id: str) -> List[str]:
        res = (
            get_supabase()
            .table("pqrs_responses")
            .select("status")
            .eq("pqrs_id", pqrs_id)
            .execute()
        )
        return [r.get("status") for r in (res.data or [])]


class SupabaseLogoStorage(LogoStorage):
    """
    Public bucket; logos are referenced by URL from companies / branches.
    """

    def __init__(self, bucket: str):
        self.bucket = bucket

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        bucket = get_supabase().storage.from_(self.bucket)
        bucket.upload(
            path=path,
            file=content,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        return bucket.get_public_url(path)
