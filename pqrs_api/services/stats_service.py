from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Optional

from pqrs_api.repositories.base import (
    BranchRepository,
    CompanyRepository,
    PqrsRepository,
    pick_name,
)

CHART_DAYS = 7
RECENT_LIMIT = 5


class StatsService:
    """
    Dashboard aggregates. Read-only; every call hits the store.
    """

    def __init__(
        self,
        pqrs_repo: PqrsRepository,
        company_repo: CompanyRepository,
        branch_repo: BranchRepository,
    ):
        self.pqrs_repo = pqrs_repo
        self.company_repo = company_repo
        self.branch_repo = branch_repo

    def dashboard(self, now: Optional[datetime] = None) -> dict:
        now = now or datetime.now(timezone.utc)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        chart_start = today - timedelta(days=CHART_DAYS - 1)

        total = self.pqrs_repo.count_pqrs()
        today_count = self.pqrs_repo.count_pqrs(created_since=today.isoformat())

        # ---- charts: zero-filled days + per type ----
        by_day = {
            (chart_start + timedelta(days=i)).date().isoformat(): 0
            for i in range(CHART_DAYS)
        }
        by_type: Counter = Counter()
        for row in self.pqrs_repo.list_since(chart_start.isoformat()):
            day = str(row.get("created_at") or "")[:10]
            if day in by_day:
                by_day[day] += 1
            by_type[str(row.get("type") or "")] += 1

        # ---- anonymous vs complete ----
        anonymous = self.pqrs_repo.count_pqrs(anonymous=True)
        complete = min(self.pqrs_repo.count_pqrs(anonymous=False), total - anonymous)

        return {
            "users": {"total": 0, "active_today": 0, "registered_today": 0},
            "companies": {"total": self.company_repo.count_companies()},
            "branches": {"total": self.branch_repo.count_branches()},
            "pqrs": {"total": total, "today": today_count},
            "recent_pqrs": [_recent_row(r, now) for r in self.pqrs_repo.recent(RECENT_LIMIT)],
            "charts": {
                "pqrs_by_day": [{"date": d, "count": c} for d, c in by_day.items()],
                "pqrs_by_type": [{"type": t, "count": c} for t, c in by_type.items()],
            },
            "breakdown": {
                "anonymous": anonymous,
                "complete": complete,
                "percent_anonymous": _percent(anonymous, total),
                "percent_complete": _percent(complete, total),
            },
            "generated_at": now.isoformat(),
        }


def _percent(part: int, total: int) -> int:
    if not total:
        return 0
    # half up, not banker's rounding
    return int(part * 100 / total + 0.5)


def _recent_row(row: dict, now: datetime) -> dict:
    return {
        "id": str(row.get("id")),
        "created_at": str(row.get("created_at") or now.isoformat()),
        "type": str(row.get("type") or ""),
        "first_name": str(row.get("first_name") or ""),
        "last_name": str(row.get("last_name") or ""),
        "email": str(row.get("email") or ""),
        "company_name": pick_name(row.get("company")),
        "branch_name": pick_name(row.get("branch")),
        "message": str(row.get("message") or ""),
    }
