from datetime import datetime

from interview_app.schemas.candidate import Candidate
from interview_app.utils.enums import SortKey, StatusFilter


def filter_candidates(
    candidates: list[Candidate],
    status: StatusFilter = StatusFilter.ALL,
    search: str = "",
    sort_key: SortKey = SortKey.FINAL_SCORE,
) -> list[Candidate]:
    results = list(candidates)

    if status == StatusFilter.COMPLETED:
        results = [c for c in results if c.is_completed()]
    elif status == StatusFilter.IN_PROGRESS:
        results = [c for c in results if not c.is_completed()]

    needle = search.strip().lower()
    if needle:
        results = [
            c for c in results
            if needle in (c.name or "").lower() or needle in (c.email or "").lower()
        ]

    if sort_key == SortKey.FINAL_SCORE:
        results.sort(key=lambda c: c.final_score or 0, reverse=True)
    elif sort_key == SortKey.NAME:
        results.sort(key=lambda c: (c.name or "").casefold())
    elif sort_key == SortKey.CREATED_AT:
        results.sort(key=lambda c: c.created_at or datetime.min, reverse=True)

    return results
