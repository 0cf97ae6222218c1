from fastapi import APIRouter, Depends, Query

from interview_app.api.deps import get_controller
from interview_app.api.errors import to_http_error
from interview_app.core.exceptions import InterviewError
from interview_app.schemas.candidate import Candidate
from interview_app.services.dashboard import filter_candidates
from interview_app.services.session_controller import SessionController
from interview_app.utils.enums import SortKey, StatusFilter

router = APIRouter()


@router.get("/dashboard/candidates", response_model=list[Candidate])
async def list_candidates(
    status: StatusFilter = Query(StatusFilter.ALL),
    search: str = Query(""),
    sort: SortKey = Query(SortKey.FINAL_SCORE),
    controller: SessionController = Depends(get_controller),
):
    try:
        candidates = controller.repository.all()
    except InterviewError as e:
        raise to_http_error(e)
    return filter_candidates(candidates, status=status, search=search, sort_key=sort)
