from fastapi import APIRouter, Depends, HTTPException, UploadFile, File

from interview_app.api.deps import get_controller
from interview_app.api.errors import to_http_error
from interview_app.core.exceptions import InterviewError
from interview_app.schemas.candidate import Candidate
from interview_app.schemas.session import IntakeResponse, ProfileFields, SessionView
from interview_app.services.session_controller import SessionController

router = APIRouter()

RESUME_EXTENSIONS = (".pdf", ".docx")


@router.post("/candidates", response_model=IntakeResponse)
async def create_candidate(
    payload: ProfileFields,
    controller: SessionController = Depends(get_controller),
):
    try:
        candidate = await controller.intake_profile(
            payload.name, payload.email, payload.phone
        )
    except (InterviewError, ValueError) as e:
        raise to_http_error(e)
    return IntakeResponse(candidate=candidate, session=controller.view(consume_notices=True))


# Resume upload: parsing itself happens in the interview backend
@router.post("/candidates/resume", response_model=IntakeResponse)
async def upload_resume(
    file: UploadFile = File(...),
    controller: SessionController = Depends(get_controller),
):
    if not file.filename or not file.filename.lower().endswith(RESUME_EXTENSIONS):
        raise HTTPException(status_code=400, detail="Invalid file type")

    try:
        content = await file.read()
    finally:
        await file.close()

    try:
        candidate = await controller.intake_resume(file.filename, content)
    except (InterviewError, ValueError) as e:
        raise to_http_error(e)
    return IntakeResponse(candidate=candidate, session=controller.view(consume_notices=True))


@router.get("/candidates/{candidate_id}", response_model=Candidate)
async def get_candidate(
    candidate_id: str,
    controller: SessionController = Depends(get_controller),
):
    try:
        return controller.repository.get(candidate_id)
    except (InterviewError, ValueError) as e:
        raise to_http_error(e)


@router.post("/candidates/{candidate_id}/profile", response_model=SessionView)
async def complete_candidate_profile(
    candidate_id: str,
    payload: ProfileFields,
    controller: SessionController = Depends(get_controller),
):
    try:
        await controller.complete_profile(candidate_id, payload.model_dump())
    except (InterviewError, ValueError) as e:
        raise to_http_error(e)
    return controller.view(consume_notices=True)
