from fastapi import APIRouter, Depends, HTTPException

from interview_app.api.deps import get_controller
from interview_app.api.errors import to_http_error
from interview_app.core.exceptions import InterviewError
from interview_app.schemas.session import (
    DraftUpdate,
    OpenSessionRequest,
    ResumableResponse,
    SessionView,
    SubmitAnswerRequest,
)
from interview_app.services.session_controller import SessionController

router = APIRouter()


@router.get("/session", response_model=SessionView)
async def get_session_view(controller: SessionController = Depends(get_controller)):
    return controller.view(consume_notices=True)


@router.get("/session/resumable", response_model=ResumableResponse)
async def get_resumable(controller: SessionController = Depends(get_controller)):
    try:
        return ResumableResponse(candidate=controller.find_resumable())
    except InterviewError as e:
        raise to_http_error(e)


@router.post("/session/open", response_model=SessionView)
async def open_interview_session(
    payload: OpenSessionRequest,
    controller: SessionController = Depends(get_controller),
):
    try:
        await controller.open_session(payload.candidate_id, resume=payload.resume)
    except (InterviewError, ValueError) as e:
        raise to_http_error(e)
    return controller.view(consume_notices=True)


@router.post("/session/answer", response_model=SessionView)
async def submit_interview_answer(
    payload: SubmitAnswerRequest,
    controller: SessionController = Depends(get_controller),
):
    try:
        await controller.submit_answer(payload.text, auto=False)
    except (InterviewError, ValueError) as e:
        raise to_http_error(e)
    return controller.view(consume_notices=True)


@router.put("/session/draft", response_model=SessionView)
async def update_draft(
    payload: DraftUpdate,
    controller: SessionController = Depends(get_controller),
):
    try:
        controller.set_draft(payload.text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return controller.view()


@router.post("/session/pause", response_model=SessionView)
async def pause_interview(controller: SessionController = Depends(get_controller)):
    try:
        controller.pause()
    except InterviewError as e:
        raise to_http_error(e)
    return controller.view(consume_notices=True)


@router.post("/session/resume", response_model=SessionView)
async def resume_interview(controller: SessionController = Depends(get_controller)):
    try:
        controller.resume()
    except InterviewError as e:
        raise to_http_error(e)
    return controller.view(consume_notices=True)


@router.post("/session/close", response_model=SessionView)
async def close_interview(controller: SessionController = Depends(get_controller)):
    controller.close_session()
    return controller.view(consume_notices=True)
