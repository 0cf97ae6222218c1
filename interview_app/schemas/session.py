from datetime import datetime

from pydantic import BaseModel, Field

from interview_app.schemas.candidate import Candidate, Question
from interview_app.utils.enums import NoticeLevel, SessionState


class Notice(BaseModel):
    level: NoticeLevel
    message: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class SessionView(BaseModel):
    state: SessionState
    busy: bool = False
    candidate_id: str | None = None
    question_index: int | None = None
    question_count: int = 0
    question: Question | None = None
    remaining_seconds: int | None = None
    paused: bool = False
    draft: str = ""
    final_score: float | None = None
    summary: str | None = None
    notices: list[Notice] = Field(default_factory=list)


class ProfileFields(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class OpenSessionRequest(BaseModel):
    candidate_id: str
    resume: bool = False


class SubmitAnswerRequest(BaseModel):
    text: str | None = None


class DraftUpdate(BaseModel):
    text: str | None = None


class ResumableResponse(BaseModel):
    candidate: Candidate | None = None


class IntakeResponse(BaseModel):
    candidate: Candidate
    session: SessionView
