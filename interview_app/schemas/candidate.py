from datetime import datetime
from uuid import uuid4

from pydantic import Field, field_validator

from interview_app.schemas.base import CamelModel
from interview_app.services.session_config import PROFILE_FIELDS, budget_for
from interview_app.utils.enums import Difficulty


class Question(CamelModel):
    id: str
    text: str
    difficulty: Difficulty

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value) if isinstance(value, int) else value

    @property
    def budget_seconds(self) -> int:
        return budget_for(self.difficulty)


class Answer(CamelModel):
    question_id: str
    question_text: str
    difficulty: Difficulty
    response_text: str
    time_taken_seconds: int
    auto_submitted: bool = False
    score: float | None = None
    feedback: str | None = None


class TimerSnapshot(CamelModel):
    question_index: int
    remaining_seconds: int
    last_updated_at: datetime = Field(default_factory=datetime.utcnow)


class Candidate(CamelModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    resume_file: str | None = None

    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] = Field(default_factory=list)
    current_index: int = 0
    timer: TimerSnapshot | None = None
    paused: bool = False

    final_score: float | None = None
    summary: str | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def questions_length(self) -> int:
        return len(self.questions)

    def missing_fields(self) -> list[str]:
        return [f for f in PROFILE_FIELDS if not (getattr(self, f) or "").strip()]

    def all_answered(self) -> bool:
        return bool(self.questions) and len(self.answers) >= len(self.questions)

    def is_completed(self) -> bool:
        return self.completed_at is not None or self.final_score is not None

    def current_question(self) -> Question | None:
        if self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None
