from interview_app.schemas.base import CamelModel


class GradeResult(CamelModel):
    score: float | None = None
    feedback: str | None = None


class SummaryResult(CamelModel):
    final_score_percent: float
    summary: str | None = None


class ParsedProfile(CamelModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
