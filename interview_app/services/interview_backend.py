import asyncio
import logging

import requests
from pydantic import ValidationError as SchemaError

from interview_app.core.config import settings
from interview_app.core.exceptions import ServiceUnavailable
from interview_app.schemas.backend import GradeResult, ParsedProfile, SummaryResult
from interview_app.schemas.candidate import Candidate

logger = logging.getLogger(__name__)


class InterviewBackendClient:
    """HTTP client for the question, grading, summary and resume endpoints.

    Every call is attempted once. Any failure (connection error, timeout,
    non-2xx status, unreadable body) surfaces as ServiceUnavailable; the
    caller decides whether that is fatal.
    """

    def __init__(
        self,
        base_url: str = settings.BACKEND_API_BASE,
        timeout: float = settings.BACKEND_TIMEOUT_SECONDS,
        http: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def _post(self, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.post(url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("POST %s failed: %s", url, exc)
            raise ServiceUnavailable(f"{path} failed: {exc}") from exc

        if not isinstance(data, dict):
            raise ServiceUnavailable(f"{path} returned an unexpected body")
        return data

    async def generate_questions(self, role: str, stack: list[str]) -> list[dict]:
        """Raw question items; counting and shape checks belong to the caller."""
        data = await asyncio.to_thread(
            self._post, "/api/generate-questions", json={"role": role, "stack": stack}
        )
        return data.get("questions") or []

    async def grade_answer(self, question_text: str, response_text: str) -> GradeResult:
        data = await asyncio.to_thread(
            self._post,
            "/api/grade-answer",
            json={"question": question_text, "answer": response_text},
        )
        try:
            return GradeResult.model_validate(data)
        except SchemaError as exc:
            raise ServiceUnavailable(f"Unreadable grade: {exc}") from exc

    async def final_summary(self, candidate: Candidate) -> SummaryResult:
        body = {"candidate": candidate.model_dump(mode="json", by_alias=True)}
        data = await asyncio.to_thread(self._post, "/api/final-summary", json=body)
        try:
            return SummaryResult.model_validate(data)
        except SchemaError as exc:
            raise ServiceUnavailable(f"Unreadable summary: {exc}") from exc

    async def parse_resume(self, filename: str, content: bytes) -> ParsedProfile:
        data = await asyncio.to_thread(
            self._post, "/api/parse-resume", files={"file": (filename, content)}
        )
        if data.get("error"):
            raise ServiceUnavailable(f"Resume parsing failed: {data['error']}")
        try:
            return ParsedProfile.model_validate(data)
        except SchemaError as exc:
            raise ServiceUnavailable(f"Unreadable profile: {exc}") from exc
