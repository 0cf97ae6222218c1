import pytest
import requests

from interview_app.core.exceptions import ServiceUnavailable
from interview_app.schemas.candidate import Candidate
from interview_app.services.interview_backend import InterviewBackendClient


class StubResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class StubHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, timeout=None, **kwargs):
        self.calls.append((url, timeout, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def client_for(http):
    return InterviewBackendClient(base_url="http://backend.test/", timeout=5, http=http)


async def test_generate_questions_posts_role_and_stack():
    http = StubHttp(StubResponse({"questions": [{"id": 1, "text": "?", "difficulty": "easy"}]}))

    questions = await client_for(http).generate_questions("Full Stack Developer", ["React"])

    assert questions == [{"id": 1, "text": "?", "difficulty": "easy"}]
    url, timeout, kwargs = http.calls[0]
    assert url == "http://backend.test/api/generate-questions"
    assert timeout == 5
    assert kwargs["json"] == {"role": "Full Stack Developer", "stack": ["React"]}


async def test_grade_answer_parses_result():
    http = StubHttp(StubResponse({"score": 7, "feedback": "Good depth."}))

    grade = await client_for(http).grade_answer("What is a closure?", "Scope capture")

    assert grade.score == 7
    assert grade.feedback == "Good depth."
    assert http.calls[0][2]["json"] == {"question": "What is a closure?", "answer": "Scope capture"}


async def test_final_summary_sends_camel_case_record():
    http = StubHttp(StubResponse({"finalScorePercent": 82, "summary": "Hire."}))
    candidate = Candidate(name="Ada", current_index=6)

    result = await client_for(http).final_summary(candidate)

    assert result.final_score_percent == 82
    assert result.summary == "Hire."
    sent = http.calls[0][2]["json"]["candidate"]
    assert sent["currentIndex"] == 6
    assert sent["finalScore"] is None


@pytest.mark.parametrize(
    "http",
    [
        StubHttp(error=requests.ConnectionError("refused")),
        StubHttp(error=requests.Timeout("slow")),
        StubHttp(StubResponse({"detail": "boom"}, status_code=500)),
        StubHttp(StubResponse(ValueError("not json"))),
        StubHttp(StubResponse(["not", "an", "object"])),
        StubHttp(StubResponse({"score": "excellent"})),
    ],
)
async def test_grading_failures_become_service_unavailable(http):
    with pytest.raises(ServiceUnavailable):
        await client_for(http).grade_answer("q", "a")


async def test_summary_without_score_is_unavailable():
    http = StubHttp(StubResponse({"summary": "no score"}))

    with pytest.raises(ServiceUnavailable):
        await client_for(http).final_summary(Candidate(name="Ada"))


async def test_parse_resume_error_payload():
    http = StubHttp(StubResponse({"error": "Unsupported file"}))

    with pytest.raises(ServiceUnavailable):
        await client_for(http).parse_resume("cv.docx", b"bytes")

    assert "files" in http.calls[0][2]
