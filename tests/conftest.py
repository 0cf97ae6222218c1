import asyncio

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interview_app.core.database import init_db
from interview_app.core.exceptions import ServiceUnavailable
from interview_app.schemas.backend import GradeResult, ParsedProfile, SummaryResult
from interview_app.schemas.candidate import Candidate
from interview_app.services.candidate_repository import CandidateRepository
from interview_app.services.session_controller import SessionController

QUESTIONS = [
    {"id": "q1", "text": "What does the virtual DOM buy you?", "difficulty": "easy"},
    {"id": "q2", "text": "What is a closure?", "difficulty": "easy"},
    {"id": "q3", "text": "How does the Node.js event loop schedule work?", "difficulty": "medium"},
    {"id": "q4", "text": "When would you reach for useMemo?", "difficulty": "medium"},
    {"id": "q5", "text": "Design a rate limiter for a REST API.", "difficulty": "hard"},
    {"id": "q6", "text": "How would you shard a growing Postgres table?", "difficulty": "hard"},
]


class FakeBackend:
    """In-process stand-in for InterviewBackendClient."""

    def __init__(self):
        self.questions = [dict(q) for q in QUESTIONS]
        self.generation_error: Exception | None = None
        self.generation_gate: asyncio.Event | None = None
        self.failing_grades: set[int] = set()  # 1-based call numbers
        self.fail_summary = False
        self.summary_gate: asyncio.Event | None = None
        self.summary = SummaryResult(final_score_percent=82, summary="Strong fundamentals.")
        self.profile = ParsedProfile(name="Grace Hopper", email="grace@example.com", phone="555-0199")

        self.generate_calls = 0
        self.graded: list[tuple[str, str]] = []
        self.summarized: list[Candidate] = []

    async def generate_questions(self, role, stack):
        self.generate_calls += 1
        if self.generation_gate is not None:
            await self.generation_gate.wait()
        if self.generation_error is not None:
            raise self.generation_error
        return [dict(q) for q in self.questions]

    async def grade_answer(self, question_text, response_text):
        self.graded.append((question_text, response_text))
        call = len(self.graded)
        if call in self.failing_grades:
            raise ServiceUnavailable("grading service returned 500")
        return GradeResult(score=float(call), feedback=f"feedback {call}")

    async def final_summary(self, candidate):
        self.summarized.append(candidate)
        if self.summary_gate is not None:
            await self.summary_gate.wait()
        if self.fail_summary:
            raise ServiceUnavailable("summary service timed out")
        return self.summary

    async def parse_resume(self, filename, content):
        return self.profile


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def repository(session_factory):
    return CandidateRepository(session_factory)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def controller(repository, backend):
    return SessionController(repository, backend, autorun_timer=False)


@pytest.fixture
def add_candidate(repository):
    def _add(**fields):
        profile = {"name": "Ada Lovelace", "email": "ada@example.com", "phone": "555-0100"}
        profile.update(fields)
        return repository.add(Candidate(**profile))

    return _add


async def run_ticks(controller, count):
    for _ in range(count):
        await controller.timer.tick()
