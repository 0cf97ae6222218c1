import asyncio
import logging
from datetime import datetime
from typing import Protocol

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from interview_app.core.config import settings
from interview_app.core.exceptions import (
    InterviewError,
    PersistenceError,
    ServiceUnavailable,
    SessionBusy,
    ValidationError,
)
from interview_app.schemas.backend import GradeResult, ParsedProfile, SummaryResult
from interview_app.schemas.candidate import Answer, Candidate, Question, TimerSnapshot
from interview_app.schemas.session import Notice, SessionView
from interview_app.services.candidate_repository import CandidateRepository
from interview_app.services.session_config import (
    AUTO_SUBMIT_MARKER,
    PROFILE_FIELDS,
    QUESTION_COUNT,
)
from interview_app.services.timer_engine import TimerEngine, TimerHandle
from interview_app.utils.enums import NoticeLevel, SessionState

logger = logging.getLogger(__name__)

_question_set = TypeAdapter(list[Question])

_LOG_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.SUCCESS: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


class InterviewBackend(Protocol):
    async def generate_questions(self, role: str, stack: list[str]) -> list[dict]: ...

    async def grade_answer(self, question_text: str, response_text: str) -> GradeResult: ...

    async def final_summary(self, candidate: Candidate) -> SummaryResult: ...

    async def parse_resume(self, filename: str, content: bytes) -> ParsedProfile: ...


def detect_resumable(candidates: list[Candidate]) -> Candidate | None:
    """First candidate with unanswered questions and no final score."""
    for candidate in candidates:
        if len(candidate.answers) < candidate.questions_length and candidate.final_score is None:
            return candidate
    return None


# Pure record transformations, applied through CandidateRepository.update

def _with_timer(candidate: Candidate, question_index: int, remaining: int, **changes) -> Candidate:
    snapshot = TimerSnapshot(question_index=question_index, remaining_seconds=remaining)
    return candidate.model_copy(update={"timer": snapshot, **changes})


def _record_tick(candidate: Candidate, question_index: int, remaining: int) -> Candidate:
    # a late tick for a question that was already answered is dropped
    if candidate.current_index != question_index or candidate.final_score is not None:
        return candidate
    return _with_timer(candidate, question_index, remaining)


def _append_answer(candidate: Candidate, answer: Answer) -> Candidate:
    return candidate.model_copy(update={
        "answers": [*candidate.answers, answer],
        "current_index": candidate.current_index + 1,
        "timer": None,
        "paused": False,
    })


def _attach_grade(candidate: Candidate, index: int, question_id: str, grade: GradeResult) -> Candidate:
    if index >= len(candidate.answers) or candidate.answers[index].question_id != question_id:
        return candidate
    answers = list(candidate.answers)
    answers[index] = answers[index].model_copy(
        update={"score": grade.score, "feedback": grade.feedback}
    )
    return candidate.model_copy(update={"answers": answers})


def _mark_complete(candidate: Candidate, result: SummaryResult | None = None) -> Candidate:
    changes = {
        "current_index": candidate.questions_length,
        "timer": None,
        "paused": False,
        "completed_at": datetime.utcnow(),
    }
    if result is not None:
        changes["final_score"] = result.final_score_percent
        changes["summary"] = result.summary
    return candidate.model_copy(update=changes)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class SessionController:
    """
    Drives one candidate at a time through the interview.

    States follow SessionState: IDLE -> PROFILE_INCOMPLETE ->
    FETCHING_QUESTIONS -> QUESTION_ACTIVE <-> GRADING -> QUESTION_ACTIVE or
    FINALIZING_SUMMARY -> COMPLETED, with QUESTION_ACTIVE <-> PAUSED.

    Every change to a candidate record goes through
    ``CandidateRepository.update``, which is synchronous, so timer ticks and
    network completions never interleave inside a write. Grading and the
    final summary run as background tasks and report failures as notices
    instead of raising.
    """

    def __init__(
        self,
        repository: CandidateRepository,
        backend: InterviewBackend,
        role: str = settings.INTERVIEW_ROLE,
        stack: list[str] | None = None,
        tick_seconds: float = settings.TIMER_TICK_SECONDS,
        autorun_timer: bool = True,
    ):
        self.repository = repository
        self.backend = backend
        self.role = role
        self.stack = list(stack if stack is not None else settings.INTERVIEW_STACK)
        self.timer = TimerEngine(
            on_tick=self._on_tick,
            on_expire=self._on_expire,
            interval=tick_seconds,
            autorun=autorun_timer,
        )

        self.state = SessionState.IDLE
        self.active_id: str | None = None
        self.draft = ""
        self.notices: list[Notice] = []

        self._opening = False
        self._background: set[asyncio.Task] = set()
        self._grading: dict[str, set[asyncio.Task]] = {}
        self._finalizing: dict[str, asyncio.Task] = {}

    @property
    def busy(self) -> bool:
        return self._opening

    # -- notices and views -------------------------------------------------

    def _notify(self, level: NoticeLevel, message: str):
        logger.log(_LOG_LEVELS[level], message)
        self.notices.append(Notice(level=level, message=message))

    def pop_notices(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices

    def active_candidate(self) -> Candidate | None:
        if self.active_id is None:
            return None
        return self.repository.get(self.active_id)

    def view(self, consume_notices: bool = False) -> SessionView:
        notices = self.pop_notices() if consume_notices else list(self.notices)
        candidate = self.active_candidate()
        if candidate is None:
            return SessionView(state=self.state, busy=self.busy, notices=notices)

        remaining = None
        if self.timer.running:
            remaining = self.timer.remaining
        elif candidate.timer is not None:
            remaining = candidate.timer.remaining_seconds

        return SessionView(
            state=self.state,
            busy=self.busy,
            candidate_id=candidate.id,
            question_index=candidate.current_index,
            question_count=candidate.questions_length,
            question=candidate.current_question(),
            remaining_seconds=remaining,
            paused=candidate.paused,
            draft=self.draft,
            final_score=candidate.final_score,
            summary=candidate.summary,
            notices=notices,
        )

    def find_resumable(self) -> Candidate | None:
        return detect_resumable(self.repository.all())

    # -- profile intake ----------------------------------------------------

    async def intake_profile(
        self,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        resume_file: str | None = None,
    ) -> Candidate:
        """Create a candidate and open its session when the profile is complete."""
        if self._opening:
            raise SessionBusy("Questions are still being generated")

        candidate = self.repository.add(Candidate(
            name=_clean(name),
            email=_clean(email),
            phone=_clean(phone),
            resume_file=resume_file,
        ))
        logger.info("Created candidate %s", candidate.id)

        if candidate.missing_fields():
            self._deactivate()
            self.active_id = candidate.id
            self.state = SessionState.PROFILE_INCOMPLETE
            return candidate

        await self.open_session(candidate.id, resume=False)
        return self.repository.get(candidate.id)

    async def intake_resume(self, filename: str, content: bytes) -> Candidate:
        if self._opening:
            raise SessionBusy("Questions are still being generated")
        profile = await self.backend.parse_resume(filename, content)
        return await self.intake_profile(
            profile.name, profile.email, profile.phone, resume_file=filename
        )

    async def complete_profile(self, candidate_id: str, fields: dict) -> SessionView:
        if self._opening:
            raise SessionBusy("Questions are still being generated")

        candidate = self.repository.get(candidate_id)
        updates = {
            key: _clean(value)
            for key, value in fields.items()
            if key in PROFILE_FIELDS and _clean(value)
        }
        missing = candidate.model_copy(update=updates).missing_fields()
        if missing:
            raise ValueError(f"Please fill all required fields: {', '.join(missing)}")

        self.repository.update(candidate_id, lambda c: c.model_copy(update=updates))
        return await self.open_session(candidate_id, resume=False)

    # -- session lifecycle -------------------------------------------------

    async def open_session(self, candidate_id: str, resume: bool = False) -> SessionView:
        if self._opening:
            raise SessionBusy("Questions are still being generated")

        candidate = self.repository.get(candidate_id)
        self._deactivate()

        if candidate.missing_fields():
            self.active_id = candidate_id
            self.state = SessionState.PROFILE_INCOMPLETE
            return self.view()

        if not candidate.questions:
            self._opening = True
            self.state = SessionState.FETCHING_QUESTIONS
            try:
                questions = await self._fetch_questions()
                candidate = self.repository.update(
                    candidate_id, lambda c: c.model_copy(update={"questions": questions})
                )
            except InterviewError as exc:
                self.state = SessionState.IDLE
                self._notify(NoticeLevel.ERROR, str(exc))
                raise
            except Exception:
                self.state = SessionState.IDLE
                raise
            finally:
                self._opening = False

        self.active_id = candidate_id

        if candidate.all_answered():
            if candidate.is_completed():
                self.state = SessionState.COMPLETED
            else:
                # answers are all in but finalization never finished
                self._start_finalize(candidate_id)
            return self.view()

        index = len(candidate.answers)
        remaining = candidate.questions[index].budget_seconds
        if resume and candidate.timer is not None and candidate.timer.question_index == index:
            remaining = candidate.timer.remaining_seconds
        paused = resume and candidate.paused

        self.repository.update(
            candidate_id,
            lambda c: _with_timer(c, index, remaining, current_index=index, paused=paused),
        )

        if paused:
            self.state = SessionState.PAUSED
        else:
            self._start_question(candidate_id, index, remaining)

        logger.info(
            "Opened session for %s at question %d/%d (%ds left%s)",
            candidate_id, index + 1, candidate.questions_length, remaining,
            ", paused" if paused else "",
        )
        return self.view()

    async def _fetch_questions(self) -> list[Question]:
        raw = await self.backend.generate_questions(self.role, self.stack)
        if not isinstance(raw, list) or len(raw) != QUESTION_COUNT:
            count = len(raw) if isinstance(raw, list) else 0
            raise ValidationError(
                f"Backend must return exactly {QUESTION_COUNT} questions, got {count}."
            )
        try:
            return _question_set.validate_python(raw)
        except SchemaError as exc:
            raise ValidationError(f"Backend returned malformed questions: {exc}") from exc

    def _start_question(self, candidate_id: str, index: int, remaining: int):
        self.timer.start(candidate_id, index, remaining)
        self.state = SessionState.QUESTION_ACTIVE

    def _deactivate(self):
        self.timer.stop()
        self.active_id = None
        self.draft = ""
        self.state = SessionState.IDLE

    def close_session(self):
        """Leave the active session; persisted progress is kept for resume."""
        if self.active_id is not None:
            logger.info("Closed session for %s", self.active_id)
        self._deactivate()

    def set_draft(self, text: str):
        if self.state != SessionState.QUESTION_ACTIVE:
            raise ValueError("No question is accepting input")
        self.draft = text

    async def submit_answer(self, text: str | None = None, auto: bool = False) -> Answer:
        if self.state != SessionState.QUESTION_ACTIVE:
            raise ValueError(f"Cannot submit an answer while {self.state.value}")

        response_text = self.draft if text is None else text
        if not response_text.strip():
            if not auto:
                raise ValueError("Answer text is required")
            response_text = AUTO_SUBMIT_MARKER

        candidate_id = self.active_id
        candidate = self.repository.get(candidate_id)
        index = candidate.current_index
        question = candidate.questions[index]

        self.timer.stop()
        budget = question.budget_seconds
        remaining = budget
        if candidate.timer is not None and candidate.timer.question_index == index:
            remaining = candidate.timer.remaining_seconds

        answer = Answer(
            question_id=question.id,
            question_text=question.text,
            difficulty=question.difficulty,
            response_text=response_text,
            time_taken_seconds=budget - remaining,
            auto_submitted=auto,
        )

        self.state = SessionState.GRADING
        # the record in memory is replaced before saving, so a failed save
        # still leaves the answer in place and the session can move on
        save_error = None
        try:
            self.repository.update(candidate_id, lambda c: _append_answer(c, answer))
        except PersistenceError as exc:
            save_error = exc
            self._notify(NoticeLevel.ERROR, "Could not save your answer.")
        candidate = self.repository.get(candidate_id)
        self.draft = ""
        logger.info(
            "Answer %d/%d recorded for %s%s",
            index + 1, candidate.questions_length, candidate_id,
            " (auto-submitted)" if auto else "",
        )

        grading = self._spawn(self._grade(candidate_id, index, answer))
        pending = self._grading.setdefault(candidate_id, set())
        pending.add(grading)
        grading.add_done_callback(pending.discard)

        if candidate.current_index < candidate.questions_length:
            next_index = candidate.current_index
            next_budget = candidate.questions[next_index].budget_seconds
            try:
                self.repository.update(
                    candidate_id, lambda c: _with_timer(c, next_index, next_budget)
                )
            except PersistenceError as exc:
                save_error = save_error or exc
            self._start_question(candidate_id, next_index, next_budget)
        else:
            self._start_finalize(candidate_id)

        if save_error is not None:
            raise save_error
        return answer

    def pause(self) -> bool:
        if self.state != SessionState.QUESTION_ACTIVE:
            return False

        fallback = self.timer.stop()
        candidate = self.repository.get(self.active_id)
        index = candidate.current_index
        remaining = fallback
        if candidate.timer is not None and candidate.timer.question_index == index:
            remaining = candidate.timer.remaining_seconds

        self.repository.update(
            self.active_id, lambda c: _with_timer(c, index, remaining, paused=True)
        )
        self.state = SessionState.PAUSED
        self._notify(NoticeLevel.INFO, "Interview paused.")
        return True

    def resume(self) -> bool:
        if self.state != SessionState.PAUSED:
            return False

        candidate = self.repository.get(self.active_id)
        index = candidate.current_index
        remaining = candidate.questions[index].budget_seconds
        if candidate.timer is not None and candidate.timer.question_index == index:
            remaining = candidate.timer.remaining_seconds

        self.repository.update(
            self.active_id, lambda c: _with_timer(c, index, remaining, paused=False)
        )
        self._start_question(self.active_id, index, remaining)
        self._notify(NoticeLevel.SUCCESS, "Interview resumed!")
        return True

    # -- timer callbacks ---------------------------------------------------

    def _on_tick(self, handle: TimerHandle, remaining: int):
        try:
            self.repository.update(
                handle.candidate_id,
                lambda c: _record_tick(c, handle.question_index, remaining),
            )
        except PersistenceError:
            self._notify(NoticeLevel.ERROR, "Could not save the remaining time.")

    async def _on_expire(self, handle: TimerHandle):
        if self.active_id != handle.candidate_id or self.state != SessionState.QUESTION_ACTIVE:
            return
        if self.repository.get(handle.candidate_id).current_index != handle.question_index:
            return

        logger.info(
            "Time is up for %s question %d", handle.candidate_id, handle.question_index + 1
        )
        try:
            await self.submit_answer(auto=True)
        except PersistenceError as exc:
            logger.warning(
                "Auto-submitted answer for %s was not saved: %s", handle.candidate_id, exc
            )

    # -- background work ---------------------------------------------------

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _start_finalize(self, candidate_id: str):
        self.state = SessionState.FINALIZING_SUMMARY
        task = self._finalizing.get(candidate_id)
        if task is not None and not task.done():
            return
        task = self._spawn(self._finalize(candidate_id))
        self._finalizing[candidate_id] = task
        task.add_done_callback(lambda _: self._finalizing.pop(candidate_id, None))

    async def drain(self):
        """Wait for every outstanding grading and summary task."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _grade(self, candidate_id: str, index: int, answer: Answer):
        try:
            grade = await self.backend.grade_answer(answer.question_text, answer.response_text)
        except ServiceUnavailable as exc:
            logger.warning(
                "Grading failed for %s answer %d: %s", candidate_id, index + 1, exc
            )
            self._notify(NoticeLevel.WARNING, "Error grading answer.")
            return

        try:
            self.repository.update(
                candidate_id, lambda c: _attach_grade(c, index, answer.question_id, grade)
            )
        except PersistenceError:
            self._notify(NoticeLevel.ERROR, "Could not save the grade for your answer.")

    async def _finalize(self, candidate_id: str):
        pending = self._grading.pop(candidate_id, set())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        candidate = self.repository.get(candidate_id)
        try:
            result = await self.backend.final_summary(candidate)
        except ServiceUnavailable as exc:
            logger.warning("Summary failed for %s: %s", candidate_id, exc)
            result = None

        try:
            self.repository.update(candidate_id, lambda c: _mark_complete(c, result))
        except PersistenceError:
            self._notify(NoticeLevel.ERROR, "Could not save the interview results.")

        if result is None:
            self._notify(
                NoticeLevel.ERROR,
                "Interview finished but the summary could not be generated.",
            )
        else:
            self._notify(NoticeLevel.SUCCESS, "Interview completed!")

        if self.active_id == candidate_id:
            self.state = SessionState.COMPLETED
