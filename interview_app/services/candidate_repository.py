import logging
from typing import Callable

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from interview_app.core.config import settings
from interview_app.core.exceptions import CandidateNotFound, PersistenceError
from interview_app.schemas.candidate import Candidate
from interview_app.services.kv_store import get_value, put_value

logger = logging.getLogger(__name__)

_collection = TypeAdapter(list[Candidate])


class CandidateRepository:
    """Owns the candidate collection.

    The whole collection lives under a single key and is rewritten on every
    save. The in-memory list is the source of truth: when a save fails the
    change stays in memory and goes out with the next successful save.
    """

    def __init__(self, session_factory: sessionmaker, key: str = settings.CANDIDATES_KEY):
        self.session_factory = session_factory
        self.key = key
        self._candidates: list[Candidate] | None = None

    def load_candidates(self) -> list[Candidate]:
        try:
            with self.session_factory() as db:
                raw = get_value(db, self.key)
        except SQLAlchemyError as exc:
            logger.exception("Could not read %r from the store", self.key)
            raise PersistenceError(f"Could not load candidates: {exc}") from exc

        if raw is None:
            return []
        try:
            return _collection.validate_json(raw)
        except SchemaError as exc:
            raise PersistenceError(f"Stored candidates are unreadable: {exc}") from exc

    def save_candidates(self, candidates: list[Candidate]) -> None:
        payload = _collection.dump_json(candidates, by_alias=True).decode()
        try:
            with self.session_factory() as db:
                put_value(db, self.key, payload)
        except SQLAlchemyError as exc:
            logger.exception("Could not write %r to the store", self.key)
            raise PersistenceError(f"Could not save candidates: {exc}") from exc

    @property
    def candidates(self) -> list[Candidate]:
        if self._candidates is None:
            self._candidates = self.load_candidates()
        return self._candidates

    def all(self) -> list[Candidate]:
        return list(self.candidates)

    def get(self, candidate_id: str) -> Candidate:
        for candidate in self.candidates:
            if candidate.id == candidate_id:
                return candidate
        raise CandidateNotFound(f"Candidate {candidate_id} not found")

    def add(self, candidate: Candidate) -> Candidate:
        self.candidates.append(candidate)
        self.save_candidates(self.candidates)
        return candidate

    def update(self, candidate_id: str, fn: Callable[[Candidate], Candidate]) -> Candidate:
        """Read the record, apply ``fn``, replace it and save.

        ``fn`` must return a new Candidate and must not touch other records.
        """
        candidates = self.candidates
        for i, current in enumerate(candidates):
            if current.id == candidate_id:
                updated = fn(current)
                candidates[i] = updated
                self.save_candidates(candidates)
                return updated
        raise CandidateNotFound(f"Candidate {candidate_id} not found")
