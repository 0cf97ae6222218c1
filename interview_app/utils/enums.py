from enum import Enum


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SessionState(str, Enum):
    IDLE = "IDLE"
    PROFILE_INCOMPLETE = "PROFILE_INCOMPLETE"
    FETCHING_QUESTIONS = "FETCHING_QUESTIONS"
    QUESTION_ACTIVE = "QUESTION_ACTIVE"
    PAUSED = "PAUSED"
    GRADING = "GRADING"
    FINALIZING_SUMMARY = "FINALIZING_SUMMARY"
    COMPLETED = "COMPLETED"


class NoticeLevel(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class StatusFilter(str, Enum):
    ALL = "all"
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"


class SortKey(str, Enum):
    FINAL_SCORE = "final_score"
    NAME = "name"
    CREATED_AT = "created_at"
