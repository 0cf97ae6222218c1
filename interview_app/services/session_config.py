from interview_app.utils.enums import Difficulty

QUESTION_COUNT = 6

DIFFICULTY_SECONDS = {
    Difficulty.EASY: 20,
    Difficulty.MEDIUM: 60,
    Difficulty.HARD: 120,
}

AUTO_SUBMIT_MARKER = "[AUTO SUBMITTED]"

PROFILE_FIELDS = ("name", "email", "phone")


def budget_for(difficulty: Difficulty) -> int:
    return DIFFICULTY_SECONDS[Difficulty(difficulty)]
