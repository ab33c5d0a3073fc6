"""Enumerations shared by the pacing engine."""

from enum import StrEnum


class PacingMode(StrEnum):
    """How aggressively the plan runs, derived from days until the exam."""

    INTENSIVE = "INTENSIVE"
    BALANCED = "BALANCED"
    STEADY_BUILD = "STEADY_BUILD"


class GoalType(StrEnum):
    """Difficulty tier of a day's assignment."""

    FOUNDATION = "foundation"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    MOCK = "mock"
    RECOVERY = "recovery"


class SkillFocus(StrEnum):
    """Skill a goal targets. Declaration order is the tie-break order."""

    LISTENING = "listening"
    READING = "reading"
    WRITING = "writing"
    SPEAKING = "speaking"
    MIXED = "mixed"

    @property
    def label(self) -> str:
        return self.value.capitalize()


# The four skills the exam actually reports a band for
TESTED_SKILLS: tuple[SkillFocus, ...] = (
    SkillFocus.LISTENING,
    SkillFocus.READING,
    SkillFocus.WRITING,
    SkillFocus.SPEAKING,
)


class ContentDifficulty(StrEnum):
    """Difficulty tag used by the question bank."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def for_goal_type(cls, goal_type: GoalType) -> "ContentDifficulty":
        """Map a goal tier onto the bank's difficulty scale."""
        if goal_type == GoalType.FOUNDATION:
            return cls.EASY
        elif goal_type == GoalType.ADVANCED:
            return cls.HARD
        else:
            return cls.MEDIUM


class QuestionType(StrEnum):
    """Answer format of an assessment question."""

    MULTIPLE_CHOICE = "multiple_choice"
    TEXT = "text"
    SPEAKING = "speaking"
