"""Tests for goal content composition."""

from study_pacer.errors import ContentUnavailableError
from study_pacer.models.pacing import GoalType, SkillFocus
from study_pacer.pacing.content import GoalContentComposer


class UnavailableBank:
    def questions_for(self, skill, difficulty=None, count=5):
        raise ContentUnavailableError("bank offline")


class EmptyBank:
    def questions_for(self, skill, difficulty=None, count=5):
        return []


def test_compose_from_bank(composer):
    composed = composer.compose(SkillFocus.LISTENING, GoalType.FOUNDATION, 1)

    assert composed.title == "Listening Practice - What time does the library close on Fridays?..."
    assert composed.description.startswith("Focus on listening with this IELTS-style question.")
    lesson = composed.content.lesson
    assert len(lesson.key_points) == 3
    assert lesson.video_url == "/videos/listening-tutorial.mp4"
    exercise = composed.content.practice.exercises[0]
    assert exercise.type == "listening_practice"
    assert exercise.time_limit == 15
    assessment = composed.content.micro_assessment
    assert assessment.time_limit == 5
    assert [q.question for q in assessment.questions] == [
        "What time does the library close on Fridays?",
        "What is the caller's reference number for the booking?",
    ]


def test_assessment_capped_at_three_questions(composer):
    composed = composer.compose(SkillFocus.LISTENING, GoalType.INTERMEDIATE, 2)
    assert len(composed.content.micro_assessment.questions) == 3


def test_title_excerpt_truncated_to_fifty_characters(composer):
    composed = composer.compose(SkillFocus.READING, GoalType.INTERMEDIATE, 3)
    prefix = "Reading Practice - "
    assert composed.title.startswith(prefix)
    assert composed.title.endswith("...")
    assert len(composed.title) <= len(prefix) + 50 + 3


def test_unavailable_bank_yields_empty_content():
    composed = GoalContentComposer(UnavailableBank()).compose(
        SkillFocus.WRITING, GoalType.ADVANCED, 4
    )
    assert composed.title == "Writing Practice"
    assert composed.description == "Focus on writing today."
    assert composed.content.is_empty


def test_empty_result_yields_empty_content():
    composed = GoalContentComposer(EmptyBank()).compose(SkillFocus.MIXED, GoalType.FOUNDATION, 1)
    assert composed.title == "Mixed Practice"
    assert composed.content.is_empty
    assert composed.content.micro_assessment.questions == ()
