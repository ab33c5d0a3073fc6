"""YAML-backed IELTS question bank."""

import random
from itertools import zip_longest
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, ValidationError

from study_pacer.errors import ContentUnavailableError
from study_pacer.models.pacing import TESTED_SKILLS, ContentDifficulty, QuestionType, SkillFocus

logger = structlog.get_logger()

SPEAKING_PART_ONE = "part1"


class BankQuestion(BaseModel):
    """A single question as stored in the bank."""

    id: str
    skill: SkillFocus
    difficulty: ContentDifficulty
    question: str
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    format: str | None = None
    options: list[str] | None = None
    correct_answer: int | str | None = None
    explanation: str | None = None


class YamlQuestionBank:
    """Serves skill- and difficulty-tagged questions from a YAML file.

    Questions come back in file order. Writing returns a single prompt chosen
    with ``rng`` so tests can pin the pick with a seeded ``random.Random``.
    Speaking always serves Part 1 questions. ``mixed`` interleaves the four
    tested skills.

    Args:
        path: YAML file with one list of questions per skill.
        rng: Random source used for writing prompts.
    """

    def __init__(self, path: Path, rng: random.Random | None = None):
        self.path = path
        self.rng = rng or random.Random()
        self._questions: dict[SkillFocus, list[BankQuestion]] | None = None

    def _load(self) -> dict[SkillFocus, list[BankQuestion]]:
        if self._questions is not None:
            return self._questions
        if not self.path.exists():
            raise ContentUnavailableError(f"Question bank not found: {self.path}")

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            questions = {
                skill: [
                    BankQuestion(skill=skill, **item)
                    for item in data.get(skill.value) or []
                ]
                for skill in TESTED_SKILLS
            }
        except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
            raise ContentUnavailableError(f"Question bank unreadable: {e}") from e

        if not any(questions.values()):
            raise ContentUnavailableError(f"Question bank is empty: {self.path}")

        logger.info(
            "question_bank_loaded",
            path=str(self.path),
            counts={skill.value: len(items) for skill, items in questions.items()},
        )
        self._questions = questions
        return questions

    def questions_for(
        self,
        skill: SkillFocus,
        difficulty: ContentDifficulty | None = None,
        count: int = 5,
    ) -> list[BankQuestion]:
        """Return up to ``count`` questions; may be fewer or empty."""
        if skill == SkillFocus.MIXED:
            per_skill = [self.questions_for(s, difficulty, count) for s in TESTED_SKILLS]
            interleaved = [q for group in zip_longest(*per_skill) for q in group if q]
            return interleaved[:count]

        pool = self._load().get(skill, [])
        if skill == SkillFocus.SPEAKING:
            # Daily goals only use Part 1 interview questions
            return [q for q in pool if q.format == SPEAKING_PART_ONE][:count]
        if difficulty is not None:
            pool = [q for q in pool if q.difficulty == difficulty]

        if skill == SkillFocus.WRITING:
            return [self.rng.choice(pool)] if pool else []
        return pool[:count]
