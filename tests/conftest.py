"""Shared fixtures."""

import random
from pathlib import Path

import pytest

from study_pacer.content.question_bank import YamlQuestionBank
from study_pacer.pacing.content import GoalContentComposer
from study_pacer.pacing.generator import AdaptiveGoalGenerator

QUESTION_BANK = Path(__file__).resolve().parent.parent / "config" / "question_bank.yaml"


@pytest.fixture
def question_bank():
    return YamlQuestionBank(QUESTION_BANK, rng=random.Random(7))


@pytest.fixture
def composer(question_bank):
    return GoalContentComposer(question_bank)


@pytest.fixture
def generator(composer):
    return AdaptiveGoalGenerator(composer)
