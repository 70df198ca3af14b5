"""
Shared fixtures: a six-learner Basic 9A roster graded on terminal scores only.

Learner i (0..5) scores 90 - 10*i in every subject, so each subject has
mean 65 and population std ~17.08. With six learners the Auto model applies
the small-sample correction, which gives grades B2, B3, C4, C5, C6, D7.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from scoring.config import build_grading_config
from scoring.models import Learner, TerminalScoreDetail

CLASS_NAME = "Basic 9A"
SUBJECTS = [
    "Mathematics",
    "English Language",
    "Science",
    "Social Studies",
    "French",
    "I.C.T",
]
NAMES = ["Ama Mensah", "Kofi Boateng", "Esi Owusu", "Yaw Asante", "Akua Darko", "Kwame Ofori"]


def make_learner(learner_id, name, scores, class_name=CLASS_NAME, **extra):
    """Learner whose terminal theory score per subject is given; objective is 0."""
    details = {subj: TerminalScoreDetail(objective=0, theory=score) for subj, score in scores.items()}
    return Learner(id=learner_id, name=name, current_class=class_name, score_details=details, **extra)


@pytest.fixture
def terminal_only_config():
    return build_grading_config({
        "weights": {"exercises": 0, "cats": 0, "terminal": 100},
        "science_threshold": 100,
        "terminal_configs": {CLASS_NAME: {"section_a_max": 30, "section_b_max": 70}},
        "facilitator_mapping": {"Mathematics": "Sir Michael"},
    })


@pytest.fixture
def roster():
    """Six learners, listed worst first so ranking has something to do."""
    learners = []
    for i in reversed(range(6)):
        score = 90 - 10 * i
        learners.append(make_learner(f"L{i + 1}", NAMES[i], {s: score for s in SUBJECTS}))
    return learners
