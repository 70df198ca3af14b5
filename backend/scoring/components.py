"""
components.py — Composite (weighted) subject score for one learner.

Three components, each normalised to a 0–100 percentage then weighted:
- Exercises: mean of raw/max over every exercise entry for the subject
- CATs: mean of cat1/max, cat2/max, cat3/max for the learner's class
- Terminal: (Section A + Section B) / (maxA + maxB)

The weighted sum is rounded half-up. It is not clamped to 100; weights or
maxima that do not add up are the caller's problem.
"""

import math
import re
from typing import Tuple

from scoring.models import (
    GradingConfig,
    Learner,
    TerminalScoreDetail,
    clamp_score,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_science_subject(subject: str, config: GradingConfig) -> bool:
    return re.search(config.policy.science_pattern, subject, re.IGNORECASE) is not None


def terminal_section_maxima(subject: str, class_name: str, config: GradingConfig) -> Tuple[float, float]:
    """
    Effective (Section A, Section B) maxima for a class + subject.

    Science subjects switch to the fixed 40/100 basis when the institution's
    science threshold selects it; everything else uses the class terminal config.
    """
    policy = config.policy
    if is_science_subject(subject, config) and config.effective_science_threshold == policy.science_raw_basis:
        return policy.science_section_maxima

    t_config = config.terminal_configs.get(class_name)
    if t_config is None:
        return policy.default_terminal_maxima
    return t_config.section_a_max, t_config.section_b_max


def clamp_terminal_detail(
    detail: TerminalScoreDetail, subject: str, class_name: str, config: GradingConfig
) -> TerminalScoreDetail:
    """Score-entry helper: clamp both sections to their effective maxima."""
    max_a, max_b = terminal_section_maxima(subject, class_name, config)
    return TerminalScoreDetail(
        objective=clamp_score(detail.objective, max_a),
        theory=clamp_score(detail.theory, max_b),
        remark=detail.remark,
    )


# ── Components (unweighted fractions, 0..1) ────────────────────────

def exercise_fraction(learner: Learner, subject: str, config: GradingConfig) -> float:
    """Mean of raw/max across the subject's exercise entries; 0 with no entries."""
    entries = [e for e in config.exercise_entries if e.subject == subject]
    if not entries:
        return 0.0
    total = sum(e.pupil_scores.get(learner.id, 0.0) / e.max_score for e in entries)
    return total / len(entries)


def cat_fraction(learner: Learner, subject: str, config: GradingConfig) -> float:
    """Mean of the three CAT ratios; 0 when the class has no CAT config for the subject."""
    cat_config = config.cat_configs.get(learner.current_class, {}).get(subject)
    if cat_config is None:
        return 0.0
    ratios = [c.scores.get(learner.id, 0.0) / c.marks for c in cat_config.components()]
    return sum(ratios) / len(ratios)


def terminal_fraction(learner: Learner, subject: str, config: GradingConfig) -> float:
    """(objective + theory) over the effective section maxima; 0 with no terminal scores."""
    detail = learner.score_details.get(subject)
    if detail is None:
        return 0.0
    max_a, max_b = terminal_section_maxima(subject, learner.current_class, config)
    return (detail.objective + detail.theory) / (max_a + max_b)


# ── Weighted Score ──────────────────────────────────────────────────

def compute_component_breakdown(learner: Learner, subject: str, config: GradingConfig) -> dict:
    """Weighted contribution of each component, before rounding."""
    weights = config.weights
    return {
        "exercises": exercise_fraction(learner, subject, config) * 100 * (weights.exercises / 100),
        "cats": cat_fraction(learner, subject, config) * 100 * (weights.cats / 100),
        "terminal": terminal_fraction(learner, subject, config) * 100 * (weights.terminal / 100),
    }


def compute_weighted_subject_score(learner: Learner, subject: str, config: GradingConfig) -> int:
    """Composite 0–100 percentage for one learner and one subject."""
    breakdown = compute_component_breakdown(learner, subject, config)
    return _round_half_up(sum(breakdown.values()))
