"""
processor.py — Whole-class grading pipeline.

    roster + config
      -> weighted score per learner × subject   (components)
      -> class mean / population std per subject (stats)
      -> NRT grade per cell                      (grading)
      -> best-N aggregate, category, rank        (ranking)

Each call processes one class roster in full and keeps no state between
calls, so the same inputs always give the same output.
"""

import logging
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from scoring.components import compute_weighted_subject_score
from scoring.config import validate_subject_list, validate_subject_references
from scoring.grading import generate_subject_remark, resolve_grade
from scoring.models import (
    ClassStatistics,
    ComputedSubjectScore,
    GradingConfig,
    Learner,
    RankedLearner,
)
from scoring.ranking import compute_aggregate_outcome, rank_roster
from scoring.stats import compute_subject_statistics

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION = "Continue with intensive review."


def build_score_matrix(
    learners: Sequence[Learner], config: GradingConfig, subjects: Sequence[str]
) -> pd.DataFrame:
    """Learner × subject matrix of weighted scores, rows in roster order."""
    rows = [
        [compute_weighted_subject_score(learner, subject, config) for subject in subjects]
        for learner in learners
    ]
    return pd.DataFrame(rows, columns=list(subjects), dtype=float)


def compute_learner_subjects(
    learner: Learner,
    scores: pd.Series,
    stats: Dict[str, ClassStatistics],
    config: GradingConfig,
    class_size: int,
) -> List[ComputedSubjectScore]:
    """Graded subjects for one learner, best score first (ties keep subject order)."""
    computed = []
    for subject, raw in scores.items():
        score = int(raw)
        subject_stats = stats[subject]
        grade = resolve_grade(
            score, subject_stats.mean, subject_stats.std_dev,
            config.grading_scale, config, class_size,
        )
        detail = learner.score_details.get(subject)
        computed.append(ComputedSubjectScore(
            subject=subject,
            score=score,
            grade=grade.grade,
            grade_value=grade.value,
            interpretation=grade.remark,
            color=grade.color,
            class_mean=subject_stats.mean,
            is_core=config.is_core(subject),
            facilitator=config.facilitator_mapping.get(subject, "N/A"),
            remark=(detail.remark if detail and detail.remark else generate_subject_remark(score)),
            section_a=detail.objective if detail else 0.0,
            section_b=detail.theory if detail else 0.0,
        ))
    return sorted(computed, key=lambda c: c.score, reverse=True)


def process_class(
    learners: Sequence[Learner], config: GradingConfig, subjects: Sequence[str]
) -> Tuple[pd.DataFrame, Dict[str, ClassStatistics], List[List[ComputedSubjectScore]]]:
    """
    Grade every learner in every subject.

    Returns the score matrix, the per-subject statistics and one computed
    subject list per learner (roster order).
    """
    class_size = len(learners)
    matrix = build_score_matrix(learners, config, subjects)
    stats = compute_subject_statistics(matrix)

    for subject, subject_stats in stats.items():
        if class_size and subject_stats.std_dev <= 0:
            logger.info(
                "Uniform performance in %s (mean %.2f); every learner gets the middle band.",
                subject, subject_stats.mean,
            )

    per_learner = [
        compute_learner_subjects(learner, matrix.iloc[idx], stats, config, class_size)
        for idx, learner in enumerate(learners)
    ]
    return matrix, stats, per_learner


def process_roster(
    learners: Sequence[Learner], config: GradingConfig, subjects: Sequence[str]
) -> List[RankedLearner]:
    """Grade, aggregate and rank a whole class roster (best aggregate first)."""
    validate_subject_list(subjects, config)
    validate_subject_references(learners, config, subjects)

    logger.debug("Processing roster of %d learners across %d subjects", len(learners), len(subjects))
    _, _, per_learner = process_class(learners, config, subjects)

    records = []
    for idx, (learner, computed) in enumerate(zip(learners, per_learner)):
        outcome = compute_aggregate_outcome(computed, config.policy)
        if not outcome.complete_subject_load:
            logger.warning(
                "Learner %s has an incomplete subject load; aggregate set to %d.",
                learner.id, outcome.aggregate,
            )
        records.append(RankedLearner(
            serial=idx + 1,
            learner_id=learner.id,
            name=learner.name,
            current_class=learner.current_class,
            is_fees_cleared=learner.is_fees_cleared,
            class_size=len(learners),
            computed_scores=computed,
            outcome=outcome,
            overall_remark=learner.final_remark or f"Performance is {outcome.category.lower()}.",
            recommendation=learner.recommendation or DEFAULT_RECOMMENDATION,
        ))

    return rank_roster(records)
