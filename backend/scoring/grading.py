"""
grading.py — Norm-referenced (z-score) grade resolution.

A learner's weighted score is placed on the class distribution:
    z = (score - mean) / std_dev
and matched against the scale's cut-offs, best band first.

Small classes: under the T-Dist model, or the Auto model with fewer than
``policy.small_sample_cutoff`` learners, z is divided by sqrt(n / (n - 1)).
This is a flat variance-inflation factor, not a Student's t quantile. It
is kept as-is so grades match the ones schools already issued.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

from scoring.errors import GradingConfigError
from scoring.models import DistributionModel, GradingConfig, GradingScaleEntry, ResolvedGrade
from scoring.policy import GradingPolicy


# Default per-subject remark bands (min_score, remark), high to low
SUBJECT_REMARKS = [
    (80, "Exceptional grasp of concepts. Keep it up!"),
    (70, "Strong performance. Consistent effort observed."),
    (60, "Good understanding. Can achieve more with practice."),
    (50, "Satisfactory progress. Needs more focus on details."),
    (40, "Fair performance. More work required in basic concepts."),
]
FALLBACK_SUBJECT_REMARK = "Needs intensive intervention and consistent monitoring."


def uses_small_sample_correction(
    model: DistributionModel, class_size: int, policy: GradingPolicy
) -> bool:
    if model == DistributionModel.T_DIST:
        return True
    return model == DistributionModel.AUTO and class_size < policy.small_sample_cutoff


def small_sample_factor(class_size: int) -> float:
    """sqrt(n / (n - 1)); 1.0 when n <= 1."""
    if class_size <= 1:
        return 1.0
    return math.sqrt(class_size / (class_size - 1))


def _with_remark(entry: GradingScaleEntry, config: GradingConfig, z: Optional[float]) -> ResolvedGrade:
    return ResolvedGrade(
        grade=entry.grade,
        value=entry.value,
        remark=config.remark_overrides.get(entry.grade) or entry.remark,
        color=entry.color,
        z_score=z,
    )


def resolve_grade(
    score: float,
    mean: float,
    std_dev: float,
    scale: Sequence[GradingScaleEntry],
    config: GradingConfig,
    class_size: int,
) -> ResolvedGrade:
    """
    Grade for one score against its class distribution.

    ``scale`` is normally ``config.grading_scale``; an empty one raises
    GradingConfigError.

    - std_dev <= 0 (uniform class): the scale's middle entry.
    - otherwise: the first entry (best to worst) whose cut-off is <= z;
      a z equal to a cut-off gets that band. Falls back to the worst entry.
    """
    if not scale:
        raise GradingConfigError("Grading scale is empty.")

    if std_dev <= 0:
        return _with_remark(scale[len(scale) // 2], config, None)

    z = (score - mean) / std_dev
    if uses_small_sample_correction(config.distribution_model, class_size, config.policy):
        z = z / small_sample_factor(class_size)

    for entry in scale:
        if z >= entry.z_score:
            return _with_remark(entry, config, z)
    return _with_remark(scale[-1], config, z)


def generate_subject_remark(score: float) -> str:
    """Default facilitator remark for a weighted subject score."""
    for min_score, remark in SUBJECT_REMARKS:
        if score >= min_score:
            return remark
    return FALLBACK_SUBJECT_REMARK


def get_scale_legend(scale: Sequence[GradingScaleEntry]) -> List[Dict[str, Any]]:
    """Full scale for legend/reference, with each band's z-score range."""
    legend = []
    for idx, entry in enumerate(scale):
        legend.append({
            "grade": entry.grade,
            "points": entry.value,
            "z_min": entry.z_score,
            "z_below": None if idx == 0 else scale[idx - 1].z_score,
            "remark": entry.remark,
            "color": entry.color,
        })
    return legend
