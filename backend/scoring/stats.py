"""
stats.py — numpy/pandas/scipy statistics over weighted subject scores.

Computes:
- Class mean and population standard deviation of one subject's scores
- Per-subject statistics over a learner × subject score matrix
- Subject summary (median, spread, pearson correlations) for master sheets
- Facilitator statistics (grade distribution, performance percentage)
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from scoring.components import compute_weighted_subject_score
from scoring.grading import resolve_grade
from scoring.models import ClassStatistics, GradingConfig, Learner


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    """Convert to float or return None."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round(v, 2)
    except (TypeError, ValueError):
        return None


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


# ── Class Statistics ────────────────────────────────────────────────

def compute_class_statistics(scores: Iterable[float]) -> ClassStatistics:
    """
    Mean and population standard deviation (divide by N) of one score series.
    An empty series gives mean 0 and std_dev 0.
    """
    arr = np.asarray(list(scores), dtype=float)
    if arr.size == 0:
        return ClassStatistics(mean=0.0, std_dev=0.0)

    mean = float(arr.mean())
    # Identical values have exactly zero spread, whatever float summation does.
    if np.ptp(arr) == 0:
        return ClassStatistics(mean=float(arr[0]), std_dev=0.0)
    return ClassStatistics(mean=mean, std_dev=float(arr.std(ddof=0)))


def compute_subject_statistics(matrix: pd.DataFrame) -> Dict[str, ClassStatistics]:
    """Per-column (subject) class statistics over a learner × subject matrix."""
    return {
        str(subject): compute_class_statistics(matrix[subject].dropna().tolist())
        for subject in matrix.columns
    }


# ── Subject Summary ─────────────────────────────────────────────────

def compute_subject_summary(matrix: pd.DataFrame, config: GradingConfig) -> Dict[str, Any]:
    """Master-sheet subject statistics: spread, extremes and pearson correlations."""
    subjects_data = []
    for subject in matrix.columns:
        col = pd.to_numeric(matrix[subject], errors="coerce").dropna()
        if len(col) == 0:
            continue
        class_stats = compute_class_statistics(col.tolist())
        subjects_data.append({
            "subject": str(subject),
            "is_core": config.is_core(str(subject)),
            "mean": _safe_float(class_stats.mean),
            "median": _safe_float(col.median()),
            "std": _safe_float(class_stats.std_dev),
            "min": _safe_float(col.min()),
            "max": _safe_float(col.max()),
            "count": len(col),
        })

    # Sort by mean descending
    subjects_data.sort(key=lambda x: x["mean"] or 0, reverse=True)

    corr_pairs = []
    cols = list(matrix.columns)
    for i in range(len(cols)):
        for j in range(i + 1, len(cols)):
            col_a, col_b = cols[i], cols[j]
            valid = matrix[[col_a, col_b]].dropna().astype(float)
            # pearsonr is undefined on constant input
            if len(valid) >= 3 and valid[col_a].nunique() > 1 and valid[col_b].nunique() > 1:
                r, p = sp_stats.pearsonr(valid[col_a], valid[col_b])
                corr_pairs.append({
                    "subject_a": str(col_a),
                    "subject_b": str(col_b),
                    "r": _safe_float(r),
                    "p_value": _safe_float(p),
                })

    return _sanitize({
        "class_size": int(len(matrix.index)),
        "subjects": subjects_data,
        "correlation_pairs": corr_pairs,
    })


# ── Facilitator Statistics ──────────────────────────────────────────

def compute_facilitator_stats(
    learners: Sequence[Learner], config: GradingConfig, subject: str
) -> Dict[str, Any]:
    """
    Grade distribution and performance index for the facilitator of one subject.

    performance_percentage = (1 - total grade points / (pupils × worst points)) × 100,
    so a class of all-best grades scores highest. The facilitator grade is the
    scale band whose points equal the rounded mean grade points.
    """
    scale = config.grading_scale
    facilitator = config.facilitator_mapping.get(subject, "Unknown")
    scores: List[int] = [compute_weighted_subject_score(learner, subject, config) for learner in learners]
    class_stats = compute_class_statistics(scores)
    class_size = len(learners)

    distribution = {entry.grade: 0 for entry in scale}
    total_value = 0
    for score in scores:
        grade = resolve_grade(score, class_stats.mean, class_stats.std_dev, scale, config, class_size)
        distribution[grade.grade] += 1
        total_value += grade.value

    pupils = class_size or 1
    worst_value = scale[-1].value
    performance = (1 - (total_value / (pupils * worst_value))) * 100
    # Half-up, matching the weighted score rounding
    avg_value = int(np.floor(total_value / pupils + 0.5))
    facilitator_grade = next((e.grade for e in scale if e.value == avg_value), scale[-1].grade)

    return _sanitize({
        "subject": subject,
        "facilitator": facilitator,
        "distribution": distribution,
        "total_pupils": class_size,
        "class_mean": _safe_float(class_stats.mean),
        "class_std": _safe_float(class_stats.std_dev),
        "performance_percentage": _safe_float(performance),
        "grade": facilitator_grade,
    })
