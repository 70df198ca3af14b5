"""
policy.py — Institutional policy constants for NRT grading.

Everything the engine would otherwise hard-code lives here:
  - the default 9-band norm-referenced scale (A1 .. F9)
  - the core subject list used for the best-6 aggregate
  - aggregate category bands and the incomplete-load sentinel
  - small-sample cutoff and the science raw-score basis
"""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict


# Default NRT bands (grade, points, z-score cut-off, remark, color).
# Ordered best to worst; cut-offs strictly descending.
NRT_BANDS = [
    ("A1", 1, 1.645, "Excellent", "#2e8b57"),
    ("B2", 2, 1.036, "Very Good", "#3a9d6a"),
    ("B3", 3, 0.524, "Good", "#45b07d"),
    ("C4", 4, 0.0, "Credit", "#0f3460"),
    ("C5", 5, -0.524, "Credit", "#cca43b"),
    ("C6", 6, -1.036, "Credit", "#b38f32"),
    ("D7", 7, -1.645, "Pass", "#e67e22"),
    ("E8", 8, -2.326, "Pass", "#d35400"),
    ("F9", 9, -999.0, "Fail", "#e74c3c"),
]

CORE_SUBJECTS = [
    "Mathematics",
    "English Language",
    "Science",
    "Social Studies",
    "History",
]


class GradingPolicy(BaseModel):
    """Named policy constants. Override per institution by building a new instance."""

    model_config = ConfigDict(frozen=True)

    # Best-N selection for the aggregate
    core_count: int = 4
    elective_count: int = 2

    # Aggregate assigned when fewer than core_count/elective_count subjects exist
    sentinel_aggregate: int = 54

    # (upper bound inclusive, code, label), ascending
    category_bands: Tuple[Tuple[int, str, str], ...] = (
        (10, "P1", "Platinum Elite"),
        (18, "G1", "Gold Scholar"),
        (30, "S1", "Silver Achiever"),
        (45, "B1", "Bronze Competent"),
    )
    fallback_category: Tuple[str, str] = ("W1", "Needs Improvement")

    # Auto model applies the small-sample correction below this class size
    small_sample_cutoff: int = 30

    # Science subjects are marked on a fixed 40 + 100 raw basis when the
    # institution's science threshold equals science_raw_basis.
    science_pattern: str = "science"
    science_raw_basis: int = 140
    science_section_maxima: Tuple[float, float] = (40.0, 100.0)

    default_cat_maxima: Tuple[float, float, float] = (20.0, 20.0, 10.0)
    default_terminal_maxima: Tuple[float, float] = (30.0, 70.0)


DEFAULT_POLICY = GradingPolicy()


def default_scale_rows() -> List[dict]:
    """Default NRT bands as plain dicts, ready for GradingScaleEntry."""
    return [
        {"grade": g, "value": v, "z_score": z, "remark": r, "color": c}
        for g, v, z, r, c in NRT_BANDS
    ]
