"""
errors.py — Exceptions surfaced by the grading engine.
"""


class GradingConfigError(ValueError):
    """Raised at configuration time when a grading setup cannot produce results.

    Compute-time conditions (zero spread, missing entries, incomplete subject
    loads) never raise; they resolve to documented fallback values.
    """
