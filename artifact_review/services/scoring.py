"""Input checks for 0–5 ratings and rubric scores."""

from numbers import Real

from artifact_review.core.exceptions import ValidationError
from artifact_review.models.review import SCORE_MAX, SCORE_MIN


def coerce_score(value, field: str, *, required: bool = False) -> float | None:
    """Return ``value`` as a float in [0, 5], or None when absent and optional.

    bool is rejected even though it is an int subclass.
    """
    if value is None:
        if required:
            raise ValidationError(f"{field} is required", details={field: "required"})
        return None
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{field} must be a number", details={field: "not a number"})
    if not SCORE_MIN <= value <= SCORE_MAX:
        raise ValidationError(
            f"{field} must be between {SCORE_MIN} and {SCORE_MAX}",
            details={field: "out of range"},
        )
    return float(value)


def coerce_scores(scores, criteria: tuple[str, ...]) -> dict:
    """Validate a criterion→score map against the kind's criterion list.

    Unknown criterion names are rejected rather than ignored.
    """
    if scores is None:
        return {}
    if not isinstance(scores, dict):
        raise ValidationError("scores must be an object", details={"scores": "not an object"})
    unknown = sorted(set(scores) - set(criteria))
    if unknown:
        raise ValidationError(
            f"Unknown score fields: {', '.join(unknown)}",
            details={"unknown": unknown, "allowed": list(criteria)},
        )
    return {name: coerce_score(value, name) for name, value in scores.items()}
