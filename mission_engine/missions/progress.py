"""
Progress Calculator

Pure mapping from (current value, target value) to a whole-number
percentage and a completion flag. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple, Union

from mission_engine.exceptions import InvalidTargetError, ValidationError

Number = Union[int, float, Decimal]

MAX_PERCENT = 100


def _to_decimal(value: Number) -> Decimal:
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def compute_progress(
    current_value: Number,
    target_value: Number,
    template_id: Optional[int] = None
) -> Tuple[int, bool]:
    """
    Compute progress toward a mission target.

    progress = min(round_half_up(current / target * 100), 100)

    Args:
        current_value: Non-negative amount achieved so far
        target_value: Positive mission target
        template_id: Template the target belongs to, for error context

    Returns:
        (progress_percent, is_complete)

    Raises:
        InvalidTargetError: target_value <= 0 or not finite (catalog misconfiguration)
        ValidationError: current_value < 0, infinite or NaN

    Example:
        >>> compute_progress(3, 8)
        (38, False)
        >>> compute_progress(9, 8)
        (100, True)
    """
    target = _to_decimal(target_value)
    if not target.is_finite() or target <= 0:
        raise InvalidTargetError(
            message=f"Mission target must be positive, got {target_value}",
            target_value=target_value,
            template_id=template_id,
            operation="compute_progress"
        )

    current = _to_decimal(current_value)
    if not current.is_finite():
        raise ValidationError(
            message="must be a finite number",
            field="current_value",
            value=current_value
        )
    if current < 0:
        raise ValidationError(
            message="must not be negative",
            field="current_value",
            value=current_value
        )

    percent = (current / target * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    progress_percent = min(int(percent), MAX_PERCENT)
    return progress_percent, progress_percent >= MAX_PERCENT
