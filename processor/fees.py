"""Fee amount formatting shared by the detail page and calendar export."""
from typing import Any, Optional


def format_amount(amount: Any) -> str:
    """Format a fee as '$50' or '$12.5'; whole floats drop the decimal."""
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return f"${amount}"


def fee_summary(driver_fee: Any, spectator_fee: Any) -> Optional[str]:
    """
    Build 'Driver: $X | Spectator: $Y', omitting whichever side is absent.

    Returns:
        Summary string, or None when neither fee is present
    """
    parts = []
    if driver_fee is not None:
        parts.append(f"Driver: {format_amount(driver_fee)}")
    if spectator_fee is not None:
        parts.append(f"Spectator: {format_amount(spectator_fee)}")
    if not parts:
        return None
    return ' | '.join(parts)
