"""Currency unit conversions"""


def dollars_to_cents(dollars: float) -> int:
    """Convert a dollar amount from the donation form to integer cents"""
    return int(round(dollars * 100))


def cents_to_dollars(cents: int) -> float:
    """Convert cents to dollars. Display and logging only."""
    return cents / 100
