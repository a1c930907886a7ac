"""Installment arithmetic for split one-time donations"""


def installment_amount(total_cents: int, num_installments: int) -> int:
    """
    Per-installment charge for a split donation.

    Requirements:
    - Every installment bills the same amount
    - Amount is rounded up, so the total billed can exceed the pledge by at
      most num_installments-1 cents. The drift is accepted, never corrected.

    Example:
        $50.00 over 3 → ceil(5000 / 3) = 1667, billed 3 × 1667 = 5001
    """
    if num_installments <= 0:
        raise ValueError("num_installments must be positive")
    return -(-total_cents // num_installments)


def remaining_iterations(num_installments: int) -> int:
    """Installments left to schedule once the initial charge has been collected"""
    return max(num_installments - 1, 0)


def rounding_drift(total_cents: int, num_installments: int) -> int:
    """Cents billed above the pledged total across all installments"""
    return installment_amount(total_cents, num_installments) * num_installments - total_cents
