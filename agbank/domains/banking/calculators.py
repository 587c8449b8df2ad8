"""
Derived values shown next to backend data: loan amortization, rate lookup,
password strength, savings totals and naira formatting.

Rates here are display estimates; rates stored on backend records win wherever
both exist.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable

# Annual percentage rates by loan type
LOAN_INTEREST_RATES: dict[str, float] = {
    "personal": 18.0,
    "mortgage": 12.0,
    "business": 15.0,
    "auto": 14.0,
}

# Annual percentage rates by savings account type
SAVINGS_INTEREST_RATES: dict[str, float] = {
    "savings": 4.5,
    "fixed": 8.5,
}

MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARS_RE = re.compile(r'[!@#$%^&*(),.?":{}|<>]')

_STRENGTH_LABELS = ("Very Weak", "Very Weak", "Weak", "Fair", "Good", "Strong")

CURRENCY_SYMBOL = "₦"


def get_loan_interest_rate(loan_type: str) -> float:
    """Annual rate (percent) for a loan type. Raises ValueError for unknown types."""
    t = (loan_type or "").strip().lower()
    if t not in LOAN_INTEREST_RATES:
        raise ValueError(f"Unknown loan type: {loan_type!r}")
    return LOAN_INTEREST_RATES[t]


def get_savings_interest_rate(account_type: str) -> float:
    """Annual rate (percent) for a savings account type. Raises ValueError for unknown types."""
    t = (account_type or "").strip().lower()
    if t not in SAVINGS_INTEREST_RATES:
        raise ValueError(f"Unknown account type: {account_type!r}")
    return SAVINGS_INTEREST_RATES[t]


def _finite_or_zero(x: float) -> float:
    return x if math.isfinite(x) else 0.0


def calculate_loan(
    principal: float,
    duration_months: int,
    annual_rate: float,
) -> dict[str, float]:
    """
    Fixed monthly payment for an amortizing loan.

    Uses payment = P*r*(1+r)^n / ((1+r)^n - 1) with r = annual_rate/100/12.
    A zero rate spreads the principal evenly. Zero or negative principal or
    duration yields zeros rather than NaN/Infinity.

    Returns:
        Dict with monthly_payment, total_payment, total_interest, interest_rate.
    """
    p = to_amount(principal)
    n = int(to_amount(duration_months))
    rate = to_amount(annual_rate)
    out = {
        "monthly_payment": 0.0,
        "total_payment": 0.0,
        "total_interest": 0.0,
        "interest_rate": rate,
    }
    if p <= 0 or n <= 0 or rate < 0:
        return out

    r = rate / 100 / 12
    if r == 0:
        payment = p / n
        total = p
    else:
        growth = (1 + r) ** n
        payment = _finite_or_zero(p * r * growth / (growth - 1))
        total = payment * n
    if payment == 0:
        return out

    out["monthly_payment"] = payment
    out["total_payment"] = total
    out["total_interest"] = total - p
    return out


def monthly_payment_for(amount: float, duration_months: int, loan_type: str) -> float:
    """Monthly payment for a loan type at its listed rate."""
    return calculate_loan(amount, duration_months, get_loan_interest_rate(loan_type))["monthly_payment"]


def password_checks(password: str) -> dict[str, bool]:
    """Each password rule and whether it is met, in display order."""
    pw = password or ""
    return {
        "length": len(pw) >= MIN_PASSWORD_LENGTH,
        "uppercase": bool(re.search(r"[A-Z]", pw)),
        "lowercase": bool(re.search(r"[a-z]", pw)),
        "digit": bool(re.search(r"\d", pw)),
        "special": bool(SPECIAL_CHARS_RE.search(pw)),
    }


def password_strength(password: str) -> int:
    """Score 0-5: one point per satisfied rule. Advisory only."""
    return sum(1 for ok in password_checks(password).values() if ok)


def password_strength_label(score: int) -> str:
    """Qualitative label for a strength score."""
    s = max(0, min(int(score), len(_STRENGTH_LABELS) - 1))
    return _STRENGTH_LABELS[s]


def to_amount(value: Any) -> float:
    """Coerce a stored amount to float; missing, non-numeric or non-finite values become 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        x = float(str(value).replace(",", "").strip())
    except (TypeError, ValueError):
        return 0.0
    return _finite_or_zero(x)


def sum_balances(accounts: Iterable[dict[str, Any]]) -> float:
    """Sum of balances over accounts."""
    return sum((to_amount(a.get("balance")) for a in accounts), 0.0)


def user_total_savings(accounts: Iterable[dict[str, Any]], user_id: Any) -> float:
    """Sum of balances of accounts owned by user_id. Identifiers are compared as strings."""
    if user_id is None:
        return 0.0
    uid = str(user_id)
    return sum_balances(a for a in accounts if str(a.get("userId")) == uid)


def format_currency(amount: Any, decimals: int = 2) -> str:
    """
    Format an amount as Nigerian naira, en-NG style.

    Example:
        >>> format_currency(1234.5)
        '₦1,234.50'
    """
    x = to_amount(amount)
    sign = "-" if x < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(x):,.{decimals}f}"
