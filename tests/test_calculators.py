"""
Tests for calculators: amortization, rates, password strength, savings totals, currency.
"""

from __future__ import annotations

import math
import random

import pytest

from agbank.domains.banking.calculators import (
    calculate_loan,
    format_currency,
    get_loan_interest_rate,
    get_savings_interest_rate,
    monthly_payment_for,
    password_strength,
    password_strength_label,
    sum_balances,
    to_amount,
    user_total_savings,
)


def test_personal_loan_monthly_payment() -> None:
    """500,000 personal loan at 18% over 12 months."""
    out = calculate_loan(500000, 12, get_loan_interest_rate("personal"))
    r = 18 / 100 / 12
    expected = 500000 * r * (1 + r) ** 12 / ((1 + r) ** 12 - 1)
    assert out["monthly_payment"] == pytest.approx(expected)
    assert out["monthly_payment"] == pytest.approx(45840.0, abs=1.0)
    assert out["interest_rate"] == 18.0
    assert monthly_payment_for(500000, 12, "personal") == pytest.approx(expected)


@pytest.mark.parametrize(
    "principal,months,rate",
    [(1000, 1, 18), (500000, 12, 18), (2_500_000, 240, 12), (75_000, 36, 14), (10_000, 6, 0), (1, 360, 15)],
)
def test_total_payment_covers_principal(principal: float, months: int, rate: float) -> None:
    out = calculate_loan(principal, months, rate)
    assert out["total_payment"] >= principal
    assert out["total_interest"] == out["total_payment"] - principal
    assert all(math.isfinite(v) for v in out.values())


@pytest.mark.parametrize("principal,months", [(0, 12), (500000, 0), (0, 0), (-100, 12), (100, -3)])
def test_zero_inputs_give_zero(principal: float, months: int) -> None:
    out = calculate_loan(principal, months, 18)
    assert out["monthly_payment"] == 0
    assert out["total_payment"] == 0
    assert out["total_interest"] == 0


def test_zero_rate_spreads_principal() -> None:
    out = calculate_loan(12000, 12, 0)
    assert out["monthly_payment"] == pytest.approx(1000.0)
    assert out["total_payment"] == 12000
    assert out["total_interest"] == 0


def test_rate_lookup() -> None:
    assert get_loan_interest_rate("mortgage") == 12.0
    assert get_loan_interest_rate("business") == 15.0
    assert get_loan_interest_rate("auto") == 14.0
    assert get_savings_interest_rate("savings") == 4.5
    assert get_savings_interest_rate("fixed") == 8.5
    with pytest.raises(ValueError):
        get_loan_interest_rate("payday")
    with pytest.raises(ValueError):
        get_savings_interest_rate("current")


@pytest.mark.parametrize(
    "password,score,label",
    [
        ("", 0, "Very Weak"),
        ("abc", 1, "Very Weak"),
        ("abcdefgh", 2, "Weak"),
        ("Abcdefgh", 3, "Fair"),
        ("Abcdefg1", 4, "Good"),
        ("Secret1!", 5, "Strong"),
    ],
)
def test_password_strength(password: str, score: int, label: str) -> None:
    assert password_strength(password) == score
    assert password_strength_label(password_strength(password)) == label


def test_password_strength_monotonic() -> None:
    """Adding a character that meets a new rule never lowers the score."""
    steps = ["a", "aB", "aB3", "aB3!", "aB3!xxxx"]
    scores = [password_strength(p) for p in steps]
    assert scores == sorted(scores)
    assert all(0 <= s <= 5 for s in scores)
    assert scores[-1] == 5


def test_to_amount_is_defensive() -> None:
    assert to_amount(None) == 0.0
    assert to_amount("abc") == 0.0
    assert to_amount("1,500.50") == 1500.5
    assert to_amount(float("nan")) == 0.0
    assert to_amount(True) == 0.0
    assert to_amount(42) == 42.0


def test_savings_totals() -> None:
    accounts = [
        {"userId": "1", "balance": 1000},
        {"userId": "2", "balance": "2500.5"},
        {"userId": "1", "balance": None},
        {"userId": "1", "balance": "oops"},
        {"userId": "3", "balance": 300},
    ]
    assert user_total_savings(accounts, "1") == 1000
    assert user_total_savings(accounts, 2) == 2500.5
    assert user_total_savings(accounts, "99") == 0
    total = sum_balances(accounts)
    assert total == 3800.5
    shuffled = accounts[:]
    random.Random(7).shuffle(shuffled)
    assert sum_balances(shuffled) == total


def test_format_currency() -> None:
    assert format_currency(1234.5) == "₦1,234.50"
    assert format_currency(1000, decimals=0) == "₦1,000"
    assert format_currency(-45840.0) == "-₦45,840.00"
    assert format_currency(None) == "₦0.00"


def test_missing_user_id_owns_nothing() -> None:
    accounts = [{"userId": None, "balance": 700}, {"userId": "1", "balance": 100}]
    assert user_total_savings(accounts, None) == 0.0
    assert user_total_savings(accounts, "1") == 100
