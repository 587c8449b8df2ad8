"""
Form checks that run before any request reaches the backend.

Each check raises ValidationError with the message shown inline next to the
form. The backend still enforces its own rules; these only save a round trip.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from agbank.domains.banking.calculators import (
    LOAN_INTEREST_RATES,
    SAVINGS_INTEREST_RATES,
    format_currency,
    password_checks,
    to_amount,
)

MIN_INITIAL_DEPOSIT = 1000.0

TRANSACTION_TYPES = ("deposit", "withdrawal")

# Ordered loan lifecycle: status -> statuses it may move to
LOAN_STATUSES = ("pending", "approved", "rejected", "disbursed")
LOAN_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "pending": ("approved", "rejected"),
    "approved": ("disbursed",),
    "rejected": (),
    "disbursed": (),
}

_PASSWORD_MESSAGES = {
    "length": "Password must be at least 8 characters long",
    "uppercase": "Password must contain at least one uppercase letter",
    "lowercase": "Password must contain at least one lowercase letter",
    "digit": "Password must contain at least one number",
    "special": "Password must contain at least one special character",
}


class ValidationError(ValueError):
    """Raised when form input is rejected locally. str(err) is the user-facing message."""


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _nested(data: dict[str, Any], key: str) -> dict[str, Any]:
    val = data.get(key)
    return val if isinstance(val, dict) else {}


def validate_password(password: str) -> None:
    """Raise on the first unmet password rule. All five rules are mandatory."""
    for rule, ok in password_checks(password).items():
        if not ok:
            raise ValidationError(_PASSWORD_MESSAGES[rule])


def validate_login(email: str, password: str) -> None:
    if _blank(email) or _blank(password):
        raise ValidationError("Please enter your email and password")


def validate_date_of_birth(value: Any) -> None:
    """ISO date (YYYY-MM-DD), not in the future."""
    try:
        dob = date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("Please enter a valid date of birth") from None
    if dob > date.today():
        raise ValidationError("Date of birth cannot be in the future")


def validate_personal_info(form: dict[str, Any]) -> None:
    """Step 1 of registration: identity fields and password."""
    for key in ("email", "firstName", "lastName", "phoneNumber", "dateOfBirth"):
        if _blank(form.get(key)):
            raise ValidationError("Please fill in all required fields")
    validate_date_of_birth(form["dateOfBirth"])
    if _blank(form.get("password")) or _blank(form.get("confirmPassword")):
        raise ValidationError("Please create a password")
    validate_password(form["password"])
    if form["password"] != form["confirmPassword"]:
        raise ValidationError("Passwords do not match")


def validate_address(form: dict[str, Any]) -> None:
    address = _nested(form, "address")
    if any(_blank(address.get(k)) for k in ("street", "city", "state")):
        raise ValidationError("Please complete address information")


def validate_employment(form: dict[str, Any]) -> None:
    if _blank(form.get("occupation")) or _blank(form.get("employer")) or to_amount(form.get("monthlyIncome")) <= 0:
        raise ValidationError("Please complete employment information")


def validate_verification(form: dict[str, Any]) -> None:
    kin = _nested(form, "nextOfKin")
    if any(_blank(kin.get(k)) for k in ("name", "relationship", "phoneNumber")) or _blank(form.get("bankVerificationNumber")):
        raise ValidationError("Please complete all verification fields")


REGISTRATION_STEPS = (
    ("Personal Info", validate_personal_info),
    ("Address", validate_address),
    ("Employment", validate_employment),
    ("Verification", validate_verification),
)


def validate_registration(form: dict[str, Any]) -> None:
    """Run every registration step in order; raises on the first failure."""
    for _title, check in REGISTRATION_STEPS:
        check(form)


def validate_loan_application(form: dict[str, Any]) -> None:
    if _blank(form.get("amount")) or _blank(form.get("purpose")) or _blank(form.get("duration")):
        raise ValidationError("Please fill in all required fields")
    if (form.get("loanType") or "") not in LOAN_INTEREST_RATES:
        raise ValidationError("Please choose a valid loan type")
    if to_amount(form.get("amount")) <= 0:
        raise ValidationError("Loan amount must be greater than zero")
    if int(to_amount(form.get("duration"))) <= 0:
        raise ValidationError("Loan duration must be at least one month")
    guarantor = _nested(form, "guarantor")
    if any(_blank(guarantor.get(k)) for k in ("name", "phoneNumber", "relationship")):
        raise ValidationError("Please complete guarantor information")


def validate_new_savings_account(account_type: str, initial_deposit: Any) -> None:
    if account_type not in SAVINGS_INTEREST_RATES:
        raise ValidationError("Please choose a valid account type")
    if to_amount(initial_deposit) < MIN_INITIAL_DEPOSIT:
        raise ValidationError(f"Minimum initial deposit is {format_currency(MIN_INITIAL_DEPOSIT, decimals=0)}")


def validate_transaction(tx_type: str, amount: Any, balance: Any) -> None:
    """Reject bad transaction input; a withdrawal may not exceed the current balance."""
    if _blank(amount):
        raise ValidationError("Please fill in all fields")
    if tx_type not in TRANSACTION_TYPES:
        raise ValidationError("Please choose deposit or withdrawal")
    value = to_amount(amount)
    if tx_type == "withdrawal" and value > to_amount(balance):
        raise ValidationError("Insufficient balance")
    if value <= 0:
        raise ValidationError("Amount must be greater than zero")


def validate_rejection(reason: str | None) -> None:
    if _blank(reason):
        raise ValidationError("Please provide a reason for rejecting this loan application")


def next_loan_status(current: str, target: str) -> str:
    """Return target if the lifecycle allows current -> target."""
    if target not in LOAN_TRANSITIONS.get(current, ()):
        raise ValidationError(f"Cannot move a {current} loan to {target}")
    return target
