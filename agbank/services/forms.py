"""
Submit flows behind each form in the portal.

Every handler returns a dict with "success" (bool) and "message" (str), plus
handler-specific keys. Validation problems come back as the inline message;
backend failures come back as a generic message and are logged, never raised.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from agbank.domains.banking.calculators import get_loan_interest_rate, monthly_payment_for, to_amount
from agbank.domains.banking.validation import (
    ValidationError,
    next_loan_status,
    validate_loan_application,
    validate_login,
    validate_registration,
    validate_rejection,
)
from agbank.infrastructure.api_client import ApiError
from agbank.utils.logger import get_logger

logger = get_logger()


def _ok(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": True, "message": message, **extra}


def _fail(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "message": message, **extra}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def submit_login(session: Any, email: str, password: str) -> dict[str, Any]:
    try:
        validate_login(email, password)
    except ValidationError as e:
        return _fail(str(e))
    if session.login(email, password):
        return _ok("Signed in successfully")
    return _fail("Invalid email or password. Please try again.")


def submit_registration(session: Any, form: dict[str, Any]) -> dict[str, Any]:
    """Validate every registration step locally, then register."""
    try:
        validate_registration(form)
    except ValidationError as e:
        logger.debug("Registration rejected locally: %s", e)
        return _fail(str(e))
    profile = dict(form)
    profile["email"] = (profile.get("email") or "").strip().lower()
    profile["monthlyIncome"] = to_amount(profile.get("monthlyIncome"))
    if session.register(profile):
        return _ok("Account created successfully")
    return _fail("Registration failed. Please try again.")


def build_loan_payload(form: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
    """Loan request body with the client-side rate and payment estimate attached."""
    amount = to_amount(form.get("amount"))
    duration = int(to_amount(form.get("duration")))
    loan_type = form.get("loanType") or "personal"
    guarantor = form.get("guarantor") or {}
    return {
        "amount": amount,
        "loanType": loan_type,
        "purpose": (form.get("purpose") or "").strip(),
        "duration": duration,
        "monthlyIncome": to_amount(user.get("monthlyIncome")),
        "collateral": (form.get("collateral") or "").strip() or None,
        "guarantor": {
            "name": (guarantor.get("name") or "").strip(),
            "phoneNumber": (guarantor.get("phoneNumber") or "").strip(),
            "relationship": (guarantor.get("relationship") or "").strip(),
            "address": (guarantor.get("address") or "").strip(),
        },
        "interestRate": get_loan_interest_rate(loan_type),
        "monthlyPayment": monthly_payment_for(amount, duration, loan_type),
    }


def submit_loan_application(store: Any, user: dict[str, Any] | None, form: dict[str, Any]) -> dict[str, Any]:
    if not user:
        return _fail("User not authenticated")
    try:
        validate_loan_application(form)
    except ValidationError as e:
        return _fail(str(e))
    payload = build_loan_payload(form, user)
    try:
        loan = store.add_loan_application(payload)
    except ApiError as e:
        logger.error("Loan application error: %s", e)
        return _fail("Failed to submit loan application. Please try again.")
    return _ok("Loan application submitted successfully", loan=loan, monthly_payment=payload["monthlyPayment"])


def submit_savings_account(store: Any, user: dict[str, Any] | None, account_type: str, initial_deposit: Any) -> dict[str, Any]:
    if not user:
        return _fail("User not authenticated")
    try:
        account = store.add_savings_account(account_type, to_amount(initial_deposit))
    except ValidationError as e:
        return _fail(str(e))
    except ApiError as e:
        logger.error("Error creating savings account: %s", e)
        return _fail("Failed to create savings account. Please try again.")
    return _ok("Savings account created successfully!", account=account)


def submit_transaction(
    store: Any,
    user: dict[str, Any] | None,
    account_id: str | None,
    tx_type: str,
    amount: Any,
    description: str | None = None,
) -> dict[str, Any]:
    if not user:
        return _fail("User not authenticated")
    if not account_id or amount in (None, ""):
        return _fail("Please fill in all fields")
    account = store.get_account(account_id)
    if account is None or account.get("userId") != str(user.get("id")):
        return _fail("Account not found")
    try:
        tx = store.add_transaction(account_id, tx_type, to_amount(amount), description)
    except ValidationError as e:
        return _fail(str(e))
    except ApiError as e:
        logger.error("Error processing transaction: %s", e)
        return _fail("Failed to process transaction. Please try again.")
    label = "Deposit" if tx_type == "deposit" else "Withdrawal"
    return _ok(f"{label} successful!", transaction=tx)


def review_loan(
    store: Any,
    reviewer: dict[str, Any] | None,
    loan_id: str,
    action: str,
    reason: str | None = None,
) -> dict[str, Any]:
    """Administrator decision on a loan: approve, reject (reason required) or disburse."""
    if not reviewer or reviewer.get("role") != "admin":
        return _fail("Only administrators can review loan applications")
    loan = store.get_loan(loan_id)
    if loan is None:
        return _fail("Loan application not found")
    targets = {"approve": "approved", "reject": "rejected", "disburse": "disbursed"}
    if action not in targets:
        return _fail(f"Unknown action: {action}")
    try:
        status = next_loan_status(loan.get("status") or "pending", targets[action])
        if action == "reject":
            validate_rejection(reason)
    except ValidationError as e:
        return _fail(str(e))

    updates: dict[str, Any] = {"status": status}
    if action in ("approve", "reject"):
        updates["reviewedAt"] = _now_iso()
        updates["reviewedBy"] = reviewer.get("id")
    if action == "reject":
        updates["rejectionReason"] = reason.strip()
    try:
        store.update_loan_application(loan_id, updates)
    except ApiError as e:
        logger.error("Error updating loan application: %s", e)
        return _fail("Failed to update loan application. Please try again.")
    return _ok(f"Loan {status}")


def toggle_user_status(store: Any, user_id: str, current_status: bool) -> dict[str, Any]:
    try:
        store.update_user_status(user_id, not current_status)
    except ApiError as e:
        logger.error("Error updating user status: %s", e)
        return _fail("Failed to update user status. Please try again.")
    return _ok("User activated" if not current_status else "User deactivated")


def remove_user(store: Any, user_id: str) -> dict[str, Any]:
    try:
        store.delete_user(user_id)
    except ApiError as e:
        logger.error("Error deleting user: %s", e)
        return _fail("Failed to delete user. Please try again.")
    return _ok("User deleted")
