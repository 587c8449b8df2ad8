"""Banking domain: calculators and form validation."""

from agbank.domains.banking.calculators import (
    calculate_loan,
    format_currency,
    get_loan_interest_rate,
    get_savings_interest_rate,
    password_strength,
    password_strength_label,
)
from agbank.domains.banking.validation import ValidationError

__all__ = [
    "calculate_loan",
    "format_currency",
    "get_loan_interest_rate",
    "get_savings_interest_rate",
    "password_strength",
    "password_strength_label",
    "ValidationError",
]
