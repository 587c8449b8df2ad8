"""
Tests for view helpers and the registration page (via Streamlit's AppTest).
"""

from __future__ import annotations

from datetime import date

import pytest

from agbank.ui.views import loan_row, status_label


def test_loan_row_prefers_backend_values() -> None:
    row = loan_row({
        "loanType": "personal", "amount": 500000.0, "duration": 12,
        "interestRate": 17.5, "monthlyPayment": 45000.0, "status": "approved",
        "appliedAt": "2026-03-01T10:00:00Z",
    })
    assert row["Rate"] == "17.5% p.a."
    assert row["Monthly payment"] == "₦45,000.00"
    assert row["Applied"] == "2026-03-01"
    assert row["Status"].endswith("Approved")


def test_loan_row_estimates_when_backend_silent() -> None:
    row = loan_row({"loanType": "personal", "amount": 500000.0, "duration": 12, "status": "pending"})
    assert row["Rate"] == "18.0% p.a."
    assert row["Monthly payment"].startswith("₦45,8")


@pytest.mark.parametrize("status,text", [("pending", "Pending"), ("rejected", "Rejected"), (None, "Pending")])
def test_status_label(status, text: str) -> None:
    assert status_label(status).endswith(text)


def _registration_page():
    from unittest.mock import MagicMock

    from agbank.ui.views import render_registration

    render_registration(MagicMock())


def _filled_step_one() -> dict:
    return {
        "email": "ada@example.com", "firstName": "Ada", "lastName": "Obi", "phoneNumber": "08030000000",
        "dateOfBirth": "1990-05-17", "gender": "female", "maritalStatus": "married",
        "password": "Secret1!", "confirmPassword": "Secret1!",
        "address": {"country": "Nigeria"}, "nextOfKin": {},
    }


def test_date_of_birth_accepts_adult_dates() -> None:
    from streamlit.testing.v1 import AppTest

    at = AppTest.from_function(_registration_page).run()
    dob = at.date_input(key="reg_dob")
    assert dob.value is None
    assert dob.min <= date(1940, 1, 1)
    assert dob.max == date.today()


def test_back_from_address_keeps_personal_info() -> None:
    from streamlit.testing.v1 import AppTest

    at = AppTest.from_function(_registration_page)
    at.session_state["registration_form"] = _filled_step_one()
    at.session_state["registration_step"] = 1
    at.run()
    next(b for b in at.button if b.label == "Back").click().run()

    assert at.session_state["registration_step"] == 0
    assert at.text_input(key="reg_password").value == "Secret1!"
    assert at.text_input(key="reg_confirm").value == "Secret1!"
    assert at.selectbox(key="reg_gender").value == "female"
    assert at.selectbox(key="reg_marital").value == "married"
    assert at.date_input(key="reg_dob").value == date(1990, 5, 17)
    assert at.session_state["registration_form"]["password"] == "Secret1!"
