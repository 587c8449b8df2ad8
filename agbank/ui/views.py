"""Streamlit pages for the banking portal.

Pages only collect input and render results; submit logic lives in
`agbank.services.forms` and data comes from the stores passed in.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import streamlit as st

from agbank.domains.banking.calculators import (
    LOAN_INTEREST_RATES,
    SAVINGS_INTEREST_RATES,
    calculate_loan,
    format_currency,
    get_loan_interest_rate,
    password_checks,
    password_strength,
    password_strength_label,
)
from agbank.domains.banking.validation import MIN_INITIAL_DEPOSIT, REGISTRATION_STEPS
from agbank.services import forms
from agbank.utils.logger import get_logger

logger = get_logger()

STATUS_ICONS = {
    "pending": "🟡",
    "approved": "🟢",
    "disbursed": "🟢",
    "rejected": "🔴",
}

GENDERS = ["male", "female"]
MARITAL_STATUSES = ["single", "married", "divorced", "widowed"]
EARLIEST_DOB = date(1900, 1, 1)

_RULE_LABELS = {
    "length": "At least 8 characters",
    "uppercase": "One uppercase letter",
    "lowercase": "One lowercase letter",
    "digit": "One number",
    "special": "One special character",
}


def status_label(status: str | None) -> str:
    s = status or "pending"
    return f"{STATUS_ICONS.get(s, '⚪')} {s.title()}"


def loan_row(loan: dict[str, Any]) -> dict[str, Any]:
    """Table row for a loan. Backend-computed rate and payment win over the local estimate."""
    rate = loan.get("interestRate")
    if rate is None and loan.get("loanType") in LOAN_INTEREST_RATES:
        rate = get_loan_interest_rate(loan["loanType"])
    payment = loan.get("monthlyPayment")
    if payment is None and rate is not None:
        payment = calculate_loan(loan.get("amount", 0), loan.get("duration", 0), rate)["monthly_payment"]
    return {
        "Type": (loan.get("loanType") or "").title(),
        "Amount": format_currency(loan.get("amount")),
        "Duration": f"{loan.get('duration', 0)} months",
        "Rate": f"{rate}% p.a." if rate is not None else "-",
        "Monthly payment": format_currency(payment or 0),
        "Status": status_label(loan.get("status")),
        "Applied": (loan.get("appliedAt") or "")[:10],
    }


def _stored_date(value: Any) -> date | None:
    try:
        return date.fromisoformat(value) if value else None
    except (TypeError, ValueError):
        return None


def _option_index(options: list[str], value: Any) -> int:
    return options.index(value) if value in options else 0


def _show_result(result: dict[str, Any]) -> None:
    if result.get("success"):
        st.success(result["message"])
    else:
        st.error(result["message"])


def render_loan_calculator() -> None:
    """Public calculator on the landing page."""
    st.subheader("Loan calculator")
    col1, col2, col3 = st.columns(3)
    with col1:
        amount = st.number_input("Loan amount (₦)", min_value=0.0, value=500000.0, step=10000.0, key="calc_amount")
    with col2:
        loan_type = st.selectbox("Loan type", list(LOAN_INTEREST_RATES), key="calc_type")
    with col3:
        duration = st.number_input("Duration (months)", min_value=1, value=12, step=1, key="calc_duration")
    result = calculate_loan(amount, int(duration), get_loan_interest_rate(loan_type))
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Monthly payment", format_currency(result["monthly_payment"], decimals=0))
    m2.metric("Total payment", format_currency(result["total_payment"], decimals=0))
    m3.metric("Total interest", format_currency(result["total_interest"], decimals=0))
    m4.metric("Interest rate", f"{result['interest_rate']}% p.a.")


def render_login(session: Any) -> None:
    with st.form("login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", use_container_width=True)
    if submitted:
        result = forms.submit_login(session, email, password)
        if result["success"]:
            st.rerun()
        _show_result(result)


def render_registration(session: Any) -> None:
    """Four-step registration. Each step is checked before moving on."""
    form: dict[str, Any] = st.session_state.setdefault("registration_form", {"address": {"country": "Nigeria"}, "nextOfKin": {}})
    step = st.session_state.setdefault("registration_step", 0)
    title, check = REGISTRATION_STEPS[step]
    st.caption(f"Step {step + 1} of {len(REGISTRATION_STEPS)}: {title}")

    if step == 0:
        for key, label in (("email", "Email"), ("firstName", "First name"), ("middleName", "Middle name"),
                           ("lastName", "Last name"), ("phoneNumber", "Phone number")):
            form[key] = st.text_input(label, value=form.get(key, ""), key=f"reg_{key}")
        dob = st.date_input(
            "Date of birth",
            value=_stored_date(form.get("dateOfBirth")),
            min_value=EARLIEST_DOB,
            max_value=date.today(),
            key="reg_dob",
        )
        form["dateOfBirth"] = dob.isoformat() if dob else ""
        form["gender"] = st.selectbox("Gender", GENDERS, index=_option_index(GENDERS, form.get("gender")), key="reg_gender")
        form["maritalStatus"] = st.selectbox(
            "Marital status", MARITAL_STATUSES,
            index=_option_index(MARITAL_STATUSES, form.get("maritalStatus")), key="reg_marital",
        )
        form["password"] = st.text_input("Password", type="password", value=form.get("password", ""), key="reg_password")
        form["confirmPassword"] = st.text_input(
            "Confirm password", type="password", value=form.get("confirmPassword", ""), key="reg_confirm",
        )
        if form["password"]:
            score = password_strength(form["password"])
            st.progress(score / 5, text=f"Password strength: {password_strength_label(score)}")
            for rule, ok in password_checks(form["password"]).items():
                st.caption(f"{'✅' if ok else '▫️'} {_RULE_LABELS[rule]}")
    elif step == 1:
        address = form["address"]
        for key in ("street", "city", "state", "country", "postalCode"):
            address[key] = st.text_input(key.title(), value=address.get(key, ""), key=f"reg_addr_{key}")
    elif step == 2:
        form["occupation"] = st.text_input("Occupation", value=form.get("occupation", ""), key="reg_occupation")
        form["employer"] = st.text_input("Employer", value=form.get("employer", ""), key="reg_employer")
        form["monthlyIncome"] = st.number_input("Monthly income (₦)", min_value=0.0, value=float(form.get("monthlyIncome", 0.0)), key="reg_income")
    else:
        kin = form["nextOfKin"]
        for key, label in (("name", "Next of kin name"), ("relationship", "Relationship"),
                           ("phoneNumber", "Next of kin phone"), ("address", "Next of kin address")):
            kin[key] = st.text_input(label, value=kin.get(key, ""), key=f"reg_kin_{key}")
        form["bankVerificationNumber"] = st.text_input("BVN", value=form.get("bankVerificationNumber", ""), key="reg_bvn")

    back, nxt = st.columns(2)
    if step > 0 and back.button("Back", use_container_width=True):
        st.session_state.registration_step = step - 1
        st.rerun()
    last = step == len(REGISTRATION_STEPS) - 1
    if nxt.button("Create account" if last else "Next", use_container_width=True, type="primary"):
        if last:
            result = forms.submit_registration(session, form)
            if result["success"]:
                st.session_state.pop("registration_form", None)
                st.session_state.pop("registration_step", None)
                st.rerun()
            _show_result(result)
        else:
            try:
                check(form)
            except ValueError as e:
                st.error(str(e))
            else:
                st.session_state.registration_step = step + 1
                st.rerun()


def render_user_dashboard(store: Any, user: dict[str, Any]) -> None:
    uid = user.get("id")
    loans = store.loans_for_user(uid)
    summary = store.loan_summary(loans)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total savings", format_currency(store.get_user_total_savings(uid)))
    c2.metric("Active loans", summary["approved"])
    c3.metric(
        "Pending applications",
        summary["pending"],
        help=format_currency(summary["pending_amount"]) if summary["pending"] else "No pending applications",
    )
    st.subheader("My loans")
    if loans:
        st.dataframe([loan_row(x) for x in loans], use_container_width=True, hide_index=True)
    else:
        st.info("You have not applied for a loan yet.")


def render_loan_application(store: Any, user: dict[str, Any]) -> None:
    st.subheader("Apply for a loan")
    loan_type = st.selectbox(
        "Loan type",
        list(LOAN_INTEREST_RATES),
        format_func=lambda t: f"{t.title()} ({LOAN_INTEREST_RATES[t]}% p.a.)",
        key="loan_type",
    )
    with st.form("loan_form", clear_on_submit=True):
        amount = st.text_input("Amount (₦)")
        duration = st.text_input("Duration (months)")
        purpose = st.text_area("Purpose")
        collateral = st.text_input("Collateral (optional)")
        st.markdown("**Guarantor**")
        guarantor = {
            "name": st.text_input("Name"),
            "phoneNumber": st.text_input("Phone number"),
            "relationship": st.text_input("Relationship"),
            "address": st.text_input("Address"),
        }
        submitted = st.form_submit_button("Submit application", disabled=store.loading)
    if submitted:
        form = {
            "amount": amount,
            "loanType": loan_type,
            "duration": duration,
            "purpose": purpose,
            "collateral": collateral,
            "guarantor": guarantor,
        }
        with st.spinner("Submitting…"):
            result = forms.submit_loan_application(store, user, form)
        _show_result(result)
        if result["success"]:
            st.caption(f"Estimated monthly payment: {format_currency(result['monthly_payment'])}")


def render_savings_management(store: Any, user: dict[str, Any]) -> None:
    accounts = store.accounts_for_user(user.get("id"))
    st.subheader("Savings accounts")
    if not accounts:
        st.info("Start saving with Ag Mortgage Bank and earn competitive interest rates.")
    for acct in accounts:
        with st.expander(f"{acct.get('accountNumber')} · {format_currency(acct.get('balance'))}"):
            st.caption(f"{(acct.get('accountType') or '').title()} · {acct.get('interestRate')}% p.a.")
            txs = acct.get("transactions") or []
            if not txs:
                st.caption("No transactions yet")
            for tx in txs[-3:][::-1]:
                sign = "+" if tx.get("type") == "deposit" else "-"
                st.write(f"{(tx.get('date') or '')[:10]} {tx.get('description')}: {sign}{format_currency(tx.get('amount'))}"
                         f" (balance {format_currency(tx.get('balance'))})")
            if len(txs) > 3:
                st.caption(f"and {len(txs) - 3} more transactions")

    with st.form("new_account_form", clear_on_submit=True):
        st.markdown("**Open a new account**")
        account_type = st.selectbox(
            "Account type",
            list(SAVINGS_INTEREST_RATES),
            format_func=lambda t: f"{t.title()} ({SAVINGS_INTEREST_RATES[t]}% p.a.)",
        )
        deposit = st.number_input("Initial deposit (₦)", min_value=0.0, value=MIN_INITIAL_DEPOSIT, step=500.0)
        opened = st.form_submit_button("Open account", disabled=store.loading)
    if opened:
        _show_result(forms.submit_savings_account(store, user, account_type, deposit))

    if accounts:
        with st.form("transaction_form", clear_on_submit=True):
            st.markdown("**Deposit or withdraw**")
            ids = [a["id"] for a in accounts]
            labels = {a["id"]: f"{a.get('accountNumber')} ({format_currency(a.get('balance'))})" for a in accounts}
            account_id = st.selectbox("Account", ids, format_func=labels.get)
            tx_type = st.radio("Type", ["deposit", "withdrawal"], horizontal=True)
            amount = st.number_input("Amount (₦)", min_value=0.0, step=500.0)
            description = st.text_input("Description (optional)")
            sent = st.form_submit_button("Submit", disabled=store.loading)
        if sent:
            _show_result(forms.submit_transaction(store, user, account_id, tx_type, amount, description))


def render_admin_dashboard(store: Any, admin: dict[str, Any]) -> None:
    summary = store.loan_summary()
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Customers", sum(1 for u in store.users if u.get("role") == "user"))
    c2.metric("Pending loans", summary["pending"])
    c3.metric("Approved loans", summary["approved"])
    c4.metric("Total savings", format_currency(store.get_total_system_savings()))
    if st.button("Refresh data", disabled=store.loading):
        with st.spinner("Refreshing…"):
            store.refresh()
        st.rerun()

    loans_tab, users_tab = st.tabs(["Loan applications", "Customers"])
    with loans_tab:
        if not store.loans:
            st.info("No loan applications yet.")
        for loan in store.loans:
            row = loan_row(loan)
            with st.container(border=True):
                st.write(f"**{row['Type']}** {row['Amount']} over {row['Duration']} · {row['Status']}")
                st.caption(loan.get("purpose") or "")
                if loan.get("rejectionReason"):
                    st.caption(f"Rejection reason: {loan['rejectionReason']}")
                lid = loan["id"]
                if loan.get("status") == "pending":
                    reason = st.text_input("Reason for rejection", key=f"reason_{lid}")
                    a, r = st.columns(2)
                    if a.button("Approve", key=f"approve_{lid}"):
                        _show_result(forms.review_loan(store, admin, lid, "approve"))
                    if r.button("Reject", key=f"reject_{lid}", disabled=not reason.strip()):
                        _show_result(forms.review_loan(store, admin, lid, "reject", reason))
                elif loan.get("status") == "approved":
                    if st.button("Mark disbursed", key=f"disburse_{lid}"):
                        _show_result(forms.review_loan(store, admin, lid, "disburse"))
    with users_tab:
        for u in store.users:
            if u.get("role") != "user":
                continue
            uid = u["id"]
            with st.container(border=True):
                st.write(f"**{u.get('firstName')} {u.get('lastName')}** · {u.get('email')}")
                st.caption(f"Savings: {format_currency(store.get_user_total_savings(uid))} · "
                           f"{'Active' if u.get('isActive') else 'Inactive'}")
                t, d = st.columns(2)
                if t.button("Deactivate" if u.get("isActive") else "Activate", key=f"toggle_{uid}"):
                    _show_result(forms.toggle_user_status(store, uid, bool(u.get("isActive"))))
                if d.button("Delete", key=f"delete_{uid}"):
                    _show_result(forms.remove_user(store, uid))
