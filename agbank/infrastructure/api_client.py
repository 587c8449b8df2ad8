"""
Backend REST client for auth, users, loans and savings.

Records are normalised once here, on the way in: identifiers become strings and
money fields become floats, so callers never compare ids loosely.
"""

from __future__ import annotations

from typing import Any

import requests

from agbank.domains.banking.calculators import to_amount
from agbank.infrastructure.session_storage import TOKEN_KEY
from agbank.utils.config import api_base_url, api_timeout
from agbank.utils.logger import get_logger

logger = get_logger()


class ApiError(RuntimeError):
    """Raised when a backend call fails (network, HTTP status or unreadable body)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        detail: Any = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
        self.original = original


def _str_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def normalize_user(raw: dict[str, Any]) -> dict[str, Any]:
    u = dict(raw)
    u["id"] = _str_id(u.get("id", u.get("_id")))
    u["role"] = u.get("role") or "user"
    u["isActive"] = bool(u.get("isActive", True))
    if "monthlyIncome" in u:
        u["monthlyIncome"] = to_amount(u.get("monthlyIncome"))
    return u


def normalize_loan(raw: dict[str, Any]) -> dict[str, Any]:
    loan = dict(raw)
    loan["id"] = _str_id(loan.get("id", loan.get("_id")))
    loan["userId"] = _str_id(loan.get("userId"))
    loan["reviewedBy"] = _str_id(loan.get("reviewedBy"))
    loan["amount"] = to_amount(loan.get("amount"))
    loan["duration"] = int(to_amount(loan.get("duration")))
    loan["status"] = loan.get("status") or "pending"
    for key in ("interestRate", "monthlyPayment", "monthlyIncome"):
        if loan.get(key) is not None:
            loan[key] = to_amount(loan[key])
    return loan


def normalize_transaction(raw: dict[str, Any]) -> dict[str, Any]:
    tx = dict(raw)
    tx["id"] = _str_id(tx.get("id", tx.get("_id")))
    tx["amount"] = to_amount(tx.get("amount"))
    tx["balance"] = to_amount(tx.get("balance"))
    return tx


def normalize_account(raw: dict[str, Any]) -> dict[str, Any]:
    acct = dict(raw)
    acct["id"] = _str_id(acct.get("id", acct.get("_id")))
    acct["userId"] = _str_id(acct.get("userId"))
    acct["balance"] = to_amount(acct.get("balance"))
    acct["interestRate"] = to_amount(acct.get("interestRate"))
    txs = acct.get("transactions")
    acct["transactions"] = [normalize_transaction(t) for t in txs if isinstance(t, dict)] if isinstance(txs, list) else []
    return acct


def _as_list(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, list):
        return []
    return [d for d in data if isinstance(d, dict)]


class BankApiClient:
    """
    Wrapper over the bank's REST API.

    The bearer token is read from session storage on every request, so a login
    or logout takes effect without rebuilding the client.
    """

    def __init__(
        self,
        base_url: str | None = None,
        storage: Any | None = None,
        timeout: int | None = None,
    ) -> None:
        self.base_url = (base_url or api_base_url()).rstrip("/")
        self._storage = storage
        self.timeout = timeout if timeout is not None else api_timeout()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        token = self._storage.get(TOKEN_KEY) if self._storage is not None else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.info("%s %s", method, path)
        if payload is not None:
            logger.debug("Payload keys: %s", list(payload.keys()))
        try:
            r = requests.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            detail = None
            if e.response is not None:
                try:
                    detail = e.response.json()
                except ValueError:
                    detail = e.response.text
            message = detail.get("message") if isinstance(detail, dict) else None
            raise ApiError(
                f"{method} {path} failed with status {status}: {message or e}",
                status_code=status,
                detail=detail,
                original=e,
            ) from e
        except requests.RequestException as e:
            raise ApiError(f"{method} {path} failed: {type(e).__name__}: {e}", original=e) from e

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned invalid JSON", status_code=r.status_code, original=e) from e

    # --- auth ---

    def _auth_result(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict) or not isinstance(data.get("user"), dict) or not data.get("token"):
            raise ApiError("Invalid auth response format", detail=data)
        return {"user": normalize_user(data["user"]), "token": str(data["token"])}

    def login(self, email: str, password: str) -> dict[str, Any]:
        """POST /auth/login. Returns {"user", "token"}."""
        return self._auth_result(self._request("POST", "/auth/login", {"email": email, "password": password}))

    def register(self, profile: dict[str, Any]) -> dict[str, Any]:
        """POST /auth/register. Returns {"user", "token"}."""
        return self._auth_result(self._request("POST", "/auth/register", profile))

    # --- users ---

    def list_users(self) -> list[dict[str, Any]]:
        return [normalize_user(u) for u in _as_list(self._request("GET", "/users"))]

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/users/{user_id}")

    def set_user_status(self, user_id: str, is_active: bool) -> Any:
        return self._request("PATCH", f"/users/{user_id}/status", {"isActive": bool(is_active)})

    # --- loans ---

    def list_loans(self) -> list[dict[str, Any]]:
        return [normalize_loan(x) for x in _as_list(self._request("GET", "/loans"))]

    def create_loan(self, fields: dict[str, Any]) -> dict[str, Any] | None:
        data = self._request("POST", "/loans", fields)
        loan = data.get("loan") if isinstance(data, dict) else None
        return normalize_loan(loan) if isinstance(loan, dict) else None

    def update_loan(self, loan_id: str, fields: dict[str, Any]) -> Any:
        return self._request("PUT", f"/loans/{loan_id}", fields)

    # --- savings ---

    def list_savings(self) -> list[dict[str, Any]]:
        return [normalize_account(a) for a in _as_list(self._request("GET", "/savings"))]

    def create_savings_account(self, account_type: str, initial_deposit: float) -> dict[str, Any] | None:
        data = self._request("POST", "/savings", {"accountType": account_type, "initialDeposit": initial_deposit})
        acct = data.get("account") if isinstance(data, dict) else None
        return normalize_account(acct) if isinstance(acct, dict) else None

    def add_transaction(
        self,
        account_id: str,
        tx_type: str,
        amount: float,
        description: str | None = None,
    ) -> dict[str, Any] | None:
        payload: dict[str, Any] = {"type": tx_type, "amount": amount}
        if description:
            payload["description"] = description
        data = self._request("POST", f"/savings/{account_id}/transactions", payload)
        tx = data.get("transaction") if isinstance(data, dict) else None
        return normalize_transaction(tx) if isinstance(tx, dict) else None
