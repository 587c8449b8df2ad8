"""
Tests for BankApiClient: request shape, auth header, normalisation, error mapping.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from agbank.infrastructure.api_client import ApiError, BankApiClient, normalize_account
from agbank.infrastructure.session_storage import TOKEN_KEY, FileSessionStorage


@pytest.fixture
def storage(tmp_path: Path) -> FileSessionStorage:
    return FileSessionStorage(tmp_path / "session.json")


@pytest.fixture
def client(storage: FileSessionStorage) -> BankApiClient:
    return BankApiClient(base_url="http://bank.test/api/", storage=storage, timeout=5)


def _response(body, status_code: int = 200) -> MagicMock:
    r = MagicMock(status_code=status_code, content=b"{}" if body is not None else b"")
    r.json.return_value = body
    r.raise_for_status = MagicMock()
    return r


def test_login_posts_credentials(client: BankApiClient) -> None:
    resp = _response({"user": {"id": 7, "email": "a@b.com", "role": "user"}, "token": "tok"})
    with patch("agbank.infrastructure.api_client.requests.request", return_value=resp) as mock_req:
        out = client.login("a@b.com", "Secret1!")

    method, url = mock_req.call_args.args
    assert method == "POST"
    assert url == "http://bank.test/api/auth/login"
    assert mock_req.call_args.kwargs["json"] == {"email": "a@b.com", "password": "Secret1!"}
    assert mock_req.call_args.kwargs["timeout"] == 5
    assert out["token"] == "tok"
    assert out["user"]["id"] == "7"


def test_login_rejects_incomplete_response(client: BankApiClient) -> None:
    with patch("agbank.infrastructure.api_client.requests.request", return_value=_response({"user": {"id": 1}})):
        with pytest.raises(ApiError, match="Invalid auth response"):
            client.login("a@b.com", "x")


def test_bearer_token_from_storage(client: BankApiClient, storage: FileSessionStorage) -> None:
    storage.set(TOKEN_KEY, "abc123")
    with patch("agbank.infrastructure.api_client.requests.request", return_value=_response([])) as mock_req:
        client.list_loans()
    assert mock_req.call_args.kwargs["headers"]["Authorization"] == "Bearer abc123"


def test_no_auth_header_without_token(client: BankApiClient) -> None:
    with patch("agbank.infrastructure.api_client.requests.request", return_value=_response([])) as mock_req:
        client.list_users()
    assert "Authorization" not in mock_req.call_args.kwargs["headers"]


def test_list_savings_normalises_ids_and_balances(client: BankApiClient) -> None:
    body = [
        {"id": 1, "userId": 42, "accountNumber": "001", "balance": "1500.50", "interestRate": 4.5,
         "transactions": [{"id": 9, "type": "deposit", "amount": "1500.50", "balance": "1500.50"}]},
        {"id": 2, "userId": "42", "balance": None},
        "garbage",
    ]
    with patch("agbank.infrastructure.api_client.requests.request", return_value=_response(body)):
        accounts = client.list_savings()

    assert len(accounts) == 2
    assert accounts[0]["id"] == "1" and accounts[0]["userId"] == "42"
    assert accounts[0]["balance"] == 1500.5
    assert accounts[0]["transactions"][0]["amount"] == 1500.5
    assert accounts[1]["userId"] == "42" and accounts[1]["balance"] == 0.0
    assert accounts[1]["transactions"] == []


def test_non_list_collection_is_empty(client: BankApiClient) -> None:
    with patch("agbank.infrastructure.api_client.requests.request", return_value=_response({"error": "x"})):
        assert client.list_loans() == []


def test_transaction_payload(client: BankApiClient) -> None:
    resp = _response({"transaction": {"id": 3, "type": "withdrawal", "amount": 200, "balance": 800}})
    with patch("agbank.infrastructure.api_client.requests.request", return_value=resp) as mock_req:
        tx = client.add_transaction("5", "withdrawal", 200.0, "ATM")
    method, url = mock_req.call_args.args
    assert (method, url) == ("POST", "http://bank.test/api/savings/5/transactions")
    assert mock_req.call_args.kwargs["json"] == {"type": "withdrawal", "amount": 200.0, "description": "ATM"}
    assert tx["id"] == "3" and tx["balance"] == 800.0


def test_user_status_and_delete_paths(client: BankApiClient) -> None:
    with patch("agbank.infrastructure.api_client.requests.request", return_value=_response(None)) as mock_req:
        client.set_user_status("8", False)
        client.delete_user("8")
    calls = [(c.args[0], c.args[1], c.kwargs["json"]) for c in mock_req.call_args_list]
    assert calls == [
        ("PATCH", "http://bank.test/api/users/8/status", {"isActive": False}),
        ("DELETE", "http://bank.test/api/users/8", None),
    ]


def test_http_error_becomes_api_error(client: BankApiClient) -> None:
    resp = _response({"message": "Insufficient balance"}, status_code=400)
    resp.raise_for_status.side_effect = requests.HTTPError("400 Client Error", response=resp)
    with patch("agbank.infrastructure.api_client.requests.request", return_value=resp):
        with pytest.raises(ApiError) as exc:
            client.add_transaction("5", "withdrawal", 99999.0)
    assert exc.value.status_code == 400
    assert exc.value.detail == {"message": "Insufficient balance"}
    assert "Insufficient balance" in str(exc.value)


def test_connection_error_becomes_api_error(client: BankApiClient) -> None:
    with patch(
        "agbank.infrastructure.api_client.requests.request",
        side_effect=requests.ConnectionError("refused"),
    ):
        with pytest.raises(ApiError, match="ConnectionError"):
            client.list_savings()


def test_normalize_account_defaults() -> None:
    acct = normalize_account({"_id": "abc", "userId": 3})
    assert acct["id"] == "abc"
    assert acct["userId"] == "3"
    assert acct["balance"] == 0.0
    assert acct["transactions"] == []
