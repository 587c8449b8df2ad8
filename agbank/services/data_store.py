"""
Client-side mirror of the backend's users, loans and savings accounts.

Every mutation calls the backend and then re-fetches the collections it
invalidates; locally built records are never trusted as the source of truth.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable

from agbank.domains.banking.calculators import format_currency, sum_balances, user_total_savings
from agbank.domains.banking.validation import (
    ValidationError,
    validate_new_savings_account,
    validate_transaction,
)
from agbank.infrastructure.api_client import ApiError, BankApiClient
from agbank.services.session_store import LOGGED_IN, LOGGED_OUT, REGISTERED, SessionEvent
from agbank.utils.logger import get_logger

logger = get_logger()

LOANS = "loans"
SAVINGS = "savings"
USERS = "users"

# Load and reconcile order; users are only fetched for administrators.
COLLECTION_ORDER = (LOANS, SAVINGS, USERS)

MUTATION_INVALIDATES: dict[str, tuple[str, ...]] = {
    "add_loan_application": (LOANS,),
    "update_loan_application": (LOANS,),
    "add_savings_account": (SAVINGS,),
    "add_transaction": (SAVINGS,),
    "delete_user": (USERS, LOANS, SAVINGS),
    "update_user_status": (USERS,),
}

DEFAULT_TX_DESCRIPTIONS = {
    "deposit": "Cash deposit",
    "withdrawal": "Cash withdrawal",
}


class DataStore:
    """
    Mirrored collections plus the mutations that change them.

    Lifecycle: `init(session)` subscribes to session events and captures the
    current identity, `ensure_loaded()` performs the first load, `reset()`
    clears everything and `dispose()` unsubscribes.
    """

    def __init__(self, api: BankApiClient | None = None) -> None:
        self._api = api
        self._user: dict[str, Any] | None = None
        self.users: list[dict[str, Any]] = []
        self.loans: list[dict[str, Any]] = []
        self.savings_accounts: list[dict[str, Any]] = []
        self.initial_load_complete = False
        self._busy = 0
        self._lock = threading.RLock()
        self._unsubscribe: Callable[[], None] | None = None

    def __getstate__(self) -> dict[str, Any]:
        """Pickle only data; the client, lock and subscription are recreated."""
        return {
            "_user": self._user,
            "users": self.users,
            "loans": self.loans,
            "savings_accounts": self.savings_accounts,
            "initial_load_complete": self.initial_load_complete,
        }

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._user = state.get("_user")
        self.users = state.get("users", [])
        self.loans = state.get("loans", [])
        self.savings_accounts = state.get("savings_accounts", [])
        self.initial_load_complete = state.get("initial_load_complete", False)
        self._api = None  # Will be recreated on demand
        self._busy = 0
        self._lock = threading.RLock()
        self._unsubscribe = None

    def bind(self, api: BankApiClient) -> None:
        """Attach the client of the browser session that owns this store."""
        self._api = api

    def _ensure_api(self) -> BankApiClient:
        if self._api is None:
            # No storage: an unbound store never sends another session's token
            self._api = BankApiClient()
        return self._api

    # --- state ---

    @property
    def loading(self) -> bool:
        """True while any load or mutation sequence is running."""
        return self._busy > 0

    @property
    def is_admin(self) -> bool:
        return bool(self._user) and self._user.get("role") == "admin"

    def _begin(self) -> None:
        self._busy += 1

    def _end(self) -> None:
        self._busy = max(0, self._busy - 1)

    # --- lifecycle ---

    def init(self, session: Any) -> None:
        """Subscribe to `session` and take its current identity. No reference to it is kept."""
        self.dispose()
        self._user = session.user if session.has_valid_session else None
        self._unsubscribe = session.subscribe(self._on_session_event)
        self.initial_load_complete = False

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def reset(self) -> None:
        """Drop all mirrored data; the next ensure_loaded() starts over."""
        self.users = []
        self.loans = []
        self.savings_accounts = []
        self.initial_load_complete = False
        self._busy = 0

    def _on_session_event(self, event: SessionEvent) -> None:
        logger.info("Session event received: %s", event.kind)
        if event.kind in (LOGGED_IN, REGISTERED):
            self._user = event.user
            self.initial_load_complete = False
        elif event.kind == LOGGED_OUT:
            self._user = None
            self.reset()

    def ensure_loaded(self) -> None:
        """First load for a signed-in identity; clears data when nobody is signed in."""
        if self._user is None:
            if self.users or self.loans or self.savings_accounts or self.initial_load_complete:
                logger.info("No authentication found, clearing data")
                self.reset()
            return
        if self.initial_load_complete:
            return
        logger.info("Starting initial data load for user %s", self._user.get("id"))
        self._begin()
        try:
            self.reconcile(COLLECTION_ORDER)
            self.initial_load_complete = True
        finally:
            self._end()
        logger.info(
            "Initial data load complete: users=%d loans=%d savings=%d",
            len(self.users), len(self.loans), len(self.savings_accounts),
        )

    def refresh(self) -> None:
        """Re-fetch every collection the current identity may see."""
        if self._user is None:
            return
        logger.info("Manual refresh triggered")
        self._begin()
        try:
            self.reconcile(COLLECTION_ORDER)
        finally:
            self._end()

    # --- fetching ---

    def _fetch_loans(self) -> list[dict[str, Any]]:
        try:
            self.loans = self._ensure_api().list_loans()
        except ApiError as e:
            logger.error("Error fetching loans: %s", e)
            self.loans = []
        return self.loans

    def _fetch_savings(self) -> list[dict[str, Any]]:
        try:
            self.savings_accounts = self._ensure_api().list_savings()
        except ApiError as e:
            logger.error("Error fetching savings accounts: %s", e)
            self.savings_accounts = []
        logger.debug(
            "Fetched %d savings accounts totalling %s",
            len(self.savings_accounts), format_currency(sum_balances(self.savings_accounts)),
        )
        return self.savings_accounts

    def _fetch_users(self) -> list[dict[str, Any]]:
        try:
            self.users = self._ensure_api().list_users()
        except ApiError as e:
            logger.error("Error fetching users: %s", e)
            self.users = []
        return self.users

    def reconcile(self, collections: Iterable[str]) -> None:
        """
        Re-fetch exactly the given collections, one after another, in
        COLLECTION_ORDER. Users are skipped for non-admin identities. Runs are
        serialised: an overlapping call waits for the one in progress.
        """
        wanted = set(collections)
        unknown = wanted - set(COLLECTION_ORDER)
        if unknown:
            raise ValueError(f"Unknown collections: {sorted(unknown)}")
        fetchers = {LOANS: self._fetch_loans, SAVINGS: self._fetch_savings, USERS: self._fetch_users}
        with self._lock:
            for name in COLLECTION_ORDER:
                if name not in wanted:
                    continue
                if name == USERS and not self.is_admin:
                    logger.debug("Skipping users fetch for non-admin identity")
                    continue
                logger.debug("Reconciling %s", name)
                fetchers[name]()

    def _mutate(self, name: str, call: Callable[[], Any]) -> Any:
        self._begin()
        try:
            result = call()
            self.reconcile(MUTATION_INVALIDATES[name])
            return result
        except ApiError as e:
            logger.error("%s failed: %s", name, e)
            raise
        finally:
            self._end()

    # --- mutations ---

    def add_loan_application(self, fields: dict[str, Any]) -> dict[str, Any] | None:
        """Submit a loan application; returns the backend's record if it sent one."""
        logger.info("Submitting %s loan application", fields.get("loanType"))
        return self._mutate("add_loan_application", lambda: self._ensure_api().create_loan(fields))

    def update_loan_application(self, loan_id: str, updates: dict[str, Any]) -> None:
        logger.info("Updating loan application %s: %s", loan_id, sorted(updates))
        self._mutate("update_loan_application", lambda: self._ensure_api().update_loan(str(loan_id), updates))

    def add_savings_account(self, account_type: str, initial_deposit: float) -> dict[str, Any] | None:
        """Open an account. Deposits under the minimum are rejected before any request."""
        validate_new_savings_account(account_type, initial_deposit)
        logger.info("Creating %s savings account", account_type)
        return self._mutate(
            "add_savings_account",
            lambda: self._ensure_api().create_savings_account(account_type, float(initial_deposit)),
        )

    def add_transaction(
        self,
        account_id: str,
        tx_type: str,
        amount: float,
        description: str | None = None,
    ) -> dict[str, Any] | None:
        """
        Deposit into or withdraw from an account.

        The withdrawal guard uses the mirrored balance; the backend remains the
        authority if the balance changed since the last fetch.
        """
        account = self.get_account(account_id)
        if account is None:
            raise ValidationError("Account not found")
        validate_transaction(tx_type, amount, account.get("balance"))
        desc = (description or "").strip() or DEFAULT_TX_DESCRIPTIONS[tx_type]
        logger.info("Adding %s to account %s", tx_type, account.get("accountNumber") or account_id)
        return self._mutate(
            "add_transaction",
            lambda: self._ensure_api().add_transaction(str(account_id), tx_type, float(amount), desc),
        )

    def delete_user(self, user_id: str) -> None:
        logger.info("Deleting user %s", user_id)
        self._mutate("delete_user", lambda: self._ensure_api().delete_user(str(user_id)))

    def update_user_status(self, user_id: str, is_active: bool) -> None:
        logger.info("Setting user %s active=%s", user_id, is_active)
        self._mutate("update_user_status", lambda: self._ensure_api().set_user_status(str(user_id), is_active))

    # --- views and aggregates ---

    def get_account(self, account_id: str) -> dict[str, Any] | None:
        aid = str(account_id)
        return next((a for a in self.savings_accounts if a.get("id") == aid), None)

    def get_loan(self, loan_id: str) -> dict[str, Any] | None:
        lid = str(loan_id)
        return next((x for x in self.loans if x.get("id") == lid), None)

    def loans_for_user(self, user_id: str) -> list[dict[str, Any]]:
        if user_id is None:
            return []
        uid = str(user_id)
        return [x for x in self.loans if x.get("userId") == uid]

    def accounts_for_user(self, user_id: str) -> list[dict[str, Any]]:
        if user_id is None:
            return []
        uid = str(user_id)
        return [a for a in self.savings_accounts if a.get("userId") == uid]

    def get_user_total_savings(self, user_id: str) -> float:
        return user_total_savings(self.savings_accounts, user_id)

    def get_total_system_savings(self) -> float:
        return sum_balances(self.savings_accounts)

    def loan_summary(self, loans: list[dict[str, Any]] | None = None) -> dict[str, Any]:
        """Counts for dashboards. Approved includes disbursed loans."""
        rows = self.loans if loans is None else loans
        pending = [x for x in rows if x.get("status") == "pending"]
        return {
            "total": len(rows),
            "pending": len(pending),
            "approved": sum(1 for x in rows if x.get("status") in ("approved", "disbursed")),
            "rejected": sum(1 for x in rows if x.get("status") == "rejected"),
            "pending_amount": sum(x.get("amount", 0.0) for x in pending),
        }

    def debug_state(self) -> None:
        """Log a snapshot of the store."""
        logger.info(
            "DataStore state: users=%d loans=%d savings=%d loading=%s initial_load_complete=%s",
            len(self.users), len(self.loans), len(self.savings_accounts),
            self.loading, self.initial_load_complete,
        )
        logger.info("Total system savings: %s", format_currency(self.get_total_system_savings()))
        for u in self.users:
            if u.get("role") == "user":
                logger.info(
                    "User %s %s (%s) savings: %s",
                    u.get("firstName"), u.get("lastName"), u.get("id"),
                    format_currency(self.get_user_total_savings(u.get("id"))),
                )
        for a in self.savings_accounts:
            logger.info(
                "Account %s (user %s): %s",
                a.get("accountNumber"), a.get("userId"), format_currency(a.get("balance")),
            )
