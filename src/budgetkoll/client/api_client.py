"""HTTP client for the budgetkoll REST API.

Every read goes through a ``QueryCache`` keyed by resource path; every
mutation invalidates the affected resources so the next read refetches.
"""

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import requests

from budgetkoll.client.cache import QueryCache
from budgetkoll.client.storage import ACCOUNT_TYPES_CACHE_KEY, LocalStore
from budgetkoll.utils.naming import camelize_keys

logger = logging.getLogger(__name__)

API = "/api"


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


@dataclass(frozen=True)
class AuthState:
    is_authenticated: bool
    user: Optional[dict[str, Any]]


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason or f"HTTP {response.status_code}"


class BudgetClient:
    """Client for interacting with the budgetkoll API."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        store: Optional[LocalStore] = None,
    ) -> None:
        """Initialize client.

        Args:
            base_url: Server root, e.g. ``http://localhost:5000``
            headers: Extra headers sent with every request (identity headers
                when the server trusts a proxy)
            timeout: Per-request timeout in seconds; None waits indefinitely
            store: Persistent store for offline fallbacks
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = QueryCache()
        self.store = store
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if headers:
            self._session.headers.update(headers)

    def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make an API request and return the decoded body (None for 204)."""
        url = f"{self.base_url}{path}"
        response = self._session.request(
            method, url, json=json, params=params, files=files, data=data, timeout=self.timeout
        )
        if response.status_code >= 400:
            raise ApiError(response.status_code, _error_message(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _query(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        """GET through the cache. Callers get their own copy of the cached body."""
        params = {k: v for k, v in (params or {}).items() if v is not None}
        key = self.cache.key(path, params)
        if key in self.cache:
            return copy.deepcopy(self.cache.get(key))
        result = self._request("GET", path, params=params or None)
        self.cache.set(key, result)
        return copy.deepcopy(result)

    def _mutate(self, method: str, path: str, invalidates: tuple[str, ...], **kwargs: Any) -> Any:
        try:
            return self._request(method, path, **kwargs)
        finally:
            # Failed mutations may still have partially applied; refetch either way
            self.cache.invalidate(*invalidates)

    # Auth
    def get_auth_state(self) -> AuthState:
        """Who is signed in. A 401 means nobody, not an error."""
        try:
            user = self._request("GET", f"{API}/auth/user")
        except ApiError as e:
            if e.status == 401:
                return AuthState(is_authenticated=False, user=None)
            raise
        return AuthState(is_authenticated=True, user=user)

    def login(self, user_id: Optional[str] = None, email: Optional[str] = None, **profile: Any) -> dict:
        body = camelize_keys({"user_id": user_id, "email": email, **profile})
        user = self._request("POST", f"{API}/auth/login", json=body)
        self.cache.clear()
        return user

    def logout(self) -> None:
        self._request("POST", f"{API}/auth/logout")
        self.cache.clear()

    def database_status(self) -> dict:
        return self._request("GET", f"{API}/auth/database-status")

    def configure_database(self, database_url: str) -> dict:
        result = self._request("POST", f"{API}/auth/configure-database", json={"databaseUrl": database_url})
        self.cache.clear()
        return result

    # Accounts
    def list_accounts(self) -> list[dict]:
        return self._query(f"{API}/accounts")

    def create_account(self, name: str, **fields: Any) -> dict:
        return self._mutate(
            "POST", f"{API}/accounts", (f"{API}/accounts",), json=camelize_keys({"name": name, **fields})
        )

    def update_account(self, account_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH", f"{API}/accounts/{account_id}", (f"{API}/accounts",), json=camelize_keys(fields)
        )

    def delete_account(self, account_id: int) -> None:
        self._mutate("DELETE", f"{API}/accounts/{account_id}", (f"{API}/accounts",))

    # Account types
    def list_account_types(self) -> list[dict]:
        """Account types, falling back to the last stored copy when the server is unreachable."""
        try:
            account_types = self._query(f"{API}/account-types")
        except (ApiError, requests.RequestException) as e:
            cached = self.store.get(ACCOUNT_TYPES_CACHE_KEY) if self.store is not None else None
            if cached is None:
                raise
            logger.warning("Using cached account types: %s", e)
            return cached
        if self.store is not None:
            self.store.set(ACCOUNT_TYPES_CACHE_KEY, account_types)
        return account_types

    def create_account_type(self, name: str, description: Optional[str] = None) -> dict:
        return self._mutate(
            "POST",
            f"{API}/account-types",
            (f"{API}/account-types",),
            json={"name": name, "description": description},
        )

    def update_account_type(self, account_type_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH",
            f"{API}/account-types/{account_type_id}",
            (f"{API}/account-types",),
            json=camelize_keys(fields),
        )

    def delete_account_type(self, account_type_id: int) -> None:
        self._mutate(
            "DELETE", f"{API}/account-types/{account_type_id}", (f"{API}/account-types", f"{API}/accounts")
        )

    # Banks and CSV mappings
    def list_banks(self) -> list[dict]:
        return self._query(f"{API}/banks")

    def create_bank(self, name: str) -> dict:
        return self._mutate("POST", f"{API}/banks", (f"{API}/banks",), json={"name": name})

    def delete_bank(self, bank_id: int) -> None:
        self._mutate("DELETE", f"{API}/banks/{bank_id}", (f"{API}/banks", f"{API}/bank-csv-mappings"))

    def list_bank_csv_mappings(self, bank_id: Optional[int] = None) -> list[dict]:
        if bank_id is not None:
            return self._query(f"{API}/bank-csv-mappings/bank/{bank_id}")
        return self._query(f"{API}/bank-csv-mappings")

    def create_bank_csv_mapping(self, bank_id: int, name: str, **columns: Any) -> dict:
        body = camelize_keys({"bank_id": bank_id, "name": name, **columns})
        return self._mutate("POST", f"{API}/bank-csv-mappings", (f"{API}/bank-csv-mappings",), json=body)

    def update_bank_csv_mapping(self, mapping_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH",
            f"{API}/bank-csv-mappings/{mapping_id}",
            (f"{API}/bank-csv-mappings",),
            json=camelize_keys(fields),
        )

    def delete_bank_csv_mapping(self, mapping_id: int) -> None:
        self._mutate("DELETE", f"{API}/bank-csv-mappings/{mapping_id}", (f"{API}/bank-csv-mappings",))

    # Categories
    def list_huvudkategorier(self) -> list[dict]:
        return self._query(f"{API}/huvudkategorier")

    def create_huvudkategori(self, name: str) -> dict:
        return self._mutate("POST", f"{API}/huvudkategorier", (f"{API}/huvudkategorier",), json={"name": name})

    def update_huvudkategori(self, category_id: int, name: str) -> dict:
        return self._mutate(
            "PATCH", f"{API}/huvudkategorier/{category_id}", (f"{API}/huvudkategorier",), json={"name": name}
        )

    def delete_huvudkategori(self, category_id: int) -> None:
        self._mutate(
            "DELETE",
            f"{API}/huvudkategorier/{category_id}",
            (f"{API}/huvudkategorier", f"{API}/underkategorier"),
        )

    def list_underkategorier(self, huvudkategori_id: Optional[int] = None) -> list[dict]:
        return self._query(f"{API}/underkategorier", {"huvudkategoriId": huvudkategori_id})

    def create_underkategori(self, name: str, huvudkategori_id: int) -> dict:
        return self._mutate(
            "POST",
            f"{API}/underkategorier",
            (f"{API}/underkategorier",),
            json={"name": name, "huvudkategoriId": huvudkategori_id},
        )

    def update_underkategori(self, category_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH",
            f"{API}/underkategorier/{category_id}",
            (f"{API}/underkategorier",),
            json=camelize_keys(fields),
        )

    def delete_underkategori(self, category_id: int) -> None:
        self._mutate("DELETE", f"{API}/underkategorier/{category_id}", (f"{API}/underkategorier",))

    # Category rules
    def list_category_rules(self) -> list[dict]:
        return self._query(f"{API}/category-rules")

    def get_category_rule(self, rule_id: int) -> dict:
        return self._query(f"{API}/category-rules/{rule_id}")

    def create_category_rule(self, **fields: Any) -> dict:
        return self._mutate(
            "POST",
            f"{API}/category-rules",
            (f"{API}/category-rules", f"{API}/transactions/uncategorized-bank-categories"),
            json=camelize_keys(fields),
        )

    def update_category_rule(self, rule_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH",
            f"{API}/category-rules/{rule_id}",
            (f"{API}/category-rules", f"{API}/transactions/uncategorized-bank-categories"),
            json=camelize_keys(fields),
        )

    def delete_category_rule(self, rule_id: int) -> None:
        self._mutate(
            "DELETE",
            f"{API}/category-rules/{rule_id}",
            (f"{API}/category-rules", f"{API}/transactions/uncategorized-bank-categories"),
        )

    # Transactions
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        month_key: Optional[str] = None,
        uncategorized: bool = False,
    ) -> list[dict]:
        params = {"accountId": account_id, "monthKey": month_key, "uncategorized": "true" if uncategorized else None}
        return self._query(f"{API}/transactions", params)

    def create_transaction(self, **fields: Any) -> dict:
        return self._mutate(
            "POST",
            f"{API}/transactions",
            (f"{API}/transactions",),
            json=camelize_keys(fields),
        )

    def update_transaction(self, transaction_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH",
            f"{API}/transactions/{transaction_id}",
            (f"{API}/transactions",),
            json=camelize_keys(fields),
        )

    def delete_transaction(self, transaction_id: int) -> None:
        self._mutate("DELETE", f"{API}/transactions/{transaction_id}", (f"{API}/transactions",))

    def link_transactions(self, transaction_id: int, linked_transaction_id: int) -> list[dict]:
        """Link two transactions; returns both sides."""
        return self._mutate(
            "POST",
            f"{API}/transactions/{transaction_id}/link",
            (f"{API}/transactions",),
            json={"linkedTransactionId": linked_transaction_id},
        )

    def unlink_transaction(self, transaction_id: int) -> dict:
        return self._mutate("DELETE", f"{API}/transactions/{transaction_id}/link", (f"{API}/transactions",))

    def match_transfers(self, month_key: Optional[str] = None) -> list[list[int]]:
        """Link transfers between own accounts; returns the linked ID pairs."""
        result = self._mutate(
            "POST",
            f"{API}/transactions/match-transfers",
            (f"{API}/transactions",),
            json=camelize_keys({"month_key": month_key}),
        )
        return result["linked"]

    def import_statement(
        self,
        path: str | Path,
        account_id: int,
        mapping_id: Optional[int] = None,
        bank_id: Optional[int] = None,
    ) -> dict:
        """Upload a CSV/XLSX statement file."""
        file_path = Path(path)
        form = {"accountId": str(account_id)}
        if mapping_id is not None:
            form["mappingId"] = str(mapping_id)
        if bank_id is not None:
            form["bankId"] = str(bank_id)
        with open(file_path, "rb") as f:
            return self._mutate(
                "POST",
                f"{API}/transactions/import",
                (f"{API}/transactions", f"{API}/monthly-account-balances"),
                files={"file": (file_path.name, f)},
                data=form,
            )

    def uncategorized_bank_categories(
        self, month_key: Optional[str] = None, account_id: Optional[int] = None
    ) -> list[dict]:
        return self._query(
            f"{API}/transactions/uncategorized-bank-categories",
            {"monthKey": month_key, "accountId": account_id},
        )

    def apply_rules(self, month_key: Optional[str] = None, account_id: Optional[int] = None) -> dict:
        return self._mutate(
            "POST",
            f"{API}/transactions/apply-rules",
            (f"{API}/transactions",),
            json=camelize_keys({"month_key": month_key, "account_id": account_id}),
        )

    # Household
    def list_family_members(self) -> list[dict]:
        return self._query(f"{API}/family-members")

    def create_family_member(self, name: str, **fields: Any) -> dict:
        return self._mutate(
            "POST", f"{API}/family-members", (f"{API}/family-members",), json=camelize_keys({"name": name, **fields})
        )

    def update_family_member(self, member_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH", f"{API}/family-members/{member_id}", (f"{API}/family-members",), json=camelize_keys(fields)
        )

    def delete_family_member(self, member_id: int) -> None:
        self._mutate(
            "DELETE", f"{API}/family-members/{member_id}", (f"{API}/family-members", f"{API}/inkomstkallor-medlem")
        )

    def list_inkomstkallor(self) -> list[dict]:
        return self._query(f"{API}/inkomstkallor")

    def create_inkomstkall(self, text: str, is_default: bool = False) -> dict:
        return self._mutate(
            "POST", f"{API}/inkomstkallor", (f"{API}/inkomstkallor",), json={"text": text, "isDefault": is_default}
        )

    def update_inkomstkall(self, inkomstkall_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH", f"{API}/inkomstkallor/{inkomstkall_id}", (f"{API}/inkomstkallor",), json=camelize_keys(fields)
        )

    def delete_inkomstkall(self, inkomstkall_id: int) -> None:
        self._mutate(
            "DELETE", f"{API}/inkomstkallor/{inkomstkall_id}", (f"{API}/inkomstkallor", f"{API}/inkomstkallor-medlem")
        )

    def list_inkomstkallor_medlem(self) -> list[dict]:
        return self._query(f"{API}/inkomstkallor-medlem")

    def create_inkomstkall_medlem(self, family_member_id: int, inkomstkall_id: int, is_enabled: bool = True) -> dict:
        body = {"familyMemberId": family_member_id, "inkomstkallId": inkomstkall_id, "isEnabled": is_enabled}
        return self._mutate("POST", f"{API}/inkomstkallor-medlem", (f"{API}/inkomstkallor-medlem",), json=body)

    def update_inkomstkall_medlem(self, link_id: int, is_enabled: bool) -> dict:
        return self._mutate(
            "PATCH",
            f"{API}/inkomstkallor-medlem/{link_id}",
            (f"{API}/inkomstkallor-medlem",),
            json={"isEnabled": is_enabled},
        )

    def delete_inkomstkall_medlem(self, link_id: int) -> None:
        self._mutate("DELETE", f"{API}/inkomstkallor-medlem/{link_id}", (f"{API}/inkomstkallor-medlem",))

    # Monthly budgets and planned transfers
    def list_monthly_budgets(self) -> list[dict]:
        return self._query(f"{API}/monthly-budgets")

    def get_monthly_budget(self, month_key: str) -> Optional[dict]:
        """The month's budget, or None when none exists."""
        try:
            return self._query(f"{API}/monthly-budgets/{month_key}")
        except ApiError as e:
            if e.status == 404:
                return None
            raise

    def create_monthly_budget(self, month_key: str, **fields: Any) -> dict:
        body = camelize_keys({"month_key": month_key, **fields})
        return self._mutate("POST", f"{API}/monthly-budgets", (f"{API}/monthly-budgets",), json=body)

    def update_monthly_budget(self, month_key: str, **fields: Any) -> dict:
        return self._mutate(
            "PATCH", f"{API}/monthly-budgets/{month_key}", (f"{API}/monthly-budgets",), json=camelize_keys(fields)
        )

    def delete_monthly_budget(self, month_key: str) -> None:
        self._mutate("DELETE", f"{API}/monthly-budgets/{month_key}", (f"{API}/monthly-budgets",))

    def list_planned_transfers(self, month: Optional[str] = None) -> list[dict]:
        return self._query(f"{API}/planned-transfers", {"month": month})

    def create_planned_transfer(self, **fields: Any) -> dict:
        return self._mutate(
            "POST", f"{API}/planned-transfers", (f"{API}/planned-transfers",), json=camelize_keys(fields)
        )

    def update_planned_transfer(self, transfer_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH",
            f"{API}/planned-transfers/{transfer_id}",
            (f"{API}/planned-transfers",),
            json=camelize_keys(fields),
        )

    def delete_planned_transfer(self, transfer_id: int) -> None:
        self._mutate("DELETE", f"{API}/planned-transfers/{transfer_id}", (f"{API}/planned-transfers",))

    # Budget posts
    def list_budget_posts(self, month_key: Optional[str] = None) -> list[dict]:
        return self._query(f"{API}/budget-posts", {"monthKey": month_key})

    def budget_summary(self, month_key: str) -> dict:
        return self._query(f"{API}/budget-posts/summary", {"monthKey": month_key})

    def create_budget_post(self, month_key: str, type: str, description: str, amount: int, **fields: Any) -> dict:
        body = camelize_keys(
            {"month_key": month_key, "type": type, "description": description, "amount": amount, **fields}
        )
        return self._mutate("POST", f"{API}/budget-posts", (f"{API}/budget-posts",), json=body)

    def update_budget_post(self, post_id: int, **fields: Any) -> dict:
        return self._mutate(
            "PATCH", f"{API}/budget-posts/{post_id}", (f"{API}/budget-posts",), json=camelize_keys(fields)
        )

    def delete_budget_post(self, post_id: int) -> None:
        self._mutate(
            "DELETE", f"{API}/budget-posts/{post_id}", (f"{API}/budget-posts", f"{API}/transactions")
        )

    def copy_budget_month(self, month_key: str, source_month_key: Optional[str] = None) -> list[dict]:
        """Fill an empty month with another month's posts (the previous one by default)."""
        body = camelize_keys({"month_key": month_key, "source_month_key": source_month_key})
        return self._mutate("POST", f"{API}/budget-posts/copy-month", (f"{API}/budget-posts",), json=body)

    # Monthly account balances
    def list_monthly_account_balances(self, month_key: Optional[str] = None) -> list[dict]:
        return self._query(f"{API}/monthly-account-balances", {"monthKey": month_key})

    def save_monthly_account_balance(self, month_key: str, account_id: int, **figures: Any) -> dict:
        body = camelize_keys({"month_key": month_key, "account_id": account_id, **figures})
        return self._mutate(
            "POST", f"{API}/monthly-account-balances", (f"{API}/monthly-account-balances",), json=body
        )

    def set_faktiskt_kontosaldo(self, month_key: str, account_id: int, value: Optional[int]) -> dict:
        """Record (or clear, with None) the actual balance for one account and month."""
        return self._mutate(
            "PUT",
            f"{API}/monthly-account-balances/{month_key}/{account_id}/faktiskt-kontosaldo",
            (f"{API}/monthly-account-balances",),
            json={"faktisktKontosaldo": value},
        )

    def set_bankens_kontosaldo(self, month_key: str, account_id: int, value: Optional[int]) -> dict:
        """Record (or clear, with None) the bank-reported balance for one account and month."""
        return self._mutate(
            "PUT",
            f"{API}/monthly-account-balances/{month_key}/{account_id}/bankens-kontosaldo",
            (f"{API}/monthly-account-balances",),
            json={"bankensKontosaldo": value},
        )

    def recalculate_balances(self, month_key: str) -> list[dict]:
        return self._mutate(
            "POST",
            f"{API}/monthly-account-balances/{month_key}/recalculate",
            (f"{API}/monthly-account-balances",),
        )

    # User settings
    def list_user_settings(self) -> list[dict]:
        return self._query(f"{API}/user-settings")

    def get_user_setting(self, setting_key: str) -> Optional[dict]:
        """A single setting, or None when it has never been set."""
        try:
            return self._query(f"{API}/user-settings/{setting_key}")
        except ApiError as e:
            if e.status == 404:
                return None
            raise

    def set_user_setting(self, setting_key: str, value: Any) -> dict:
        return self._mutate(
            "PUT",
            f"{API}/user-settings/{setting_key}",
            (f"{API}/user-settings",),
            json={"settingValue": value},
        )

    def delete_user_setting(self, setting_key: str) -> None:
        self._mutate("DELETE", f"{API}/user-settings/{setting_key}", (f"{API}/user-settings",))
