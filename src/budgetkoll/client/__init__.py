"""Python client for the budgetkoll REST API."""

from budgetkoll.client.api_client import ApiError, AuthState, BudgetClient
from budgetkoll.client.cache import QueryCache
from budgetkoll.client.storage import LocalStore

__all__ = ["ApiError", "AuthState", "BudgetClient", "LocalStore", "QueryCache"]
