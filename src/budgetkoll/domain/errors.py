"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class AuthenticationError(DomainError):
    """No authenticated user for a request that needs one."""


def not_found(entity: str, entity_id: object) -> str:
    """Return message for a missing entity."""
    return f"{entity} {entity_id} not found"


def duplicate_name(entity: str, name: str) -> str:
    """Return message for a per-user name collision."""
    return f"{entity} with name '{name}' already exists"


def invalid_month_key(month_key: str) -> str:
    """Return message for a malformed month key."""
    return f"Invalid month key '{month_key}', expected YYYY-MM"


def account_delete_blocked(
    account_id: int, transaction_count: int, transfer_count: int
) -> str:
    """Return message when account has dependent transactions or transfers."""
    parts = []
    if transaction_count > 0:
        parts.append(
            f"{transaction_count} transaction{'s' if transaction_count != 1 else ''}"
        )
    if transfer_count > 0:
        parts.append(
            f"{transfer_count} planned transfer{'s' if transfer_count != 1 else ''}"
        )
    return (
        f"Cannot delete account {account_id}: it has {', '.join(parts)}. "
        "Please reassign or delete them first."
    )
