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


class StoreError(Exception):
    """Base class for failures reported by the record store."""

    def __init__(self, message: str, collection: str | None = None, operation: str | None = None):
        super().__init__(message)
        self.collection = collection
        self.operation = operation


class StoreConnectionError(StoreError):
    """The record store could not be reached for a read or write."""


class SubscriptionError(StoreError):
    """The change-notification stream failed to establish or dropped."""


class AuthorizationError(StoreError):
    """The record store rejected the current credential."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def asset_not_found(asset_id: int) -> str:
    """Return message for missing asset."""
    return f"Asset {asset_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def duplicate_name(kind: str, name: str) -> str:
    """Return message for a name that is already taken."""
    return f"{kind} with name '{name}' already exists"


def unknown_balance_group(value: str) -> str:
    """Return message for an unrecognised balance group."""
    return f"Unknown balance group '{value}'. Expected one of: CASH, DEBT, INVESTMENT, OTHER"


def shares_value_mismatch(field: str, expected, actual) -> str:
    """Return message when a shares snapshot value disagrees with quantity x price."""
    return f"{field} {actual} does not equal quantity x price ({expected})"
