"""Domain errors raised by the ledger and credential services.

Every error carries a ``kind`` (the class name) that ends up in the JSON
error body, a human readable message and the HTTP status the API layer
answers with.
"""
from fastapi import status


class WalletError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


# Authentication

class NotAuthenticated(WalletError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class InvalidCredential(WalletError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class SessionExpired(WalletError):
    default_message = "Session expired. Please start again."


class Forbidden(WalletError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action"


class ApiDisabled(Forbidden):
    default_message = "API payments are disabled"


# Lookups

class NotFound(WalletError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class AccountNotFound(NotFound):
    default_message = "User not found"


class RecipientNotFound(NotFound):
    default_message = "Recipient not found"


class RequestNotFound(NotFound):
    default_message = "Request not found"


class CodeNotFound(NotFound):
    default_message = "Gift code not found"


# Conflicts

class AlreadyExists(WalletError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists"


class AlreadyClaimed(AlreadyExists):
    default_message = "You have already claimed this code"


class InvalidStateTransition(WalletError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Request has already been processed"


# Ledger rule violations

class InvalidInput(WalletError):
    default_message = "Invalid input"


class InsufficientBalance(WalletError):
    default_message = "Insufficient balance"


class SelfTransferDenied(WalletError):
    default_message = "Cannot pay to yourself"


class CodeInactive(WalletError):
    default_message = "Gift code is no longer active"


class CodeExhausted(WalletError):
    default_message = "Gift code has no remaining slots"
