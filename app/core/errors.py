"""
Typed errors raised by the ledger, participation and request workflows.

Each error carries a developer-facing message and a user-facing message.
The API layer turns them into JSON responses using ``status_code`` and
``kind``; services never return error tuples.
"""

from typing import Optional


class ArenaError(Exception):
    """Base exception for all core operation failures."""

    kind = "Error"
    status_code = 400

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message


class NotFoundError(ArenaError):
    """An account, tournament or request does not exist."""

    kind = "NotFound"
    status_code = 404


class InvalidStateError(ArenaError):
    """The entity exists but is not in a state that allows the operation."""

    kind = "InvalidState"
    status_code = 409


class InsufficientFundsError(ArenaError):
    """The account cannot cover the requested amount."""

    kind = "InsufficientFunds"
    status_code = 400


class ValidationError(ArenaError):
    """Malformed or out-of-range input."""

    kind = "ValidationError"
    status_code = 422


class AccountNotFound(NotFoundError):
    def __init__(self, account_id):
        super().__init__(
            f"Account {account_id} not found",
            "Account not found"
        )


class TournamentNotFound(NotFoundError):
    def __init__(self, tournament_id):
        super().__init__(
            f"Tournament {tournament_id} not found",
            "Tournament not found"
        )


class RequestNotFound(NotFoundError):
    def __init__(self, request_kind: str, request_id):
        super().__init__(
            f"{request_kind} {request_id} not found",
            "Request not found"
        )


class AlreadyJoined(InvalidStateError):
    def __init__(self, account_id, tournament_id):
        super().__init__(
            f"Account {account_id} cannot join tournament {tournament_id}: already joined or admin",
            "You have already joined this tournament!"
        )


class AlreadyProcessed(InvalidStateError):
    def __init__(self, request_kind: str, request_id, status: str):
        super().__init__(
            f"{request_kind} {request_id} already {status}",
            f"This request has already been {status}"
        )


class NotJoinable(InvalidStateError):
    def __init__(self, tournament_id, status: str):
        super().__init__(
            f"Tournament {tournament_id} is {status}, not open for joining",
            "This tournament is not open for joining"
        )
        self.status = status


class TournamentFull(NotJoinable):
    """A full tournament is the one non-joinable state with its own message."""

    def __init__(self, tournament_id):
        self.status = "full"
        InvalidStateError.__init__(
            self,
            f"Tournament {tournament_id} is full",
            "Tournament is full!"
        )


class InvalidTransition(InvalidStateError):
    def __init__(self, entity: str, from_status: str, to_status: str):
        super().__init__(
            f"{entity} cannot move from {from_status} to {to_status}",
            f"Cannot change status from {from_status} to {to_status}"
        )


class InsufficientBalance(InsufficientFundsError):
    def __init__(self, account_id, required: int, available: int):
        super().__init__(
            f"Account {account_id} has {available} tokens, needs {required}",
            "Insufficient tokens!"
        )
        self.required = required
        self.available = available


class BelowMinimum(InsufficientFundsError):
    def __init__(self, amount: int, minimum: int):
        super().__init__(
            f"Amount {amount} is below the minimum of {minimum}",
            f"Minimum withdrawal is {minimum} tokens"
        )


class InvalidAmount(ValidationError):
    def __init__(self, amount, reason: str = "amount must be nonzero"):
        super().__init__(
            f"Invalid amount {amount}: {reason}",
            f"Invalid amount: {reason}"
        )
