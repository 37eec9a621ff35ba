# Models Package
from .account import Account
from .ledger_entry import LedgerEntry
from .tournament import Tournament
from .payment_request import PaymentRequest
from .withdrawal_request import WithdrawalRequest
from .audit_log import AuditLog

__all__ = [
    "Account",
    "LedgerEntry",
    "Tournament",
    "PaymentRequest",
    "WithdrawalRequest",
    "AuditLog"
]
