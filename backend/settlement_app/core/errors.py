from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorClass(str, Enum):
    PERSISTENCE  = "PERSISTENCE"    # record store unreachable / schema reject
    NOTIFICATION = "NOTIFICATION"   # transport or auth reject
    FOLDER       = "FOLDER"
    UPLOAD       = "UPLOAD"
    LEDGER       = "LEDGER"
    TIMEOUT      = "TIMEOUT"
    UNKNOWN      = "UNKNOWN"


class SettlementError(Exception):
    error_class: ErrorClass = ErrorClass.UNKNOWN

    def __init__(self, reason: str, *, record_id: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.record_id = record_id


class PersistenceError(SettlementError):
    error_class = ErrorClass.PERSISTENCE


class NotificationError(SettlementError):
    error_class = ErrorClass.NOTIFICATION


class FolderResolutionError(SettlementError):
    error_class = ErrorClass.FOLDER


class UploadError(SettlementError):
    error_class = ErrorClass.UPLOAD


class LedgerError(SettlementError):
    error_class = ErrorClass.LEDGER


def classify(exc: BaseException) -> ErrorClass:
    if isinstance(exc, SettlementError):
        return exc.error_class
    if isinstance(exc, TimeoutError):
        return ErrorClass.TIMEOUT
    return ErrorClass.UNKNOWN
