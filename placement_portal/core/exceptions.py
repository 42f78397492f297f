"""
Domain exceptions.

Row-level problems are never raised: they are collected into the
IngestionReport. Only batch-fatal and programming-level conditions
surface as exceptions.
"""

from typing import List


class PlacementPortalError(Exception):
    """Base class for all errors raised by this package."""


class SchemaError(PlacementPortalError):
    """Batch header row is missing required columns. Whole batch is rejected."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class PackageParseError(PlacementPortalError, ValueError):
    """A free-form package string could not be read as an amount."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Unparseable package '{raw}'")


class RecordNotFoundError(PlacementPortalError, LookupError):
    """Single-record operation against a key that is not stored."""

    def __init__(self, key: str, kind: str = "Student"):
        self.key = key
        self.kind = kind
        super().__init__(f"{kind} '{key}' not found")


class BatchReadError(PlacementPortalError):
    """Batch text could not be split into CSV rows. Whole batch is rejected."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Unreadable batch file: {reason}")


class RequestNotPendingError(PlacementPortalError):
    """Approve / reject on a request that was already resolved."""

    def __init__(self, request_id: str, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(f"Request '{request_id}' is already {status}")
