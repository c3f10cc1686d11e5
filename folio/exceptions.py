"""Exception types raised across the ledger and valuation boundary.

Structural failures (a missing portfolio, a Buy without a price) are raised
and propagate to the caller.  Numeric edge cases such as short history or a
zero denominator are never exceptions: the analytics layer absorbs them into
``None``/0 sentinels and an ``available``/``reason`` pair on the report.
"""

from __future__ import annotations

from typing import Any


class FolioError(Exception):
    """Base exception for all Folio errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.replace("Error", "").lower()
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for CLI/JSON output."""
        result: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
            "type": self.__class__.__name__,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(FolioError):
    """A referenced portfolio, asset or transaction does not exist."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(
            f"{entity.capitalize()} not found: {entity_id}",
            code="not_found",
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class MalformedTransactionError(FolioError):
    """A transaction record is missing fields its kind requires."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, code="malformed_transaction", details=details)
