"""Errors raised by the customer ETL.

- `DataImportError`: malformed or missing input while loading. Fatal.
- `TypeConversionError`: a monetary value is not a valid decimal after the
  repair passes. Reported per row; the batch carries on.
- `IntegrityWarning`: duplicate keys or unexpected nulls found by the audit.
  Advisory only.
- `RecordValidationError`: a normalized row still breaks a table invariant,
  e.g. a raw "Yes" in a column whose triggers are other tokens. Reported
  per row; the batch carries on.
"""

from typing import Optional


class DataImportError(Exception):
    """Raised when the raw input cannot be loaded into the customer table."""

    def __init__(self, message: str, row: Optional[int] = None, column: Optional[str] = None):
        self.row = row
        self.column = column
        location = []
        if row is not None:
            location.append(f"row {row}")
        if column is not None:
            location.append(f"column '{column}'")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class TypeConversionError(ValueError):
    """A monetary field could not be parsed as a non-negative decimal."""

    def __init__(self, customer_id: str, column: str, raw_value, reason: str):
        self.customer_id = customer_id
        self.column = column
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(
            f"Cannot convert {column}={raw_value!r} for customer {customer_id}: {reason}"
        )

    def to_dict(self) -> dict:
        return {
            "customerId": self.customer_id,
            "column": self.column,
            "rawValue": None if self.raw_value is None else str(self.raw_value),
            "reason": self.reason,
        }


class IntegrityWarning(UserWarning):
    """Duplicate primary keys or unexpected nulls in the customer table."""


class RecordValidationError(ValueError):
    """A normalized row does not satisfy the `CustomerRecord` invariants."""

    def __init__(self, customer_id: str, column: str, raw_value, reason: str):
        self.customer_id = customer_id
        self.column = column
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(f"Invalid {column}={raw_value!r} for customer {customer_id}: {reason}")

    def to_dict(self) -> dict:
        return {
            "customerId": self.customer_id,
            "column": self.column,
            "rawValue": None if self.raw_value is None else str(self.raw_value),
            "reason": self.reason,
        }
