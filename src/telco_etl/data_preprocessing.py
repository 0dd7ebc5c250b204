"""Normalization passes for the customer table.

This module provides `DataPreprocessing`, which applies four ordered rewrite
passes to a loaded customer table:

1. Blank monetary repair: whitespace-only charges become "0".
2. Decimal separator: every "," in the charges becomes ".".
3. Numeric coercion: charges become `Decimal` values with two places.
4. Label expansion: raw "Yes" (and the internet variants) in the service
   flags become descriptive labels such as "Phone Service".

Every pass is idempotent, so running the whole sequence twice gives the same
table as running it once. Only the known whitespace defect is repaired; any
other malformed charge is reported as a `TypeConversionError` and keeps its
text instead of receiving a made-up value.
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Tuple

import pandas as pd
import structlog
from pydantic import ValidationError

from telco_etl.data_validation import CustomerRecord
from telco_etl.exceptions import RecordValidationError, TypeConversionError
from telco_etl.schema import MONETARY_COLUMNS, PRIMARY_KEY, SERVICES

logger = structlog.get_logger(__name__)

# Plain ASCII digits with an optional fractional part, after the comma repair
CHARGE_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)?$")


class DataPreprocessing:
    """Encapsulates the normalization passes.

    Args:
        df (pd.DataFrame): loaded customer table. The passes work on a copy,
            so the caller's table is never seen half-normalized.
        decimal_places (int): fractional digits kept for the charges
        strict (bool): if True, raise the first `TypeConversionError`
            instead of collecting it in `conversion_errors`
    """

    def __init__(self, df: pd.DataFrame, decimal_places: int = 2, strict: bool = False):
        self.df = df.copy()
        self.quantum = Decimal(1).scaleb(-decimal_places)
        self.strict = strict
        self.decimal_places = decimal_places
        self.conversion_errors: List[TypeConversionError] = []
        # Index labels of the rows holding an unconverted charge
        self.failed_rows: set = set()

    def repair_blank_charges(self) -> int:
        """Pass 1: rewrite whitespace-only charges to the literal "0"."""
        rewritten = 0
        for col in MONETARY_COLUMNS:
            blank = self.df[col].map(lambda v: isinstance(v, str) and v.strip() == "")
            self.df.loc[blank, col] = "0"
            rewritten += int(blank.sum())
        logger.info("Repaired blank charges", cells=rewritten)
        return rewritten

    def normalize_decimal_separator(self) -> int:
        """Pass 2: replace every comma in the charges with a period.

        All occurrences are replaced; "1,2,3" becomes "1.2.3" and is rejected
        by the coercion pass.
        """
        rewritten = 0
        for col in MONETARY_COLUMNS:
            has_comma = self.df[col].map(lambda v: isinstance(v, str) and "," in v)
            self.df.loc[has_comma, col] = self.df.loc[has_comma, col].map(lambda v: v.replace(",", "."))
            rewritten += int(has_comma.sum())
        logger.info("Normalized decimal separators", cells=rewritten)
        return rewritten

    def _to_decimal(self, value) -> Decimal:
        # Raises ValueError with a short reason when `value` is not a valid charge
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, str):
            text = value.strip()
            if not CHARGE_PATTERN.match(text):
                raise ValueError("not a plain non-negative decimal number")
            number = Decimal(text)
        else:
            raise ValueError(f"unexpected type {type(value).__name__}")

        if not number.is_finite():
            raise ValueError("not a finite number")
        if number < 0:
            raise ValueError("negative amount")
        try:
            number = number.quantize(self.quantum, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValueError("amount out of range")
        return number

    def coerce_charges(self) -> int:
        """Pass 3: parse the charges into two-place `Decimal` values."""
        self.conversion_errors = []
        self.failed_rows = set()
        converted = 0
        for col in MONETARY_COLUMNS:
            values = []
            for index, customer_id, value in zip(self.df.index, self.df[PRIMARY_KEY], self.df[col]):
                try:
                    values.append(self._to_decimal(value))
                    converted += 1
                except ValueError as e:
                    error = TypeConversionError(customer_id, col, value, str(e))
                    if self.strict:
                        raise error
                    logger.error(
                        "Charge conversion failed",
                        customer_id=customer_id,
                        column=col,
                        raw_value=value,
                        reason=str(e),
                    )
                    self.conversion_errors.append(error)
                    self.failed_rows.add(index)
                    values.append(value)
            self.df[col] = pd.Series(values, index=self.df.index, dtype=object)
        logger.info("Coerced charges", cells=converted, failures=len(self.conversion_errors))
        return converted

    def expand_service_labels(self) -> int:
        """Pass 4: replace raw affirmative tokens with descriptive labels.

        Expanded labels never equal a trigger token, so re-running the pass is
        a no-op. Values other than the triggers are left untouched.
        """
        rewritten = 0
        for service in SERVICES:
            labels = service.labels
            trigger = self.df[service.column].map(lambda v: isinstance(v, str) and v.strip() in labels)
            self.df.loc[trigger, service.column] = self.df.loc[trigger, service.column].map(
                lambda v: labels[v.strip()]
            )
            rewritten += int(trigger.sum())
        logger.info("Expanded service labels", cells=rewritten)
        return rewritten

    @property
    def failed_ids(self) -> List[str]:
        """Customer ids with at least one charge that could not be converted."""
        seen = []
        for error in self.conversion_errors:
            if error.customer_id not in seen:
                seen.append(error.customer_id)
        return seen

    def to_records(self) -> Tuple[List[CustomerRecord], List[RecordValidationError]]:
        """Validate the normalized rows against `CustomerRecord`.

        Rows with an unconverted charge were already reported and are not
        validated again. Any other invalid row is reported as a
        `RecordValidationError` and the remaining rows are still checked.
        """
        context = {"decimal_places": self.decimal_places}
        records = []
        errors = []
        rows = self.df.drop(index=list(self.failed_rows))
        for row in rows.to_dict(orient="records"):
            try:
                records.append(CustomerRecord.model_validate(row, context=context))
            except ValidationError as e:
                for detail in e.errors():
                    column = str(detail["loc"][0]) if detail["loc"] else None
                    error = RecordValidationError(
                        row.get(PRIMARY_KEY), column, row.get(column), detail["msg"]
                    )
                    logger.error(
                        "Normalized row is invalid",
                        customer_id=error.customer_id,
                        column=column,
                        raw_value=error.raw_value,
                        reason=error.reason,
                    )
                    errors.append(error)
        logger.info(
            "Normalized rows validated",
            rows=len(records),
            invalid=len(errors),
            skipped=len(self.failed_rows),
        )
        return records, errors

    def data_preprocess(self) -> pd.DataFrame:
        """Run the four passes in their fixed order and return the table."""
        self.repair_blank_charges()
        self.normalize_decimal_separator()
        self.coerce_charges()
        self.expand_service_labels()
        return self.df

    def __call__(self) -> pd.DataFrame:
        """Allow instances to be called to run every pass on their table."""
        return self.data_preprocess()
