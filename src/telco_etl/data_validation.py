"""Row models for the customer table.

`RawCustomerRecord` describes a row as it comes out of the delimited export:
every field is text except the three counters, which are coerced to
non-negative integers. The monetary fields stay as raw strings because they
may hold a comma decimal separator or a blank placeholder.

`CustomerRecord` describes a row after normalization and enforces the
invariants the dashboards rely on:
- monetary values are non-negative decimals with exactly two places
  (or the `decimal_places` passed in the validation context)
- no service flag still holds the raw "Yes" token
"""

from decimal import Decimal

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from telco_etl.schema import AFFIRMATIVE, SERVICE_COLUMNS


class RawCustomerRecord(BaseModel):
    """Pydantic model for one raw input row."""

    # -----------------------------
    # Identity and demographics
    # -----------------------------
    customerId: str = Field(min_length=1)
    gender: str
    isSeniorCitizen: str
    hasPartner: str
    hasDependents: str

    # -----------------------------
    # Tenure and usage
    # -----------------------------
    tenureMonths: int = Field(ge=0)
    numAdminTickets: int = Field(ge=0)
    numTechTickets: int = Field(ge=0)

    # -----------------------------
    # Service flags
    # -----------------------------
    phoneService: str
    multipleLines: str
    internetService: str
    onlineSecurity: str
    onlineBackup: str
    deviceProtection: str
    techSupport: str
    streamingTv: str
    streamingMovies: str

    # -----------------------------
    # Contract and billing
    # -----------------------------
    contractType: str
    isPaperlessBilling: str
    paymentMethod: str

    # Raw text, repaired and converted by the normalizer
    monthlyCharges: str
    totalCharges: str

    # -----------------------------
    # Outcome
    # -----------------------------
    churn: str

    @field_validator("customerId", mode="before")
    @classmethod
    def strip_customer_id(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("tenureMonths", "numAdminTickets", "numTechTickets", mode="before")
    @classmethod
    def parse_counter(cls, v):
        """Counters arrive as text; surrounding whitespace is tolerated."""
        if isinstance(v, str):
            v = v.strip()
            if not v.isdigit():
                raise ValueError(f"expected a non-negative integer, got {v!r}")
        return v


class CustomerRecord(RawCustomerRecord):
    """Pydantic model for one normalized row."""

    monthlyCharges: Decimal = Field(ge=0)
    totalCharges: Decimal = Field(ge=0)

    @field_validator("monthlyCharges", "totalCharges")
    @classmethod
    def fixed_decimal_places(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        places = (info.context or {}).get("decimal_places", 2)
        if v.as_tuple().exponent != -places:
            raise ValueError(f"expected exactly {places} decimal places, got {v}")
        return v

    @field_validator(*SERVICE_COLUMNS)
    @classmethod
    def no_raw_affirmative(cls, v: str) -> str:
        if v.strip() == AFFIRMATIVE:
            raise ValueError("raw affirmative token left in a service column")
        return v
