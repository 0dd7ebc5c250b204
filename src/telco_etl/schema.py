"""Column layout of the raw customer table.

Column names are the ones the downstream dashboards bind to, so they must not
be renamed. Monetary columns are declared as text at load time because the
raw export uses a comma as decimal separator and a single space for missing
totals.
"""

from typing import NamedTuple, Tuple


PRIMARY_KEY = "customerId"

# Order of the fields in the delimited input file
COLUMNS = [
    "customerId",
    "gender",
    "isSeniorCitizen",
    "hasPartner",
    "hasDependents",
    "tenureMonths",
    "phoneService",
    "multipleLines",
    "internetService",
    "onlineSecurity",
    "onlineBackup",
    "deviceProtection",
    "techSupport",
    "streamingTv",
    "streamingMovies",
    "contractType",
    "isPaperlessBilling",
    "paymentMethod",
    "monthlyCharges",
    "totalCharges",
    "numAdminTickets",
    "numTechTickets",
    "churn",
]

INTEGER_COLUMNS = ["tenureMonths", "numAdminTickets", "numTechTickets"]
MONETARY_COLUMNS = ["monthlyCharges", "totalCharges"]

# Generic affirmative token found in the raw service flags
AFFIRMATIVE = "Yes"


class ServiceSpec(NamedTuple):
    """One service flag column.

    `labels` maps the raw trigger token(s) to the descriptive label written by
    the normalizer. A value counts as an active subscription when it starts
    with `prefix` or ends with `suffix`.
    """

    column: str
    rank: int
    labels: dict
    prefix: str = ""
    suffix: str = ""

    def is_active(self, value) -> bool:
        if not isinstance(value, str):
            return False
        if self.prefix and value.startswith(self.prefix):
            return True
        if self.suffix and value.endswith(self.suffix):
            return True
        return False


# Canonical service order: phone, multiple lines, internet, security, backup,
# device protection, tech support, streaming TV, streaming movies
SERVICES: Tuple[ServiceSpec, ...] = (
    ServiceSpec("phoneService", 1, {AFFIRMATIVE: "Phone Service"}, prefix="Phone"),
    ServiceSpec("multipleLines", 2, {AFFIRMATIVE: "Multiple Lines"}, prefix="Multiple"),
    ServiceSpec(
        "internetService",
        3,
        {
            "DSL": "Internet Service - DSL",
            "Fiber optic": "Internet Service - Fiber Optic",
        },
        prefix="Internet",
    ),
    ServiceSpec("onlineSecurity", 4, {AFFIRMATIVE: "Online Security"}, suffix="Security"),
    ServiceSpec("onlineBackup", 5, {AFFIRMATIVE: "Online Backup"}, suffix="Backup"),
    ServiceSpec("deviceProtection", 6, {AFFIRMATIVE: "Device Protection"}, suffix="Protection"),
    ServiceSpec("techSupport", 7, {AFFIRMATIVE: "Tech Support"}, suffix="Support"),
    ServiceSpec("streamingTv", 8, {AFFIRMATIVE: "Streaming TV"}, suffix="TV"),
    ServiceSpec("streamingMovies", 9, {AFFIRMATIVE: "Streaming Movies"}, suffix="Movies"),
)

SERVICE_COLUMNS = [service.column for service in SERVICES]
CANONICAL_SERVICE_ORDER = {service.column: service.rank for service in SERVICES}

# Membership / bundle view columns
MEMBERSHIP_COLUMNS = [PRIMARY_KEY, "service", "serviceRank"]
BUNDLE_COLUMNS = [PRIMARY_KEY, "services"]
BUNDLE_SEPARATOR = ", "
