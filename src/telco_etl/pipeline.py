"""Batch orchestration for the customer ETL.

`CustomerPipeline` runs the components in their fixed order:
- load the raw export (truncate-and-reload)
- audit nulls, blank charges and duplicate ids (advisory)
- normalize charges and service labels
- validate the normalized rows
- build the service membership and bundle views

The normalized table replaces the loaded one only after every pass has
finished, so readers never see a partially normalized table.
"""

import sys
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import List, Tuple

import pandas as pd
import structlog

from telco_etl.data_audit import AuditReport, DataAudit
from telco_etl.data_ingestion import DataIngestion
from telco_etl.data_preprocessing import DataPreprocessing
from telco_etl.exceptions import DataImportError, RecordValidationError, TypeConversionError
from telco_etl.schema import COLUMNS, MONETARY_COLUMNS, PRIMARY_KEY
from telco_etl.service_views import ServiceViews
from telco_etl.utils import DEFAULT_CONFIG_PATH, Utils, configure_logging

logger = structlog.get_logger(__name__)

CUSTOMERS_FILE = "customers.csv"
MEMBERSHIP_FILE = "service_membership.csv"
BUNDLE_FILE = "service_bundle.csv"


@dataclass
class PipelineResult:
    """Output of one pipeline run."""
    customers: pd.DataFrame
    membership: pd.DataFrame
    bundles: pd.DataFrame
    audit: AuditReport
    conversion_errors: List[TypeConversionError] = field(default_factory=list)
    validation_errors: List[RecordValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.conversion_errors or self.validation_errors or self.audit.duplicate_ids)


class CustomerPipeline:
    """Runs load, audit, normalization and view building over one table.

    Args:
        config (dict): pipeline configuration; loaded from config.yaml when
            omitted
    """

    def __init__(self, config: dict = None):
        self.config = config if config is not None else Utils().load_config()
        self.decimal_places = self.config.get("normalization", {}).get("decimal_places", 2)
        self.fail_on_duplicates = self.config.get("audit", {}).get("fail_on_duplicates", False)
        self.output_dir = self.config.get("data", {}).get("output_dir")
        # The customer table owned by this pipeline
        self.table = None

    def load(self, path: str = None) -> pd.DataFrame:
        self.table = DataIngestion(self.config).load(path)
        return self.table

    def audit(self) -> AuditReport:
        report = DataAudit(self.table)()
        if report.duplicate_ids and self.fail_on_duplicates:
            raise DataImportError(
                f"Duplicate customer ids: {', '.join(report.duplicate_ids)}", column=PRIMARY_KEY
            )
        return report

    def normalize(self) -> Tuple[List[TypeConversionError], List[RecordValidationError]]:
        dp = DataPreprocessing(self.table, decimal_places=self.decimal_places)
        normalized = dp()
        # Rows with a failed conversion keep their text and are skipped here
        _, validation_errors = dp.to_records()
        # Swap in the normalized table only once all passes have run
        self.table = normalized
        return dp.conversion_errors, validation_errors

    def views(self) -> ServiceViews:
        return ServiceViews(self.table)

    def run(self, path: str = None) -> PipelineResult:
        self.load(path)
        report = self.audit()
        conversion_errors, validation_errors = self.normalize()
        views = self.views()
        result = PipelineResult(
            customers=self.table,
            membership=views.service_membership(),
            bundles=views.service_bundle(),
            audit=report,
            conversion_errors=conversion_errors,
            validation_errors=validation_errors,
        )
        logger.info(
            "Pipeline finished",
            customers=len(result.customers),
            memberships=len(result.membership),
            conversion_errors=len(result.conversion_errors),
            validation_errors=len(result.validation_errors),
        )
        return result

    def __call__(self, path: str = None) -> PipelineResult:
        return self.run(path)

    def export(self, result: PipelineResult, output_dir: str = None) -> List[Path]:
        """Write the three relations as CSV files, replacing existing ones."""
        output_dir = Path(output_dir or self.output_dir or ".")
        output_dir.mkdir(parents=True, exist_ok=True)

        customers = format_charges(result.customers, self.decimal_places)
        outputs = [
            (customers[COLUMNS], output_dir / CUSTOMERS_FILE),
            (result.membership, output_dir / MEMBERSHIP_FILE),
            (result.bundles, output_dir / BUNDLE_FILE),
        ]
        paths = []
        for df, path in outputs:
            df.to_csv(path, index=False)
            logger.info("Exported relation", path=str(path), rows=len(df))
            paths.append(path)
        return paths


def format_charges(df: pd.DataFrame, decimal_places: int = 2) -> pd.DataFrame:
    """Copy of `df` with converted charges rendered as fixed-point strings."""
    df = df.copy()
    for col in MONETARY_COLUMNS:
        df[col] = df[col].map(lambda v: f"{v:.{decimal_places}f}" if isinstance(v, Decimal) else v)
    return df


if __name__ == "__main__":
    config_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CONFIG_PATH
    config = Utils().load_config(config_path)
    configure_logging(config.get("logging", {}).get("level", "INFO"))

    pipeline = CustomerPipeline(config)
    result = pipeline()
    pipeline.export(result)
