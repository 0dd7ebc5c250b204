"""Derived, read-only views over the normalized customer table.

Both views are computed on demand from the table passed in; nothing is
cached or stored, so they always reflect the current state of the table.
"""

from typing import Dict, List

import pandas as pd
import structlog

from telco_etl.schema import (
    BUNDLE_COLUMNS,
    BUNDLE_SEPARATOR,
    MEMBERSHIP_COLUMNS,
    PRIMARY_KEY,
    SERVICES,
)

logger = structlog.get_logger(__name__)


class ServiceViews:
    """Builds the service membership listing and the per-customer bundle.

    A service is active for a customer when the column's current value
    matches that service's prefix/suffix predicate, e.g. "Phone Service"
    starts with "Phone" while "No phone service" does not.
    """

    def __init__(self, df: pd.DataFrame):
        self.df = df

    def service_membership(self) -> pd.DataFrame:
        """One row per (customerId, active service label).

        Sorted by customerId, then canonical service rank. Duplicated customer
        rows each contribute their own matches.
        """
        columns = [self.df[service.column] for service in SERVICES]
        rows = []
        for customer_id, *values in zip(self.df[PRIMARY_KEY], *columns):
            for service, value in zip(SERVICES, values):
                if service.is_active(value):
                    rows.append((customer_id, value, service.rank))

        membership = pd.DataFrame(rows, columns=MEMBERSHIP_COLUMNS)
        membership["serviceRank"] = membership["serviceRank"].astype(int)
        membership = membership.sort_values(
            [PRIMARY_KEY, "serviceRank"], kind="mergesort"
        ).reset_index(drop=True)

        logger.info("Built service membership", rows=len(membership))
        return membership

    def _labels_by_customer(self) -> Dict[str, List[str]]:
        labels: Dict[str, List[str]] = {}
        membership = self.service_membership()
        for customer_id, label in zip(membership[PRIMARY_KEY], membership["service"]):
            customer_labels = labels.setdefault(customer_id, [])
            if label not in customer_labels:
                customer_labels.append(label)
        return labels

    def service_bundle(self) -> pd.DataFrame:
        """One row per customerId with its active labels joined in canonical order.

        Customers without any active service get an empty string.
        """
        labels = self._labels_by_customer()
        customer_ids = sorted(self.df[PRIMARY_KEY].unique())
        rows = [
            (customer_id, BUNDLE_SEPARATOR.join(labels.get(customer_id, [])))
            for customer_id in customer_ids
        ]
        bundle = pd.DataFrame(rows, columns=BUNDLE_COLUMNS)

        logger.info("Built service bundle", rows=len(bundle))
        return bundle

    def bundle_for(self, customer_id: str) -> str:
        """Bundle string of a single customer. Raises KeyError if unknown."""
        if customer_id not in set(self.df[PRIMARY_KEY]):
            raise KeyError(customer_id)
        return BUNDLE_SEPARATOR.join(self._labels_by_customer().get(customer_id, []))
