"""FastAPI service exposing the normalized customer relations.

This module provides read-only REST endpoints for dashboards to:
- Check that the API is up
- Read the normalized customer table
- Read the service membership listing and the service bundles
- Read the audit report and any charge conversion errors
- Reload the table from the configured input file

The pipeline runs lazily on the first request and the result is kept in
memory until the next reload.
"""

import threading
from decimal import Decimal

from fastapi import FastAPI, HTTPException

from telco_etl.pipeline import CustomerPipeline, PipelineResult
from telco_etl.schema import PRIMARY_KEY
from telco_etl.utils import Utils


def _records(df) -> list:
    # JSON-friendly rows; charges are rendered as fixed-point strings
    rows = df.to_dict(orient="records")
    for row in rows:
        for key, value in row.items():
            if isinstance(value, Decimal):
                row[key] = str(value)
    return rows


def create_app(config: dict = None) -> FastAPI:
    """Build the API around one configuration.

    Each run uses its own `CustomerPipeline` and runs are serialized, so a
    reload never interleaves with the lazy first run.
    """
    app = FastAPI(title="Telco customer ETL")
    config = config if config is not None else Utils().load_config()
    state = {"result": None}
    lock = threading.Lock()

    def current(reload: bool = False) -> PipelineResult:
        with lock:
            if reload or state["result"] is None:
                state["result"] = CustomerPipeline(config)()
            return state["result"]

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "api_status": "Working!",
            "message": (
                "Telco customer ETL API. Use /customers, /services and /bundles "
                "to read the normalized relations and /audit for data-quality findings"
            ),
        }

    @app.get("/customers")
    def customers():
        return _records(current().customers)

    @app.get("/services")
    def services():
        return _records(current().membership)

    @app.get("/bundles")
    def bundles():
        return _records(current().bundles)

    @app.get("/bundles/{customer_id}")
    def bundle(customer_id: str):
        result = current()
        match = result.bundles[result.bundles[PRIMARY_KEY] == customer_id]
        if match.empty:
            raise HTTPException(status_code=404, detail=f"Unknown customer {customer_id}")
        return _records(match)[0]

    @app.get("/audit")
    def audit():
        result = current()
        return {
            "audit": result.audit.model_dump(),
            "conversion_errors": [error.to_dict() for error in result.conversion_errors],
            "validation_errors": [error.to_dict() for error in result.validation_errors],
        }

    @app.post("/reload")
    def reload():
        """Truncate-and-reload the table from the configured input file."""
        result = current(reload=True)
        return {"status": "reloaded", "customers": len(result.customers)}

    return app
