"""End-to-end tests for the pipeline orchestration and export."""

from decimal import Decimal

import pandas as pd
import pytest
import yaml

from telco_etl.exceptions import DataImportError, IntegrityWarning, RecordValidationError
from telco_etl.pipeline import CustomerPipeline
from telco_etl.utils import Utils
from tests.conftest import ROWS, make_config, write_export


def _row(result, customer_id):
    customers = result.customers
    return customers[customers["customerId"] == customer_id].iloc[0]


def test_end_to_end_row(config):
    result = CustomerPipeline(config)()

    c001 = _row(result, "C001")
    assert c001["monthlyCharges"] == Decimal("29.85")
    assert c001["totalCharges"] == Decimal("149.25")
    assert c001["phoneService"] == "Phone Service"
    assert c001["internetService"] == "Internet Service - DSL"
    assert c001["onlineSecurity"] == "Online Security"

    bundles = dict(zip(result.bundles["customerId"], result.bundles["services"]))
    assert bundles["C001"] == "Phone Service, Internet Service - DSL, Online Security"


def test_blank_total_for_new_customer(config):
    result = CustomerPipeline(config)()

    c002 = _row(result, "C002")
    assert c002["tenureMonths"] == 0
    assert c002["totalCharges"] == Decimal("0.00")
    assert str(c002["totalCharges"]) == "0.00"


def test_every_charge_has_two_places(config):
    result = CustomerPipeline(config)()

    for col in ["monthlyCharges", "totalCharges"]:
        for value in result.customers[col]:
            assert isinstance(value, Decimal)
            assert value >= 0
            assert value.as_tuple().exponent == -2
    assert result.ok


def test_conversion_error_does_not_abort_batch(tmp_path):
    rows = list(ROWS)
    rows[3] = rows[3].replace("19,00;38,00", "19,00;38,0,0")
    config = make_config(write_export(tmp_path, rows))

    result = CustomerPipeline(config)()

    assert len(result.conversion_errors) == 1
    assert result.conversion_errors[0].customer_id == "C004"
    assert _row(result, "C004")["totalCharges"] == "38.0.0"
    assert _row(result, "C003")["totalCharges"] == Decimal("3563.50")
    assert not result.ok


def test_duplicates_are_advisory_by_default(tmp_path):
    config = make_config(write_export(tmp_path, ROWS + [ROWS[0]]))

    with pytest.warns(IntegrityWarning):
        result = CustomerPipeline(config)()

    assert result.audit.duplicate_ids == {"C001": 2}
    assert len(result.customers) == 5
    assert (result.membership["customerId"] == "C001").sum() == 6
    assert len(result.bundles) == 4


def test_duplicates_can_be_fatal(tmp_path):
    config = make_config(write_export(tmp_path, ROWS + [ROWS[0]]), audit={"fail_on_duplicates": True})

    with pytest.warns(IntegrityWarning):
        with pytest.raises(DataImportError, match="C001"):
            CustomerPipeline(config)()


def test_import_error_aborts_run(tmp_path):
    config = make_config(tmp_path / "missing.csv")

    with pytest.raises(DataImportError):
        CustomerPipeline(config)()


def test_export_writes_three_relations(config, tmp_path):
    pipeline = CustomerPipeline(config)
    result = pipeline()

    paths = pipeline.export(result)

    assert [p.name for p in paths] == ["customers.csv", "service_membership.csv", "service_bundle.csv"]
    customers = pd.read_csv(paths[0], dtype=str, keep_default_na=False)
    assert customers.loc[customers["customerId"] == "C001", "monthlyCharges"].iloc[0] == "29.85"
    assert customers.loc[customers["customerId"] == "C002", "totalCharges"].iloc[0] == "0.00"

    bundles = pd.read_csv(paths[2], dtype=str, keep_default_na=False)
    assert bundles.loc[bundles["customerId"] == "C004", "services"].iloc[0] == ""

    membership = pd.read_csv(paths[1])
    assert list(membership.columns) == ["customerId", "service", "serviceRank"]
    assert len(membership) == len(result.membership)


def test_config_is_read_from_yaml(config, tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config))

    loaded = Utils().load_config(str(config_path))

    assert loaded == config
    assert len(CustomerPipeline(loaded)().customers) == 4


def test_invalid_service_value_does_not_abort_batch(tmp_path):
    rows = list(ROWS)
    rows[0] = rows[0].replace(";DSL;", ";Yes;")
    config = make_config(write_export(tmp_path, rows))

    result = CustomerPipeline(config)()

    assert len(result.customers) == 4
    assert len(result.validation_errors) == 1
    error = result.validation_errors[0]
    assert isinstance(error, RecordValidationError)
    assert error.customer_id == "C001"
    assert error.column == "internetService"
    # Raw "Yes" does not match the internet predicate, so it is no membership
    assert _row(result, "C001")["internetService"] == "Yes"
    bundles = dict(zip(result.bundles["customerId"], result.bundles["services"]))
    assert bundles["C001"] == "Phone Service, Online Security"
    assert result.conversion_errors == []
    assert not result.ok
