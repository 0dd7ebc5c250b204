"""Shared fixtures: a small raw export written to a temporary directory."""

import pytest

HEADER = (
    "customerId;gender;isSeniorCitizen;hasPartner;hasDependents;tenureMonths;"
    "phoneService;multipleLines;internetService;onlineSecurity;onlineBackup;"
    "deviceProtection;techSupport;streamingTv;streamingMovies;contractType;"
    "isPaperlessBilling;paymentMethod;monthlyCharges;totalCharges;"
    "numAdminTickets;numTechTickets;churn"
)

ROWS = [
    "C001;Female;No;Yes;No;5; Yes;No;DSL;Yes;No;No;No;No;No;Month-to-month;Yes;Electronic check;29,85;149,25;0;0;No",
    "C002;Male;No;No;No;0;Yes;No;No;No internet service;No internet service;No internet service;"
    "No internet service;No internet service;No internet service;Two year;No;Mailed check;20,25; ;0;0;No",
    "C003;Male;Yes;No;No;34;Yes;Yes;Fiber optic;No;Yes;Yes;Yes;Yes;Yes;One year;Yes;"
    "Credit card (automatic);104,80;3563,50;1;2;Yes",
    "C004;Female;No;No;No;2;No;No phone service;No;No internet service;No internet service;"
    "No internet service;No internet service;No internet service;No internet service;"
    "Month-to-month;No;Mailed check;19,00;38,00;0;1;Yes",
]


def write_export(directory, rows, header=HEADER, name="customers.csv"):
    path = directory / name
    path.write_text("\n".join([header] + list(rows)) + "\n", encoding="utf-8")
    return path


def make_config(raw_data, output_dir=None, **overrides):
    config = {
        "data": {
            "raw_data": str(raw_data),
            "delimiter": ";",
            "encoding": "utf-8",
            "output_dir": str(output_dir) if output_dir else None,
        },
        "normalization": {"decimal_places": 2},
        "audit": {"fail_on_duplicates": False},
        "logging": {"level": "INFO"},
    }
    for section, values in overrides.items():
        config.setdefault(section, {}).update(values)
    return config


@pytest.fixture
def raw_file(tmp_path):
    return write_export(tmp_path, ROWS)


@pytest.fixture
def config(tmp_path, raw_file):
    return make_config(raw_file, tmp_path / "out")
