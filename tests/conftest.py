from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import MetaData, create_engine, insert

from landval.config import load_settings
from landval.main import create_app
from landval.models import (
    KhasraNumber,
    LandClassification,
    Mouza,
    city_table,
    create_reference_tables,
)

MOUZAS = [
    {"id": 1, "name": "Alpha"},
    {"id": 2, "name": "Gamma"},  # no classifications
    {"id": 3, "name": "Delta"},  # range-only khasras
    {"id": 4, "name": "Epsilon"},
]

CLASSIFICATIONS = [
    {"id": 10, "mouza_id": 1, "name": "Residential", "value_per_sq_meter": 1500.0},
    {"id": 11, "mouza_id": 1, "name": "Commercial", "value_per_sq_meter": 2500.0},
    {"id": 30, "mouza_id": 3, "name": "Agricultural", "value_per_sq_meter": 300.0},
    {"id": 40, "mouza_id": 4, "name": "Residential", "value_per_sq_meter": 900.0},
]

_NO_RANGE = {"range_start": None, "range_end": None}
_NO_NUMBER = {"khasra_number": None}

KHASRAS = [
    {"id": 1, "classification_id": 10, "is_range": False, "khasra_number": "7", **_NO_RANGE},
    {"id": 2, "classification_id": 10, "is_range": True, "range_start": 50, "range_end": 60, **_NO_NUMBER},
    {"id": 3, "classification_id": 11, "is_range": False, "khasra_number": "45/2", **_NO_RANGE},
    {"id": 4, "classification_id": 11, "is_range": True, "range_start": 100, "range_end": 200, **_NO_NUMBER},
    {"id": 5, "classification_id": 30, "is_range": True, "range_start": 1, "range_end": 1000, **_NO_NUMBER},
    # same number in another mouza; must never leak into Alpha's results
    {"id": 6, "classification_id": 40, "is_range": False, "khasra_number": "7", **_NO_RANGE},
]

KARACHI = [
    {"id": 1, "location": "Clifton", "size_sq_yard": 200.0, "value_per_sq_meter": 9000.0},
    {"id": 2, "location": "Clifton", "size_sq_yard": 400.0, "value_per_sq_meter": 8500.0},
    {"id": 3, "location": "DHA", "size_sq_yard": 500.0, "value_per_sq_meter": 12000.0},
]


@pytest.fixture
def db_file(tmp_path) -> Path:
    path = tmp_path / "landval.sqlite"
    engine = create_engine(f"sqlite:///{path.as_posix()}")
    try:
        with engine.begin() as conn:
            create_reference_tables(conn, city_tables=["karachi"])
            conn.execute(insert(Mouza), MOUZAS)
            conn.execute(insert(LandClassification), CLASSIFICATIONS)
            conn.execute(insert(KhasraNumber), KHASRAS)
            conn.execute(insert(city_table("karachi", MetaData())), KARACHI)
    finally:
        engine.dispose()
    return path


@pytest.fixture
def settings(db_file):
    return load_settings(
        {
            "DATABASE_URL": f"sqlite+aiosqlite:///{db_file.as_posix()}",
            "CITY_TABLES": "karachi",
            "ALLOWED_SCHEMAS": "main",
            "DB_QUERY_TIMEOUT": "5",
        }
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
