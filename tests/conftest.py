"""Zajednički fixture-i: mali skup država i compliance zapisa u tmp direktoriju."""

import json

import pytest

from compliance_tracker.core.config import TrackerConfig

SAMPLE_COUNTRIES = [
    {"isoCode2": "DE", "isoCode3": "DEU", "name": "Germany", "continent": "Europe",
     "region": "Western Europe"},
    {"isoCode2": "FR", "isoCode3": "FRA", "name": "France", "continent": "Europe",
     "region": "Western Europe"},
    {"isoCode2": "AT", "isoCode3": "AUT", "name": "Austria", "continent": "Europe",
     "region": "Western Europe"},
    {"isoCode2": "NG", "isoCode3": "NGA", "name": "Nigeria", "continent": "Africa",
     "region": "Western Africa"},
    {"isoCode2": "NE", "isoCode3": "NER", "name": "Niger", "continent": "Africa"},
    {"isoCode2": "AX", "isoCode3": "ALA", "name": "Åland Islands", "continent": "Europe",
     "region": "Northern Europe"},
    {"isoCode2": "BR", "isoCode3": "BRA", "name": "Brazil", "continent": "South America"},
    {"isoCode2": "", "isoCode3": "EUR", "name": "Europe", "continent": "Europe"},
]

SAMPLE_COMPLIANCE = [
    {
        "isoCode3": "FRA",
        "name": "France",
        "eInvoicing": {
            "b2g": {"status": "mandatory", "implementationDate": "2020-01-01",
                    "formats": [{"name": "Factur-X", "version": "1.0.6"}],
                    "legislation": {"name": "Ordonnance n° 2014-697"}},
            "b2b": {"status": "mandated", "implementationDate": "2026-09-01"},
            "b2c": {"status": "none"},
            "lastUpdated": "2024-10-10T00:00:00Z",
        },
    },
    {
        "isoCode3": "BRA",
        "name": "Brazil",
        "eInvoicing": {
            "b2g": {"status": "mandatory"},
            "b2b": {"status": "mandatory"},
            "b2c": {"status": "mandatory"},
            "lastUpdated": "2023-01-01T00:00:00Z",
        },
    },
    {
        "isoCode3": "XYZ",
        "name": "Test",
        "eInvoicing": {
            "b2g": {"status": "mandatory", "formats": [], "legislation": {"name": "Test Act"}},
            "b2b": {"status": "planned"},
            "b2c": {"status": "none"},
            "lastUpdated": "2022-06-01T00:00:00Z",
        },
    },
]


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def config(tmp_path):
    cfg = TrackerConfig(
        environment="test",
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        tmp_dir=tmp_path / "tmp",
        port_config_file=tmp_path / "port-config.json",
    )
    write_json(cfg.countries_file, SAMPLE_COUNTRIES)
    write_json(cfg.compliance_file, SAMPLE_COMPLIANCE)
    return cfg


@pytest.fixture
def client(config):
    from fastapi.testclient import TestClient

    from compliance_tracker.api.app import create_app

    with TestClient(create_app(config)) as c:
        yield c
