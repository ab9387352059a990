"""
Tests — Konfiguracija + iznimke
"""

from pathlib import Path

from compliance_tracker.core.config import (
    RATE_LIMIT_MAX_DEFAULT, RATE_LIMIT_MAX_PRODUCTION, TrackerConfig,
)
from compliance_tracker.core.errors import (
    ApiError, DataLoadError, NotFoundError, RateLimitError, ValidationError,
)


class TestConfig:
    def test_defaults(self):
        cfg = TrackerConfig()
        assert cfg.api_port == 3003
        assert cfg.helper_port == 4321
        assert cfg.compliance_file == Path("data") / "compliance-data.json"
        assert cfg.progress_file == Path("tmp") / "refresh-progress.json"
        assert cfg.is_development
        assert cfg.rate_limit_max == RATE_LIMIT_MAX_DEFAULT

    def test_production_rate_limit(self):
        cfg = TrackerConfig(environment="production")
        assert cfg.rate_limit_max == RATE_LIMIT_MAX_PRODUCTION
        assert TrackerConfig(environment="production", rate_limit_max=5).rate_limit_max == 5

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CT_ENV", "production")
        monkeypatch.setenv("CT_PORT", "8080")
        monkeypatch.setenv("API_PORT", "5000")
        monkeypatch.setenv("CT_AUTO_PORT", "1")
        monkeypatch.setenv("CT_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("CT_RATE_LIMIT_MAX", "7")
        cfg = TrackerConfig.from_env()
        assert cfg.is_production
        assert cfg.api_port == 8080
        assert cfg.helper_port == 5000
        assert cfg.auto_port is True
        assert cfg.countries_file == tmp_path / "countries.json"
        assert cfg.rate_limit_max == 7

    def test_ensure_dirs(self, tmp_path):
        cfg = TrackerConfig(data_dir=tmp_path / "d", log_dir=tmp_path / "l", tmp_dir=tmp_path / "t")
        cfg.ensure_dirs()
        assert (tmp_path / "d").is_dir() and (tmp_path / "l").is_dir() and (tmp_path / "t").is_dir()


class TestErrors:
    def test_status_codes(self):
        assert ValidationError("x").status_code == 400
        assert NotFoundError("x").status_code == 404
        assert RateLimitError("x").status_code == 429
        err = ApiError("x", code="COUNTRY_NOT_FOUND", status_code=404)
        assert (err.code, err.status_code) == ("COUNTRY_NOT_FOUND", 404)

    def test_data_load_error_message(self):
        err = DataLoadError("Malformed JSON", "data/x.json", ValueError("bad"))
        text = str(err)
        assert "Malformed JSON" in text
        assert "path=data/x.json" in text
        assert "ValueError: bad" in text
