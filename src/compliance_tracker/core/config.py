"""
Compliance Tracker — Konfiguracija sustava

Sva podešavanja servisa na jednom mjestu. Vrijednosti se čitaju iz
environment varijabli (CT_*), s razumnim defaultima za lokalni rad.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

VERSION = "1.0.0"

RATE_LIMIT_WINDOW_SEC = 15 * 60
RATE_LIMIT_MAX_PRODUCTION = 100
RATE_LIMIT_MAX_DEFAULT = 1000


@dataclass
class TrackerConfig:
    """Master konfiguracija servisa."""

    # ── Okruženje ──
    environment: str = "development"  # development | production | test
    log_level: str = "INFO"

    # ── API Server ──
    api_host: str = "0.0.0.0"
    api_port: int = 3003
    auto_port: bool = False
    cors_origin: str = "http://localhost:5173"

    # ── Refresh helper ──
    helper_port: int = 4321

    # ── Rate limit (po IP adresi klijenta) ──
    rate_limit_window_sec: int = RATE_LIMIT_WINDOW_SEC
    rate_limit_max: Optional[int] = None

    # ── Data Paths ──
    data_dir: Path = Path("data")
    log_dir: Path = Path("data/logs")
    tmp_dir: Path = Path("tmp")
    port_config_file: Path = Path("port-config.json")

    # ── Izvedene putanje ──
    countries_file: Path = field(init=False)
    compliance_file: Path = field(init=False)
    custom_links_file: Path = field(init=False)
    custom_formats_file: Path = field(init=False)
    custom_legislation_file: Path = field(init=False)
    progress_file: Path = field(init=False)

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.log_dir = Path(self.log_dir)
        self.tmp_dir = Path(self.tmp_dir)
        self.port_config_file = Path(self.port_config_file)
        self.countries_file = self.data_dir / "countries.json"
        self.compliance_file = self.data_dir / "compliance-data.json"
        self.custom_links_file = self.data_dir / "custom-links.json"
        self.custom_formats_file = self.data_dir / "custom-formats.json"
        self.custom_legislation_file = self.data_dir / "custom-legislation.json"
        self.progress_file = self.tmp_dir / "refresh-progress.json"
        if self.rate_limit_max is None:
            self.rate_limit_max = (
                RATE_LIMIT_MAX_PRODUCTION if self.is_production
                else RATE_LIMIT_MAX_DEFAULT
            )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        """Konfiguracija iz environment varijabli."""
        env = os.environ
        max_req = env.get("CT_RATE_LIMIT_MAX")
        return cls(
            environment=env.get("CT_ENV", "development"),
            log_level=env.get("CT_LOG_LEVEL", "INFO"),
            api_host=env.get("CT_HOST", "0.0.0.0"),
            api_port=int(env.get("CT_PORT", "3003")),
            auto_port=env.get("CT_AUTO_PORT", "0") == "1",
            cors_origin=env.get("CT_CORS_ORIGIN", "http://localhost:5173"),
            helper_port=int(env.get("API_PORT", "4321")),
            rate_limit_window_sec=int(env.get("CT_RATE_LIMIT_WINDOW", str(RATE_LIMIT_WINDOW_SEC))),
            rate_limit_max=int(max_req) if max_req else None,
            data_dir=Path(env.get("CT_DATA_DIR", "data")),
            log_dir=Path(env.get("CT_LOG_DIR", "data/logs")),
            tmp_dir=Path(env.get("CT_TMP_DIR", "tmp")),
        )

    def ensure_dirs(self):
        """Kreiraj sve potrebne direktorije."""
        for d in [self.data_dir, self.log_dir, self.tmp_dir]:
            d.mkdir(parents=True, exist_ok=True)
