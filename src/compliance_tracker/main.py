"""
Compliance Tracker — Main Entry Point

Pokreni s: python -m compliance_tracker.main
Ili:       uvicorn compliance_tracker.api.app:app --host 0.0.0.0 --port 3003
"""

import logging
import sys

from compliance_tracker.core.config import TrackerConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("compliance_tracker")


def setup_logging(config: TrackerConfig):
    config.log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(config.log_dir / "compliance_tracker.log", encoding="utf-8"),
        ],
    )


def main():
    """Start Compliance Tracker API server."""
    import uvicorn

    from compliance_tracker.api.app import create_app
    from compliance_tracker.network.ports import PortManager

    config = TrackerConfig.from_env()
    setup_logging(config)
    config.ensure_dirs()

    port = config.api_port
    if config.auto_port:
        port = PortManager(config.port_config_file, base_port=config.api_port).get_backend_port()

    logger.info("E-Invoicing Compliance Tracker")
    logger.info("   Host: %s:%d", config.api_host, port)
    logger.info("   Environment: %s", config.environment)
    logger.info("   Data: %s", config.data_dir)

    uvicorn.run(
        create_app(config),
        host=config.api_host,
        port=port,
        log_level=config.log_level.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
