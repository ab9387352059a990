"""
Compliance Tracker — Port Manager

Traži slobodan TCP port za API server: probaj bazni port pa do 20
sljedećih, redom, bez čekanja. Odabrani port se pamti u port-config.json
i ponovno koristi dok je slobodan.
"""

import json
import logging
import socket
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from compliance_tracker.storage.json_store import write_json_atomic

logger = logging.getLogger("compliance_tracker.network")

DEFAULT_BACKEND_PORT = 3003
MAX_ATTEMPTS = 20


class NoFreePortError(RuntimeError):
    pass


def is_port_available(port: int, host: str = "127.0.0.1") -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def find_available_port(start_port: int, max_attempts: int = MAX_ATTEMPTS,
                        host: str = "127.0.0.1") -> int:
    for port in range(start_port, start_port + max_attempts):
        if is_port_available(port, host):
            return port
        logger.debug("Port %d in use", port)
    raise NoFreePortError(
        f"No available port found in range {start_port}-{start_port + max_attempts - 1}"
    )


class PortManager:
    """Pamti zadnje dodijeljeni backend port u JSON datoteci."""

    def __init__(self, config_file: Path, base_port: int = DEFAULT_BACKEND_PORT,
                 max_attempts: int = MAX_ATTEMPTS, host: str = "127.0.0.1"):
        self.config_file = Path(config_file)
        self.base_port = base_port
        self.max_attempts = max_attempts
        self.host = host

    def load(self) -> Dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            data = json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable port config %s: %s", self.config_file, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, backend_port: int):
        write_json_atomic(self.config_file, {
            "backend": backend_port,
            "lastUpdated": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        })

    def get_backend_port(self) -> int:
        """Zapamćeni port ako je slobodan, inače prvi slobodan od baznog."""
        remembered = self.load().get("backend")
        if isinstance(remembered, int) and is_port_available(remembered, self.host):
            logger.info("Reusing backend port %d", remembered)
            return remembered

        port = find_available_port(self.base_port, self.max_attempts, self.host)
        if port != self.base_port:
            logger.info("Port %d busy, using %d", self.base_port, port)
        self.save(port)
        return port
