"""
Tests — Port Manager
"""

import json
import socket

import pytest

from compliance_tracker.network.ports import (
    NoFreePortError, PortManager, find_available_port, is_port_available,
)


@pytest.fixture
def busy_port():
    """Zauzme slobodan port dok test traje."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    yield sock.getsockname()[1]
    sock.close()


class TestPortSearch:
    def test_busy_port_detected(self, busy_port):
        assert is_port_available(busy_port) is False

    def test_skips_busy_port(self, busy_port):
        port = find_available_port(busy_port, max_attempts=20)
        assert port != busy_port
        assert busy_port < port < busy_port + 20

    def test_no_free_port(self, busy_port):
        with pytest.raises(NoFreePortError, match=str(busy_port)):
            find_available_port(busy_port, max_attempts=1)


class TestPortManager:
    def test_saves_chosen_port(self, tmp_path, busy_port):
        cfg = tmp_path / "port-config.json"
        manager = PortManager(cfg, base_port=busy_port)
        port = manager.get_backend_port()
        assert port != busy_port
        saved = json.loads(cfg.read_text(encoding="utf-8"))
        assert saved["backend"] == port
        assert saved["lastUpdated"].endswith("Z")

    def test_reuses_remembered_port(self, tmp_path, busy_port):
        cfg = tmp_path / "port-config.json"
        manager = PortManager(cfg, base_port=busy_port)
        first = manager.get_backend_port()
        assert manager.get_backend_port() == first

    def test_remembered_port_busy(self, tmp_path, busy_port):
        cfg = tmp_path / "port-config.json"
        cfg.write_text(json.dumps({"backend": busy_port}), encoding="utf-8")
        port = PortManager(cfg, base_port=busy_port).get_backend_port()
        assert port != busy_port

    def test_unreadable_config_ignored(self, tmp_path):
        cfg = tmp_path / "port-config.json"
        cfg.write_text("garbage", encoding="utf-8")
        assert PortManager(cfg).load() == {}
