from dataclasses import replace

import autoheal.__main__ as entry
from autoheal.docker_ops import GatewayError


def test_invalid_settings_exit_with_2(cfg, monkeypatch):
    monkeypatch.setattr(entry, "settings", replace(cfg, interval_s=0))
    assert entry.main() == 2


def test_unreachable_docker_exits_with_1(cfg, monkeypatch):
    def broken_gateway(_cfg):
        raise GatewayError("Cannot connect to the Docker Engine: no such file")

    monkeypatch.setattr(entry, "settings", cfg)
    monkeypatch.setattr(entry, "DockerGateway", broken_gateway)
    assert entry.main() == 1


def test_serves_the_app(cfg, gateway, monkeypatch):
    served = {}

    def fake_run(app, host, port, log_level):
        served.update(app=app, host=host, port=port)

    monkeypatch.setattr(entry, "settings", cfg)
    monkeypatch.setattr(entry, "DockerGateway", lambda _cfg: gateway)
    monkeypatch.setattr(entry.uvicorn, "run", fake_run)

    assert entry.main() == 0
    assert served["port"] == cfg.port
    assert gateway.closed is True


def test_docker_not_answering_ping_exits_with_1(cfg, gateway, monkeypatch):
    gateway.reachable = False
    monkeypatch.setattr(entry, "settings", cfg)
    monkeypatch.setattr(entry, "DockerGateway", lambda _cfg: gateway)
    assert entry.main() == 1
    assert gateway.closed is True
