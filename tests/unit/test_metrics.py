"""Prometheus counters."""

from prometheus_client import REGISTRY

from radius_vlan.utils import metrics


def _value(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_record_decision_increments_labelled_counter():
    before = _value("radius_vlan_auth_decisions_total", result="fallback_accept")
    metrics.record_decision("fallback_accept")
    assert _value("radius_vlan_auth_decisions_total", result="fallback_accept") == before + 1


def test_record_drop_increments_labelled_counter():
    before = _value("radius_vlan_dropped_requests_total", reason="invalid_packet")
    metrics.record_drop("invalid_packet")
    metrics.record_drop("invalid_packet")
    assert _value("radius_vlan_dropped_requests_total", reason="invalid_packet") == before + 2


def test_metrics_server_disabled_on_port_zero(monkeypatch):
    calls = []
    monkeypatch.setattr(metrics, "start_http_server", lambda *a, **kw: calls.append(a))
    assert metrics.start_metrics_server("127.0.0.1", 0) is False
    assert calls == []


def test_metrics_server_started(monkeypatch):
    calls = []
    monkeypatch.setattr(
        metrics, "start_http_server", lambda port, addr: calls.append((port, addr))
    )
    assert metrics.start_metrics_server("127.0.0.1", 9812) is True
    assert calls == [(9812, "127.0.0.1")]
