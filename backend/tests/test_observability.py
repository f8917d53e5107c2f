"""Tests for the Opik wiring: safe when disabled, traces and metrics when enabled."""
from __future__ import annotations

import importlib
import logging
from typing import Any, Dict

import pytest

from teamplanner.core.context import bind_request_id, reset_request_id
from teamplanner.core.logging import RequestIdFilter
from teamplanner.observability import client as client_module
from teamplanner.observability import metrics, tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.ended = False
        self.error_info = None

    def update(self, metadata=None, error_info=None, **kwargs):
        if metadata:
            self.metadata.update(metadata)
        if error_info:
            self.error_info = error_info

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, dict(metadata or {}))
        self.traces.append(trace)
        return trace


@pytest.fixture()
def dummy_client(monkeypatch) -> _DummyClient:
    dummy = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy)
    return dummy


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", False)
    client_module.reset_opik_client()

    import teamplanner.main as main_module

    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")
    assert client_module.get_opik_client() is None
    client_module.reset_opik_client()


def test_enabled_without_key_skips_client(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", None)
    client_module.reset_opik_client()
    try:
        assert client_module.init_opik() is None
    finally:
        client_module.reset_opik_client()


def test_log_metric_closes_trace(dummy_client) -> None:
    metrics.log_metric("demo_metric", 42, metadata={"foo": "bar"})

    assert dummy_client.traces, "Metric call should record a trace"
    recorded = dummy_client.traces[0]
    assert recorded.name == "metric:demo_metric"
    assert recorded.metadata["value"] == 42
    assert recorded.metadata["foo"] == "bar"
    assert recorded.ended is True


def test_trace_attaches_request_id_and_errors(dummy_client) -> None:
    token = bind_request_id("req-9")
    try:
        with pytest.raises(RuntimeError):
            with tracing.trace("plan.assignment", metadata={"parts": 2, "skipped": None}):
                raise RuntimeError("boom")
    finally:
        reset_request_id(token)

    recorded = dummy_client.traces[0]
    assert recorded.metadata == {"parts": 2, "request_id": "req-9"}
    assert recorded.error_info == {"message": "boom"}
    assert recorded.ended is True


def test_trace_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("plan.schedule") as span:
        assert span is None


def test_request_id_filter_defaults_to_dash() -> None:
    record = logging.LogRecord("teamplanner", logging.INFO, __file__, 1, "msg", None, None)

    assert RequestIdFilter().filter(record) is True
    assert record.request_id == "-"
