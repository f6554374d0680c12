"""Unit test environment helpers."""

import os

import pytest

_ENV_PREFIXES = ("SCHEMA_DB_", "SCHEMA_ANALYZER_", "SCHEMA_CACHE_", "REPORTS_DB_")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Strip schema engine settings so unit tests never pick up a developer's database."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name == "SCHEMA_TRACE_QUERIES":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_factory_providers():
    """Reset the engine provider registry after each test."""
    from dal.factory import reset_providers

    yield
    reset_providers()
