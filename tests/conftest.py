"""Shared test fixtures."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _mock_settings(monkeypatch):
    """Provide default settings for all tests."""
    for key in list(os.environ):
        if key.startswith("STRICT_CSP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STRICT_CSP_LOG_JSON", "false")
    monkeypatch.setenv("STRICT_CSP_LOG_LEVEL", "debug")

    # Reset cached settings
    import strict_csp.config.loader as loader
    loader._settings = None
    yield
    loader._settings = None


@pytest.fixture
def page():
    """A small page with sourced, inline and styled content."""
    return (
        "<html><head><title>Demo</title>"
        "<style>body { color: red; }</style>"
        "</head><body>"
        "<p>Hello</p>"
        '<script src="https://cdn.example.com/a.js"></script>'
        "<script>console.log('inline');</script>"
        '<script src="/static/b.js"></script>'
        "</body></html>"
    )
