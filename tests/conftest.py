"""Pytest configuration for the ruleorder test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from ruleorder.config import (
    ENV_DEFAULT_PHASE,
    ENV_LOG_WARNINGS,
    ENV_PHASES,
    ENV_STRICT_REFERENCES,
    reset_defaults,
)


@pytest.fixture(autouse=True)
def clean_defaults(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate every test from ambient RULEORDER_* settings and cached defaults.

    Yields
    ------
    None
        Control returns to the test with a fresh configuration cache.
    """
    for name in (ENV_PHASES, ENV_DEFAULT_PHASE, ENV_STRICT_REFERENCES, ENV_LOG_WARNINGS):
        monkeypatch.delenv(name, raising=False)
    reset_defaults()
    yield
    reset_defaults()
