"""
Global test configuration with support for different test types.
"""

from collections.abc import Callable
from contextlib import suppress
import logging
import os
from typing import Any

import pytest

from enrich_batch.copying import xml_graph
from enrich_batch.core.types import EmptyPayload, Success, TransportError


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Tests should only see environment that they explicitly set.

    Opt-in escape hatch: mark a test with @pytest.mark.allow_dotenv
    to permit .env loading for that specific test.
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_enrich_env(request, monkeypatch):
    """Ensure a clean ENRICH_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("ENRICH_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles affecting telemetry paths
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def reset_encoding_probe():
    """The XML availability probe is cached per process; reset it per test."""
    probe = xml_graph.in_memory_encoding_available
    probe.cache_clear()
    yield
    probe.cache_clear()


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioral guarantees that must hold for any input",
        "security: Credential and trust-boundary guarantees",
        "integration: Component integration tests with fake providers",
        "allow_dotenv: Permit python-dotenv to load .env files",
        "allow_env_pollution: Keep ENRICH_* variables from the real environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def mock_api_key():
    """Provide a consistent, fake API key for tests."""
    return "test_api_key_12345_67890_abcdef_ghijkl"


@pytest.fixture
def sleeps():
    """Recorded delays from an injected sleep callable."""
    return []


@pytest.fixture
def fake_sleep(sleeps) -> Callable[[float], None]:
    """Sleep replacement that records delays instead of waiting."""
    return sleeps.append


class ScriptedProvider:
    """Provider that replays a fixed script of results for each call.

    Script entries are ``RemoteCallResult`` values or plain payloads (wrapped
    in ``Success``). The last entry repeats once the script runs out.
    """

    def __init__(self, *script: Any) -> None:
        self.script = list(script)
        self.requests: list[Any] = []

    def _next(self, request: Any) -> Any:
        self.requests.append(request)
        index = min(len(self.requests), len(self.script)) - 1
        entry = self.script[index]
        if isinstance(entry, Success | TransportError | EmptyPayload):
            return entry
        return Success(entry)

    def embed(self, request):
        return self._next(request)

    def complete(self, request):
        return self._next(request)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def scripted_provider() -> Callable[..., ScriptedProvider]:
    """Factory for providers that replay a script of results."""
    return ScriptedProvider
