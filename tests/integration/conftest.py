"""Integration test fixtures (app clients and service checks).

API tests run the full FastAPI app (lifespan, middleware, exception
handlers) against a scripted model runtime. Tests against a real Ollama
server are skipped when it is not reachable.
"""

import time

import httpx
import pytest
from fastapi.testclient import TestClient

from communication_mirror.main import create_app

OLLAMA_URL = "http://localhost:11434"


def wait_for_model(client: TestClient, timeout: float = 5.0) -> dict:
    """Poll /api/status until the background loader has finished."""
    deadline = time.monotonic() + timeout
    while True:
        status = client.get("/api/status").json()
        if status["modelReady"] or status["error"]:
            return status
        if time.monotonic() > deadline:
            raise AssertionError(f"Model loader did not finish: {status}")
        time.sleep(0.01)


@pytest.fixture
def make_client(test_settings, make_runtime, valid_payloads):
    """Factory fixture: TestClient over a fully started app.

    Usage:
        def test_something(make_client, make_runtime):
            runtime = make_runtime(...)
            client = make_client(runtime)
    """
    clients = []

    def _create(runtime=None, session_store=None, wait=True):
        runtime = runtime or make_runtime(valid_payloads)
        app = create_app(test_settings, runtime=runtime, session_store=session_store)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        if wait:
            wait_for_model(client)
        return client

    yield _create

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture(scope="session")
def check_ollama():
    """Check if Ollama is available at localhost:11434.

    Skips tests if Ollama is not reachable.
    """
    try:
        response = httpx.get(f"{OLLAMA_URL}/api/tags", timeout=5)
        if response.status_code != 200:
            pytest.skip("Ollama not available (non-200 status)")
    except httpx.HTTPError as e:
        pytest.skip(f"Ollama not available: {e}")
