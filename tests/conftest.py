"""
Pytest configuration and fixtures for the chat gateway test suite.
"""

import json
import os
import tempfile

# Логгер настраивается при импорте пакета, поэтому окружение задаем заранее
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="chat-gateway-logs-"))
os.environ["OLLAMA_BASE_URL"] = "http://ollama.test:11434"

from typing import Any, Callable, Dict, List

import httpx
import pytest

from chat_gateway.core.config_manager import ConfigManager
from chat_gateway.services.chat_service.quality_tracker import QualityTracker


@pytest.fixture
def ndjson() -> Callable[[List[Dict[str, Any]]], bytes]:
    """Encode backend chunks as an Ollama NDJSON stream body."""
    def encode(chunks: List[Dict[str, Any]]) -> bytes:
        return "".join(json.dumps(chunk) + "\n" for chunk in chunks).encode("utf-8")
    return encode


@pytest.fixture
def ollama_env(monkeypatch, tmp_path):
    """Minimal environment for ConfigManager with an empty config dir."""
    monkeypatch.setenv("OLLAMA_BASE_URL", "http://ollama.test:11434")
    monkeypatch.delenv("DEFAULT_MODEL", raising=False)
    monkeypatch.delenv("OLLAMA_TIMEOUT", raising=False)
    monkeypatch.delenv("OLLAMA_STREAM_TIMEOUT", raising=False)
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def config_manager(ollama_env) -> ConfigManager:
    return ConfigManager()


@pytest.fixture
def backend_calls() -> List[httpx.Request]:
    """Requests seen by the mocked backend, in order."""
    return []


@pytest.fixture
def make_backend(backend_calls) -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an AsyncClient whose transport is the given handler."""
    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            backend_calls.append(request)
            return handler(request)
        return httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return factory


@pytest.fixture
def generate_reply() -> Dict[str, Any]:
    """A typical single-shot /api/generate body."""
    return {
        "model": "gemma3:4b",
        "response": "Hola! Todo bien.",
        "done": True,
        "prompt_eval_count": 12,
        "eval_count": 8,
        "total_duration": 2_000_000_000
    }


@pytest.fixture
def quality_tracker() -> QualityTracker:
    return QualityTracker()
