"""
Endpoint tests against a mocked Ollama backend.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from chat_gateway.api.main import create_app


@pytest.fixture
def backend_handler(generate_reply, ndjson):
    stream_chunks = [
        {"response": "Ho", "eval_count": 5, "done": False},
        {"response": "la", "eval_count": 12, "prompt_eval_count": 3, "done": True},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["stream"]:
            return httpx.Response(200, content=ndjson(stream_chunks))
        return httpx.Response(200, json=generate_reply)
    return handler


@pytest.fixture
def client(ollama_env, make_backend, backend_handler):
    app = create_app(httpx_client=make_backend(backend_handler))
    with TestClient(app) as test_client:
        yield test_client


def sse_payloads(text: str):
    return [json.loads(frame[len("data: "):]) for frame in text.split("\n\n") if frame.startswith("data: ")]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert "x-process-time" in response.headers


class TestChatMessage:
    def test_message(self, client):
        response = client.post("/chat/message", json={"prompt": "Hola", "maxTokens": 100})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["model"] == "gemma3:4b"
        assert data["tokens"] == {"prompt": 12, "completion": 8, "total": 20}

    def test_max_tokens_alias_reaches_backend(self, client, backend_calls):
        client.post("/chat/message", json={"prompt": "Hola", "maxTokens": 100, "temperature": 0.9})
        options = json.loads(backend_calls[-1].content)["options"]
        assert options["num_predict"] == 100
        assert options["temperature"] == 0.9

    @pytest.mark.parametrize("body", [
        {},
        {"prompt": "Hola", "temperature": 2.5},
        {"prompt": "Hola", "temperature": 0.05},
        {"prompt": "Hola", "maxTokens": 49},
        {"prompt": "Hola", "maxTokens": 4001},
    ])
    def test_validation_errors_never_reach_backend(self, client, backend_calls, body):
        response = client.post("/chat/message", json=body)

        assert response.status_code == 422
        assert response.json()["detail"]["error"]["code"] == "validation_error"
        assert backend_calls == []

    def test_backend_error_is_502(self, ollama_env, make_backend):
        app = create_app(httpx_client=make_backend(
            lambda request: httpx.Response(404, json={"error": "model 'x' not found"})
        ))
        with TestClient(app) as client:
            response = client.post("/chat/message", json={"prompt": "Hola", "model": "x"})

            assert response.status_code == 502
            error = response.json()["detail"]["error"]
            assert error["code"] == "upstream_http_error"
            assert error["upstream_status"] == 404

            metrics = client.get("/chat/metrics").json()
            assert [bucket["successRate"] for bucket in metrics.values()] == ["0.0%"]


class TestEnhancedMessage:
    def test_enhanced_flow(self, client):
        first = client.post("/chat/enhanced-message", json={"prompt": "Hola", "sessionId": "abc"}).json()
        second = client.post("/chat/enhanced-message", json={"prompt": "Otra", "sessionId": "abc"}).json()

        assert first["contextLength"] == 0
        assert second["contextLength"] == 2
        assert second["formatted"]["type"] == "simple"
        assert second["tokens"]["speed"] == "4.00"

        info = client.get("/chat/context-info", params={"sessionId": "abc"}).json()
        assert info["contextLength"] == 4
        assert info["messages"][0] == "Usuario: Hola"

    def test_default_session_and_no_context(self, client):
        client.post("/chat/enhanced-message", json={"prompt": "Hola", "useContext": False})
        assert client.get("/chat/context-info").json()["contextLength"] == 0

        client.post("/chat/enhanced-message", json={"prompt": "Hola"})
        assert client.get("/chat/context-info").json()["sessionId"] == "default"
        assert client.get("/chat/context-info").json()["contextLength"] == 2


class TestContextEndpoints:
    def test_clear_never_created_session(self, client):
        response = client.get("/chat/clear-context", params={"sessionId": "ghost"})
        assert response.status_code == 200
        assert response.json()["success"] is True

        info = client.get("/chat/context-info", params={"sessionId": "ghost"}).json()
        assert info["contextLength"] == 0
        assert info["messages"] == []

    def test_clear_existing_session(self, client):
        client.post("/chat/enhanced-message", json={"prompt": "Hola", "sessionId": "s"})
        client.get("/chat/clear-context", params={"sessionId": "s"})
        assert client.get("/chat/context-info", params={"sessionId": "s"}).json()["contextLength"] == 0


class TestStream:
    def test_stream(self, client):
        response = client.get("/chat/stream", params={"prompt": "Hola", "model": "llama3"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        payloads = sse_payloads(response.text)
        assert len(payloads) == 2
        assert payloads[0] == {
            "content": "Ho",
            "done": False,
            "model": "llama3",
            "tokens": payloads[0]["tokens"]
        }
        assert payloads[1]["done"] is True
        assert payloads[1]["tokens"]["total"] == 15
        assert "[DONE]" not in response.text

    def test_stream_records_quality(self, client):
        client.get("/chat/stream", params={"prompt": "Hola"})
        metrics = client.get("/chat/metrics").json()
        assert [bucket["successful"] for bucket in metrics.values()] == [1]

    def test_stream_error_event(self, ollama_env, make_backend):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with TestClient(create_app(httpx_client=make_backend(handler))) as client:
            response = client.get("/chat/stream", params={"prompt": "Hola"})

        assert response.status_code == 200
        payloads = sse_payloads(response.text)
        assert len(payloads) == 1
        assert payloads[0]["done"] is True
        assert payloads[0]["content"].startswith("Error: ")
        assert "error" in payloads[0]

    @pytest.mark.parametrize("params", [
        {},
        {"prompt": "Hola", "maxTokens": 10},
        {"prompt": "Hola", "temperature": 3},
    ])
    def test_stream_validation(self, client, backend_calls, params):
        response = client.get("/chat/stream", params=params)
        assert response.status_code == 422
        assert backend_calls == []


class TestStartup:
    def test_missing_base_url_prevents_startup(self, ollama_env, monkeypatch):
        monkeypatch.delenv("OLLAMA_BASE_URL")
        from chat_gateway.core.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError):
            with TestClient(create_app(httpx_client=httpx.AsyncClient())):
                pass
