import itertools

import httpx
import pytest

from chat_proxy.fallback import CATEGORIES, DEMO_RESPONSES
from chat_proxy.main import CHAT_FAILED, INVALID_MESSAGE, MESSAGES_REQUIRED
from chat_proxy.settings import load_settings

from tests.client_test_utils import FirstChoice, build_test_client

FALLBACK_POOL = {lead for _, lead in CATEGORIES} | set(DEMO_RESPONSES)
USER_MESSAGE = {"messages": [{"role": "user", "content": "What's the weather like?"}]}


@pytest.mark.parametrize(
    "openai,anthropic,gemini", list(itertools.product([False, True], repeat=3))
)
def test_health_demo_mode_is_nor_of_credentials(monkeypatch, openai, anthropic, gemini):
    env = {}
    if openai:
        env["OPENAI_API_KEY"] = "sk"
    if anthropic:
        env["ANTHROPIC_API_KEY"] = "ak"
    if gemini:
        env["GEMINI_API_KEY"] = "gk"
    client = build_test_client(monkeypatch, **env)

    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"
    assert body["timestamp"].endswith("Z")
    assert body["llm_providers"] == {
        "openai": openai,
        "anthropic": anthropic,
        "gemini": gemini,
        "demo_mode": not (openai or anthropic or gemini),
    }


def test_credentials_are_read_per_request(monkeypatch):
    client = build_test_client(monkeypatch)
    assert client.get("/api/health").json()["llm_providers"]["demo_mode"] is True

    monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-rotated-in")
    assert client.get("/api/health").json()["llm_providers"]["anthropic"] is True


def test_chat_without_credentials_returns_demo_answer(monkeypatch):
    client = build_test_client(monkeypatch)

    response = client.post("/api/chat", json=USER_MESSAGE)

    assert response.status_code == 200
    body = response.json()
    assert body["message"]["role"] == "assistant"
    assert body["message"]["content"] in FALLBACK_POOL
    assert "usage" not in body


def test_chat_greeting_with_injected_rng(monkeypatch):
    client = build_test_client(monkeypatch, rng=FirstChoice())
    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Hello!"}]})
    assert response.json()["message"]["content"] == CATEGORIES[0][1]


@pytest.mark.parametrize(
    "payload",
    [{}, {"messages": []}, {"messages": "hello"}, {"messages": {"role": "user"}}, {"messages": None}, []],
)
def test_chat_rejects_missing_or_empty_messages(monkeypatch, payload):
    client = build_test_client(monkeypatch)

    response = client.post("/api/chat", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": MESSAGES_REQUIRED}
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.parametrize(
    "messages",
    [[{"role": "robot", "content": "x"}], [{"content": "x"}], [{"role": "user", "content": 5}], ["hi"]],
)
def test_chat_rejects_malformed_message_entries(monkeypatch, messages):
    client = build_test_client(monkeypatch)
    response = client.post("/api/chat", json={"messages": messages})
    assert response.status_code == 400
    assert response.json() == {"error": INVALID_MESSAGE}


def test_chat_rejects_bad_option_types(monkeypatch):
    client = build_test_client(monkeypatch)
    response = client.post("/api/chat", json={**USER_MESSAGE, "temperature": "warm"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid value for: temperature"}


def test_chat_body_that_is_not_json_is_an_internal_failure(monkeypatch):
    client = build_test_client(monkeypatch)

    response = client.post(
        "/api/chat", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 500
    assert response.json() == {"error": CHAT_FAILED}


def test_chat_upstream_500_becomes_fallback_answer(monkeypatch):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, json={"error": {"message": "overloaded"}})

    client = build_test_client(
        monkeypatch, transport=httpx.MockTransport(handler), OPENAI_API_KEY="sk", ANTHROPIC_API_KEY="ak"
    )

    response = client.post("/api/chat", json=USER_MESSAGE)

    assert response.status_code == 200
    assert response.json()["message"]["content"] in FALLBACK_POOL
    assert len(calls) == 1
    assert "overloaded" not in response.text


def test_chat_routes_to_anthropic_and_reports_usage(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["x-api-key"] == "ak"
        return httpx.Response(
            200,
            json={"content": [{"type": "text", "text": "Sunny."}], "usage": {"input_tokens": 7, "output_tokens": 2}},
        )

    client = build_test_client(monkeypatch, transport=httpx.MockTransport(handler), ANTHROPIC_API_KEY="ak")

    response = client.post("/api/chat", json=USER_MESSAGE)

    assert response.status_code == 200
    assert response.json() == {
        "message": {"role": "assistant", "content": "Sunny."},
        "usage": {"prompt_tokens": 7, "completion_tokens": 2, "total_tokens": 9},
    }


def test_chat_unexpected_router_failure_is_generic_500(monkeypatch):
    client = build_test_client(monkeypatch)

    async def explode(request, settings):
        raise RuntimeError("secret internal detail")

    client.app.state.chat_router.route = explode

    response = client.post("/api/chat", json=USER_MESSAGE)

    assert response.status_code == 500
    assert response.json() == {"error": CHAT_FAILED}
    assert "secret" not in response.text


def test_models_demo_placeholder(monkeypatch):
    client = build_test_client(monkeypatch)
    models = client.get("/api/models").json()["models"]
    assert len(models) == 1
    assert models[0]["provider"] == "demo"
    assert models[0]["id"] == "demo"


def test_models_openai_only(monkeypatch):
    client = build_test_client(monkeypatch, OPENAI_API_KEY="sk")
    models = client.get("/api/models").json()["models"]
    assert [m["id"] for m in models] == ["gpt-3.5-turbo", "gpt-4", "gpt-4-turbo"]
    assert {m["provider"] for m in models} == {"openai"}
    assert set(models[0]) == {"id", "provider", "name"}


def test_models_openai_before_anthropic(monkeypatch):
    client = build_test_client(monkeypatch, OPENAI_API_KEY="sk", ANTHROPIC_API_KEY="ak")
    models = client.get("/api/models").json()["models"]
    assert [m["provider"] for m in models] == ["openai"] * 3 + ["anthropic"] * 3


def test_unknown_path_is_404_with_path(monkeypatch):
    client = build_test_client(monkeypatch)

    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found", "path": "/api/does-not-exist"}
    assert response.headers["access-control-allow-origin"] == "*"


def test_wrong_method_is_404(monkeypatch):
    client = build_test_client(monkeypatch)
    response = client.get("/api/chat")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found", "path": "/api/chat"}


def test_preflight_returns_empty_200_with_cors_headers(monkeypatch):
    client = build_test_client(monkeypatch)

    response = client.options("/anything/at/all", headers={"Origin": "https://chat.example.com"})

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "https://chat.example.com"
    assert response.headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization"


def test_success_responses_echo_calling_origin(monkeypatch):
    client = build_test_client(monkeypatch)
    response = client.get("/api/models", headers={"Origin": "http://localhost:5173"})
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_unhandled_error_outside_chat_is_generic_500(monkeypatch):
    client = build_test_client(monkeypatch)

    def broken_settings():
        raise RuntimeError("settings backend down")

    client.app.dependency_overrides[load_settings] = broken_settings

    response = client.get("/api/models")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}
    assert "settings backend down" not in response.text
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.parametrize(
    "method,path", [("GET", "/api/health/"), ("GET", "/api/models/"), ("POST", "/api/chat/")]
)
def test_trailing_slash_is_404_not_redirect(monkeypatch, method, path):
    client = build_test_client(monkeypatch)
    client.follow_redirects = False

    response = client.request(method, path, json=USER_MESSAGE if method == "POST" else None)

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found", "path": path}


def test_health_ignores_unrelated_port_variable(monkeypatch):
    client = build_test_client(monkeypatch, PORT="tcp://10.0.0.1:8000", OPENAI_API_KEY="sk")

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["llm_providers"]["openai"] is True
    assert client.get("/api/models").status_code == 200
