import json

import httpx

from nimproxy.constants import MODEL_MAPPING


CHAT_URL = "/v1/chat/completions"


def chat_body(**overrides):
    body = {
        "model": "gpt-4",
        "messages": [
            {"role": "system", "content": "You are a pirate."},
            {"role": "user", "content": "Ahoy"},
        ],
    }
    body.update(overrides)
    return body


def nim_completion(content="Arr!"):
    return {
        "id": "nim-123",
        "object": "chat.completion",
        "model": "deepseek-ai/deepseek-v3.2",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content},
                     "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 9, "completion_tokens": 2, "total_tokens": 11},
    }


def test_health(client, api_key):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["reasoning_display"] is False
    assert data["thinking_mode"] is False
    assert data["nim_api_configured"] is True
    assert data["available_models"] == len(MODEL_MAPPING)
    assert data["optimized_for"] == "Janitor AI"
    assert "service" in data


def test_root_metadata(client):
    data = client.get("/").json()
    assert data["status"] == "running"
    assert data["endpoints"]["chat"] == "/v1/chat/completions"


def test_models_list(client):
    data = client.get("/v1/models").json()
    assert data["object"] == "list"
    assert [m["id"] for m in data["data"]] == list(MODEL_MAPPING)

    by_id = {m["id"]: m for m in data["data"]}
    assert by_id["gpt-4"]["nim_model"] == "deepseek-ai/deepseek-v3.2"
    assert by_id["gpt-4"]["supports_thinking"] is True
    assert by_id["llama-8b"]["supports_thinking"] is False
    assert by_id["gpt-4"]["owned_by"] == "nvidia-nim-proxy"
    assert by_id["gpt-4"]["object"] == "model"


def test_unknown_route_returns_404(client):
    response = client.put("/v1/unknown")
    assert response.status_code == 404
    assert response.json() == {
        "error": {
            "message": "Endpoint /v1/unknown not found. Available endpoints: "
                       "/health, /v1/models, /v1/chat/completions",
            "type": "invalid_request_error",
            "code": 404,
        }
    }


def test_wrong_method_on_known_path_returns_404(client):
    response = client.get(CHAT_URL)
    assert response.status_code == 404
    assert response.json()["error"]["type"] == "invalid_request_error"


def test_missing_api_key_is_configuration_error(client, upstream, monkeypatch):
    from nimproxy.config import Config
    monkeypatch.setattr(Config, "NIM_API_KEY", "")

    response = client.post(CHAT_URL, json=chat_body(model="not-mapped"))
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["type"] == "configuration_error"
    assert error["code"] == 500
    assert upstream.requests == []


def test_invalid_body_is_invalid_request(client, api_key, upstream):
    response = client.post(CHAT_URL, json={"messages": "nope"})
    assert response.status_code == 400
    assert response.json()["error"]["type"] == "invalid_request_error"
    assert upstream.requests == []


def test_non_stream_completion(client, api_key, upstream):
    upstream.handler = lambda request: httpx.Response(200, json=nim_completion())

    response = client.post(CHAT_URL, json=chat_body())
    assert response.status_code == 200

    # mapped model: single upstream call, no probe
    assert len(upstream.requests) == 1
    sent = upstream.bodies()[0]
    assert sent == {
        "model": "deepseek-ai/deepseek-v3.2",
        "messages": chat_body()["messages"],
        "temperature": 0.7,
        "max_tokens": 4096,
        "stream": False,
    }
    assert upstream.requests[0].headers["Authorization"] == "Bearer nvapi-test"

    data = response.json()
    assert data["model"] == "gpt-4"
    assert data["id"] != "nim-123"
    assert data["choices"][0]["message"] == {"role": "assistant", "content": "Arr!"}
    assert data["usage"]["total_tokens"] == 11


def test_unmapped_model_probes_then_calls(client, api_key, upstream):
    def handler(request):
        body = json.loads(request.content)
        if body.get("max_tokens") == 1:
            return httpx.Response(404, json={"detail": "unknown model"})
        return httpx.Response(200, json=nim_completion())

    upstream.handler = handler
    response = client.post(CHAT_URL, json=chat_body(model="mystery-fast-model"))
    assert response.status_code == 200
    assert response.json()["model"] == "mystery-fast-model"

    probe, main = upstream.bodies()
    assert probe["model"] == "mystery-fast-model"
    assert main["model"] == "nvidia/llama-3.1-nemotron-nano-8b-v1"


def test_upstream_401_message(client, api_key, upstream):
    upstream.handler = lambda request: httpx.Response(401, json={"detail": "Unauthorized"})

    response = client.post(CHAT_URL, json=chat_body())
    assert response.status_code == 401
    assert response.json()["error"] == {
        "message": "Invalid NVIDIA API key. Please check your NIM_API_KEY in environment variables.",
        "type": "invalid_request_error",
        "code": 401,
    }


def test_upstream_429_message(client, api_key, upstream):
    upstream.handler = lambda request: httpx.Response(429, text="slow down")

    response = client.post(CHAT_URL, json=chat_body(stream=True))
    assert response.status_code == 429
    assert response.json()["error"]["message"] == "Rate limit exceeded. Please try again in a moment."


def test_upstream_detail_is_surfaced(client, api_key, upstream):
    upstream.handler = lambda request: httpx.Response(422, json={"detail": "max_tokens too large"})

    response = client.post(CHAT_URL, json=chat_body())
    assert response.status_code == 422
    assert response.json()["error"]["message"] == "max_tokens too large"


def test_upstream_network_error_is_500(client, api_key, upstream):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = handler
    response = client.post(CHAT_URL, json=chat_body())
    assert response.status_code == 500
    assert response.json()["error"] == {
        "message": "connection refused",
        "type": "invalid_request_error",
        "code": 500,
    }


def test_upstream_body_without_choices(client, api_key, upstream):
    upstream.handler = lambda request: httpx.Response(200, json={"object": "error"})

    response = client.post(CHAT_URL, json=chat_body())
    assert response.status_code == 500
    assert response.json()["error"]["type"] == "invalid_request_error"


def test_streaming_completion(client, api_key, upstream):
    stream = (
        b'data: {"choices":[{"index":0,"delta":{"role":"assistant","content":""}}]}\n\n'
        b'data: {"choices":[{"index":0,"delta":{"reasoning_content":"thinking..."}}]}\n\n'
        b'data: {"choices":[{"index":0,"delta":{"content":"Arr"}}]}\n\n'
        b'data: oops\n\n'
        b'data: {"choices":[{"index":0,"delta":{"content":"!","reasoning":"x"},"finish_reason":"stop"}]}\n\n'
        b'data: [DONE]\n\n'
    )
    upstream.handler = lambda request: httpx.Response(
        200, content=stream, headers={"Content-Type": "text/event-stream"}
    )

    response = client.post(CHAT_URL, json=chat_body(stream=True))
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert upstream.bodies()[0]["stream"] is True

    lines = [line for line in response.text.split("\n") if line]
    assert lines[-1] == "data: [DONE]"
    assert "data: oops" in lines

    deltas = [
        json.loads(line[len("data: "):])["choices"][0]["delta"]
        for line in lines
        if line not in ("data: [DONE]", "data: oops")
    ]
    assert deltas == [
        {"role": "assistant", "content": ""},
        {"content": ""},
        {"content": "Arr"},
        {"content": "!"},
    ]
    assert "reasoning" not in response.text


def test_missing_api_key_reported_before_body_validation(client, upstream, monkeypatch):
    from nimproxy.config import Config
    monkeypatch.setattr(Config, "NIM_API_KEY", "")

    response = client.post(CHAT_URL, json={"model": "x"})
    assert response.status_code == 500
    assert response.json()["error"]["type"] == "configuration_error"
    assert upstream.requests == []


def test_invalid_body_message_is_readable(client, api_key):
    response = client.post(CHAT_URL, json={"model": "x"})
    assert response.status_code == 400
    message = response.json()["error"]["message"]
    assert message.startswith("body.messages: ")
    assert "{" not in message


def test_structured_upstream_detail_is_json(client, api_key, upstream):
    detail = [{"loc": ["body", "max_tokens"], "msg": "too large"}]
    upstream.handler = lambda request: httpx.Response(422, json={"detail": detail})

    response = client.post(CHAT_URL, json=chat_body())
    assert response.status_code == 422
    assert json.loads(response.json()["error"]["message"]) == detail


class DroppedStream(httpx.AsyncByteStream):
    def __init__(self, frames):
        self.frames = frames

    async def __aiter__(self):
        for frame in self.frames:
            yield frame
        raise httpx.ReadError("connection reset by peer")


def test_stream_cut_by_upstream_ends_without_error_frame(client, api_key, upstream):
    frame = b'data: {"choices":[{"delta":{"content":"a"}}]}\n\n'
    upstream.handler = lambda request: httpx.Response(
        200, stream=DroppedStream([frame]), headers={"Content-Type": "text/event-stream"}
    )

    response = client.post(CHAT_URL, json=chat_body(stream=True))
    assert response.status_code == 200
    assert response.content == frame
