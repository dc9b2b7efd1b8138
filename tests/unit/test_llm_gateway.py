from typing import Any, Dict, List

import httpx
import pytest
from langchain_core.prompts import ChatPromptTemplate

from config import LlmRoute
from llm_gateway import LlmGatewayError, call, chat, runnable, strip_code_fences


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeClient:
    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _ok(content: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"role": "assistant", "content": content}}]})


def _route(**overrides) -> LlmRoute:
    data = dict(name="test", base_url="http://llm.local/v1", model="m", api_key_env="TEST_LLM_KEY", max_retries=1)
    data.update(overrides)
    return LlmRoute(**data)


def test_call_sends_chat_payload(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "secret")
    client = FakeClient(_ok("Score: Robust (3/5)"))

    reply = call("Review this", cfg=_route(timeout_s=5), system="You are an auditor", client=client)

    assert reply == "Score: Robust (3/5)"
    sent = client.calls[0]
    assert sent["url"] == "http://llm.local/v1/chat/completions"
    assert sent["json"]["model"] == "m"
    assert [m["role"] for m in sent["json"]["messages"]] == ["system", "user"]
    assert sent["headers"]["Authorization"] == "Bearer secret"
    assert sent["timeout"] == 5


def test_server_errors_and_transport_failures_are_retried():
    client = FakeClient(FakeResponse(503), _ok("done"))
    assert chat([{"role": "user", "content": "hi"}], cfg=_route(), client=client) == "done"

    client = FakeClient(httpx.ConnectError("down"), _ok("done"))
    assert chat([{"role": "user", "content": "hi"}], cfg=_route(), client=client) == "done"
    assert len(client.calls) == 2


def test_gives_up_after_retries():
    client = FakeClient(FakeResponse(500), FakeResponse(502))
    with pytest.raises(LlmGatewayError) as exc:
        call("hi", cfg=_route(), client=client)
    assert exc.value.status_code == 502


def test_client_errors_fail_fast():
    client = FakeClient(FakeResponse(401), _ok("unused"))
    with pytest.raises(LlmGatewayError) as exc:
        call("hi", cfg=_route(), client=client)
    assert exc.value.status_code == 401
    assert len(client.calls) == 1


def test_malformed_payloads():
    with pytest.raises(LlmGatewayError):
        call("hi", cfg=_route(), client=FakeClient(FakeResponse(200, None, text="<html>")))
    with pytest.raises(LlmGatewayError):
        call("hi", cfg=_route(), client=FakeClient(FakeResponse(200, {"choices": []})))


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("  plain  ") == "plain"


def test_runnable_accepts_prompt_values():
    prompt = ChatPromptTemplate.from_messages([("system", "Be brief"), ("human", "Review {doc}")])
    client = FakeClient(_ok("ok"))
    chain = prompt | runnable(_route(), client=client)

    assert chain.invoke({"doc": "policy"}) == "ok"
    assert client.calls[0]["json"]["messages"] == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Review policy"},
    ]


def test_route_without_attempts_raises_gateway_error():
    client = FakeClient()
    route = _route().model_copy(update={"max_retries": -1})

    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "hi"}], cfg=route, client=client)
    assert client.calls == []
