from __future__ import annotations  # Chat-completions gateway shared by the AI collaborators

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from config import LlmRoute
from langchain_core.messages import BaseMessage
from langchain_core.runnables import RunnableLambda


logger = logging.getLogger(__name__)

ChatMessage = Dict[str, str]

_FENCE_RE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_ROLE_ALIASES = {"human": "user", "ai": "assistant"}


class HttpResponse(Protocol):  # Subset of httpx.Response the gateway reads
    @property
    def status_code(self) -> int: ...

    @property
    def text(self) -> str: ...

    def json(self) -> Any: ...


class HttpClient(Protocol):  # Injected transport, mostly for tests
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> HttpResponse: ...


class LlmGatewayError(RuntimeError):  # Transport, status or payload failure
    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500


class _MalformedReply(LlmGatewayError):  # Reached the model but could not read its answer
    @property
    def retryable(self) -> bool:
        return False


def call(
    prompt: str,
    *,
    cfg: LlmRoute,
    system: Optional[str] = None,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Send a single prompt, optionally behind a system message."""

    messages: List[ChatMessage] = [{"role": "system", "content": system}] if system else []
    messages.append({"role": "user", "content": prompt})
    return chat(messages, cfg=cfg, client=client, options=options)


def chat(
    messages: Any,
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:
    """Send ``messages`` to the configured route and return the reply text.

    ``messages`` may be role/content dicts, LangChain messages or a
    rendered prompt value. Transport failures and 5xx responses are
    retried up to ``cfg.max_retries`` times; 4xx responses and
    unreadable payloads fail immediately with :class:`LlmGatewayError`.
    """

    body: Dict[str, Any] = {
        "model": cfg.model,
        "messages": to_chat_messages(messages),
        "temperature": cfg.temperature,
        **(options or {}),
    }
    url = f"{cfg.base_url.rstrip('/')}{cfg.endpoint}"
    headers = _headers_for(cfg)
    attempts = cfg.max_retries + 1
    logger.info(
        "LLM request route=%s model=%s attempts=%d first_line=%s",
        cfg.name,
        cfg.model,
        attempts,
        _first_line(body["messages"]),
    )
    failure: Optional[LlmGatewayError] = None
    for attempt in range(1, attempts + 1):
        try:
            reply = _reply_text(_send(url, body, headers, cfg.timeout_s, client))
        except LlmGatewayError as exc:
            if not exc.retryable:
                logger.error("LLM request failed route=%s: %s", cfg.name, exc)
                raise
            logger.warning("LLM attempt %d/%d failed route=%s: %s", attempt, attempts, cfg.name, exc)
            failure = exc
            continue
        logger.info("LLM reply route=%s attempt=%d chars=%d", cfg.name, attempt, len(reply))
        return reply
    raise failure or LlmGatewayError(f"LLM route {cfg.name} allows no attempts")


def runnable(route: LlmRoute, *, client: Optional[HttpClient] = None) -> RunnableLambda:
    """Wrap :func:`chat` so a prompt template can be piped into it."""

    return RunnableLambda(lambda prompt: chat(prompt, cfg=route, client=client))


def to_chat_messages(payload: Any) -> List[ChatMessage]:  # Flatten prompt payloads into role/content dicts
    if hasattr(payload, "to_messages"):
        payload = payload.to_messages()
    if isinstance(payload, (str, dict, BaseMessage)):
        payload = [payload]
    if not isinstance(payload, (list, tuple)):
        raise TypeError(f"Unsupported chat payload: {type(payload).__name__}")
    return [_as_chat_message(item) for item in payload]


def _as_chat_message(item: Any) -> ChatMessage:
    if isinstance(item, str):
        return {"role": "user", "content": item}
    if isinstance(item, BaseMessage):
        content = item.content if isinstance(item.content, str) else json.dumps(item.content)
        return {"role": _ROLE_ALIASES.get(item.type, item.type), "content": content}
    if isinstance(item, dict):
        role = str(item.get("role") or "").strip()
        if not role:
            raise ValueError("Chat message missing role")
        return {"role": _ROLE_ALIASES.get(role, role), "content": str(item.get("content", ""))}
    raise TypeError(f"Unsupported chat message: {type(item).__name__}")


def _headers_for(cfg: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json", **cfg.extra_headers}
    api_key = os.getenv(cfg.api_key_env) if cfg.api_key_env else None
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _send(
    url: str,
    body: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    client: Optional[HttpClient],
) -> HttpResponse:
    try:
        if client is not None:
            response = client.post(url, json=body, headers=headers, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as http:
                response = http.post(url, json=body, headers=headers)
    except (httpx.HTTPError, OSError) as exc:
        raise LlmGatewayError(f"LLM transport failed: {exc}") from exc
    if response.status_code >= 400:
        raise LlmGatewayError(f"LLM returned status {response.status_code}", status_code=response.status_code)
    return response


def _reply_text(response: HttpResponse) -> str:
    try:
        data = response.json()
    except ValueError as exc:
        raise _MalformedReply("LLM payload was not JSON") from exc
    if isinstance(data, dict):
        choices = data.get("choices") or []
        first = choices[0] if isinstance(choices, list) and choices else {}
        message = first.get("message") if isinstance(first, dict) else None
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise _MalformedReply("LLM response missing content")


def _first_line(messages: Sequence[ChatMessage], limit: int = 120) -> str:
    for message in messages:
        text = message["content"].strip()
        if text:
            line = text.splitlines()[0]
            return line if len(line) <= limit else line[: limit - 3] + "..."
    return ""


def strip_code_fences(content: str) -> str:  # Remove a markdown fence wrapped around a reply
    text = content.strip()
    match = _FENCE_RE.match(text)
    return match.group(1).strip() if match else text


__all__ = [
    "ChatMessage",
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "call",
    "chat",
    "runnable",
    "strip_code_fences",
    "to_chat_messages",
]
