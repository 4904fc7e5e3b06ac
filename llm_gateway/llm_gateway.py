from __future__ import annotations  # LLM request gateway module

import json
import logging
import threading
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple

import httpx
from langchain_core.messages import BaseMessage

from config.policy import InvocationPolicy, LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


class ModelUnavailable(LlmGatewayError):  # Raised when no inference path produced a reply
    pass


class ModelInvoker:
    """Route chat requests to the local model server, falling back to a hosted endpoint.

    Local calls are serialized by a lock owned by this instance; hosted calls are not.
    """

    def __init__(self, policy: InvocationPolicy, *, client: Optional[HttpClient] = None) -> None:
        self._policy = policy
        self._client = client
        self._local_lock = threading.Lock()

    @property
    def policy(self) -> InvocationPolicy:
        return self._policy

    def invoke(self, model_name: Optional[str], messages: Any) -> str:  # Return raw reply text
        payload_messages = coerce_messages(messages)
        policy = self._policy
        if policy.prefer_hosted and policy.hosted_configured:
            return self._invoke_hosted(model_name, payload_messages)
        try:
            return self._invoke_local(model_name, payload_messages)
        except LlmGatewayError as local_exc:
            logger.error("Local model call failed route=%s: %s", policy.local.name, local_exc)
            if not policy.hosted_configured:
                raise ModelUnavailable("Local model failed and no hosted fallback is configured") from local_exc
            logger.warning("Falling back to hosted model due to local error")
            return self._invoke_hosted(model_name, payload_messages)

    def _invoke_local(self, model_name: Optional[str], messages: list[Dict[str, str]]) -> str:
        route = self._policy.local
        payload: Dict[str, Any] = {"model": model_name or route.model, "messages": messages, "stream": False}
        with self._local_lock:
            return _send(route, payload, self._client)

    def _invoke_hosted(self, model_name: Optional[str], messages: list[Dict[str, str]]) -> str:
        route = self._policy.hosted
        if route is None or not route.api_key:
            raise ModelUnavailable("Hosted model not configured")
        payload: Dict[str, Any] = {"model": model_name or route.model, "messages": messages}
        try:
            return _send(route, payload, self._client)
        except LlmGatewayError as exc:
            logger.error("Hosted model call failed route=%s: %s", route.name, exc)
            raise ModelUnavailable("Hosted model call failed") from exc


def _send(route: LlmRoute, payload: Dict[str, Any], client: Optional[HttpClient]) -> str:  # POST payload and pull content
    headers = {"Content-Type": "application/json"}
    if route.api_key:
        headers["Authorization"] = f"Bearer {route.api_key}"
    headers.update(route.extra_headers)
    preview = _preview(payload.get("messages", []))
    if len(preview) > 120:
        preview = preview[:117] + "..."
    logger.info("LLM request send route=%s model=%s preview=%s", route.name, payload.get("model"), preview)
    try:
        response, close_cb = _post(route.url, payload, headers, route.timeout_s, client)
    except Exception as exc:  # noqa: BLE001
        logger.error("LLM transport failure route=%s: %s", route.name, exc)
        raise LlmGatewayError("LLM transport failed") from exc
    try:
        if response.status_code >= 400:
            logger.error("LLM error status route=%s: %s %s", route.name, response.status_code, response.text[:200])
            raise LlmGatewayError(f"LLM returned status {response.status_code}")
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            logger.error("Invalid JSON payload from LLM: %s", exc)
            raise LlmGatewayError("LLM payload was not JSON") from exc
        content = _extract_content(data)
    finally:
        _close_safely(close_cb)
    logger.info("LLM request done route=%s model=%s chars=%d", route.name, payload.get("model"), len(content))
    return content


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        response = client.post(url, json=payload, headers=headers, timeout=timeout)
        return response, None
    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers)
    except Exception:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def coerce_messages(payload: Any) -> list[Dict[str, str]]:  # Accept prompt values, LangChain messages or dicts
    if hasattr(payload, "to_messages"):
        payload = payload.to_messages()
    if isinstance(payload, (dict, BaseMessage)):
        payload = [payload]
    if not isinstance(payload, (list, tuple)):
        raise TypeError("Unsupported message payload for LLM call")
    return _normalize_messages([_message_dict(item) if isinstance(item, BaseMessage) else item for item in payload])


def _message_dict(message: BaseMessage) -> Dict[str, str]:  # Map LangChain BaseMessage to role/content dict
    role = message.type
    if role == "human":
        role = "user"
    elif role == "ai":
        role = "assistant"
    content = message.content
    if not isinstance(content, str):
        content = json.dumps(content)
    return {"role": role, "content": content}


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        content = str(item.get("content", ""))
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": content})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # Build preview string for logging
    for message in messages:
        text = message.get("content", "").strip()
        if text:
            return text.splitlines()[0]
    return ""


def _extract_content(data: Any) -> str:  # Normalize reply text across known response shapes
    if isinstance(data, dict):
        output = data.get("output")
        if isinstance(output, str) and output:
            return output
        message = data.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
    raise LlmGatewayError("LLM response missing content")
