from __future__ import annotations  # LLM request gateway module

import json
import logging
import os
import re
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


_MODEL_LOCKS: Dict[str, threading.Lock] = {}
_MODEL_LOCKS_GUARD = threading.Lock()

_FENCED_RE = re.compile(r"^```(?:[\w+-]+(?=\s))?\s*(.*?)\s*```$", re.DOTALL)
_OPEN_FENCE_RE = re.compile(r"^```(?:[\w+-]+(?=\s))?\s*")


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


class _AttemptFailed(Exception):  # Internal marker for a retryable attempt failure
    pass


T = TypeVar("T", bound=BaseModel)


def _lock_for(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _MODEL_LOCKS_GUARD:
        lock = _MODEL_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _MODEL_LOCKS[key] = lock
    return lock


def call(
    task: str,
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
    max_retries: Optional[int] = None,
) -> T:  # Invoke configured LLM route and validate output
    return chat(
        [{"role": "user", "content": task}],
        schema,
        cfg=cfg,
        client=client,
        options=options,
        max_retries=max_retries,
    )


def generate_text(
    prompt: str,
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> str:  # Single free-text round trip, no schema and no retry
    messages = [{"role": "user", "content": prompt}]

    def _execute() -> str:
        logger.info("LLM text request route=%s model=%s preview=%s", cfg.name, cfg.model, _short_preview(messages))
        payload: Dict[str, Any] = {"model": cfg.model, "messages": messages}
        if options:
            payload.update(options)
        try:
            content = _round_trip(cfg, payload, client)
        except _AttemptFailed as exc:
            raise LlmGatewayError(str(exc)) from exc.__cause__
        if not content.strip():
            raise LlmGatewayError("LLM returned empty text")
        logger.info("LLM text request done route=%s model=%s", cfg.name, cfg.model)
        return content.strip()

    return _with_route_lock(cfg, _execute)


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
    max_retries: Optional[int] = None,
) -> T:
    retries = cfg.max_retries if max_retries is None else max(0, max_retries)

    def _execute() -> T:
        input_messages = _normalize_messages(messages)
        base_messages: list[Dict[str, str]] = []
        if cfg.enforce_json:
            schema_json = json.dumps(schema.model_json_schema(), indent=2)
            system_prompt = "Reply with a single JSON value matching this schema:\n" + schema_json
            base_messages.append({"role": "system", "content": system_prompt})
        base_messages.extend(input_messages)
        attempts = retries + 1
        last_error: Optional[BaseException] = None
        last_error_text: Optional[str] = None
        preview = _short_preview(base_messages)
        logger.info(
            "LLM request start route=%s model=%s attempts=%d preview=%s",
            cfg.name,
            cfg.model,
            attempts,
            preview,
        )
        for attempt in range(attempts):
            if attempt > 0:
                logger.info(
                    "LLM retry route=%s in %.1fs (attempt %d/%d)",
                    cfg.name,
                    cfg.retry_backoff_s,
                    attempt + 1,
                    attempts,
                )
                time.sleep(cfg.retry_backoff_s)
            attempt_messages = list(base_messages)
            if attempt > 0 and last_error_text:
                attempt_messages.append(
                    {
                        "role": "system",
                        "content": _retry_hint(last_error_text, cfg.enforce_json),
                    }
                )
            payload: Dict[str, Any] = {"model": cfg.model, "messages": attempt_messages}
            if options:
                payload.update(options)
            if cfg.response_format:
                payload["response_format"] = {"type": cfg.response_format}
            logger.info(
                "LLM request send route=%s model=%s attempt=%d/%d",
                cfg.name,
                cfg.model,
                attempt + 1,
                attempts,
            )
            try:
                content = _round_trip(cfg, payload, client)
            except _AttemptFailed as exc:
                last_error = exc.__cause__ or exc
                last_error_text = None
                continue
            try:
                parsed = _validate(schema, content)
            except (json.JSONDecodeError, ValidationError) as exc:
                logger.warning("LLM output validation failed: %s", exc)
                last_error = exc
                last_error_text = str(exc)
                continue
            logger.info(
                "LLM request done route=%s model=%s attempt=%d",
                cfg.name,
                cfg.model,
                attempt + 1,
            )
            return parsed
        raise LlmGatewayError(f"LLM call failed after {attempts} attempt(s)") from last_error

    return _with_route_lock(cfg, _execute)


def _with_route_lock(cfg: LlmRoute, fn: Callable[[], Any]) -> Any:  # Serialize calls for sequential routes
    if getattr(cfg, "sequential", False):
        lock = _lock_for(cfg)
        with lock:
            return fn()
    return fn()


def _round_trip(cfg: LlmRoute, payload: Dict[str, Any], client: Optional[HttpClient]) -> str:  # One HTTP exchange
    headers = {"Content-Type": "application/json"}
    if cfg.api_key_env:
        api_key = os.getenv(cfg.api_key_env)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    close_cb: Optional[Callable[[], None]] = None
    try:
        try:
            response, close_cb = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, client)
        except Exception as exc:  # noqa: BLE001
            logger.error("LLM transport failure: %s", exc)
            raise _AttemptFailed("LLM transport failed") from exc
        if response.status_code >= 400:
            logger.error("LLM error status: %s", response.status_code)
            raise _AttemptFailed(f"LLM returned status {response.status_code}")
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            logger.error("Invalid JSON payload from LLM: %s", exc)
            raise _AttemptFailed("LLM payload was not JSON") from exc
        try:
            return _extract_content(data)
        except LlmGatewayError as exc:
            logger.error("LLM response missing content")
            raise _AttemptFailed(str(exc)) from exc
    finally:
        _close_safely(close_cb)


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


def _short_preview(messages: Sequence[Dict[str, str]]) -> str:
    preview = _preview(messages)
    if len(preview) > 120:
        preview = preview[:117] + "..."
    return preview


def _extract_content(data: Any) -> str:  # Extract message content from LLM response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _validate(schema: Type[T], content: str) -> T:  # Parse JSON content with schema
    cleaned = strip_code_fences(content)
    try:
        return schema.model_validate_json(cleaned)
    except (json.JSONDecodeError, ValidationError) as exc:
        adapter = getattr(schema, "from_raw_content", None)
        if callable(adapter):
            try:
                return adapter(cleaned)  # type: ignore[return-value]
            except (ValueError, TypeError, ValidationError):
                pass
        raise exc


def strip_code_fences(content: str) -> str:  # Remove common markdown fences from LLM output
    text = content.strip()
    match = _FENCED_RE.match(text)
    if match:
        return match.group(1).strip()
    if text.startswith("```"):
        return _OPEN_FENCE_RE.sub("", text, count=1).strip()
    if text.endswith("```"):
        return text[:-3].strip()
    return text


def _retry_hint(error_text: Optional[str], enforce_json: bool) -> str:  # Compose retry instructions including last error
    base = "The previous reply failed validation."
    if error_text:
        truncated = error_text.splitlines()[0].strip()
        if len(truncated) > 200:
            truncated = truncated[:197] + "..."
        base += f" Reason: {truncated}."
    if enforce_json:
        return base + " Return a single JSON value that matches the schema."
    return base + " Follow the requested format precisely."
