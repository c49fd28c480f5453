from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from parley.errors import (
    BALANCE_EXHAUSTED_CODE,
    ChatStreamError,
    InsufficientBalanceError,
    RequestFailedError,
)
from parley.sessions.schema import ApiMessage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


def to_api_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert a store message sequence into the remote wire shape.

    System turns are dropped (the remote bot carries its own persona) and so
    are empty assistant turns, which are in-flight placeholders.
    """
    out: list[dict[str, Any]] = []
    for message in messages:
        role = message.get("role")
        content = message.get("content") or ""
        if role not in ("user", "assistant"):
            continue
        if role == "assistant" and not content:
            continue
        out.append(ApiMessage(role=role, content=content).model_dump())
    return out


def build_chat_payload(
    bot_id: str, user_id: str, messages: list[dict[str, Any]]
) -> dict[str, Any]:
    return {
        "bot_id": bot_id,
        "user_id": user_id,
        "additional_messages": to_api_messages(messages),
        "stream": True,
    }


def _parse_error_body(body: bytes) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def classify_failure(status: int, reason: str, body: bytes) -> ChatStreamError:
    data = _parse_error_body(body)
    code = data.get("code")
    if code == BALANCE_EXHAUSTED_CODE:
        return InsufficientBalanceError(code)
    detail = data.get("message") or data.get("msg") or ""
    return RequestFailedError(status, reason, str(detail))


@asynccontextmanager
async def open_chat_stream(
    endpoint: str,
    api_key: str,
    payload: dict[str, Any],
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> AsyncIterator[AsyncIterator[bytes]]:
    """POST ``payload`` and yield the response body as a byte stream.

    Non-success responses raise a ``ChatStreamError`` subclass; network
    failures surface as the underlying ``httpx.RequestError``.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=timeout)
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
        "Accept": "text/event-stream",
    }
    try:
        async with client.stream("POST", endpoint, json=payload, headers=headers) as response:
            if not response.is_success:
                body = await response.aread()
                error = classify_failure(response.status_code, response.reason_phrase, body)
                logger.error(f"Chat request failed: {error}")
                raise error
            yield response.aiter_bytes()
    except httpx.RequestError as e:
        logger.error(f"Chat request transport error: {e}")
        raise
    finally:
        if owns_client:
            await client.aclose()
