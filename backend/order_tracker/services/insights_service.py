# Overview: AI narrative insights over the order list; best-effort call to the Gemini REST API.

from __future__ import annotations

import json
from typing import Any, Iterable

import httpx
from flask import current_app, has_app_context

from ..records import number_field, text_field


GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_TIMEOUT = 20.0

NOT_CONFIGURED_MESSAGE = "AI insights are not configured. Set GEMINI_API_KEY to enable them."
FAILURE_MESSAGE = "Failed to connect to AI engine. Please ensure your API key is valid."
EMPTY_MESSAGE = "No insights generated."

PROMPT_TEMPLATE = """Analyze the following shop orders data and provide 3 key business insights and 2 actionable recommendations to improve profit margins.
Keep the response concise and professional.

Data: {data}

Format the response as:
Insights:
1. [Insight 1]
2. [Insight 2]
3. [Insight 3]

Recommendations:
1. [Recommendation 1]
2. [Recommendation 2]
"""


def summarize_orders(orders: Iterable[Any]) -> list[dict]:
    return [
        {
            "name": text_field(order, "product_name"),
            "category": text_field(order, "category"),
            "listing_price": number_field(order, "listing_price"),
            "settled_amount": number_field(order, "settled_amount"),
            "profit": number_field(order, "profit"),
        }
        for order in orders
    ]


def build_prompt(orders: Iterable[Any]) -> str:
    return PROMPT_TEMPLATE.format(data=json.dumps(summarize_orders(orders)))


def _config(key: str, default):
    if has_app_context():
        return current_app.config.get(key) or default
    return default


def _log_failure(message: str, *args) -> None:
    if has_app_context():
        current_app.logger.warning(message, *args)


def _extract_text(payload: dict) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()


def get_ai_analysis(
    orders: Iterable[Any],
    *,
    api_key: str | None = None,
    model: str | None = None,
    timeout: float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """
    Narrative insights for the given orders.

    Never raises: a missing key returns a setup message and any HTTP,
    transport or decoding failure is logged and returns a failure message.
    """
    api_key = api_key or _config("GEMINI_API_KEY", "")
    if not api_key:
        return NOT_CONFIGURED_MESSAGE

    model = model or _config("GEMINI_MODEL", DEFAULT_MODEL)
    timeout = timeout or _config("GEMINI_TIMEOUT", DEFAULT_TIMEOUT)

    body = {
        "contents": [{"parts": [{"text": build_prompt(orders)}]}],
        "generationConfig": {"temperature": 0.7, "maxOutputTokens": 500},
    }

    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.post(
                GEMINI_ENDPOINT.format(model=model),
                headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
                json=body,
            )
            response.raise_for_status()
            text = _extract_text(response.json())
    except httpx.HTTPStatusError as exc:
        _log_failure("AI analysis rejected: HTTP %s", exc.response.status_code)
        return FAILURE_MESSAGE
    except httpx.HTTPError as exc:
        _log_failure("AI analysis transport error: %s", exc.__class__.__name__)
        return FAILURE_MESSAGE
    except (ValueError, AttributeError, TypeError) as exc:
        _log_failure("AI analysis returned an unreadable response: %s", exc)
        return FAILURE_MESSAGE

    return text or EMPTY_MESSAGE
