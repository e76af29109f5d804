"""
AI insights tests.

The remote model is replaced with httpx.MockTransport; the service must
never raise, whatever the transport does.
"""

import json

import httpx
import pytest

from order_tracker.services import insights_service
from order_tracker.services.insights_service import (
    EMPTY_MESSAGE,
    FAILURE_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    build_prompt,
    get_ai_analysis,
)


ORDERS = [
    {"product_name": "Wireless Headphones", "category": "Electronics", "listing_price": 199.99,
     "settled_amount": 180, "profit": 60, "status": "Settled"},
]


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestPrompt:

    def test_contains_order_summary(self):
        prompt = build_prompt(ORDERS)
        assert "3 key business insights" in prompt
        data = json.loads(prompt.split("Data: ", 1)[1].split("\n", 1)[0])
        assert data == [{
            "name": "Wireless Headphones",
            "category": "Electronics",
            "listing_price": 199.99,
            "settled_amount": 180.0,
            "profit": 60.0,
        }]


class TestGetAiAnalysis:

    def test_missing_key(self):
        assert get_ai_analysis(ORDERS, api_key="") == NOT_CONFIGURED_MESSAGE

    def test_success(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply("Insights:\n1. Headphones carry the margin.\n"))

        text = get_ai_analysis(
            ORDERS, api_key="test-key", model="gemini-test", transport=httpx.MockTransport(handler)
        )

        assert text == "Insights:\n1. Headphones carry the margin."
        assert seen["url"] == insights_service.GEMINI_ENDPOINT.format(model="gemini-test")
        assert seen["key"] == "test-key"
        assert "Wireless Headphones" in seen["body"]["contents"][0]["parts"][0]["text"]

    @pytest.mark.parametrize("status", [400, 403, 500, 503])
    def test_http_error(self, status):
        transport = httpx.MockTransport(lambda request: httpx.Response(status, json={"error": "nope"}))
        assert get_ai_analysis(ORDERS, api_key="k", transport=transport) == FAILURE_MESSAGE

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert get_ai_analysis(ORDERS, api_key="k", transport=httpx.MockTransport(handler)) == FAILURE_MESSAGE

    def test_unreadable_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
        assert get_ai_analysis(ORDERS, api_key="k", transport=transport) == FAILURE_MESSAGE

    def test_empty_candidates(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []}))
        assert get_ai_analysis(ORDERS, api_key="k", transport=transport) == EMPTY_MESSAGE

    def test_key_from_config(self, app):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=gemini_reply("ok")))
        app.config["GEMINI_API_KEY"] = "from-config"
        try:
            assert get_ai_analysis([], transport=transport) == "ok"
        finally:
            app.config["GEMINI_API_KEY"] = ""
