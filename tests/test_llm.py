"""
Tests for the LLM dispatcher.
"""
import unittest
import sys
import os
import json
import logging
from unittest.mock import patch

import httpx

# Add parent directory to path to allow imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import LLM_CONFIG
from utils.errors import LLMRequestFailed, LLMUnconfigured
from utils.llm import build_chat_request, call_gpt
from utils.prompts import RATE_LIMIT_MESSAGE, SYSTEM_PERSONA

# Disable logging during tests
logging.disable(logging.CRITICAL)

def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}

class TestBuildChatRequest(unittest.TestCase):
    """Tests for build_chat_request."""

    def test_default_model(self):
        body = build_chat_request("hello")

        self.assertEqual(body["model"], LLM_CONFIG["model"])
        self.assertEqual(body["messages"][0], {"role": "system", "content": SYSTEM_PERSONA})
        self.assertEqual(body["messages"][1], {"role": "user", "content": "hello"})
        self.assertEqual(body["max_tokens"], LLM_CONFIG["max_tokens"])
        self.assertEqual(body["temperature"], LLM_CONFIG["temperature"])

    def test_model_override(self):
        self.assertEqual(build_chat_request("hello", "gpt-4")["model"], "gpt-4")

class TestCallGPT(unittest.IsolatedAsyncioTestCase):
    """Tests for call_gpt."""

    def setUp(self):
        """Set up test fixtures."""
        self.config_patcher = patch.dict(LLM_CONFIG, {"api_key": "test-key"})
        self.config_patcher.start()
        self.requests = []

    def tearDown(self):
        """Clean up after tests."""
        self.config_patcher.stop()

    def client_returning(self, status_code, body=None):
        def handler(request):
            self.requests.append(request)
            if body is None:
                return httpx.Response(status_code)
            return httpx.Response(status_code, json=body)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    async def test_success_returns_trimmed_reply(self):
        async with self.client_returning(200, completion("  Hi Jane!  \n")) as client:
            reply = await call_gpt("hello", client=client)

        self.assertEqual(reply, "Hi Jane!")

    async def test_request_carries_credential_and_body(self):
        async with self.client_returning(200, completion("ok")) as client:
            await call_gpt("hello", model_override="gpt-4", client=client)

        self.assertEqual(len(self.requests), 1)
        request = self.requests[0]
        self.assertEqual(request.headers["Authorization"], "Bearer test-key")
        body = json.loads(request.content)
        self.assertEqual(body["model"], "gpt-4")
        self.assertEqual(body["messages"][-1]["content"], "hello")

    async def test_rate_limit_returns_busy_message(self):
        async with self.client_returning(429) as client:
            reply = await call_gpt("hello", client=client)

        self.assertEqual(reply, RATE_LIMIT_MESSAGE)

    async def test_server_error_raises_with_status(self):
        async with self.client_returning(500) as client:
            with self.assertRaises(LLMRequestFailed) as ctx:
                await call_gpt("hello", client=client)

        self.assertEqual(ctx.exception.status_code, 500)

    async def test_malformed_body_raises(self):
        async with self.client_returning(200, {"unexpected": True}) as client:
            with self.assertRaises(LLMRequestFailed):
                await call_gpt("hello", client=client)

    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(LLMRequestFailed) as ctx:
                await call_gpt("hello", client=client)

        self.assertIsNone(ctx.exception.status_code)

    async def test_missing_key_raises_without_request(self):
        with patch.dict(LLM_CONFIG, {"api_key": ""}):
            async with self.client_returning(200, completion("ok")) as client:
                with self.assertRaises(LLMUnconfigured):
                    await call_gpt("hello", client=client)

        self.assertEqual(self.requests, [])


if __name__ == '__main__':
    unittest.main()
