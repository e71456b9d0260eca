"""
In-memory stand-in for the AsyncOpenAI client used by the tests.

Only the surface the tutor touches is provided: client.chat.completions.create.
"""

import asyncio
import json
from types import SimpleNamespace
from typing import Any, List, Optional

import httpx
from openai import APIConnectionError, APITimeoutError


CHAT_URL = "https://api.openai.com/v1/chat/completions"


def make_response(content: Optional[str] = None, tool_name: Optional[str] = None, tool_args: Any = None):
    """Build a chat completion shaped like the SDK's response objects."""
    tool_calls = None
    if tool_name is not None:
        arguments = tool_args if isinstance(tool_args, str) else json.dumps(tool_args or {})
        tool_calls = [
            SimpleNamespace(
                id="call_1",
                type="function",
                function=SimpleNamespace(name=tool_name, arguments=arguments),
            )
        ]
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message, finish_reason="stop")])


def connection_error() -> APIConnectionError:
    return APIConnectionError(request=httpx.Request("POST", CHAT_URL))


def timeout_error() -> APITimeoutError:
    return APITimeoutError(request=httpx.Request("POST", CHAT_URL))


class FakeLLMClient:
    """
    Scripted client: each create() call consumes the next queued item.

    Queued exceptions are raised instead of returned. hold() makes every call
    wait until release() so tests can observe in-flight requests.
    """

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._gate: Optional[asyncio.Event] = None
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def queue(self, *items):
        self.responses.extend(items)

    def hold(self):
        self._gate = asyncio.Event()

    def release(self):
        if self._gate is not None:
            self._gate.set()

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        item = self.responses.pop(0) if self.responses else make_response(content="")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._gate is not None:
                await self._gate.wait()
            if isinstance(item, BaseException):
                raise item
            return item
        finally:
            self.in_flight -= 1
