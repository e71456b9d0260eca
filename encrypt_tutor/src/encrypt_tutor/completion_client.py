"""
Remote Completion Client

One request/response cycle against the OpenAI chat completions API.

Every conversation request declares a single function tool the model may call
to update the mentor status. The service may answer with free text, the tool
call, or both; this client hands back the text and the first tool call as-is
and leaves interpretation to the output extractor.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from openai import APIError, AsyncOpenAI

from encrypt_tutor.config import Settings
from encrypt_tutor.history_buffer import Turn, TurnRole
from encrypt_tutor.instructions import MENTOR_STATUS_TOOL_NAME
from encrypt_tutor.mentor_state import MentorStatus


logger = logging.getLogger(__name__)


MENTOR_STATUS_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": MENTOR_STATUS_TOOL_NAME,
        "description": "Updates the mentor mode status based on user understanding.",
        "parameters": {
            "type": "object",
            "properties": {
                "status": {
                    "type": "string",
                    "enum": [status.value for status in MentorStatus],
                    "description": "The new status of the mentor mode.",
                },
            },
            "required": ["status"],
        },
    },
}

# History roles → chat completion roles
ROLE_MAP = {
    TurnRole.USER: "user",
    TurnRole.MODEL: "assistant",
}


class CompletionError(Exception):
    """Transport or service failure during a completion call."""


@dataclass(frozen=True)
class ToolCall:
    """Side-channel invocation; args is the decoded JSON object, or the raw string if undecodable."""
    name: str
    args: Any = None


@dataclass(frozen=True)
class CompletionResult:
    """Free text plus an optional side-channel tool call."""
    text: str
    tool_call: Optional[ToolCall] = None


def _decode_arguments(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return raw


class CompletionClient:
    """Thin async wrapper around AsyncOpenAI for tutoring requests."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[Any] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        if llm_client is None:
            if settings is None:
                raise ValueError("CompletionClient needs settings or an llm_client")
            llm_client = AsyncOpenAI(api_key=settings.api_key, timeout=settings.timeout_seconds)
        self.llm_client = llm_client
        self.model = model or (settings.model if settings else "gpt-4o-mini")
        if temperature is not None:
            self.temperature = temperature
        else:
            self.temperature = settings.temperature if settings else 0.7

    def build_messages(
        self,
        directive: str,
        history: Sequence[Turn],
        new_user_text: str,
    ) -> List[Dict[str, str]]:
        """System directive, every prior turn in order, then the new user message."""
        messages = [{"role": "system", "content": directive}]
        for turn in history:
            messages.append({"role": ROLE_MAP[turn.role], "content": turn.text})
        messages.append({"role": "user", "content": new_user_text})
        return messages

    async def complete(
        self,
        directive: str,
        history: Sequence[Turn],
        new_user_text: str,
    ) -> CompletionResult:
        """
        Send one conversation request.

        Args:
            directive: Composed system directive
            history: Snapshot of prior turns, oldest first
            new_user_text: Message being sent (non-empty after trimming)

        Returns:
            CompletionResult with text and the first tool call, if any

        Raises:
            ValueError: if new_user_text is blank
            CompletionError: on any transport, status or payload failure
        """
        if not new_user_text or not new_user_text.strip():
            raise ValueError("new_user_text must not be empty")

        messages = self.build_messages(directive, history, new_user_text)
        logger.debug(f"📤 [CompletionClient] Sending {len(messages)} messages to {self.model}")

        try:
            response = await self.llm_client.chat.completions.create(
                model=self.model,
                messages=messages,
                tools=[MENTOR_STATUS_TOOL],
                tool_choice="auto",
                temperature=self.temperature,
            )
        except APIError as e:
            logger.warning(f"⚠️ [CompletionClient] Completion request failed: {e}")
            raise CompletionError(str(e)) from e

        message = self._first_message(response)
        text = getattr(message, "content", None) or ""
        tool_call = self._first_tool_call(message)

        logger.debug(
            f"📥 [CompletionClient] Received {len(text)} chars"
            f"{', tool call: ' + tool_call.name if tool_call else ''}"
        )
        return CompletionResult(text=text, tool_call=tool_call)

    async def complete_prompt(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        response_format: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Single-shot request with no history and no tools.

        Raises:
            CompletionError: on any transport, status or payload failure
        """
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature if temperature is None else temperature,
        }
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        if response_format is not None:
            params["response_format"] = response_format

        try:
            response = await self.llm_client.chat.completions.create(**params)
        except APIError as e:
            logger.warning(f"⚠️ [CompletionClient] Prompt request failed: {e}")
            raise CompletionError(str(e)) from e

        message = self._first_message(response)
        return (getattr(message, "content", None) or "").strip()

    def _first_message(self, response: Any) -> Any:
        try:
            message = response.choices[0].message
        except (AttributeError, IndexError, TypeError) as e:
            logger.warning(f"⚠️ [CompletionClient] Malformed completion payload: {e}")
            raise CompletionError("Malformed completion payload") from e
        if message is None:
            raise CompletionError("Completion payload has no message")
        return message

    def _first_tool_call(self, message: Any) -> Optional[ToolCall]:
        tool_calls = getattr(message, "tool_calls", None) or []
        if not tool_calls:
            return None
        function = getattr(tool_calls[0], "function", None)
        name = getattr(function, "name", None) or ""
        return ToolCall(name=name, args=_decode_arguments(getattr(function, "arguments", None)))
