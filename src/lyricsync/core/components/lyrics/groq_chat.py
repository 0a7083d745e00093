"""Groq chat completions, used for lyric recall and polishing."""

import json
from typing import Any, Dict, List, Optional

import requests

from ....config import GROQ_CHAT_MODEL, GROQ_CHAT_PATH
from ....exceptions import ProviderError
from ..groq_api import GroqAPI


class GroqChatClient(GroqAPI):
    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        model: str = GROQ_CHAT_MODEL,
        **kwargs: Any,
    ):
        super().__init__(api_key, session=session, **kwargs)
        self.model = model

    def complete(
        self,
        messages: List[Dict[str, str]],
        json_mode: bool = False,
        temperature: float = 0.0,
        error_cls: type = ProviderError,
    ) -> str:
        """Return the assistant message content for ``messages``."""
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        data = self.post(GROQ_CHAT_PATH, error_cls=error_cls, json=body)
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise error_cls(f"Unexpected chat response shape: {e}") from e

    def complete_json(
        self, messages: List[Dict[str, str]], error_cls: type = ProviderError
    ) -> Any:
        content = self.complete(messages, json_mode=True, error_cls=error_cls)
        try:
            return json.loads(content)
        except ValueError as e:
            raise error_cls(f"Chat model returned invalid JSON: {e}") from e
