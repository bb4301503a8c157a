# -*- coding: utf-8 -*-
"""Advice-generation calls: role-tagged messages in, free text out."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from aptos_ai_agent.utils.config import DEFAULT_MODEL
from aptos_ai_agent.utils.errors import UninitializedDependencyError
from aptos_ai_agent.utils.logger import get_logger

LOGGER = get_logger(__name__)

Message = Tuple[str, str]

_ROLE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "human": HumanMessage,
    "assistant": AIMessage,
    "ai": AIMessage,
}


def to_messages(messages: Iterable[Message]) -> List[BaseMessage]:
    converted: List[BaseMessage] = []
    for role, content in messages:
        cls = _ROLE_TYPES.get(role)
        if cls is None:
            raise ValueError(f"Unsupported message role: {role}")
        converted.append(cls(content=content))
    return converted


def dumps(value: Any, indent: Optional[int] = None) -> str:
    """JSON for prompts; big integers and other odd values fall back to str()."""
    return json.dumps(value, ensure_ascii=False, indent=indent, default=str)


def _text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


class CompletionClient:
    """
    Wraps a langchain chat model. With no API key and no injected model the client
    stays usable for construction but every call raises UninitializedDependencyError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        chat_model: Optional[BaseChatModel] = None,
    ) -> None:
        self.model_name = model
        if chat_model is not None:
            self._chat_model: Optional[BaseChatModel] = chat_model
        elif api_key:
            self._chat_model = init_chat_model(model, api_key=api_key)
        else:
            self._chat_model = None

    @property
    def available(self) -> bool:
        return self._chat_model is not None

    async def complete(self, messages: Sequence[Message]) -> str:
        if self._chat_model is None:
            raise UninitializedDependencyError("Completion service not initialized. Please provide API key.")
        LOGGER.debug("Calling %s with %d messages", self.model_name, len(messages))
        response = await self._chat_model.ainvoke(to_messages(messages))
        return _text(response)

    async def ask(self, system: str, user: str) -> str:
        return await self.complete([("system", system), ("user", user)])


__all__ = ["CompletionClient", "Message", "dumps", "to_messages"]
