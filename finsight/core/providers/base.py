"""
Generative provider interface and the LangChain chat-model adapter.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator
from langchain_core.language_models.chat_models import BaseChatModel
from finsight.utils.exceptions import GenerationError


class GenerativeProvider(ABC):
    """External generative-text backend."""

    name: str = "provider"

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """
        Generate a complete response.

        Raises:
            GenerationError: If the backend fails
        """
        pass

    @abstractmethod
    def generate_stream(self, prompt: str) -> AsyncIterator[str]:
        """
        Generate a response as a lazy sequence of text fragments.

        Raises:
            GenerationError: If the backend fails
        """
        pass


def message_text(content: Any) -> str:
    """Flatten LangChain message content (string or content blocks) into text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


class ChatModelProvider(GenerativeProvider):
    """Adapts any LangChain chat model to ``GenerativeProvider``."""

    def __init__(self, name: str, llm: BaseChatModel):
        """
        Args:
            name: Provider name used in registry and attribution
            llm: LangChain chat model (ChatOpenAI, ChatCohere, ...)
        """
        self.name = name
        self.llm = llm

    async def generate(self, prompt: str) -> str:
        try:
            message = await self.llm.ainvoke(prompt)
        except Exception as e:
            raise GenerationError(f"{self.name} request failed: {str(e)}") from e
        return message_text(message.content)

    async def generate_stream(self, prompt: str) -> AsyncIterator[str]:
        try:
            async for chunk in self.llm.astream(prompt):
                text = message_text(chunk.content)
                if text:
                    yield text
        except Exception as e:
            raise GenerationError(f"{self.name} stream failed: {str(e)}") from e
