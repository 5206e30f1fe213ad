"""LLM provider configuration and the text-generation seam used by the pipeline."""

from collections.abc import Sequence
from functools import lru_cache
from typing import Protocol

from langchain_core.messages import BaseMessage
from langchain_core.runnables import RunnableConfig
from langchain_openai import ChatOpenAI

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# OpenAI built-in tool; binding it routes the call through the Responses API
WEB_SEARCH_TOOL = {"type": "web_search_preview"}


class TextGenerator(Protocol):
    """Prompt in, text out. The only contract the pipeline relies on."""

    async def generate(
        self,
        messages: Sequence[BaseMessage],
        *,
        search_augmentation: bool = False,
    ) -> str: ...


def message_text(message: BaseMessage) -> str:
    """Flatten a chat message's content into plain text.

    Responses API replies arrive as a list of content blocks
    (text plus citation annotations) rather than a string.
    """
    content = message.content
    if isinstance(content, str):
        return content

    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") in ("text", "output_text"):
            parts.append(str(block.get("text", "")))
    return "".join(parts)


class ChatModelTextGenerator:
    """TextGenerator backed by a LangChain chat model."""

    def __init__(self, llm: ChatOpenAI, *, web_search: bool = True) -> None:
        self._llm = llm
        self._web_search = web_search

    async def generate(
        self,
        messages: Sequence[BaseMessage],
        *,
        search_augmentation: bool = False,
    ) -> str:
        runnable = self._llm
        if search_augmentation and self._web_search:
            runnable = self._llm.bind_tools([WEB_SEARCH_TOOL])  # type: ignore[assignment]

        response = await runnable.ainvoke(list(messages))
        return message_text(response)


@lru_cache
def get_llm() -> ChatOpenAI:
    """Get configured LLM instance."""
    settings = get_settings()

    kwargs: dict = {
        "model": settings.OPENAI_MODEL,
        "temperature": settings.OPENAI_TEMPERATURE,
    }

    if settings.OPENAI_API_KEY:
        kwargs["api_key"] = settings.OPENAI_API_KEY
    if settings.OPENAI_API_BASE_URL:
        kwargs["base_url"] = settings.OPENAI_API_BASE_URL

    logger.info("Initializing LLM", model=settings.OPENAI_MODEL)
    return ChatOpenAI(**kwargs)


def get_text_generator() -> TextGenerator | None:
    """Get the pipeline's text generator, or None when no credential is configured."""
    settings = get_settings()
    if not settings.ai_enabled:
        return None
    return ChatModelTextGenerator(get_llm(), web_search=settings.OPENAI_WEB_SEARCH)


def generator_from_config(config: RunnableConfig) -> TextGenerator:
    """Pull the text generator a graph run was started with."""
    generator = config.get("configurable", {}).get("generator")
    if generator is None:
        raise RuntimeError("Synthesis graph invoked without a text generator")
    return generator
