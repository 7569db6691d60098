"""Answer generator gateway."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from athena_rag.errors import GenerationError, ValidationError
from athena_rag.generation.prompts import build_answer_prompt

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

_COMPONENT = "generation.generator"


class AnswerGenerator:
    """Ask a chat model to answer *query* strictly from *context*.

    Parameters
    ----------
    llm:
        Any LangChain chat model.
    model_name:
        Identifier recorded in query logs.  Defaults to the model's
        ``model_name`` attribute when it has one.
    """

    def __init__(self, llm: BaseChatModel, *, model_name: str | None = None) -> None:
        self._llm = llm
        self.model_name = model_name or getattr(llm, "model_name", None) or type(llm).__name__

    def generate(self, query: str, context: str) -> str:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Invalid query input", context={"component": _COMPONENT})
        # Empty context is valid; the model is told to say it cannot answer.
        context = context if isinstance(context, str) else ""

        try:
            response = self._llm.invoke(build_answer_prompt(query, context))
        except Exception as exc:
            logger.warning("Answer generation failed: %s", exc)
            raise GenerationError(
                f"Failed to generate answer with {self.model_name}: {exc}",
                expected=False,
                context={"component": _COMPONENT, "cause": type(exc).__name__},
            ) from exc

        output = _message_text(response.content).strip()
        if not output:
            raise GenerationError(
                f"{self.model_name} returned empty answer text",
                context={"component": _COMPONENT},
            )
        return output


def _message_text(content: str | list) -> str:
    """Flatten string or content-block message content to plain text."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
