"""
Generation — context-grounded answers from a chat model.

Public API
----------
- :class:`AnswerGenerator` — the generator gateway.
- :func:`get_llm` — the configured default chat model.
- :func:`build_answer_prompt` — prompt construction.
"""

from athena_rag.generation.generator import AnswerGenerator
from athena_rag.generation.prompts import build_answer_prompt

__all__ = [
    "AnswerGenerator",
    "build_answer_prompt",
    "get_llm",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import get_llm to avoid pulling in the OpenAI client at import time."""
    if name == "get_llm":
        from athena_rag.generation.llm import get_llm

        return get_llm
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
