"""Prompt templates for grounded answer generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

UNKNOWN_ANSWER = "I don't know based on the provided context."

SYSTEM_PROMPT = f"""\
You are a helpful assistant answering questions about a collection of
uploaded documents.

Rules:
- Use ONLY the context supplied in the user message.  Do not rely on
  outside knowledge.
- If the context does not contain the answer, reply exactly:
  "{UNKNOWN_ANSWER}"
- If the context only partially answers the question, say which part
  you are unsure about.
- Be concise and accurate.
"""


def build_answer_prompt(query: str, context: str) -> list[BaseMessage]:
    """Build the messages for a single context-grounded answer."""
    user_msg = (
        f"Context:\n{context}\n\n"
        f"Question:\n{query}\n\n"
        "Answer:"
    )
    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=user_msg),
    ]
