"""
chat.py — Local knowledge-base assistant ("Emilia").

Answers chat requests from keyword rules without calling any provider; the
reply is shaped like a chat-completion response so clients can swap backends.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Tuple

from app.core.errors import AppError

ASSISTANT_MODEL = "emilia-knowledge-base"

# (keywords, answer); first rule with a matching keyword wins
KNOWLEDGE_BASE: List[Tuple[Tuple[str, ...], str]] = [
    (
        ("fee", "cost", "price", "charges", "payment"),
        "We put our customers first and have adopted a completely success-based fee system for M&A "
        "of transfer companies. We do not receive any retainer fee or interim fee. You only pay upon "
        "the successful closure of your M&A transaction.",
    ),
    (
        ("valuation", "worth", "value"),
        "At M&A × AI, your business valuation begins entirely free of charge, saving you thousands "
        "typically spent on initial consulting fees. Our advanced AI-driven valuation platform gives "
        "you precise insights into your company's worth quickly and efficiently.",
    ),
    (
        ("about", "who are you", "company"),
        "M&A × AI specializes in business valuation and M&A facilitation for European SMBs with "
        "EBITDA under €10 million. We offer zero upfront fees, AI-powered valuations, and a "
        "success-based fee structure.",
    ),
]

DEFAULT_ANSWER = (
    "I'm Emilia, your business valuation assistant. I can help with questions about our valuation "
    "services, M&A process, and European market information. What would you like to know?"
)


def answer(query: str) -> str:
    normalized = query.lower().strip()
    for keywords, reply in KNOWLEDGE_BASE:
        if any(keyword in normalized for keyword in keywords):
            return reply
    return DEFAULT_ANSWER


def complete_chat(messages: Any) -> Dict[str, Any]:
    """
    Answer the last user message.

    Raises:
        AppError (400): `messages` is not a list, or holds no user message.
    """
    if not isinstance(messages, list):
        raise AppError("Messages array is required", status_code=400)

    user_messages = [m for m in messages if isinstance(m, dict) and m.get("role") == "user"]
    if not user_messages:
        raise AppError("No user message found in the request", status_code=400)

    content = user_messages[-1].get("content")
    now = int(time.time())
    return {
        "id": f"emilia-response-{now}",
        "model": ASSISTANT_MODEL,
        "object": "chat.completion",
        "created": now,
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": answer(content if isinstance(content, str) else "")},
            }
        ],
        "usage": {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
    }
