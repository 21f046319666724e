"""
OpenAI-compatible response formatting.
"""

import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict


def new_completion_id() -> str:
    """Generate an opaque chat completion id."""
    return f"chatcmpl-{uuid.uuid4().hex[:24]}"


@dataclass
class CompletionContext:
    """Synthetic identifiers shared by one response, or by every chunk of one stream."""
    model: str
    system_fingerprint: str
    id: str = field(default_factory=new_completion_id)
    created: int = field(default_factory=lambda: int(time.time()))


def format_chat_completion(content: str, context: CompletionContext) -> Dict[str, Any]:
    """
    Format a chat completion response in OpenAI format.

    Args:
        content: The assistant's full reply
        context: Identifiers for this response

    Returns:
        OpenAI-compatible chat completion dict
    """
    return {
        "id": context.id,
        "object": "chat.completion",
        "created": context.created,
        "model": context.model,
        "system_fingerprint": context.system_fingerprint,
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": content,
                },
                "logprobs": None,
                "finish_reason": "stop",
            }
        ],
    }


def format_stream_chunk(content: str, context: CompletionContext) -> Dict[str, Any]:
    """
    Format one streamed delta in OpenAI chunk format.

    Args:
        content: Text increment
        context: Identifiers shared by the stream

    Returns:
        OpenAI-compatible chat completion chunk dict
    """
    return {
        "id": context.id,
        "object": "chat.completion.chunk",
        "created": context.created,
        "model": context.model,
        "system_fingerprint": context.system_fingerprint,
        "choices": [
            {
                "index": 0,
                "delta": {"role": "assistant", "content": content},
                "logprobs": None,
                "finish_reason": None,
            }
        ],
    }


def sse_event(data: Dict[str, Any]) -> str:
    """Encode a dict as one Server-Sent Event frame."""
    return f"data: {json.dumps(data)}\n\n"


def sse_done() -> str:
    """Format the final SSE done message."""
    return "data: [DONE]\n\n"
