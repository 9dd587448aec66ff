"""
Decoding of server-sent-event chat completion streams.

OpenAI-style backends stream ``data: <json>`` lines, one completion chunk per
line, terminated by ``data: [DONE]``. This module turns those lines into
``Delta`` events and keeps the running text and token usage for the final
``Complete`` event.
"""

import json
import logging
from typing import Any, Dict, Optional

from .errors import MalformedFragmentError
from .models import Delta, TokenUsage

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_MARKER = "[DONE]"


def parse_data_line(line: str) -> Optional[str]:
    """Returns the payload of a ``data:`` line, or None for any other line.

    Blank lines, ``:`` comments and other SSE fields (``event:``, ``id:``,
    ``retry:``) carry no completion data.
    """
    line = line.rstrip("\r\n")
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX) :]
    if payload.startswith(" "):
        payload = payload[1:]
    return payload.strip()


def decode_fragment(payload: str) -> Dict[str, Any]:
    """Parses one chunk payload into a dict."""
    try:
        fragment = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedFragmentError(f"Invalid JSON fragment: {e}", payload) from e
    if not isinstance(fragment, dict):
        raise MalformedFragmentError("Fragment is not a JSON object", payload)
    return fragment


def extract_delta_text(fragment: Dict[str, Any]) -> Optional[str]:
    """Returns ``choices[0].delta.content`` or None when the chunk has none."""
    choices = fragment.get("choices") or []
    if not isinstance(choices, list):
        raise MalformedFragmentError("'choices' is not a list")
    if not choices:
        return None
    delta = choices[0].get("delta") if isinstance(choices[0], dict) else None
    if not isinstance(delta, dict):
        raise MalformedFragmentError("Chunk choice has no 'delta' object")
    content = delta.get("content")
    if content is not None and not isinstance(content, str):
        raise MalformedFragmentError("Delta content is not a string")
    return content


def extract_usage(payload: Dict[str, Any]) -> Optional[TokenUsage]:
    """Maps an OpenAI ``usage`` object onto TokenUsage, if one is present."""
    usage = payload.get("usage")
    if not isinstance(usage, dict):
        return None
    return TokenUsage(
        prompt_tokens=usage.get("prompt_tokens", 0),
        completion_tokens=usage.get("completion_tokens", 0),
        total_tokens=usage.get("total_tokens", 0),
    )


class StreamAccumulator:
    """Feeds raw stream lines and collects the reply.

    Malformed fragments are logged and skipped; they never end the stream.
    """

    def __init__(self):
        self._parts = []
        self.usage: Optional[TokenUsage] = None
        self.finished = False
        self.skipped = 0

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, line: str) -> Optional[Delta]:
        """Consumes one line; returns a Delta when it carried new text."""
        if self.finished:
            return None
        payload = parse_data_line(line)
        if payload is None:
            return None
        if payload == DONE_MARKER:
            self.finished = True
            return None

        try:
            fragment = decode_fragment(payload)
            content = extract_delta_text(fragment)
            usage = extract_usage(fragment)
        except (MalformedFragmentError, AttributeError, TypeError, ValueError) as e:
            self.skipped += 1
            logger.debug("Skipping malformed stream fragment: %s", e)
            return None

        if usage is not None:
            self.usage = usage
        if not content:
            return None
        self._parts.append(content)
        return Delta(text=content)
