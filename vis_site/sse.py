"""
Incremental decoder for the chat endpoint's server-sent-event framing.

The endpoint streams lines of the form ``data: {json}`` separated by blank
lines and ends with ``data: [DONE]``. Chunks arrive at arbitrary byte
boundaries, so the decoder keeps a text buffer and only looks at complete
lines.
"""

from __future__ import annotations

import codecs
import json
from typing import Any, Optional

from vis_site.logging_config import get_logger

logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta_content(payload: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` if present and a string."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class ChatStreamDecoder:
    """
    Turns raw body chunks into assistant text fragments.

    Example:
        decoder = ChatStreamDecoder()
        for chunk in response.iter_content(chunk_size=None):
            for fragment in decoder.feed(chunk):
                reply += fragment
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.done = False

    @property
    def pending(self) -> str:
        """Text received but not yet consumed."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[str]:
        """
        Add a chunk and return the fragments found in the lines it completed.

        Processing of a chunk stops at the ``[DONE]`` sentinel or at a line
        whose JSON does not parse; in the latter case the line goes back to
        the front of the buffer to wait for more data.
        """
        text = self._utf8.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        self._buffer += text

        fragments: list[str] = []
        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]

            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or line.strip() == "":
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            data = line[len(DATA_PREFIX):].strip()
            if data == DONE_SENTINEL:
                self.done = True
                break

            try:
                parsed = json.loads(data)
            except (ValueError, RecursionError):
                logger.debug("Incomplete stream payload, waiting for more data", extra={"payload_len": len(data)})
                self._buffer = line + "\n" + self._buffer
                break

            content = extract_delta_content(parsed)
            if content:
                fragments.append(content)

        return fragments
