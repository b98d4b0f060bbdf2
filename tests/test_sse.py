"""
Tests for vis_site.sse module.

The decoder is fed raw body chunks split at arbitrary points; these tests stay
offline.
"""

import json

import pytest

from vis_site.sse import ChatStreamDecoder, extract_delta_content


def sse_line(content: str) -> str:
    """One SSE data line carrying a chat delta."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return "data: " + json.dumps(payload, ensure_ascii=False) + "\n\n"


class TestExtractDeltaContent:
    """Tests for extract_delta_content."""

    def test_content_present(self):
        assert extract_delta_content({"choices": [{"delta": {"content": "Hi"}}]}) == "Hi"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"choices": []},
            {"choices": [{}]},
            {"choices": [{"delta": {}}]},
            {"choices": [{"delta": {"role": "assistant"}}]},
            {"choices": [{"delta": {"content": 5}}]},
            ["not", "a", "dict"],
        ],
    )
    def test_content_absent(self, payload):
        assert extract_delta_content(payload) is None


class TestChatStreamDecoder:
    """Tests for ChatStreamDecoder class."""

    def test_whole_lines(self):
        decoder = ChatStreamDecoder()
        body = (sse_line("Hel") + sse_line("lo")).encode("utf-8")
        assert decoder.feed(body) == ["Hel", "lo"]

    def test_json_split_across_chunks(self):
        """A data line split mid-JSON is emitted once, when the line completes."""
        body = sse_line("Hello").encode("utf-8")
        cut = body.index(b"content") + 3
        decoder = ChatStreamDecoder()

        assert decoder.feed(body[:cut]) == []
        assert decoder.feed(body[cut:]) == ["Hello"]

    def test_every_split_point_gives_same_text(self):
        body = (sse_line("Namaste ") + sse_line("world")).encode("utf-8")
        for cut in range(1, len(body)):
            decoder = ChatStreamDecoder()
            fragments = decoder.feed(body[:cut]) + decoder.feed(body[cut:])
            assert "".join(fragments) == "Namaste world"

    def test_multibyte_character_split(self):
        """A UTF-8 sequence split between chunks decodes intact."""
        body = sse_line("नमस्ते").encode("utf-8")
        start = body.index("न".encode("utf-8"))
        decoder = ChatStreamDecoder()
        fragments = decoder.feed(body[: start + 1]) + decoder.feed(body[start + 1:])
        assert "".join(fragments) == "नमस्ते"

    def test_crlf_line_endings(self):
        payload = json.dumps({"choices": [{"delta": {"content": "ok"}}]})
        decoder = ChatStreamDecoder()
        assert decoder.feed(f"data: {payload}\r\n\r\n".encode()) == ["ok"]

    def test_comments_and_other_fields_ignored(self):
        decoder = ChatStreamDecoder()
        body = ": keep-alive\n\nevent: message\nid: 3\n" + sse_line("x")
        assert decoder.feed(body.encode()) == ["x"]

    def test_empty_content_skipped(self):
        decoder = ChatStreamDecoder()
        body = sse_line("") + 'data: {"choices": [{"delta": {"role": "assistant"}}]}\n\n' + sse_line("a")
        assert decoder.feed(body.encode()) == ["a"]

    def test_done_sentinel(self):
        decoder = ChatStreamDecoder()
        fragments = decoder.feed((sse_line("a") + "data: [DONE]\n\n").encode())
        assert fragments == ["a"]
        assert decoder.done is True

    def test_done_stops_current_chunk(self):
        decoder = ChatStreamDecoder()
        fragments = decoder.feed(("data: [DONE]\n" + sse_line("late")).encode())
        assert fragments == []
        assert decoder.done is True

    def test_unparseable_line_is_requeued(self):
        """A complete line whose JSON does not parse stays at the front of the buffer."""
        decoder = ChatStreamDecoder()
        bad = 'data: {"choices": [\n'
        assert decoder.feed((bad + sse_line("after")).encode()) == []
        assert decoder.pending.startswith(bad)
        # Still blocked on the same line when more data arrives.
        assert decoder.feed(sse_line("more").encode()) == []
        assert decoder.pending.startswith(bad)

    def test_incomplete_line_kept_pending(self):
        decoder = ChatStreamDecoder()
        assert decoder.feed(b'data: {"choi') == []
        assert decoder.pending == 'data: {"choi'

    def test_accepts_str_chunks(self):
        assert ChatStreamDecoder().feed(sse_line("s")) == ["s"]

    def test_deeply_nested_payload_does_not_raise(self):
        """JSON too deep to parse is treated like any other unparseable line."""
        decoder = ChatStreamDecoder()
        assert decoder.feed(b"data: " + b"[" * 100000 + b"\n\n") == []
        assert decoder.pending.startswith("data: [[[")
