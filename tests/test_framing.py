import json

import pytest

from inkwell.mcp.framing import StdioFramer, decode_message, encode_frame


def _framed(payload: dict) -> bytes:
    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    return b"Content-Length: " + str(len(body)).encode() + b"\r\n\r\n" + body


def _feed_all(chunks):
    framer = StdioFramer()
    bodies = []
    for chunk in chunks:
        bodies.extend(framer.feed(chunk))
    return [decode_message(b) for b in bodies], framer


def test_single_framed_message():
    msgs, framer = _feed_all([_framed({"jsonrpc": "2.0", "id": 1, "method": "ping"})])
    assert msgs == [{"jsonrpc": "2.0", "id": 1, "method": "ping"}]
    assert len(framer) == 0


def test_two_framed_messages_in_one_chunk_keep_order():
    data = _framed({"id": 1, "method": "a"}) + _framed({"id": 2, "method": "b"})
    msgs, _ = _feed_all([data])
    assert [m["id"] for m in msgs] == [1, 2]


@pytest.mark.parametrize("size", [1, 2, 3, 7, 16])
def test_chunking_does_not_change_messages(size):
    stream = (
        _framed({"id": 1, "method": "initialize"})
        + b'{"id": 2, "method": "tools/list"}\n'
        + _framed({"id": 3, "method": "ping", "params": {"note": "café"}})
    )
    whole, _ = _feed_all([stream])
    pieces, framer = _feed_all([stream[i:i + size] for i in range(0, len(stream), size)])
    assert pieces == whole
    assert [m["id"] for m in pieces] == [1, 2, 3]
    assert len(framer) == 0


def test_header_split_across_chunks_waits_for_blank_line():
    framer = StdioFramer()
    assert framer.feed(b"Content-Len") == []
    assert framer.feed(b"gth: 2\r\n") == []
    assert framer.feed(b"\r\n{") == []
    assert framer.feed(b"}") == [b"{}"]


def test_content_length_counts_bytes_not_characters():
    payload = {"id": 1, "text": "été über \U0001F600"}
    msgs, framer = _feed_all([_framed(payload) + b'{"id": 2}\n'])
    assert msgs[0] == payload
    assert msgs[1] == {"id": 2}
    assert len(framer) == 0


def test_line_mode_skips_blank_lines_and_crlf():
    framer = StdioFramer()
    bodies = framer.feed(b'\n\r\n{"id": 1}\r\n\n{"id": 2}\n')
    assert [decode_message(b) for b in bodies] == [{"id": 1}, {"id": 2}]


def test_partial_line_waits_for_newline():
    framer = StdioFramer()
    assert framer.feed(b'{"id": 1') == []
    assert framer.feed(b'}\n') == [b'{"id": 1}']


def test_header_block_without_content_length_is_dropped():
    framer = StdioFramer()
    bodies = framer.feed(b"X-Trace: abc\r\n\r\n" + b'{"id": 5}\n')
    assert [decode_message(b) for b in bodies] == [{"id": 5}]


def test_malformed_json_is_dropped_and_stream_continues():
    framer = StdioFramer()
    bodies = framer.feed(b'{not json}\n{"id": 9}\n')
    decoded = [decode_message(b) for b in bodies]
    assert decoded == [None, {"id": 9}]


def test_non_object_payload_is_dropped():
    assert decode_message(b"[1, 2, 3]") is None
    assert decode_message(b"\xff\xfe") is None


def test_encode_frame_uses_utf8_byte_length():
    frame = encode_frame({"text": "é"})
    header, body = frame.split(b"\r\n\r\n", 1)
    assert header == b"Content-Length: " + str(len(body)).encode()
    assert json.loads(body.decode("utf-8")) == {"text": "é"}
    assert "é".encode("utf-8") in body
