import asyncio

from parley.stream.sse import SSEDecoder, iter_events


def test_single_event():
    decoder = SSEDecoder()
    assert decoder.feed(b'data: {"a": 1}\n\n') == ['{"a": 1}']


def test_event_split_across_chunks():
    decoder = SSEDecoder()
    assert decoder.feed(b"data: hel") == []
    assert decoder.feed(b"lo\n") == []
    assert decoder.feed(b"\n") == ["hello"]


def test_multibyte_character_split_across_chunks():
    raw = "data: héllo ✓\n\n".encode("utf-8")
    split = raw.index("✓".encode("utf-8")) + 1
    decoder = SSEDecoder()
    assert decoder.feed(raw[:split]) == []
    assert decoder.feed(raw[split:]) == ["héllo ✓"]


def test_multiple_events_in_one_chunk():
    decoder = SSEDecoder()
    assert decoder.feed(b"data: one\n\ndata: two\n\ndata: [DONE]\n\n") == [
        "one",
        "two",
        "[DONE]",
    ]


def test_multi_line_data_is_joined():
    decoder = SSEDecoder()
    assert decoder.feed(b"data: first\ndata: second\n\n") == ["first\nsecond"]


def test_crlf_and_other_fields():
    decoder = SSEDecoder()
    chunk = b": keep-alive\r\nevent: conversation.message.delta\r\nid: 7\r\ndata:x\r\n\r\n"
    assert decoder.feed(chunk) == ["x"]


def test_blank_lines_without_data_are_ignored():
    decoder = SSEDecoder()
    assert decoder.feed(b"\n\n\ndata: a\n\n\n") == ["a"]


def test_flush_returns_unterminated_event():
    decoder = SSEDecoder()
    assert decoder.feed(b"data: tail") == []
    assert decoder.flush() == ["tail"]
    assert decoder.flush() == []


def test_iter_events():
    async def chunks():
        yield b"data: a\n"
        yield b"\ndata: b\n\n"
        yield b"data: c"

    async def collect():
        return [event async for event in iter_events(chunks())]

    assert asyncio.run(collect()) == ["a", "b", "c"]
