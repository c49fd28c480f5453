import codecs
from typing import AsyncIterable, AsyncIterator

DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """Incremental decoder for ``data:``-framed server-sent events.

    Bytes may be split anywhere, including inside a multi-byte character or
    between the two newlines that close an event. ``feed`` returns the data
    payloads of every event completed by the chunk, in arrival order.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._data: list[str] = []

    def feed(self, chunk: bytes | str) -> list[str]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk
        events: list[str] = []
        while True:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline].rstrip("\r")
            self._buffer = self._buffer[newline + 1 :]
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> list[str]:
        tail = self._decoder.decode(b"", final=True)
        events = self.feed(tail) if tail else []
        if self._buffer:
            event = self._process_line(self._buffer.rstrip("\r"))
            self._buffer = ""
            if event is not None:
                events.append(event)
        if self._data:
            events.append("\n".join(self._data))
            self._data = []
        return events

    def _process_line(self, line: str) -> str | None:
        if not line:
            if not self._data:
                return None
            event = "\n".join(self._data)
            self._data = []
            return event
        if line.startswith(":"):
            return None
        field, _, value = line.partition(":")
        if field != "data":
            return None
        if value.startswith(" "):
            value = value[1:]
        self._data.append(value)
        return None


async def iter_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    decoder = SSEDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event
