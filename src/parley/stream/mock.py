import asyncio
import json
from typing import AsyncIterator, Iterable

MOCK_FRAGMENTS = (
    "Hello! I'm running in mock mode, so no API credits are used.\n\n",
    "Here is a small Python function:\n\n",
    "```python\n",
    "def greet(name):\n",
    "    return f\"Hello, {name}!\"\n",
    "```\n\n",
    "I can also:\n",
    "- **answer questions**\n",
    "- **write code** in many languages\n",
    "- **explain concepts** step by step\n\n",
    "This is a canned reply for exercising the client.",
)


def answer_frame(content: str) -> bytes:
    payload = {"message": {"role": "assistant", "type": "answer", "content": content}}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


DONE_FRAME = b"data: [DONE]\n\n"


async def mock_stream(
    fragments: Iterable[str] | None = None, delay: float = 0.0
) -> AsyncIterator[bytes]:
    for fragment in MOCK_FRAGMENTS if fragments is None else fragments:
        yield answer_frame(fragment)
        if delay:
            await asyncio.sleep(delay)
    yield DONE_FRAME
