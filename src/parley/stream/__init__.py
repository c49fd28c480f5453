from parley.stream.ingestor import IngestResult, StreamIngestor
from parley.stream.sse import SSEDecoder, iter_events

__all__ = ["IngestResult", "StreamIngestor", "SSEDecoder", "iter_events"]
