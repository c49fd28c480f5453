from common.ids import generate_id, now_ms
from common.jsonio import atomic_write_text, read_text

__all__ = ["generate_id", "now_ms", "read_text", "atomic_write_text"]
