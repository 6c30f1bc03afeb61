"""
MODULE OVERVIEW:
Reassembles complete text lines from an HTTP body that arrives in arbitrary byte chunks.

WHAT IS HAPPENING HERE:
Network chunk boundaries carry no meaning. A chunk may end halfway through a line,
or even halfway through a multi-byte UTF-8 character. We use an incremental decoder
(the Python equivalent of `TextDecoder(..., {stream: true})`) so partial characters
are held back until their remaining bytes arrive, and we keep the unterminated tail
of the text as a pending fragment until its newline shows up.
"""
import codecs

from loguru import logger


class LineBuffer:
    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def push(self, chunk: bytes) -> list[str]:
        """Decodes `chunk` and returns every line completed by it, without terminators."""
        self._pending += self._decoder.decode(chunk)
        lines = self._pending.split("\n")
        self._pending = lines.pop()
        return lines

    def close(self) -> str:
        """
        Ends the stream. A trailing fragment without a newline carries no meaning
        in SSE, so it is discarded rather than emitted; it is returned for logging.
        """
        leftover = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if leftover:
            logger.debug(f"line_buffer discarded unterminated fragment len={len(leftover)}")
        return leftover
