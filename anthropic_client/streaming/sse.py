"""
anthropic-client - SSE Frame Decoder

Turns a byte stream, split arbitrarily into chunks, into server-sent-event
frames.

Rules:
- Lines end with ``\\n``; a preceding ``\\r`` is stripped
- Lines starting with ``:`` are comments
- ``field: value`` lines set ``event``, append to ``data`` (joined with
  ``\\n``) or set ``retry`` (integer milliseconds, malformed values ignored);
  one space after the colon is dropped, ``id`` and unknown fields are ignored
- A blank line emits the frame if any field was set, then resets
- A partial frame at end of stream is discarded

The decoder raises nothing of its own: malformed framing only yields fewer
or garbled frames, which fail later at decode time.
"""

import codecs
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, List, Optional


DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class SseFrame:
    """One complete SSE frame."""
    event: str = DEFAULT_EVENT
    data: str = ""
    retry: Optional[int] = None


class SseDecoder:
    """
    Incremental SSE decoder.

    UTF-8 decoding is incremental too, so a multi-byte character split across
    two chunks is reassembled.

    Example:
        decoder = SseDecoder()
        frames = decoder.feed(b"event: ping\\n")   # []
        frames = decoder.feed(b"\\n")               # [SseFrame(event="ping")]
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self._reset_frame()

    def _reset_frame(self) -> None:
        self._event: Optional[str] = None
        self._data: List[str] = []
        self._retry: Optional[int] = None
        self._dirty = False

    def feed(self, chunk: bytes) -> List[SseFrame]:
        """Consume a chunk and return every frame it completed."""
        text = self._pending + self._decoder.decode(chunk)
        lines = text.split("\n")
        self._pending = lines.pop()

        frames: List[SseFrame] = []
        for line in lines:
            if line.endswith("\r"):
                line = line[:-1]
            frame = self._process_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def close(self) -> None:
        """End of stream: drop any unterminated line or frame."""
        self._decoder.decode(b"", final=True)
        self._pending = ""
        self._reset_frame()

    def _process_line(self, line: str) -> Optional[SseFrame]:
        if not line:
            if not self._dirty:
                return None
            frame = SseFrame(
                event=self._event or DEFAULT_EVENT,
                data="\n".join(self._data),
                retry=self._retry,
            )
            self._reset_frame()
            return frame

        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
            self._dirty = True
        elif name == "data":
            self._data.append(value)
            self._dirty = True
        elif name == "retry":
            digits = value.strip()
            if digits.isascii() and digits.isdigit():
                self._retry = int(digits)
                self._dirty = True
        return None


async def aiter_frames(chunks: AsyncIterable[bytes]) -> AsyncIterator[SseFrame]:
    """Lazily decode frames from an async byte stream."""
    decoder = SseDecoder()
    try:
        async for chunk in chunks:
            for frame in decoder.feed(chunk):
                yield frame
    finally:
        decoder.close()
