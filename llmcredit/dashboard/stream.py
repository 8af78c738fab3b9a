"""Incremental SSE parser for the dashboard config subscription.

Bytes arrive in arbitrary chunks; complete events are queued as they are
found and drained with ``pop_events``.
"""

import codecs
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ServerSentEvent:
    """One dispatched SSE event."""
    data: str
    event: str = "message"
    id: Optional[str] = None


class SSEParser:
    """Incremental SSE parser.

    Usage:
        parser = SSEParser()
        async for chunk in response.aiter_bytes():
            parser.feed(chunk)
            for event in parser.pop_events():
                handle(event)
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._events: List[ServerSentEvent] = []

    def feed(self, chunk: bytes) -> None:
        """Feed a raw SSE chunk (bytes) into the parser."""
        self._buffer += self._decoder.decode(chunk)
        if self._buffer.endswith("\r"):
            return  # may be the first half of "\r\n"
        self._buffer = self._buffer.replace("\r\n", "\n").replace("\r", "\n")
        self._process_buffer()

    def pop_events(self) -> List[ServerSentEvent]:
        """Return and clear the events parsed so far."""
        events, self._events = self._events, []
        return events

    def _process_buffer(self) -> None:
        """Process buffered text, extracting complete SSE events."""
        while "\n\n" in self._buffer:
            event_block, self._buffer = self._buffer.split("\n\n", 1)
            self._parse_event_block(event_block)

    def _parse_event_block(self, block: str) -> None:
        """Parse a single SSE event block."""
        event_type = "message"
        event_id: Optional[str] = None
        data_lines: List[str] = []

        for line in block.split("\n"):
            if not line or line.startswith(":"):
                continue  # comment / keep-alive
            name, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]
            if name == "event":
                event_type = value
            elif name == "data":
                data_lines.append(value)
            elif name == "id":
                event_id = value

        if not data_lines:
            logger.debug(f"Skipping SSE event without data: {event_type}")
            return

        self._events.append(
            ServerSentEvent(data="\n".join(data_lines), event=event_type, id=event_id)
        )

    def finalize(self) -> List[ServerSentEvent]:
        """Process any remaining buffer and return the pending events."""
        if self._buffer.strip():
            self._parse_event_block(self._buffer)
            self._buffer = ""
        return self.pop_events()
