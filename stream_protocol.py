"""Newline-delimited JSON framing for translation response streams.

Every event is one JSON object on its own line. Model output only ever travels
inside the ``text`` field, so no model output can be mistaken for a stage
marker, whatever it contains.
"""
import json

from models import (
    EVENT_DELTA,
    EVENT_STAGE,
    EVENT_TYPES,
    STAGES,
    StreamEvent,
)


MEDIA_TYPE = "application/x-ndjson"


class StreamProtocolError(ValueError):
    """Raised when a line on the response stream is not a valid event."""


def encode_event(event: StreamEvent) -> bytes:
    """Serialize one event as a UTF-8 JSON line."""
    payload = {"type": event.type}
    if event.stage is not None:
        payload["stage"] = event.stage
    if event.text:
        payload["text"] = event.text
    # ensure_ascii keeps the line free of raw newlines and separators
    return (json.dumps(payload, ensure_ascii=True) + "\n").encode("utf-8")


def decode_event(line) -> StreamEvent:
    """
    Parse one line from the response stream.

    Args:
        line: A single line, as str or bytes, with or without its newline

    Raises:
        StreamProtocolError: If the line is not JSON or names an unknown
            event type or stage.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StreamProtocolError(f"Event line is not valid UTF-8: {line[:80]!r}") from e
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise StreamProtocolError(f"Invalid event line: {line[:80]!r}") from e

    if not isinstance(payload, dict):
        raise StreamProtocolError(f"Event must be a JSON object, got {type(payload).__name__}")

    event_type = payload.get("type")
    if event_type not in EVENT_TYPES:
        raise StreamProtocolError(f"Unknown event type: {event_type!r}")

    stage = payload.get("stage")
    if stage is not None and stage not in STAGES:
        raise StreamProtocolError(f"Unknown stage: {stage!r}")
    if event_type == EVENT_STAGE and stage is None:
        raise StreamProtocolError("Stage event without a stage name")

    text = payload.get("text", "")
    if not isinstance(text, str):
        raise StreamProtocolError("Event text must be a string")
    if event_type == EVENT_DELTA and not text:
        raise StreamProtocolError("Delta event without text")

    return StreamEvent(type=event_type, stage=stage, text=text)
