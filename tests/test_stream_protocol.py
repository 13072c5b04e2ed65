import pytest

from models import (
    EVENT_COMPLETE,
    EVENT_DELTA,
    EVENT_ERROR,
    EVENT_STAGE,
    IMPROVE_TRANSLATION,
    INITIAL_TRANSLATION,
    REFLECT_TRANSLATION,
    StreamEvent,
    TranslationBuffers,
)
from stream_protocol import StreamProtocolError, decode_event, encode_event


def test_encoded_event_is_a_single_line_even_with_newlines_in_text():
    event = StreamEvent(type=EVENT_DELTA, stage=INITIAL_TRANSLATION, text="line one\nline two ")

    encoded = encode_event(event)

    assert encoded.endswith(b"\n")
    assert encoded.count(b"\n") == 1
    assert decode_event(encoded) == event


def test_model_output_matching_a_stage_name_stays_text():
    line = encode_event(StreamEvent(type=EVENT_DELTA, stage=INITIAL_TRANSLATION, text=REFLECT_TRANSLATION))

    event = decode_event(line)

    assert event.type == EVENT_DELTA
    assert event.stage == INITIAL_TRANSLATION
    assert event.text == REFLECT_TRANSLATION


@pytest.mark.parametrize(
    "line",
    [
        "reflectTranslation",
        "[1, 2]",
        '{"type": "chunk"}',
        '{"type": "stage"}',
        '{"type": "stage", "stage": "summary"}',
        '{"type": "delta", "stage": "initialTranslation"}',
        '{"type": "delta", "stage": "initialTranslation", "text": 5}',
        b'{"type": "complete", "text": "\xff"}',
    ],
)
def test_decode_rejects_malformed_lines(line):
    with pytest.raises(StreamProtocolError):
        decode_event(line)


def test_buffers_demultiplex_stages():
    buffers = TranslationBuffers()
    events = [
        StreamEvent(type=EVENT_STAGE, stage=INITIAL_TRANSLATION),
        StreamEvent(type=EVENT_DELTA, stage=INITIAL_TRANSLATION, text="Bon"),
        StreamEvent(type=EVENT_DELTA, stage=INITIAL_TRANSLATION, text="jour"),
        StreamEvent(type=EVENT_STAGE, stage=REFLECT_TRANSLATION),
        StreamEvent(type=EVENT_DELTA, stage=REFLECT_TRANSLATION, text="Looks fine."),
        StreamEvent(type=EVENT_STAGE, stage=IMPROVE_TRANSLATION),
        StreamEvent(type=EVENT_DELTA, stage=IMPROVE_TRANSLATION, text="Bonjour !"),
        StreamEvent(type=EVENT_COMPLETE),
    ]

    for event in events:
        buffers.apply(event)

    assert buffers.initial_translation == "Bonjour"
    assert buffers.reflection == "Looks fine."
    assert buffers.improved_translation == "Bonjour !"
    assert buffers.current_stage == IMPROVE_TRANSLATION
    assert buffers.completed
    assert buffers.error is None


def test_stage_event_resets_its_buffer():
    buffers = TranslationBuffers()
    buffers.apply(StreamEvent(type=EVENT_DELTA, stage=INITIAL_TRANSLATION, text="stale"))

    buffers.apply(StreamEvent(type=EVENT_STAGE, stage=INITIAL_TRANSLATION))

    assert buffers.initial_translation == ""


def test_error_event_is_recorded():
    buffers = TranslationBuffers()

    buffers.apply(StreamEvent(type=EVENT_ERROR, text="Error processing translation: quota"))

    assert buffers.error == "Error processing translation: quota"
    assert not buffers.completed
