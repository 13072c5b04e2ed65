import asyncio

import pipeline as pipeline_module
from models import (
    EVENT_COMPLETE,
    EVENT_DELTA,
    EVENT_ERROR,
    EVENT_STAGE,
    IMPROVE_TRANSLATION,
    INITIAL_TRANSLATION,
    REFLECT_TRANSLATION,
    TranslationRequest,
)
from pipeline import ERROR_PREFIX, TranslationPipeline
from translation import LLMProviderError


def run_events(pipeline, request):
    async def run():
        return [event async for event in pipeline.run(request)]

    return asyncio.run(run())


def test_run_streams_three_stages_in_order(three_stage_streamer):
    pipeline = TranslationPipeline(three_stage_streamer)
    request = TranslationRequest(text="Hello", source="English", target="French")

    events = run_events(pipeline, request)

    assert [(e.type, e.stage) for e in events] == [
        (EVENT_STAGE, INITIAL_TRANSLATION),
        (EVENT_DELTA, INITIAL_TRANSLATION),
        (EVENT_DELTA, INITIAL_TRANSLATION),
        (EVENT_STAGE, REFLECT_TRANSLATION),
        (EVENT_DELTA, REFLECT_TRANSLATION),
        (EVENT_STAGE, IMPROVE_TRANSLATION),
        (EVENT_DELTA, IMPROVE_TRANSLATION),
        (EVENT_DELTA, IMPROVE_TRANSLATION),
        (EVENT_COMPLETE, None),
    ]


def test_each_stage_feeds_the_next_prompt(three_stage_streamer):
    pipeline = TranslationPipeline(three_stage_streamer)
    request = TranslationRequest(text="Hello", source="English", target="French", country="Canada")

    run_events(pipeline, request)

    initial_call, reflection_call, improvement_call = three_stage_streamer.calls
    assert "English: Hello" in initial_call[0]
    assert "<TRANSLATION>\nBonjour\n</TRANSLATION>" in reflection_call[0]
    assert "French colloquially spoken in Canada" in reflection_call[0]
    assert "<TRANSLATION>\nBonjour\n</TRANSLATION>" in improvement_call[0]
    assert "<EXPERT_SUGGESTIONS>\n1. Add an exclamation mark.\n</EXPERT_SUGGESTIONS>" in improvement_call[0]


def test_translate_collects_buffers(three_stage_streamer):
    pipeline = TranslationPipeline(three_stage_streamer)

    buffers = asyncio.run(pipeline.translate(TranslationRequest(text="Hello", target="French")))

    assert buffers.initial_translation == "Bonjour"
    assert buffers.reflection == "1. Add an exclamation mark."
    assert buffers.improved_translation == "Bonjour !"
    assert buffers.completed


def test_model_output_equal_to_a_stage_name_is_kept_as_text(make_streamer):
    streamer = make_streamer([[REFLECT_TRANSLATION], ["ok"], ["done"]])
    pipeline = TranslationPipeline(streamer)

    buffers = asyncio.run(pipeline.translate(TranslationRequest(text="Hello")))

    assert buffers.initial_translation == REFLECT_TRANSLATION
    assert buffers.reflection == "ok"


def test_provider_error_ends_stream_with_single_error_event(make_streamer):
    error = LLMProviderError("OpenAI rate limit or quota exceeded (HTTP 429).", failure_kind="rate_limited")
    streamer = make_streamer([["Bonjour"]], fail_on_call=1, error=error)
    pipeline = TranslationPipeline(streamer)

    events = run_events(pipeline, TranslationRequest(text="Hello"))

    assert events[-1].type == EVENT_ERROR
    assert events[-1].text.startswith(ERROR_PREFIX)
    assert "HTTP 429" in events[-1].text
    assert [e.type for e in events].count(EVENT_ERROR) == 1
    assert EVENT_COMPLETE not in [e.type for e in events]
    assert len(streamer.calls) == 2


def test_unexpected_error_is_reported_without_details(make_streamer):
    streamer = make_streamer([], fail_on_call=0, error=RuntimeError("secret internals"))
    pipeline = TranslationPipeline(streamer)

    events = run_events(pipeline, TranslationRequest(text="Hello"))

    assert events[-1].type == EVENT_ERROR
    assert events[-1].text == f"{ERROR_PREFIX}: RuntimeError"


def test_complete_text_streams_plain_deltas(make_streamer):
    streamer = make_streamer([["Once", " upon a time"]])
    pipeline = TranslationPipeline(streamer)

    async def run():
        return [event async for event in pipeline.complete_text("Tell me a story.", "Be helpful.")]

    events = asyncio.run(run())

    assert [(e.type, e.text) for e in events] == [
        (EVENT_DELTA, "Once"),
        (EVENT_DELTA, " upon a time"),
        (EVENT_COMPLETE, ""),
    ]
    assert streamer.calls == [("Tell me a story.", "Be helpful.")]


def test_close_releases_streamer(make_streamer):
    streamer = make_streamer([])

    asyncio.run(TranslationPipeline(streamer).close())

    assert streamer.closed


def test_cli_prints_each_stage(monkeypatch, capsys, three_stage_streamer):
    monkeypatch.setattr(pipeline_module, "create_streamer", lambda settings: three_stage_streamer)

    exit_code = asyncio.run(pipeline_module.main(["Hello", "--target", "French", "--llm", "openai"]))

    out = capsys.readouterr().out
    assert exit_code == 0
    assert f"=== {INITIAL_TRANSLATION} ===" in out
    assert f"=== {IMPROVE_TRANSLATION} ===" in out
    assert "Bonjour !" in out
    assert three_stage_streamer.closed


def test_cli_rejects_blank_text(capsys):
    exit_code = asyncio.run(pipeline_module.main(["   "]))

    assert exit_code == 1
    assert "Missing text parameter" in capsys.readouterr().err


def test_complete_text_reports_unexpected_error_as_event(make_streamer):
    streamer = make_streamer([], fail_on_call=0, error=RuntimeError("boom"))
    pipeline = TranslationPipeline(streamer)

    async def run():
        return [event async for event in pipeline.complete_text("Tell me a story.", "Be helpful.")]

    events = asyncio.run(run())

    assert [(e.type, e.text) for e in events] == [(EVENT_ERROR, "Completion failed: RuntimeError")]
