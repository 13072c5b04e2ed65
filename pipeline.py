"""Three-stage translation agent: translate, reflect, improve."""
import argparse
import asyncio
import sys
from typing import AsyncIterator, Optional

from loguru import logger

from config import Config
from log_config import configure_logging
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
    TranslationRequest,
)
from translation import (
    CompletionStreamer,
    LLMProviderError,
    create_streamer,
    improvement_prompt,
    initial_translation_prompt,
    reflection_prompt,
)


ERROR_PREFIX = "Error processing translation"


class TranslationPipeline:
    """Runs the translate, reflect and improve stages against one provider."""

    def __init__(self, streamer: CompletionStreamer):
        self.streamer = streamer

    async def run(self, request: TranslationRequest) -> AsyncIterator[StreamEvent]:
        """
        Run all three stages, streaming provider output as it arrives.

        Each stage opens with a stage event followed by one delta event per
        provider chunk. The run ends with a complete event, or with a single
        error event if any stage fails.
        """
        try:
            system_message, prompt = initial_translation_prompt(
                request.source, request.target, request.text
            )
            initial = ""
            async for event in self._run_stage(INITIAL_TRANSLATION, prompt, system_message):
                initial += event.text
                yield event

            system_message, prompt = reflection_prompt(
                request.source, request.target, request.text, initial, request.country
            )
            reflection = ""
            async for event in self._run_stage(REFLECT_TRANSLATION, prompt, system_message):
                reflection += event.text
                yield event

            system_message, prompt = improvement_prompt(
                request.source, request.target, request.text, initial, reflection
            )
            async for event in self._run_stage(IMPROVE_TRANSLATION, prompt, system_message):
                yield event
        except LLMProviderError as e:
            logger.warning("Translation failed ({}): {}", e.failure_kind, e)
            yield StreamEvent(type=EVENT_ERROR, text=f"{ERROR_PREFIX}: {e}")
            return
        except Exception as e:
            logger.exception("Unexpected error during translation")
            yield StreamEvent(type=EVENT_ERROR, text=f"{ERROR_PREFIX}: {type(e).__name__}")
            return

        yield StreamEvent(type=EVENT_COMPLETE)

    async def _run_stage(self, stage: str, prompt: str, system_message: str) -> AsyncIterator[StreamEvent]:
        """Yield the stage marker, then a delta per provider chunk."""
        logger.info("Stage {} started", stage)
        yield StreamEvent(type=EVENT_STAGE, stage=stage)

        chars = 0
        async for chunk in self.streamer.stream(prompt, system_message):
            chars += len(chunk)
            yield StreamEvent(type=EVENT_DELTA, stage=stage, text=chunk)

        logger.info("Stage {} finished, {} chars", stage, chars)

    async def complete_text(self, prompt: str, system_message: str) -> AsyncIterator[StreamEvent]:
        """Stream a single plain completion as delta events."""
        try:
            async for chunk in self.streamer.stream(prompt, system_message):
                yield StreamEvent(type=EVENT_DELTA, text=chunk)
        except LLMProviderError as e:
            logger.warning("Completion failed ({}): {}", e.failure_kind, e)
            yield StreamEvent(type=EVENT_ERROR, text=str(e))
            return
        except Exception as e:
            logger.exception("Unexpected error during completion")
            yield StreamEvent(type=EVENT_ERROR, text=f"Completion failed: {type(e).__name__}")
            return
        yield StreamEvent(type=EVENT_COMPLETE)

    async def translate(self, request: TranslationRequest) -> TranslationBuffers:
        """Run the full agent and return the collected stage outputs."""
        buffers = TranslationBuffers()
        async for event in self.run(request):
            buffers.apply(event)
        return buffers

    async def close(self):
        """Clean up resources."""
        await self.streamer.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Translate text with the translate, reflect, improve agent."
    )
    parser.add_argument("text", help="Text to translate")
    parser.add_argument("--source", default="English", help="Source language (default: English)")
    parser.add_argument("--target", default="Chinese", help="Target language (default: Chinese)")
    parser.add_argument("--country", default=None, help="Country whose colloquial style to match")
    parser.add_argument("--llm", default=None, choices=["openai", "gemini"], help="Provider override")
    parser.add_argument("--model", default=None, help="Model override")
    return parser


# CLI entry point
async def main(argv: Optional[list] = None) -> int:
    """CLI entry point for direct pipeline execution."""
    args = build_parser().parse_args(argv)

    config = Config.from_env()
    configure_logging(config.log_level)

    try:
        request = TranslationRequest(
            text=args.text, source=args.source, target=args.target, country=args.country
        )
        settings = config.provider_settings(llm=args.llm, model=args.model)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    pipeline = TranslationPipeline(create_streamer(settings))
    exit_code = 0
    try:
        async for event in pipeline.run(request):
            if event.type == EVENT_STAGE:
                print(f"\n=== {event.stage} ===")
            elif event.type == EVENT_DELTA:
                print(event.text, end="", flush=True)
            elif event.type == EVENT_ERROR:
                print(f"\n{event.text}", file=sys.stderr)
                exit_code = 1
            elif event.type == EVENT_COMPLETE:
                print()
    finally:
        await pipeline.close()
    return exit_code


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
