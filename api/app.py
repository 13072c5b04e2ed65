"""FastAPI application streaming the translation agent to browsers."""
from typing import AsyncIterator, Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from loguru import logger
from pydantic import BaseModel

from config import Config
from log_config import configure_logging
from models import ProviderSettings, StreamEvent, TranslationRequest
from pipeline import TranslationPipeline
from stream_protocol import MEDIA_TYPE, encode_event
from translation import (
    DEFAULT_PROMPT,
    DEFAULT_SYSTEM_MESSAGE,
    CompletionStreamer,
    create_streamer,
)


app = FastAPI(title="Translation Agent API", version="1.0.0")

# The browser client is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Configuration
config = Config.from_env()
configure_logging(config.log_level)

StreamerFactory = Callable[[ProviderSettings], CompletionStreamer]


class TranslateBody(BaseModel):
    """JSON body accepted by POST /api/translate."""
    text: str = ""
    source: str = "English"
    target: str = "Chinese"
    country: Optional[str] = None
    llm: Optional[str] = None
    model: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    GEMINI_API_KEY: Optional[str] = None


def get_config() -> Config:
    return config


def get_streamer_factory() -> StreamerFactory:
    return create_streamer


async def _encode_stream(
    pipeline: TranslationPipeline,
    events: AsyncIterator[StreamEvent],
) -> AsyncIterator[bytes]:
    """Serialize pipeline events and close the provider client when done."""
    try:
        async for event in events:
            yield encode_event(event)
    finally:
        await pipeline.close()


def _resolve_settings(
    cfg: Config,
    llm: Optional[str],
    model: Optional[str],
    openai_api_key: Optional[str],
    gemini_api_key: Optional[str],
) -> ProviderSettings:
    try:
        return cfg.provider_settings(
            llm=llm,
            model=model,
            openai_api_key=openai_api_key,
            gemini_api_key=gemini_api_key,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _start_translation(
    body: TranslateBody,
    cfg: Config,
    streamer_factory: StreamerFactory,
) -> StreamingResponse:
    """Validate a translation request and start streaming its stages."""
    try:
        request = TranslationRequest(
            text=body.text,
            source=body.source,
            target=body.target,
            country=body.country,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    settings = _resolve_settings(
        cfg, body.llm, body.model, body.OPENAI_API_KEY, body.GEMINI_API_KEY
    )
    logger.info(
        "Translate request: llm={} model={} {} -> {} country={} chars={}",
        settings.llm,
        settings.model,
        request.source,
        request.target,
        request.country,
        len(request.text),
    )

    pipeline = TranslationPipeline(streamer_factory(settings))
    return StreamingResponse(
        _encode_stream(pipeline, pipeline.run(request)),
        media_type=MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@app.get("/api/translate")
async def translate_get(
    text: str = "",
    source: str = "English",
    target: str = "Chinese",
    country: Optional[str] = None,
    llm: Optional[str] = None,
    model: Optional[str] = None,
    openai_api_key: Optional[str] = Query(None, alias="OPENAI_API_KEY"),
    gemini_api_key: Optional[str] = Query(None, alias="GEMINI_API_KEY"),
    cfg: Config = Depends(get_config),
    streamer_factory: StreamerFactory = Depends(get_streamer_factory),
):
    """
    Translate `text` from `source` to `target`, streaming every stage.

    The response is newline-delimited JSON: a stage event opens each of
    initialTranslation, reflectTranslation and improveTranslation, delta
    events carry model output, and the stream ends with complete or error.
    """
    body = TranslateBody(
        text=text,
        source=source,
        target=target,
        country=country,
        llm=llm,
        model=model,
        OPENAI_API_KEY=openai_api_key,
        GEMINI_API_KEY=gemini_api_key,
    )
    return _start_translation(body, cfg, streamer_factory)


@app.post("/api/translate")
async def translate_post(
    body: TranslateBody,
    cfg: Config = Depends(get_config),
    streamer_factory: StreamerFactory = Depends(get_streamer_factory),
):
    """Same as GET /api/translate, for texts too long for a query string."""
    return _start_translation(body, cfg, streamer_factory)


@app.get("/api/complete")
async def complete(
    prompt: str = DEFAULT_PROMPT,
    system: str = DEFAULT_SYSTEM_MESSAGE,
    llm: Optional[str] = None,
    model: Optional[str] = None,
    openai_api_key: Optional[str] = Query(None, alias="OPENAI_API_KEY"),
    gemini_api_key: Optional[str] = Query(None, alias="GEMINI_API_KEY"),
    cfg: Config = Depends(get_config),
    streamer_factory: StreamerFactory = Depends(get_streamer_factory),
):
    """Stream one plain completion, handy for checking provider settings."""
    settings = _resolve_settings(cfg, llm, model, openai_api_key, gemini_api_key)
    logger.info("Completion request: llm={} model={}", settings.llm, settings.model)

    pipeline = TranslationPipeline(streamer_factory(settings))
    return StreamingResponse(
        _encode_stream(pipeline, pipeline.complete_text(prompt, system)),
        media_type=MEDIA_TYPE,
    )


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


@app.get("/health")
async def health_check(cfg: Config = Depends(get_config)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "llm": cfg.llm,
        "openai_model": cfg.openai_model,
        "gemini_model": cfg.gemini_model,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.api_host, port=config.api_port)
