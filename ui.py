"""Streamlit UI for the translation agent."""
import streamlit as st
from loguru import logger

from client import TranslationClient, TranslationClientError
from config import Config
from log_config import configure_logging
from models import (
    EVENT_DELTA,
    EVENT_STAGE,
    IMPROVE_TRANSLATION,
    INITIAL_TRANSLATION,
    REFLECT_TRANSLATION,
    SUPPORTED_LANGUAGES,
    TranslationBuffers,
    TranslationRequest,
)


# Empty-pane labels, one per stage
PANE_LABELS = {
    IMPROVE_TRANSLATION: "Improved translation",
    INITIAL_TRANSLATION: "Initial translation",
    REFLECT_TRANSLATION: "Suggestions",
}


def request_translation():
    """Text area callback: fires once an edit is complete."""
    st.session_state.translate_requested = True


def render_pane(placeholder, buffers: TranslationBuffers, stage: str):
    text = buffers.buffers[stage]
    if text:
        placeholder.text(text)
    else:
        placeholder.caption(PANE_LABELS[stage])


def run_translation(client: TranslationClient, request: TranslationRequest, options: dict, panes: dict):
    """Stream one translation into the three panes."""

    def on_update(buffers, event):
        if event.type in (EVENT_STAGE, EVENT_DELTA):
            stage = event.stage or buffers.current_stage
            render_pane(panes[stage], buffers, stage)

    try:
        buffers = client.translate(request, on_update=on_update, **options)
    except TranslationClientError as e:
        logger.error("Translation failed: {}", e)
        st.error(f"Translation failed: {e}")
        return None

    st.session_state.last_result = buffers
    return buffers


def main():
    st.set_page_config(page_title="AI Translation", page_icon="🌐", layout="wide")
    st.title("🌐 AI Translation")

    config = Config.from_env()
    configure_logging(config.log_level)
    client = TranslationClient(config.api_base_url)

    # Sidebar settings
    with st.sidebar:
        st.header("⚙️ Settings")
        llm = st.selectbox(
            "Provider",
            ["gemini", "openai"],
            index=0 if config.llm == "gemini" else 1,
        )
        model = st.text_input("Model", value="", placeholder="Provider default")
        api_key = st.text_input(
            f"{llm.capitalize()} API key",
            type="password",
            help="Leave empty to use the key configured on the server.",
        )
        country = st.text_input(
            "Country (optional)",
            help="Match the colloquial style of the target language in this country.",
        )

    if not client.check_health():
        st.error("⚠️ API server is not running. Please start the API server first:")
        st.code("python start_api.py", language="bash")
        st.stop()

    col_source, col_target = st.columns(2)
    with col_source:
        source = st.selectbox("From", SUPPORTED_LANGUAGES, index=SUPPORTED_LANGUAGES.index("English"))
    with col_target:
        target = st.selectbox("To", SUPPORTED_LANGUAGES, index=SUPPORTED_LANGUAGES.index("Chinese"))

    col_input, col_improved = st.columns(2)
    with col_input:
        text = st.text_area(
            "Input text",
            height=200,
            key="input_text",
            on_change=request_translation,
            placeholder="Enter text",
        )
        if st.button("Translate →", type="primary"):
            st.session_state.translate_requested = True
    with col_improved:
        st.subheader("Improved translation")
        improved_pane = st.empty()

    col_initial, col_reflection = st.columns(2)
    with col_initial:
        st.subheader("Initial translation")
        initial_pane = st.empty()
    with col_reflection:
        st.subheader("Suggestions")
        reflection_pane = st.empty()

    panes = {
        IMPROVE_TRANSLATION: improved_pane,
        INITIAL_TRANSLATION: initial_pane,
        REFLECT_TRANSLATION: reflection_pane,
    }

    # Redraw the previous result until a new one starts streaming
    previous = st.session_state.get("last_result") or TranslationBuffers()
    for stage, pane in panes.items():
        render_pane(pane, previous, stage)

    if st.session_state.pop("translate_requested", False) and text.strip():
        options = {"llm": llm, "model": model or None}
        if api_key:
            options["api_keys"] = {f"{llm.upper()}_API_KEY": api_key}

        request = TranslationRequest(
            text=text, source=source, target=target, country=country or None
        )
        for stage, pane in panes.items():
            render_pane(pane, TranslationBuffers(), stage)
        with st.spinner("Translating..."):
            run_translation(client, request, options, panes)


if __name__ == "__main__":
    main()
