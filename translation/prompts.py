"""Prompt templates for the translate, reflect and improve stages."""
from typing import Optional, Tuple


DEFAULT_PROMPT = "Tell me a story."
DEFAULT_SYSTEM_MESSAGE = "You are a helpful assistant."


def initial_translation_prompt(source: str, target: str, text: str) -> Tuple[str, str]:
    """Return (system_message, prompt) for the first-pass translation."""
    system_message = (
        f"You are an expert linguist, specializing in translation from {source} to {target}."
    )
    prompt = f"""This is an {source} to {target} translation, please provide the {target} translation for this text.
Do not provide any explanations or text apart from the translation.
{source}: {text}

{target}:"""
    return system_message, prompt


def reflection_prompt(
    source: str,
    target: str,
    text: str,
    initial_translation: str,
    country: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Return (system_message, prompt) asking for critique of a translation.

    Args:
        source: Source language name
        target: Target language name
        text: Original source text
        initial_translation: Output of the first stage
        country: Optional country whose colloquial style the result should match
    """
    system_message = (
        f"You are an expert linguist specializing in translation from {source} to {target}. "
        "You will be provided with a source text and its translation and your goal is to "
        "improve the translation."
    )

    style_line = ""
    if country:
        style_line = (
            f"The final style and tone of the translation should match the style of "
            f"{target} colloquially spoken in {country}.\n"
        )

    prompt = f"""Your task is to carefully read a source text and a translation from {source} to {target}, and then give constructive criticism and helpful suggestions to improve the translation.
{style_line}
The source text and initial translation, delimited by XML tags <SOURCE_TEXT></SOURCE_TEXT> and <TRANSLATION></TRANSLATION>, are as follows:

<SOURCE_TEXT>
{text}
</SOURCE_TEXT>

<TRANSLATION>
{initial_translation}
</TRANSLATION>

When writing suggestions, pay attention to whether there are ways to improve the translation's
(i) accuracy (by correcting errors of addition, mistranslation, omission, or untranslated text),
(ii) fluency (by applying {target} grammar, spelling and punctuation rules, and ensuring there are no unnecessary repetitions),
(iii) style (by ensuring the translations reflect the style of the source text and takes into account any cultural context),
(iv) terminology (by ensuring terminology use is consistent and reflects the source text domain; and by only ensuring you use equivalent idioms {target}).

Write a list of specific, helpful and constructive suggestions for improving the translation.
Each suggestion should address one specific part of the translation.
Output only the suggestions and nothing else."""
    return system_message, prompt


def improvement_prompt(
    source: str,
    target: str,
    text: str,
    initial_translation: str,
    reflection: str,
) -> Tuple[str, str]:
    """Return (system_message, prompt) for editing the translation using the critique."""
    system_message = (
        f"You are an expert linguist, specializing in translation editing from {source} to {target}."
    )
    prompt = f"""Your task is to carefully read, then edit, a translation from {source} to {target}, taking into account a list of expert suggestions and constructive criticisms.

The source text, the initial translation, and the expert linguist suggestions are delimited by XML tags <SOURCE_TEXT></SOURCE_TEXT>, <TRANSLATION></TRANSLATION> and <EXPERT_SUGGESTIONS></EXPERT_SUGGESTIONS> as follows:

<SOURCE_TEXT>
{text}
</SOURCE_TEXT>

<TRANSLATION>
{initial_translation}
</TRANSLATION>

<EXPERT_SUGGESTIONS>
{reflection}
</EXPERT_SUGGESTIONS>

Please take into account the expert suggestions when editing the translation. Edit the translation by ensuring:

(i) accuracy (by correcting errors of addition, mistranslation, omission, or untranslated text),
(ii) fluency (by applying {target} grammar, spelling and punctuation rules and ensuring there are no unnecessary repetitions),
(iii) style (by ensuring the translations reflect the style of the source text),
(iv) terminology (inappropriate for context, inconsistent use), or
(v) other errors.

Output only the new translation and nothing else."""
    return system_message, prompt
