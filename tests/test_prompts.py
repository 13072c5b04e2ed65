from translation.prompts import (
    improvement_prompt,
    initial_translation_prompt,
    reflection_prompt,
)


def test_initial_translation_prompt_names_both_languages_and_text():
    system_message, prompt = initial_translation_prompt("English", "French", "Good morning")

    assert "from English to French" in system_message
    assert "English: Good morning" in prompt
    assert prompt.rstrip().endswith("French:")
    assert "Do not provide any explanations" in prompt


def test_reflection_prompt_wraps_source_and_translation_in_tags():
    _, prompt = reflection_prompt("English", "French", "Good morning", "Bonjour")

    assert "<SOURCE_TEXT>\nGood morning\n</SOURCE_TEXT>" in prompt
    assert "<TRANSLATION>\nBonjour\n</TRANSLATION>" in prompt
    assert "(iv) terminology" in prompt
    assert "colloquially spoken" not in prompt


def test_reflection_prompt_adds_regional_style_when_country_given():
    _, prompt = reflection_prompt("English", "Spanish", "Hi", "Hola", country="Mexico")

    assert "style of Spanish colloquially spoken in Mexico" in prompt


def test_improvement_prompt_includes_expert_suggestions():
    system_message, prompt = improvement_prompt(
        "English", "French", "Good morning", "Bonjour", "Use a more formal greeting."
    )

    assert "translation editing from English to French" in system_message
    assert "<EXPERT_SUGGESTIONS>\nUse a more formal greeting.\n</EXPERT_SUGGESTIONS>" in prompt
    assert "(v) other errors." in prompt
    assert prompt.endswith("Output only the new translation and nothing else.")
