import pytest

from sourcelens.models.source import SourceMetadata
from sourcelens.orchestrator.translation import (
    TranslationOptions,
    build_translation_prompt,
    is_modernization,
    language_name,
    translation_style,
)

LETTER = SourceMetadata(
    author="Jane Doe",
    date="1851",
    document_type="Letter",
    place_of_publication="Boston",
    language="fr",
)


@pytest.mark.parametrize(
    "value, start",
    [
        (0.0, "extremely literal"),
        (0.25, "extremely literal"),
        (0.5, "mostly literal"),
        (0.7, "balanced"),
        (1.0, "intensely experimental"),
    ],
)
def test_translation_style_thresholds(value, start):
    assert translation_style(value).startswith(start)


def test_language_names():
    assert language_name("fa") == "Farsi"
    assert language_name("xx") == "English"


def test_standard_translation_prompt():
    options = TranslationOptions(target_language="de", explanation_level="moderate")
    prompt = build_translation_prompt("Cher Monsieur,", LETTER, options)

    assert "translating the following Letter from 1851 by Jane Doe into German" in prompt
    assert "SOURCE TEXT TO TRANSLATE:\nCher Monsieur," in prompt
    assert "1. Use a mostly literal" in prompt
    assert "2. Preserve the original line breaks" in prompt
    assert "4. Add brief explanatory notes" in prompt
    assert "The cultural context includes Boston." in prompt
    assert "5. Only translate" not in prompt
    assert prompt.rstrip().endswith("Do not include the original text in your response.")


def test_english_source_to_english_is_modernization():
    english = SourceMetadata(author="Jane Doe", date="1851")
    options = TranslationOptions()
    assert is_modernization(options, english)
    assert not is_modernization(options, LETTER)
    assert "modern, accessible English" in build_translation_prompt("Thee", english, options)


def test_emoji_mode_skips_numbered_instructions():
    prompt = build_translation_prompt("Cher Monsieur,", LETTER, TranslationOptions(target_language="emoji"))
    assert "Use ONLY emojis and ASCII characters" in prompt
    assert "1. Use a " not in prompt
    assert "ADDITIONAL HISTORICAL CONTEXT" not in prompt


def test_partial_scope_and_continuation():
    scoped = build_translation_prompt(
        "Cher Monsieur,", LETTER, TranslationOptions(target_language="es", translation_scope="first paragraph")
    )
    assert "5. Only translate the following portion of the text: first paragraph" in scoped

    continued = build_translation_prompt(
        "suite du texte",
        LETTER,
        TranslationOptions(
            target_language="es",
            translation_scope="first paragraph",
            is_continuation=True,
            continuation_context="The previous part ended mid-sentence.",
        ),
    )
    assert "the continuation of the following Letter" in continued
    assert "IMPORTANT: This is a continuation of a previous translation." in continued
    assert "5. Only translate" not in continued
    assert "Begin your translation where the previous translation left off" in continued
