"""Translation prompts: target languages, style slider and special modes."""

from __future__ import annotations

from dataclasses import dataclass

from sourcelens.models.source import SourceMetadata

SUPPORTED_LANGUAGES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "zh": "Chinese",
    "ja": "Japanese",
    "ru": "Russian",
    "ar": "Arabic",
    "fa": "Farsi",
    "eme": "Early Modern English",
    "emoji": "Emoji/ASCII",
    "llmese": "LLMese",
}

SPECIAL_MODES = ("emoji", "llmese")

TRANSLATOR_SYSTEM_PROMPT = (
    "You are a world-class translator with expertise in historical documents, literary "
    "works, and technical texts. Provide accurate translations that respect the user's "
    "preferences regarding literal vs. poetic style, while maintaining the original "
    "meaning and cultural context."
)

EXPLANATION_NOTES = {
    "minimal": "4. Do not add explanatory notes or commentary.\n",
    "moderate": (
        "4. Add brief explanatory notes in [square brackets] for culturally-specific "
        "concepts or historical references that may be unclear to readers of the target "
        "language.\n"
    ),
    "extensive": (
        "4. Add detailed explanatory notes in [square brackets] for culturally-specific "
        "concepts, historical references, and important contextual information. Include "
        "brief etymological information for key terms when relevant.\n"
    ),
}


@dataclass
class TranslationOptions:
    target_language: str = "en"
    translation_scope: str = "all"
    explanation_level: str = "minimal"
    literal_to_poetic: float = 0.5
    preserve_line_breaks: bool = True
    include_alternatives: bool = False
    is_continuation: bool = False
    continuation_context: str = ""


def language_name(code: str) -> str:
    return SUPPORTED_LANGUAGES.get(code, "English")


def translation_style(literal_to_poetic: float) -> str:
    """Describe the approach for a 0 (literal) to 1 (poetic) slider value."""
    if literal_to_poetic <= 0.25:
        return (
            "extremely literal and precise, prioritizing word-for-word accuracy over "
            "fluency, with literal translations of all metaphors and figures of speech"
        )
    if literal_to_poetic <= 0.5:
        return "mostly literal while maintaining readability, staying close to the original text"
    if literal_to_poetic <= 0.75:
        return "balanced between accuracy and natural expression, with some literary qualities"
    return (
        "intensely experimental, capturing the spirit and emotional impact of the original "
        "even if it requires considerable creative leaps"
    )


def is_modernization(options: TranslationOptions, metadata: SourceMetadata) -> bool:
    """English to English means modernizing the text rather than translating it."""
    return options.target_language == "en" and metadata.language in ("", "en")


def build_translation_prompt(source: str, metadata: SourceMetadata, options: TranslationOptions) -> str:
    style = translation_style(options.literal_to_poetic)
    continuing = "the continuation of " if options.is_continuation else ""
    document = metadata.document_type or "text"
    date = metadata.date or "unknown date"
    by_author = f" by {metadata.author}" if metadata.author else ""
    subject = f"{continuing}the following {document} from {date}{by_author}"
    target = options.target_language

    if target == "emoji":
        prompt = f"""\
You are an expert at translating text into emoji and ASCII characters only. Your task is \
to translate {subject} into a sequence of emojis and ASCII characters that represent the \
core meaning.

SPECIAL INSTRUCTIONS:
1. Use ONLY emojis and ASCII characters. NO words or letters except as part of ASCII art.
2. Maintain paragraph structure with blank lines between emoji paragraphs.
3. For complex concepts, use sequences of emojis to convey meaning.
4. Use ASCII art where appropriate to enhance expression.
5. If something cannot be directly represented, find a creative alternative representation."""
    elif target == "llmese":
        prompt = f"""\
You are an expert at translating text into "LLMese", a form of language that makes \
perfect sense to AI language models but is incomprehensible to humans. Your task is to \
translate {subject} into LLMese.

SPECIAL INSTRUCTIONS:
1. Use technically correct grammar that is extremely difficult for humans to parse.
2. Use specialized terminology, abstract symbols, and complex recursive structures.
3. Include mathematical notation, specialized jargon, and invented technical terms.
4. Do NOT explain what you're doing; produce only the LLMese translation.
5. The text should have an internal logic and meaning that you understand perfectly."""
    elif is_modernization(options, metadata):
        prompt = f"""\
You are an expert at modernizing and simplifying historical or complex English text. \
Your task is to translate {subject} into modern, accessible English.

SPECIAL INSTRUCTIONS:
1. Simplify archaic or complex vocabulary and sentence structure while preserving core meaning.
2. Update obsolete expressions and references with modern equivalents.
3. Maintain the author's voice and intent as much as possible.
4. For historical texts, use a {style} approach."""
    else:
        prompt = (
            f"You are an expert translator tasked with translating {subject} "
            f"into {language_name(target)}."
        )

    if options.is_continuation and options.continuation_context:
        prompt += (
            "\n\nIMPORTANT: This is a continuation of a previous translation. "
            f"{options.continuation_context}\n\n"
        )

    prompt += f"\nSOURCE TEXT TO TRANSLATE:\n{source}\n\nTRANSLATION INSTRUCTIONS:"

    if target not in SPECIAL_MODES:
        line_breaks = (
            "Preserve the original line breaks and paragraph structure exactly."
            if options.preserve_line_breaks
            else "Format the text naturally in the target language, adjusting line breaks as needed."
        )
        alternatives = (
            "For ambiguous or difficult-to-translate terms, include alternative possible "
            "translations in [square brackets]."
            if options.include_alternatives
            else "Do not include alternative translations or notes within the translated text."
        )
        prompt += f"\n1. Use a {style} translation approach.\n2. {line_breaks}\n3. {alternatives}\n"
        prompt += EXPLANATION_NOTES.get(options.explanation_level, "")
        if options.translation_scope != "all" and not options.is_continuation:
            prompt += f"5. Only translate the following portion of the text: {options.translation_scope}\n"
        prompt += f"""
ADDITIONAL HISTORICAL CONTEXT:
- This translation is for scholarly research purposes.
- The original text is from {metadata.date or 'an unknown date'} and may contain archaic \
language or specialized terminology.
- The cultural context includes {metadata.place_of_publication or 'unknown location'}.
- The document type is {metadata.document_type or 'unknown'}.
- The subject matter relates to {metadata.genre or metadata.academic_subfield or 'unknown field'}.
"""

    if options.is_continuation:
        prompt += (
            "\nBegin your translation where the previous translation left off, maintaining "
            "consistency with the previous translated content.\n"
        )
    prompt += (
        "\nPlease provide only the translated text with no additional commentary outside of "
        "what was requested in the instructions. Do not include the original text in your "
        "response.\n"
    )
    return prompt
