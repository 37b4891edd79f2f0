"""
Punctuation-based sentence splitting for Chinese and English text.
"""

import re
from typing import List

from ..config import Config


def split_into_sentences(text: str, boundary_characters: str) -> List[str]:
    """
    Split text into sentences on any of the given boundary characters.

    Segments are trimmed and empty segments are dropped, so consecutive or
    trailing boundary characters never produce empty sentences.

    Args:
        text: Text to split
        boundary_characters: Characters that end a sentence

    Returns:
        List of non-empty, trimmed sentences in document order

    Examples:
        >>> split_into_sentences("A。B！C？", "。！？；")
        ['A', 'B', 'C']

        >>> split_into_sentences("One. Two!! ", ".!?;")
        ['One', 'Two']
    """
    if not text:
        return []
    if not boundary_characters:
        stripped = text.strip()
        return [stripped] if stripped else []

    pattern = '[' + re.escape(boundary_characters) + ']'
    return [segment.strip() for segment in re.split(pattern, text) if segment.strip()]


def split_chinese_into_sentences(text: str) -> List[str]:
    """Split Chinese text on 。！？；"""
    return split_into_sentences(text, Config.CHINESE_SENTENCE_BOUNDARIES)


def split_english_into_sentences(text: str) -> List[str]:
    """Split English text on . ! ? ;"""
    return split_into_sentences(text, Config.ENGLISH_SENTENCE_BOUNDARIES)
