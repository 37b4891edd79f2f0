"""
Alignment module for turning bilingual articles into sentence cards.
"""

from .sentence_splitter import (
    split_into_sentences,
    split_chinese_into_sentences,
    split_english_into_sentences
)
from .difficulty import calculate_difficulty, estimate_minutes, get_sentence_stats
from .validation import validate_sentence_cards, find_card_issues
from .aligner import SentenceAligner, align_article

__all__ = [
    'split_into_sentences',
    'split_chinese_into_sentences',
    'split_english_into_sentences',
    'calculate_difficulty',
    'estimate_minutes',
    'get_sentence_stats',
    'validate_sentence_cards',
    'find_card_issues',
    'SentenceAligner',
    'align_article'
]
