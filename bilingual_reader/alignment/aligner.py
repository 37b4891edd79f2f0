"""
Positional alignment of Chinese and English article text into sentence cards.
"""

import logging
from typing import List, Sequence

from ..models import SentenceCard, ProcessedArticle
from .sentence_splitter import split_chinese_into_sentences, split_english_into_sentences
from .difficulty import calculate_difficulty, estimate_minutes


class SentenceAligner:
    """
    Turns two parallel documents into one ordered card sequence.

    Sentences are paired by position only. When one side has more sentences
    than the other, the surplus is dropped.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def align(
        self,
        source_paragraphs: Sequence[str],
        target_paragraphs: Sequence[str]
    ) -> ProcessedArticle:
        """
        Align an article into sentence cards.

        Args:
            source_paragraphs: Chinese paragraphs in document order
            target_paragraphs: English paragraphs in document order

        Returns:
            ProcessedArticle with cards, difficulty and estimated minutes.
            An article with no pairable sentences yields zero cards.
        """
        chinese_sentences = split_chinese_into_sentences('\n'.join(source_paragraphs))
        english_sentences = split_english_into_sentences('\n'.join(target_paragraphs))

        if len(chinese_sentences) != len(english_sentences):
            self.logger.warning(
                f"Sentence count mismatch: {len(chinese_sentences)} Chinese vs "
                f"{len(english_sentences)} English, surplus sentences dropped"
            )

        sentences = self.pair_sentences(chinese_sentences, english_sentences)
        if not sentences:
            self.logger.warning("Alignment produced no sentence cards")

        processed = ProcessedArticle(
            sentences=sentences,
            difficulty=calculate_difficulty(sentences),
            estimated_minutes=estimate_minutes(len(sentences))
        )

        self.logger.info(
            f"Aligned {processed.sentence_count} sentence cards "
            f"({processed.difficulty.value}, ~{processed.estimated_minutes} min)"
        )
        return processed

    @staticmethod
    def pair_sentences(chinese_sentences: List[str], english_sentences: List[str]) -> List[SentenceCard]:
        """Pair sentences by position, up to the shorter of the two lists."""
        return [
            SentenceCard(chinese=chinese, english=english, card_index=index)
            for index, (chinese, english) in enumerate(zip(chinese_sentences, english_sentences))
        ]


def align_article(source_paragraphs: Sequence[str], target_paragraphs: Sequence[str]) -> ProcessedArticle:
    """Align an article with a default SentenceAligner."""
    return SentenceAligner().align(source_paragraphs, target_paragraphs)
