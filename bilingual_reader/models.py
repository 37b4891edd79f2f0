"""
Core data models for the Bilingual Reader.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional


class Difficulty(Enum):
    """Reading difficulty of a processed article."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class SentenceCard:
    """One aligned Chinese/English sentence pair shown to the learner."""
    chinese: str
    english: str
    card_index: int
    audio_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'chinese': self.chinese,
            'english': self.english,
            'cardIndex': self.card_index
        }
        if self.audio_url:
            data['audioUrl'] = self.audio_url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SentenceCard':
        """Create instance from dictionary."""
        return cls(
            chinese=data['chinese'],
            english=data['english'],
            card_index=int(data['cardIndex']),
            audio_url=data.get('audioUrl')
        )


@dataclass(frozen=True)
class ProcessedArticle:
    """Result of aligning an article into sentence cards."""
    sentences: List[SentenceCard] = field(default_factory=list)
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_minutes: int = 0

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'sentences': [card.to_dict() for card in self.sentences],
            'sentenceCount': self.sentence_count,
            'difficulty': self.difficulty.value,
            'estimatedMinutes': self.estimated_minutes
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessedArticle':
        """Create instance from dictionary."""
        return cls(
            sentences=[SentenceCard.from_dict(card) for card in data.get('sentences', [])],
            difficulty=Difficulty(data.get('difficulty', Difficulty.BEGINNER.value)),
            estimated_minutes=int(data.get('estimatedMinutes', 0))
        )


@dataclass(frozen=True)
class SentenceStats:
    """Summary statistics over a sequence of sentence cards."""
    total_sentences: int
    average_chinese_length: int
    average_english_length: int
    total_reading_time: int  # seconds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'totalSentences': self.total_sentences,
            'averageChineseLength': self.average_chinese_length,
            'averageEnglishLength': self.average_english_length,
            'totalReadingTime': self.total_reading_time
        }
