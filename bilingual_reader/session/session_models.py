"""
Data models for reading sessions.
"""

import copy
import json
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, Optional, Set

from ..config import Config


@dataclass
class SessionSettings:
    """User settings that can change at any point of a session."""
    auto_play_tts: bool = Config.DEFAULT_AUTO_PLAY_TTS
    tts_speed: float = Config.DEFAULT_TTS_SPEED
    show_translation: bool = Config.DEFAULT_SHOW_TRANSLATION

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'autoPlayTTS': self.auto_play_tts,
            'ttsSpeed': self.tts_speed,
            'showTranslation': self.show_translation
        }


@dataclass
class SessionProgress:
    """Completion summary for a reading session."""
    completed_cards: int
    total_cards: int
    percentage: int
    cards_flipped: int
    is_completed: bool

    @classmethod
    def from_session(cls, session: 'ReadingSession') -> 'SessionProgress':
        completed = len(session.completed_cards)
        if session.total_cards > 0:
            percentage = int(math.floor(completed * 100 / session.total_cards + 0.5))
        else:
            percentage = 0
        return cls(
            completed_cards=completed,
            total_cards=session.total_cards,
            percentage=percentage,
            cards_flipped=len(session.cards_flipped),
            is_completed=session.completed_at is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'completedCards': self.completed_cards,
            'totalCards': self.total_cards,
            'percentage': self.percentage,
            'cardsFlipped': self.cards_flipped,
            'isCompleted': self.is_completed
        }


@dataclass
class ReadingSession:
    """One learner's pass through the sentence cards of an article."""
    session_id: str
    article_id: str
    total_cards: int
    current_card_index: int = 0
    completed_cards: Set[int] = field(default_factory=set)
    cards_flipped: Set[int] = field(default_factory=set)
    audio_replays: Dict[int, int] = field(default_factory=dict)
    time_per_card: Dict[int, float] = field(default_factory=dict)
    auto_play_tts: bool = Config.DEFAULT_AUTO_PLAY_TTS
    tts_speed: float = Config.DEFAULT_TTS_SPEED
    show_translation: bool = Config.DEFAULT_SHOW_TRANSLATION
    started_at: datetime = field(default_factory=datetime.now)
    last_active_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def settings(self) -> SessionSettings:
        return SessionSettings(
            auto_play_tts=self.auto_play_tts,
            tts_speed=self.tts_speed,
            show_translation=self.show_translation
        )

    @property
    def progress(self) -> SessionProgress:
        return SessionProgress.from_session(self)

    def all_cards_completed(self) -> bool:
        """Check whether every card index has been completed."""
        return len(self.completed_cards) == self.total_cards

    def copy(self) -> 'ReadingSession':
        """Return an independent copy of this session."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.session_id,
            'articleId': self.article_id,
            'totalCards': self.total_cards,
            'currentCardIndex': self.current_card_index,
            'completedCards': sorted(self.completed_cards),
            'cardsFlipped': sorted(self.cards_flipped),
            'audioReplays': {str(index): count for index, count in sorted(self.audio_replays.items())},
            'timePerCard': {str(index): seconds for index, seconds in sorted(self.time_per_card.items())},
            'autoPlayTTS': self.auto_play_tts,
            'ttsSpeed': self.tts_speed,
            'showTranslation': self.show_translation,
            'startedAt': self.started_at.isoformat(),
            'lastActiveAt': self.last_active_at.isoformat(),
            'completedAt': self.completed_at.isoformat() if self.completed_at else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReadingSession':
        """Create instance from dictionary."""
        completed_at = data.get('completedAt')
        return cls(
            session_id=data['id'],
            article_id=data['articleId'],
            total_cards=int(data['totalCards']),
            current_card_index=int(data.get('currentCardIndex', 0)),
            completed_cards=set(int(index) for index in data.get('completedCards', [])),
            cards_flipped=set(int(index) for index in data.get('cardsFlipped', [])),
            audio_replays={int(index): int(count) for index, count in (data.get('audioReplays') or {}).items()},
            time_per_card={int(index): seconds for index, seconds in (data.get('timePerCard') or {}).items()},
            auto_play_tts=data.get('autoPlayTTS', Config.DEFAULT_AUTO_PLAY_TTS),
            tts_speed=float(data.get('ttsSpeed', Config.DEFAULT_TTS_SPEED)),
            show_translation=data.get('showTranslation', Config.DEFAULT_SHOW_TRANSLATION),
            started_at=datetime.fromisoformat(data['startedAt']),
            last_active_at=datetime.fromisoformat(data['lastActiveAt']),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None
        )

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> 'ReadingSession':
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class CardCompletionResult:
    """Store response to a card completion."""
    session: ReadingSession
    progress: SessionProgress
    next_card_index: int

    @property
    def is_completed(self) -> bool:
        return self.progress.is_completed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'session': self.session.to_dict(),
            'progress': self.progress.to_dict(),
            'nextCardIndex': self.next_card_index,
            'isCompleted': self.is_completed
        }


def generate_session_id() -> str:
    """
    Generate a unique session ID.

    Returns:
        A unique session identifier string
    """
    return str(uuid.uuid4())
