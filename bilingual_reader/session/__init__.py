"""Reading sessions: models, storage and the session state machine."""

from .session_models import (
    ReadingSession,
    SessionSettings,
    SessionProgress,
    CardCompletionResult,
    generate_session_id
)
from .session_store import SessionStore, JsonSessionStore, apply_card_completion
from .article_store import ArticleStore
from .audio import AudioPlayer, NullAudioPlayer
from .engine import SessionEngine

__all__ = [
    'ReadingSession',
    'SessionSettings',
    'SessionProgress',
    'CardCompletionResult',
    'generate_session_id',
    'SessionStore',
    'JsonSessionStore',
    'apply_card_completion',
    'ArticleStore',
    'AudioPlayer',
    'NullAudioPlayer',
    'SessionEngine'
]
