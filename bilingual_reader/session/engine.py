"""
Reading session state machine.

A SessionEngine owns the working copy of one reading session. Every
transition is applied to the working copy first and then written to the
session store. When a write fails the local state is kept, the write stays
queued, and SyncError is raised so the caller can retry or reload.
"""

import logging
import math
import time
from collections import deque
from datetime import datetime
from functools import partial
from typing import Any, Callable, Deque, Dict, Optional, Tuple

from ..errors import (
    InputError,
    StateError,
    StoreError,
    SyncError,
    ValidationError,
    error_handler
)
from ..models import ProcessedArticle, SentenceCard
from .audio import AudioPlayer, NullAudioPlayer
from .session_models import ReadingSession, SessionProgress, SessionSettings
from .session_store import SessionStore, apply_card_completion
from .validation import validate_settings, SETTING_FIELDS


logger = logging.getLogger(__name__)

WIRE_SETTING_NAMES = {attribute: wire for wire, attribute in SETTING_FIELDS.items()}


class SessionEngine:
    """
    Drives a learner through the sentence cards of one article.

    The engine is either active on a card (with a per-viewing flipped flag,
    timer and replay counter) or completed. Completed is terminal and is
    reached only when every card index has been completed.

    One driving context owns an engine; transitions are not thread-safe.
    """

    def __init__(
        self,
        session: ReadingSession,
        article: ProcessedArticle,
        store: SessionStore,
        audio_player: Optional[AudioPlayer] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Wrap an existing session.

        Args:
            session: Session record fetched from or created by the store
            article: Processed article the session reads through
            store: Session store that receives every state change
            audio_player: Text-to-speech player. Defaults to NullAudioPlayer
            clock: Monotonic seconds source used to time each card viewing
        """
        if article.sentence_count == 0:
            raise InputError(error_handler.handle_empty_article(session.article_id))
        if article.sentence_count != session.total_cards:
            raise InputError(error_handler.handle_article_mismatch(
                session.total_cards,
                article.sentence_count,
                context={
                    'session_id': session.session_id,
                    'total_cards': session.total_cards,
                    'sentence_count': article.sentence_count
                }
            ))

        self._session = session.copy()
        self._article = article
        self._store = store
        self._player = audio_player or NullAudioPlayer()
        self._clock = clock
        self._pending: Deque[Tuple[Callable[[], Any], str]] = deque()
        self.last_sync_result: Any = None

        if not self._session.is_completed and self._session.current_card_index >= session.total_cards:
            self._session.current_card_index = session.total_cards - 1

        self._reset_card_state()
        self._autoplay()

    @classmethod
    def start(
        cls,
        store: SessionStore,
        article: ProcessedArticle,
        article_id: str,
        settings: Optional[Dict[str, Any]] = None,
        resume_existing: bool = True,
        **engine_options
    ) -> 'SessionEngine':
        """
        Start reading an article, resuming its unfinished session if one exists.

        `settings` apply to a newly created session only; a resumed session
        keeps its stored settings. They are validated either way.

        Raises:
            InputError: If the article has no sentence cards
            ValidationError: If the initial settings are invalid
        """
        if article.sentence_count == 0:
            error = error_handler.handle_empty_article(article_id)
            error_handler.add_error(error)
            raise InputError(error)

        if settings is not None:
            validate_settings(settings)

        session = store.find_active(article_id) if resume_existing else None
        if session is not None and session.total_cards != article.sentence_count:
            logger.warning(
                f"Session {session.session_id} has {session.total_cards} cards but article "
                f"{article_id} now has {article.sentence_count}, starting a new session"
            )
            session = None

        if session is None:
            session = store.create(article.sentence_count, article_id, settings)
        else:
            logger.info(f"Resuming session {session.session_id} at card {session.current_card_index}")

        return cls(session, article, store, **engine_options)

    @classmethod
    def resume(cls, store: SessionStore, session_id: str, article: ProcessedArticle,
               **engine_options) -> 'SessionEngine':
        """Load a stored session and continue where it left off."""
        return cls(store.fetch(session_id), article, store, **engine_options)

    # Read-only view

    @property
    def session(self) -> ReadingSession:
        return self._session.copy()

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def article(self) -> ProcessedArticle:
        return self._article

    @property
    def is_completed(self) -> bool:
        return self._session.is_completed

    @property
    def current_card_index(self) -> Optional[int]:
        if self.is_completed:
            return None
        return self._session.current_card_index

    @property
    def current_card(self) -> Optional[SentenceCard]:
        if self.is_completed:
            return None
        return self._article.sentences[self._session.current_card_index]

    @property
    def is_flipped(self) -> bool:
        return self._flipped

    @property
    def audio_replay_count(self) -> int:
        return self._replay_count

    @property
    def has_next_card(self) -> bool:
        return not self.is_completed and self._session.current_card_index < self._session.total_cards - 1

    @property
    def has_previous_card(self) -> bool:
        return not self.is_completed and self._session.current_card_index > 0

    @property
    def progress(self) -> SessionProgress:
        return self._session.progress

    @property
    def settings(self) -> SessionSettings:
        return self._session.settings

    @property
    def has_pending_sync(self) -> bool:
        return bool(self._pending)

    def view(self) -> Dict[str, Any]:
        """Snapshot of everything a driving context needs to render."""
        card = self.current_card
        return {
            'sessionId': self.session_id,
            'currentCard': card.to_dict() if card else None,
            'currentCardIndex': self.current_card_index,
            'isFlipped': self._flipped,
            'hasNextCard': self.has_next_card,
            'hasPreviousCard': self.has_previous_card,
            'isCompleted': self.is_completed,
            'progress': self.progress.to_dict(),
            'settings': self.settings.to_dict(),
            'hasPendingSync': self.has_pending_sync
        }

    # Transitions

    def flip(self) -> None:
        """Reveal the translation of the current card."""
        self._require_active("flip card")
        self._flipped = True
        self._session.last_active_at = datetime.now()

    def track_audio_replay(self) -> None:
        """Count one audio replay for the current viewing."""
        self._require_active("track audio replay")
        self._replay_count += 1

    def play_current_card(self) -> bool:
        """Play the current card's sentence and count it as a replay."""
        self._require_active("play audio")
        self.track_audio_replay()
        return self._play(self.current_card)

    def complete_card(self) -> SessionProgress:
        """
        Mark the current card completed and move to the next card.

        Records the viewing's elapsed time, flip flag and replay count for the
        card, replacing values from any earlier viewing. Completing the last
        outstanding card completes the session.

        Returns:
            Progress after the completion

        Raises:
            StateError: If the session is already completed
            SyncError: If the store write failed. Local state has still advanced
        """
        self._require_active("complete card")

        card_index = self._session.current_card_index
        time_spent = self._elapsed_seconds()
        was_flipped = self._flipped
        replays = self._replay_count

        apply_card_completion(self._session, card_index, time_spent, was_flipped, replays, datetime.now())

        if self.is_completed:
            logger.info(f"Session {self.session_id} completed")
        else:
            self._reset_card_state()
            self._autoplay()

        self._sync(
            partial(self._store.record_card_completion,
                    self.session_id, card_index, time_spent, was_flipped, replays),
            f"complete card {card_index}"
        )
        return self.progress

    def previous_card(self) -> None:
        """
        Go back one card.

        Completed cards stay completed, and nothing is written to the store.

        Raises:
            StateError: On the first card or when the session is completed
        """
        self._require_active("go to previous card")
        if self._session.current_card_index == 0:
            raise StateError(error_handler.handle_state_error(
                "Already at the first card",
                "previous card is not available at card 0",
                context={'session_id': self.session_id}
            ))

        self._session.current_card_index -= 1
        self._session.last_active_at = datetime.now()
        self._reset_card_state()
        self._autoplay()

    def update_settings(self, settings: Dict[str, Any]) -> SessionSettings:
        """
        Merge new settings into the session.

        Args:
            settings: Any subset of autoPlayTTS, ttsSpeed and showTranslation

        Raises:
            ValidationError: If the settings are invalid. Nothing is changed
            SyncError: If the store write failed
        """
        validated = validate_settings(settings)
        if not validated:
            return self.settings

        for name, value in validated.items():
            setattr(self._session, name, value)
        self._session.last_active_at = datetime.now()

        wire_settings = {WIRE_SETTING_NAMES[name]: value for name, value in validated.items()}
        self._sync(partial(self._store.patch, self.session_id, wire_settings), "update settings")
        return self.settings

    def exit(self) -> None:
        """
        Save the current viewing's time and replay count without completing
        the card, so the session can be resumed later.
        """
        self._require_active("exit session")

        card_index = self._session.current_card_index
        time_spent = self._elapsed_seconds()
        replays = self._replay_count

        self._session.time_per_card[card_index] = time_spent
        self._session.audio_replays[card_index] = replays
        self._session.last_active_at = datetime.now()

        self._sync(
            partial(self._store.patch, self.session_id, {
                'currentCardIndex': card_index,
                'timePerCard': {str(card_index): time_spent},
                'audioReplays': {str(card_index): replays}
            }),
            f"save progress at card {card_index}"
        )
        logger.info(f"Session {self.session_id} saved at card {card_index}")

    def retry_sync(self) -> Any:
        """
        Write queued changes to the store in order.

        Returns:
            Result of the last successful write, or None if nothing was queued

        Raises:
            SyncError: If a write fails. It and later writes stay queued
        """
        result = None
        while self._pending:
            operation, description = self._pending[0]
            try:
                result = operation()
            except (InputError, StateError, ValidationError):
                self._pending.popleft()
                raise
            except (StoreError, OSError, ConnectionError, TimeoutError) as e:
                error = error_handler.handle_sync_error(e, description, context={'session_id': self.session_id})
                error_handler.add_error(error)
                raise SyncError(error) from e
            self._pending.popleft()
            self.last_sync_result = result
        return result

    def reload(self) -> None:
        """Discard unsaved local changes and reload the session from the store."""
        session = self._store.fetch(self.session_id)
        dropped = len(self._pending)
        self._pending.clear()
        if dropped:
            logger.warning(f"Discarded {dropped} unsaved change(s) for session {self.session_id}")

        self._session = session
        if not session.is_completed and session.current_card_index >= session.total_cards:
            self._session.current_card_index = session.total_cards - 1
        self._reset_card_state()

    # Internals

    def _sync(self, operation: Callable[[], Any], description: str) -> None:
        self._pending.append((operation, description))
        self.retry_sync()

    def _require_active(self, action: str) -> None:
        if self.is_completed:
            raise StateError(error_handler.handle_state_error(
                "Reading session is already completed",
                f"cannot {action} after the session is completed",
                context={'session_id': self.session_id}
            ))

    def _reset_card_state(self) -> None:
        self._flipped = False
        self._replay_count = 0
        self._card_started = self._clock()

    def _elapsed_seconds(self) -> int:
        elapsed = max(0.0, self._clock() - self._card_started)
        return int(math.floor(elapsed + 0.5))

    def _autoplay(self) -> None:
        if self._session.auto_play_tts and not self.is_completed:
            self._play(self.current_card)

    def _play(self, card: SentenceCard) -> bool:
        """Hand a sentence to the audio player. Playback failures never stop a transition."""
        try:
            played = self._player.play(card.chinese, self._session.tts_speed)
        except Exception as e:
            logger.warning(f"Audio playback failed for card {card.card_index}: {e}")
            return False
        if not played:
            logger.warning(f"Audio playback failed for card {card.card_index}")
        return bool(played)
