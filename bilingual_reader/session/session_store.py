"""
Durable storage for reading sessions.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List

from ..config import Config
from ..errors import (
    InputError,
    ValidationError,
    StoreError,
    SessionNotFoundError,
    error_handler
)
from .session_models import (
    ReadingSession,
    SessionProgress,
    CardCompletionResult,
    generate_session_id
)
from .validation import validate_settings, validate_session_patch, validate_card_completion


logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(r'^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$')


class SessionStore(ABC):
    """Authoritative record of reading sessions."""

    @abstractmethod
    def create(self, total_cards: int, article_id: str,
               settings: Optional[Dict[str, Any]] = None) -> ReadingSession:
        """
        Create a new reading session.

        Args:
            total_cards: Number of sentence cards in the article
            article_id: Identifier of the processed article
            settings: Optional initial settings (autoPlayTTS, ttsSpeed, showTranslation)

        Returns:
            The newly created ReadingSession
        """
        pass

    @abstractmethod
    def fetch(self, session_id: str) -> ReadingSession:
        """Return the stored session or raise SessionNotFoundError."""
        pass

    @abstractmethod
    def patch(self, session_id: str, fields: Dict[str, Any]) -> ReadingSession:
        """Merge a validated partial update into a stored session."""
        pass

    @abstractmethod
    def record_card_completion(self, session_id: str, card_index: int, time_spent: float,
                               was_flipped: bool, audio_replay_count: int) -> CardCompletionResult:
        """Mark a card completed and record its telemetry."""
        pass

    @abstractmethod
    def list_sessions(self) -> List[ReadingSession]:
        """List all sessions, most recently active first."""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Delete a session. Returns False if it did not exist."""
        pass

    def find_active(self, article_id: str) -> Optional[ReadingSession]:
        """Return the most recently active unfinished session for an article."""
        for session in self.list_sessions():
            if session.article_id == article_id and not session.is_completed:
                return session
        return None


def apply_card_completion(session: ReadingSession, card_index: int, time_spent: float,
                          was_flipped: bool, audio_replay_count: int, now: datetime) -> None:
    """
    Apply a card completion to a session in place.

    Completed and flipped indices are sets, so repeating a completion never
    double counts. Time and replay values for the card are overwritten by
    the latest viewing.
    """
    session.completed_cards.add(card_index)
    if was_flipped:
        session.cards_flipped.add(card_index)
    session.audio_replays[card_index] = audio_replay_count
    session.time_per_card[card_index] = time_spent
    session.last_active_at = now

    if session.all_cards_completed():
        if session.completed_at is None:
            session.completed_at = now
    elif card_index + 1 < session.total_cards:
        session.current_card_index = card_index + 1
    else:
        session.current_card_index = card_index


class JsonSessionStore(SessionStore):
    """
    Stores each session as a JSON file, with an in-memory cache.

    Sessions handed out by the store are copies; changes only reach the
    store through patch() and record_card_completion().
    """

    def __init__(self, storage_dir: str = None):
        """
        Initialize the JsonSessionStore.

        Args:
            storage_dir: Directory path for storing session data. If None, defaults
                        to Config.SESSION_DIR. Path will be resolved to absolute.
        """
        if storage_dir is None:
            storage_dir = Config.SESSION_DIR
        self.storage_dir = Path(storage_dir).resolve()
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        # In-memory cache for loaded sessions
        self._sessions: Dict[str, ReadingSession] = {}

    def create(self, total_cards: int, article_id: str,
               settings: Optional[Dict[str, Any]] = None) -> ReadingSession:
        if not isinstance(total_cards, int) or total_cards <= 0:
            raise InputError(
                error_handler.handle_empty_article(article_id)
            )
        validated = validate_settings(settings or {})

        now = datetime.now()
        session = ReadingSession(
            session_id=generate_session_id(),
            article_id=article_id,
            total_cards=total_cards,
            started_at=now,
            last_active_at=now,
            **validated
        )

        self._save_session(session)
        self._sessions[session.session_id] = session
        logger.info(f"Created reading session {session.session_id} for article {article_id} ({total_cards} cards)")
        return session.copy()

    def fetch(self, session_id: str) -> ReadingSession:
        return self._get_session(session_id).copy()

    def patch(self, session_id: str, fields: Dict[str, Any]) -> ReadingSession:
        session = self._get_session(session_id)
        validated = validate_session_patch(fields)
        self._check_bounds(session, validated)

        updated = session.copy()
        for name in ('audio_replays', 'time_per_card'):
            if name in validated:
                getattr(updated, name).update(validated.pop(name))

        requested_completed_at = validated.pop('completed_at', None)
        for name, value in validated.items():
            setattr(updated, name, value)

        now = datetime.now()
        updated.last_active_at = now
        if updated.all_cards_completed():
            if updated.completed_at is None:
                updated.completed_at = requested_completed_at or now
        else:
            if requested_completed_at is not None:
                raise ValidationError(error_handler.handle_validation_error(
                    ["completed_at can only be set once every card is completed"],
                    context={'session_id': session_id}
                ))
            updated.completed_at = None

        self._save_session(updated)
        self._sessions[session_id] = updated
        logger.debug(f"Patched session {session_id}: {sorted(fields)}")
        return updated.copy()

    def record_card_completion(self, session_id: str, card_index: int, time_spent: float,
                               was_flipped: bool, audio_replay_count: int) -> CardCompletionResult:
        session = self._get_session(session_id)
        validate_card_completion(card_index, time_spent, was_flipped, audio_replay_count, session.total_cards)

        updated = session.copy()
        apply_card_completion(updated, card_index, time_spent, was_flipped, audio_replay_count, datetime.now())

        self._save_session(updated)
        self._sessions[session_id] = updated

        progress = SessionProgress.from_session(updated)
        logger.info(
            f"Session {session_id}: card {card_index} completed "
            f"({progress.completed_cards}/{progress.total_cards})"
        )
        return CardCompletionResult(
            session=updated.copy(),
            progress=progress,
            next_card_index=card_index + 1
        )

    def list_sessions(self) -> List[ReadingSession]:
        sessions = []
        for session_file in self.storage_dir.glob("session_*.json"):
            session_id = session_file.stem.replace("session_", "")
            try:
                sessions.append(self._get_session(session_id).copy())
            except SessionNotFoundError:
                logger.warning(f"Skipping unreadable session file: {session_file.name}")
        sessions.sort(key=lambda s: s.last_active_at, reverse=True)
        return sessions

    def delete(self, session_id: str) -> bool:
        if not UUID_PATTERN.match(session_id or ''):
            return False

        self._sessions.pop(session_id, None)
        session_file = self._get_session_file_path(session_id)
        if not session_file.exists():
            return False
        try:
            session_file.unlink()
        except OSError as e:
            raise StoreError(error_handler.handle_storage_error(e, "delete session", {'session_id': session_id}))
        logger.info(f"Deleted reading session {session_id}")
        return True

    def _check_bounds(self, session: ReadingSession, fields: Dict[str, Any]) -> None:
        """Reject card indices outside the session's card range."""
        errors = []
        limit = session.total_cards

        if fields.get('current_card_index', 0) >= limit:
            errors.append(f"current_card_index must be below {limit}")
        for name in ('completed_cards', 'cards_flipped'):
            if any(index >= limit for index in fields.get(name, ())):
                errors.append(f"{name} contains an index outside 0..{limit - 1}")
        for name in ('audio_replays', 'time_per_card'):
            if any(index >= limit for index in fields.get(name, {})):
                errors.append(f"{name} contains an index outside 0..{limit - 1}")

        if errors:
            raise ValidationError(error_handler.handle_validation_error(
                errors, context={'session_id': session.session_id}
            ))

    def _get_session(self, session_id: str) -> ReadingSession:
        """Return the cached session, loading it from disk if needed."""
        if session_id in self._sessions:
            return self._sessions[session_id]

        session = self._load_session(session_id)
        if session is None:
            raise SessionNotFoundError(error_handler.handle_not_found("Session", session_id))
        self._sessions[session_id] = session
        return session

    def _get_session_file_path(self, session_id: str) -> Path:
        """
        Get the file path for a session.

        Session ids are UUIDs; anything else is rejected so that an id can
        never point outside the storage directory.
        """
        if not UUID_PATTERN.match(session_id or ''):
            raise SessionNotFoundError(error_handler.handle_not_found("Session", str(session_id)))
        return self.storage_dir / f"session_{session_id}.json"

    def _save_session(self, session: ReadingSession) -> None:
        """Write a session to disk, replacing the previous file."""
        session_file = self._get_session_file_path(session.session_id)
        temp_file = session_file.with_suffix('.json.tmp')
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                f.write(session.to_json())
            os.replace(temp_file, session_file)
        except OSError as e:
            logger.error(f"Error saving session {session.session_id}: {e}")
            raise StoreError(error_handler.handle_storage_error(
                e, "save session", {'session_id': session.session_id}
            ))

    def _load_session(self, session_id: str) -> Optional[ReadingSession]:
        """Load a session from disk, or return None if it does not exist."""
        session_file = self._get_session_file_path(session_id)

        if not session_file.exists():
            return None

        try:
            with open(session_file, 'r', encoding='utf-8') as f:
                return ReadingSession.from_json(f.read())
        except OSError as e:
            raise StoreError(error_handler.handle_storage_error(e, "load session", {'session_id': session_id}))
        except (ValueError, KeyError) as e:
            logger.error(f"Corrupt session file {session_file.name}: {e}")
            return None
