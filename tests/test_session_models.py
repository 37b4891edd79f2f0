"""
Tests for reading session data models.
"""

import json
from datetime import datetime

from bilingual_reader.session.session_models import (
    ReadingSession,
    SessionProgress,
    CardCompletionResult,
    generate_session_id
)
from bilingual_reader.session.session_store import apply_card_completion


def make_session(total_cards=4, **fields):
    return ReadingSession(
        session_id=generate_session_id(),
        article_id="article-1",
        total_cards=total_cards,
        started_at=datetime(2024, 1, 1, 9, 0, 0),
        last_active_at=datetime(2024, 1, 1, 9, 5, 0),
        **fields
    )


class TestReadingSession:
    """Test ReadingSession defaults and serialization."""

    def test_defaults(self):
        session = make_session()

        assert session.current_card_index == 0
        assert session.completed_cards == set()
        assert session.auto_play_tts is True
        assert session.tts_speed == 1.0
        assert session.show_translation is False
        assert not session.is_completed

    def test_to_dict_uses_json_field_names(self):
        session = make_session(
            completed_cards={2, 0},
            cards_flipped={2},
            audio_replays={0: 1, 2: 3},
            time_per_card={0: 4, 2: 9}
        )
        data = session.to_dict()

        assert data['id'] == session.session_id
        assert data['articleId'] == "article-1"
        assert data['completedCards'] == [0, 2]
        assert data['cardsFlipped'] == [2]
        assert data['audioReplays'] == {'0': 1, '2': 3}
        assert data['timePerCard'] == {'0': 4, '2': 9}
        assert data['startedAt'] == "2024-01-01T09:00:00"
        assert data['completedAt'] is None

    def test_json_round_trip_preserves_sets_and_maps(self):
        session = make_session(completed_cards={1}, audio_replays={1: 2}, tts_speed=1.5)
        restored = ReadingSession.from_json(session.to_json())

        assert restored == session
        assert isinstance(restored.completed_cards, set)
        assert list(restored.audio_replays) == [1]

    def test_to_json_keeps_unicode(self):
        session = make_session()
        session.article_id = "文章"
        assert "文章" in session.to_json()
        assert json.loads(session.to_json())['articleId'] == "文章"

    def test_copy_is_independent(self):
        session = make_session()
        copied = session.copy()
        copied.completed_cards.add(1)
        copied.audio_replays[1] = 5

        assert session.completed_cards == set()
        assert session.audio_replays == {}


class TestSessionProgress:
    """Test progress calculation."""

    def test_percentage_rounds_half_up(self):
        session = make_session(total_cards=8, completed_cards={0})
        # 12.5% rounds to 13
        assert session.progress.percentage == 13

    def test_percentage_one_third(self):
        session = make_session(total_cards=3, completed_cards={0})
        assert session.progress.percentage == 33

    def test_progress_to_dict(self):
        session = make_session(total_cards=4, completed_cards={0, 1}, cards_flipped={1})
        assert session.progress.to_dict() == {
            'completedCards': 2,
            'totalCards': 4,
            'percentage': 50,
            'cardsFlipped': 1,
            'isCompleted': False
        }

    def test_zero_cards_is_zero_percent(self):
        session = make_session(total_cards=0)
        assert SessionProgress.from_session(session).percentage == 0


class TestApplyCardCompletion:
    """Test the shared card completion rules."""

    def test_advances_to_next_card(self):
        session = make_session(total_cards=3)
        apply_card_completion(session, 0, 5, True, 2, datetime(2024, 1, 1, 10))

        assert session.completed_cards == {0}
        assert session.cards_flipped == {0}
        assert session.audio_replays == {0: 2}
        assert session.time_per_card == {0: 5}
        assert session.current_card_index == 1
        assert session.last_active_at == datetime(2024, 1, 1, 10)

    def test_repeat_does_not_double_count(self):
        session = make_session(total_cards=3)
        apply_card_completion(session, 0, 5, True, 2, datetime.now())
        apply_card_completion(session, 0, 7, False, 0, datetime.now())

        assert session.completed_cards == {0}
        assert session.cards_flipped == {0}
        # Latest viewing wins
        assert session.audio_replays == {0: 0}
        assert session.time_per_card == {0: 7}

    def test_last_card_with_gap_stays_on_last_card(self):
        session = make_session(total_cards=3, current_card_index=2)
        apply_card_completion(session, 2, 1, False, 0, datetime.now())

        assert session.current_card_index == 2
        assert not session.is_completed

    def test_completing_every_card_completes_session(self):
        session = make_session(total_cards=2)
        now = datetime(2024, 1, 1, 11)
        apply_card_completion(session, 0, 1, False, 0, now)
        apply_card_completion(session, 1, 1, False, 0, now)

        assert session.is_completed
        assert session.completed_at == now


class TestCardCompletionResult:
    """Test the store's completion response."""

    def test_to_dict(self):
        session = make_session(total_cards=1, completed_cards={0}, completed_at=datetime(2024, 1, 2))
        result = CardCompletionResult(session=session, progress=session.progress, next_card_index=1)

        data = result.to_dict()
        assert data['nextCardIndex'] == 1
        assert data['isCompleted'] is True
        assert data['progress']['percentage'] == 100
        assert data['session']['completedAt'] == "2024-01-02T00:00:00"
