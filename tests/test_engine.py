"""
Tests for the reading session state machine.
"""

import shutil
import tempfile

import pytest
from hypothesis import given, strategies as st

from bilingual_reader.errors import InputError, StateError, SyncError, ValidationError, error_handler
from bilingual_reader.models import ProcessedArticle, SentenceCard
from bilingual_reader.session.engine import SessionEngine
from bilingual_reader.session.session_store import JsonSessionStore


@pytest.fixture
def engine(session_store, three_card_article, clock, audio_player):
    """Provide an engine on a fresh three-card session."""
    return SessionEngine.start(session_store, three_card_article, "article-1",
                               audio_player=audio_player, clock=clock)


class TestStart:
    """Test starting and resuming sessions."""

    def test_start_creates_session(self, engine, session_store):
        assert engine.current_card_index == 0
        assert engine.current_card.card_index == 0
        assert not engine.is_flipped
        assert not engine.is_completed
        assert session_store.fetch(engine.session_id).total_cards == 3

    def test_start_plays_first_card(self, engine, audio_player, three_card_article):
        assert audio_player.played == [(three_card_article.sentences[0].chinese, 1.0)]

    def test_start_without_autoplay(self, session_store, three_card_article, audio_player):
        SessionEngine.start(session_store, three_card_article, "article-1",
                            settings={'autoPlayTTS': False}, audio_player=audio_player)
        assert audio_player.played == []

    def test_start_rejects_empty_article(self, session_store):
        with pytest.raises(InputError) as exc_info:
            SessionEngine.start(session_store, ProcessedArticle(), "article-1")

        assert exc_info.value.error_code == "INPUT_001"
        assert session_store.list_sessions() == []

    def test_start_resumes_active_session(self, engine, session_store, three_card_article, clock):
        engine.complete_card()

        resumed = SessionEngine.start(session_store, three_card_article, "article-1", clock=clock)

        assert resumed.session_id == engine.session_id
        assert resumed.current_card_index == 1
        assert len(session_store.list_sessions()) == 1

    def test_start_new_session_when_card_count_changed(self, engine, session_store, article_factory):
        started = SessionEngine.start(session_store, article_factory(5), "article-1")

        assert started.session_id != engine.session_id
        assert started.progress.total_cards == 5

    def test_resume_keeps_stored_settings(self, engine, session_store, three_card_article):
        resumed = SessionEngine.start(session_store, three_card_article, "article-1",
                                      settings={'ttsSpeed': 2.0})

        assert resumed.session_id == engine.session_id
        assert resumed.settings.tts_speed == 1.0

    def test_start_validates_settings_when_resuming(self, engine, session_store, three_card_article):
        with pytest.raises(ValidationError):
            SessionEngine.start(session_store, three_card_article, "article-1",
                                settings={'ttsSpeed': 9})

        assert len(session_store.list_sessions()) == 1

    def test_start_without_resume(self, engine, session_store, three_card_article):
        started = SessionEngine.start(session_store, three_card_article, "article-1", resume_existing=False)
        assert started.session_id != engine.session_id

    def test_resume_by_id(self, engine, session_store, three_card_article):
        resumed = SessionEngine.resume(session_store, engine.session_id, three_card_article)
        assert resumed.session_id == engine.session_id

    def test_mismatched_article_is_rejected(self, engine, session_store, article_factory):
        with pytest.raises(InputError) as exc_info:
            SessionEngine.resume(session_store, engine.session_id, article_factory(2))
        assert exc_info.value.error_code == "INPUT_003"


class TestTransitions:
    """Test individual transitions."""

    def test_flip(self, engine):
        engine.flip()
        engine.flip()
        assert engine.is_flipped

    def test_complete_card_advances_and_resets(self, engine, clock, session_store):
        engine.flip()
        engine.track_audio_replay()
        clock.advance(5)

        progress = engine.complete_card()

        assert engine.current_card_index == 1
        assert not engine.is_flipped
        assert engine.audio_replay_count == 0
        assert progress.completed_cards == 1
        assert progress.percentage == 33

        stored = session_store.fetch(engine.session_id)
        assert stored.completed_cards == {0}
        assert stored.cards_flipped == {0}
        assert stored.audio_replays == {0: 1}
        assert stored.time_per_card == {0: 5}
        assert engine.last_sync_result.next_card_index == 1

    def test_elapsed_time_rounds_to_whole_seconds(self, engine, clock):
        clock.advance(4.6)
        engine.complete_card()
        assert engine.session.time_per_card == {0: 5}

    def test_previous_at_first_card_raises(self, engine):
        with pytest.raises(StateError):
            engine.previous_card()
        assert engine.current_card_index == 0

    def test_previous_card_keeps_completion(self, failing_store, three_card_article):
        engine = SessionEngine.start(failing_store, three_card_article, "article-1")
        engine.complete_card()
        calls = list(failing_store.calls)

        engine.previous_card()

        assert engine.current_card_index == 0
        assert engine.progress.completed_cards == 1
        assert failing_store.calls == calls

    def test_recompleting_card_does_not_double_count(self, engine, clock, session_store):
        engine.flip()
        engine.complete_card()
        engine.previous_card()
        clock.advance(3)
        engine.complete_card()

        stored = session_store.fetch(engine.session_id)
        assert stored.completed_cards == {0}
        assert stored.cards_flipped == {0}
        assert stored.time_per_card == {0: 3}
        assert engine.progress.completed_cards == 1

    def test_last_card_with_gaps_stays_put(self, session_store, three_card_article):
        session = session_store.create(3, "article-1")
        session_store.patch(session.session_id, {'currentCardIndex': 2})
        engine = SessionEngine.resume(session_store, session.session_id, three_card_article)

        assert not engine.has_next_card
        engine.complete_card()

        assert not engine.is_completed
        assert engine.current_card_index == 2
        assert engine.progress.completed_cards == 1

    def test_play_current_card_counts_replay(self, engine, audio_player, three_card_article):
        engine.update_settings({'ttsSpeed': 1.5})
        assert engine.play_current_card() is True

        assert engine.audio_replay_count == 1
        assert audio_player.played[-1] == (three_card_article.sentences[0].chinese, 1.5)

    def test_autoplay_on_each_new_card(self, engine, audio_player):
        engine.complete_card()
        engine.previous_card()

        assert len(audio_player.played) == 3

    def test_audio_failure_does_not_block(self, session_store, three_card_article, audio_player):
        audio_player.result = False
        engine = SessionEngine.start(session_store, three_card_article, "article-1", audio_player=audio_player)

        assert engine.play_current_card() is False
        engine.complete_card()
        assert engine.current_card_index == 1

    def test_audio_exception_does_not_block(self, session_store, three_card_article):
        class BrokenPlayer:
            def play(self, text, speed):
                raise RuntimeError("no speaker")

        engine = SessionEngine.start(session_store, three_card_article, "article-1", audio_player=BrokenPlayer())
        engine.complete_card()
        assert engine.current_card_index == 1

    def test_view(self, engine):
        view = engine.view()

        assert view['currentCardIndex'] == 0
        assert view['currentCard']['cardIndex'] == 0
        assert view['hasNextCard'] is True
        assert view['hasPreviousCard'] is False
        assert view['isCompleted'] is False
        assert view['progress']['totalCards'] == 3
        assert view['settings'] == {'autoPlayTTS': True, 'ttsSpeed': 1.0, 'showTranslation': False}
        assert view['hasPendingSync'] is False


class TestSettings:
    """Test settings updates."""

    def test_speed_upper_bound(self, engine, session_store):
        with pytest.raises(ValidationError):
            engine.update_settings({'ttsSpeed': 4.01})
        assert engine.settings.tts_speed == 1.0
        assert session_store.fetch(engine.session_id).tts_speed == 1.0

        engine.update_settings({'ttsSpeed': 4.0})
        assert engine.settings.tts_speed == 4.0
        assert session_store.fetch(engine.session_id).tts_speed == 4.0

    def test_speed_lower_bound(self, engine):
        with pytest.raises(ValidationError):
            engine.update_settings({'ttsSpeed': 0.24})
        assert engine.update_settings({'ttsSpeed': 0.25}).tts_speed == 0.25

    def test_invalid_update_changes_nothing(self, engine, session_store):
        with pytest.raises(ValidationError):
            engine.update_settings({'showTranslation': True, 'ttsSpeed': 'fast'})

        assert engine.settings.show_translation is False
        assert session_store.fetch(engine.session_id).show_translation is False

    def test_speed_too_large_for_float_is_rejected(self, engine, session_store):
        with pytest.raises(ValidationError):
            engine.update_settings({'ttsSpeed': 10 ** 400})
        assert session_store.fetch(engine.session_id).tts_speed == 1.0

    def test_unknown_setting_is_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.update_settings({'volume': 3})

    def test_settings_merge(self, engine, session_store):
        engine.update_settings({'showTranslation': True})
        engine.update_settings({'autoPlayTTS': False})

        stored = session_store.fetch(engine.session_id)
        assert stored.show_translation is True
        assert stored.auto_play_tts is False

    def test_autoplay_disabled_stops_playback(self, engine, audio_player):
        engine.update_settings({'autoPlayTTS': False})
        engine.complete_card()
        assert len(audio_player.played) == 1


class TestCompletion:
    """Test reaching the terminal state."""

    def test_three_card_session(self, engine, clock, session_store):
        flips = [False, True, False]
        times = [4, 10, 6]

        for flipped, seconds in zip(flips, times):
            if flipped:
                engine.flip()
            clock.advance(seconds)
            engine.complete_card()

        assert engine.is_completed
        assert engine.current_card_index is None
        assert engine.current_card is None

        progress = engine.progress
        assert progress.completed_cards == 3
        assert progress.percentage == 100
        assert progress.cards_flipped == 1
        assert progress.is_completed

        stored = session_store.fetch(engine.session_id)
        assert stored.completed_cards == {0, 1, 2}
        assert stored.cards_flipped == {1}
        assert stored.time_per_card == {0: 4, 1: 10, 2: 6}
        assert stored.completed_at is not None
        assert engine.last_sync_result.is_completed

    def test_completed_is_terminal(self, session_store, article_factory):
        engine = SessionEngine.start(session_store, article_factory(1), "article-1")
        engine.complete_card()

        for action in (engine.complete_card, engine.previous_card, engine.flip,
                       engine.track_audio_replay, engine.play_current_card, engine.exit):
            with pytest.raises(StateError):
                action()
        assert engine.is_completed
        assert engine.progress.completed_cards == 1

    def test_settings_allowed_after_completion(self, session_store, article_factory):
        engine = SessionEngine.start(session_store, article_factory(1), "article-1")
        engine.complete_card()

        engine.update_settings({'showTranslation': True})
        assert session_store.fetch(engine.session_id).show_translation is True

    def test_completed_session_is_not_resumed(self, session_store, article_factory):
        article = article_factory(1)
        engine = SessionEngine.start(session_store, article, "article-1")
        engine.complete_card()

        assert SessionEngine.start(session_store, article, "article-1").session_id != engine.session_id


class TestExit:
    """Test saving progress without completing."""

    def test_exit_saves_time_and_replays(self, engine, clock, session_store, three_card_article):
        engine.complete_card()
        engine.track_audio_replay()
        engine.track_audio_replay()
        clock.advance(7)

        engine.exit()

        stored = session_store.fetch(engine.session_id)
        assert stored.current_card_index == 1
        assert stored.completed_cards == {0}
        assert stored.time_per_card[1] == 7
        assert stored.audio_replays[1] == 2
        assert not stored.is_completed

        resumed = SessionEngine.resume(session_store, engine.session_id, three_card_article)
        assert resumed.current_card_index == 1


class TestSync:
    """Test store failures during transitions."""

    def test_failed_sync_keeps_local_state(self, failing_store, three_card_article, session_store):
        engine = SessionEngine.start(failing_store, three_card_article, "article-1")
        failing_store.failing = True

        with pytest.raises(SyncError) as exc_info:
            engine.complete_card()

        assert exc_info.value.error_code == "SYNC_001"
        assert engine.current_card_index == 1
        assert engine.progress.completed_cards == 1
        assert engine.has_pending_sync
        assert session_store.fetch(engine.session_id).completed_cards == set()
        assert error_handler.has_errors()

    def test_retry_sync_flushes_queue_in_order(self, failing_store, three_card_article, session_store):
        engine = SessionEngine.start(failing_store, three_card_article, "article-1")
        failing_store.failing = True

        with pytest.raises(SyncError):
            engine.complete_card()
        with pytest.raises(SyncError):
            engine.complete_card()
        with pytest.raises(SyncError):
            engine.retry_sync()

        failing_store.failing = False
        result = engine.retry_sync()

        assert not engine.has_pending_sync
        assert result.next_card_index == 2
        stored = session_store.fetch(engine.session_id)
        assert stored.completed_cards == {0, 1}
        assert stored.current_card_index == 2

    def test_retry_with_nothing_queued(self, engine):
        assert engine.retry_sync() is None

    def test_reload_discards_unsaved_changes(self, failing_store, three_card_article):
        engine = SessionEngine.start(failing_store, three_card_article, "article-1")
        failing_store.failing = True
        with pytest.raises(SyncError):
            engine.complete_card()

        failing_store.failing = False
        engine.reload()

        assert not engine.has_pending_sync
        assert engine.current_card_index == 0
        assert engine.progress.completed_cards == 0

    def test_failed_settings_sync_is_queued(self, failing_store, three_card_article, session_store):
        engine = SessionEngine.start(failing_store, three_card_article, "article-1")
        failing_store.failing = True

        with pytest.raises(SyncError):
            engine.update_settings({'ttsSpeed': 2.0})
        assert engine.settings.tts_speed == 2.0

        failing_store.failing = False
        engine.retry_sync()
        assert session_store.fetch(engine.session_id).tts_speed == 2.0


actions = st.lists(st.sampled_from(['complete', 'previous', 'flip', 'replay']), max_size=40)


@given(card_count=st.integers(min_value=1, max_value=6), steps=actions)
def test_progress_invariants_hold_for_any_action_sequence(card_count, steps):
    storage_dir = tempfile.mkdtemp()
    try:
        store = JsonSessionStore(storage_dir=storage_dir)
        article = ProcessedArticle(sentences=[
            SentenceCard(f"第{i}句", f"Sentence {i}", i) for i in range(card_count)
        ])
        engine = SessionEngine.start(store, article, "article-1")

        for step in steps:
            try:
                if step == 'complete':
                    engine.complete_card()
                elif step == 'previous':
                    engine.previous_card()
                elif step == 'flip':
                    engine.flip()
                else:
                    engine.track_audio_replay()
            except StateError:
                pass

            session = engine.session
            assert session.completed_cards <= set(range(card_count))
            assert session.cards_flipped <= session.completed_cards
            assert engine.is_completed == (len(session.completed_cards) == card_count)
            if not engine.is_completed:
                assert 0 <= engine.current_card_index < card_count

        stored = store.fetch(engine.session_id)
        assert stored.completed_cards == engine.session.completed_cards
        assert stored.is_completed == engine.is_completed
    finally:
        shutil.rmtree(storage_dir, ignore_errors=True)
