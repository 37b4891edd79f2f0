"""
Pytest configuration and fixtures for Bilingual Reader tests.

Provides stores backed by temporary directories, a manual clock for card
timing, a recording audio player, and a session store that can be told to
fail so sync errors can be exercised.
"""

import pytest
from hypothesis import settings, Verbosity

from bilingual_reader.errors import StoreError, error_handler
from bilingual_reader.models import SentenceCard, ProcessedArticle, Difficulty
from bilingual_reader.session.article_store import ArticleStore
from bilingual_reader.session.audio import AudioPlayer
from bilingual_reader.session.session_store import SessionStore, JsonSessionStore


# Configure Hypothesis for property-based testing
settings.register_profile("reader",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None
)
settings.load_profile("reader")


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingAudioPlayer(AudioPlayer):
    """Audio player that remembers what it was asked to play."""

    def __init__(self, result: bool = True):
        self.result = result
        self.played = []

    def play(self, text: str, speed: float) -> bool:
        self.played.append((text, speed))
        return self.result


class FailingSessionStore(SessionStore):
    """Session store wrapper whose writes fail while `failing` is set."""

    def __init__(self, inner: SessionStore):
        self.inner = inner
        self.failing = False
        self.calls = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.failing:
            raise StoreError(error_handler.handle_storage_error(
                ConnectionError("store unreachable"), operation
            ))

    def create(self, total_cards, article_id, settings=None):
        return self.inner.create(total_cards, article_id, settings)

    def fetch(self, session_id):
        return self.inner.fetch(session_id)

    def patch(self, session_id, fields):
        self._check("patch")
        return self.inner.patch(session_id, fields)

    def record_card_completion(self, session_id, card_index, time_spent, was_flipped, audio_replay_count):
        self._check("record_card_completion")
        return self.inner.record_card_completion(
            session_id, card_index, time_spent, was_flipped, audio_replay_count
        )

    def list_sessions(self):
        return self.inner.list_sessions()

    def delete(self, session_id):
        return self.inner.delete(session_id)


def make_article(count: int) -> ProcessedArticle:
    """Build a processed article with `count` simple cards."""
    cards = [
        SentenceCard(chinese=f"这是第{i}句", english=f"This is sentence {i}", card_index=i)
        for i in range(count)
    ]
    return ProcessedArticle(sentences=cards, difficulty=Difficulty.BEGINNER, estimated_minutes=1)


@pytest.fixture(autouse=True)
def clear_error_handler():
    """Keep the global error handler empty between tests."""
    error_handler.clear_errors()
    yield
    error_handler.clear_errors()


@pytest.fixture
def session_store(tmp_path):
    """Provide a JSON session store in a temporary directory."""
    return JsonSessionStore(storage_dir=str(tmp_path / "sessions"))


@pytest.fixture
def article_store(tmp_path):
    """Provide an article store in a temporary directory."""
    return ArticleStore(storage_dir=str(tmp_path / "articles"))


@pytest.fixture
def failing_store(session_store):
    """Provide a session store that can be switched into failure mode."""
    return FailingSessionStore(session_store)


@pytest.fixture
def clock():
    """Provide a manual clock."""
    return ManualClock()


@pytest.fixture
def audio_player():
    """Provide a recording audio player."""
    return RecordingAudioPlayer()


@pytest.fixture
def three_card_article():
    """Provide an article with three sentence cards."""
    return make_article(3)


@pytest.fixture
def sample_paragraphs():
    """Provide a short parallel article."""
    return (
        ["我们今天去学校。天气很好！", "你想去吗？"],
        ["We go to school today. The weather is nice!", "Do you want to go?"]
    )


@pytest.fixture
def article_factory():
    """Provide a function that builds articles of a given card count."""
    return make_article
