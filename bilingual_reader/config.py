"""
Configuration settings for the Bilingual Reader.
"""

import os
from pathlib import Path


class Config:
    """Configuration class for application settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent
    TEMP_DIR = PROJECT_ROOT / "temp"
    SESSION_DIR = Path(os.environ.get('READER_SESSION_DIR', str(TEMP_DIR / "sessions")))
    ARTICLE_DIR = Path(os.environ.get('READER_ARTICLE_DIR', str(TEMP_DIR / "articles")))

    # Sentence boundary characters
    CHINESE_SENTENCE_BOUNDARIES = "。！？；"
    ENGLISH_SENTENCE_BOUNDARIES = ".!?;"

    # Reading time estimate
    SECONDS_PER_SENTENCE = 2.5

    # Difficulty thresholds: (avg chinese length, avg english words, avg uncommon chars)
    BEGINNER_THRESHOLDS = (15, 8, 2)
    INTERMEDIATE_THRESHOLDS = (25, 12, 4)

    # Text-to-speech settings
    MIN_TTS_SPEED = 0.25
    MAX_TTS_SPEED = 4.0
    DEFAULT_TTS_SPEED = 1.0
    DEFAULT_AUTO_PLAY_TTS = True
    DEFAULT_SHOW_TRANSLATION = False

    # Web server settings
    DEFAULT_PORT = 3000

