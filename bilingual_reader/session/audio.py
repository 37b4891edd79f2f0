"""
Audio playback interface for reading sessions.
"""

import logging
from abc import ABC, abstractmethod


class AudioPlayer(ABC):
    """Base interface for text-to-speech playback."""

    @abstractmethod
    def play(self, text: str, speed: float) -> bool:
        """
        Speak text aloud.

        Args:
            text: Chinese sentence to speak
            speed: Playback speed multiplier

        Returns:
            True if playback started, False if it failed
        """
        pass


class NullAudioPlayer(AudioPlayer):
    """Player used when no speech provider is configured. Only logs requests."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def play(self, text: str, speed: float) -> bool:
        self.logger.debug(f"Audio playback requested at {speed}x: {text}")
        return True
