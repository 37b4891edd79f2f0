"""
Validation of session settings and session update payloads.

Payload keys may use the JSON field names (``ttsSpeed``) or the Python
attribute names (``tts_speed``); validated payloads always use the Python
attribute names.
"""

import math
from datetime import datetime
from typing import Dict, Any, List, Optional

from ..config import Config
from ..errors import ValidationError, error_handler


SETTING_FIELDS = {
    'autoPlayTTS': 'auto_play_tts',
    'ttsSpeed': 'tts_speed',
    'showTranslation': 'show_translation',
}

PATCH_FIELDS = {
    **SETTING_FIELDS,
    'currentCardIndex': 'current_card_index',
    'completedCards': 'completed_cards',
    'cardsFlipped': 'cards_flipped',
    'audioReplays': 'audio_replays',
    'timePerCard': 'time_per_card',
    'completedAt': 'completed_at',
}


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # Integers too large for a float are not usable as speeds or times
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _normalize_keys(payload: Dict[str, Any], allowed: Dict[str, str], errors: List[str]) -> Dict[str, Any]:
    normalized = {}
    attribute_names = set(allowed.values())
    for key, value in payload.items():
        if key in allowed:
            normalized[allowed[key]] = value
        elif key in attribute_names:
            normalized[key] = value
        else:
            errors.append(f"Unknown field: {key}")
    return normalized


def _check_settings(fields: Dict[str, Any], errors: List[str]) -> None:
    for name in ('auto_play_tts', 'show_translation'):
        if name in fields and not isinstance(fields[name], bool):
            errors.append(f"{name} must be a boolean")

    if 'tts_speed' in fields:
        speed = fields['tts_speed']
        if not _is_number(speed):
            errors.append("tts_speed must be a number")
        elif not Config.MIN_TTS_SPEED <= speed <= Config.MAX_TTS_SPEED:
            errors.append(
                f"tts_speed must be between {Config.MIN_TTS_SPEED} and {Config.MAX_TTS_SPEED}, got {speed}"
            )
        else:
            fields['tts_speed'] = float(speed)


def _raise_if_errors(errors: List[str], payload: Dict[str, Any]) -> None:
    if errors:
        raise ValidationError(
            error_handler.handle_validation_error(errors, context={'fields': sorted(payload)})
        )


def validate_settings(payload: Any) -> Dict[str, Any]:
    """
    Validate a partial settings update.

    Args:
        payload: Any subset of autoPlayTTS, ttsSpeed and showTranslation

    Returns:
        Validated settings keyed by attribute name

    Raises:
        ValidationError: If the payload is not a mapping, has unknown keys,
            wrong value types, or a TTS speed outside [0.25, 4.0]
    """
    if not isinstance(payload, dict):
        _raise_if_errors(["Settings must be an object"], {})

    errors: List[str] = []
    fields = _normalize_keys(payload, SETTING_FIELDS, errors)
    _check_settings(fields, errors)
    _raise_if_errors(errors, payload)
    return fields


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def validate_session_patch(payload: Any) -> Dict[str, Any]:
    """
    Validate a partial session update as accepted by the session store.

    Index sets are returned as sets and per-card maps as ``{int: value}``.
    Bounds against the session's card count are checked by the store.
    """
    if not isinstance(payload, dict):
        _raise_if_errors(["Update must be an object"], {})

    errors: List[str] = []
    fields = _normalize_keys(payload, PATCH_FIELDS, errors)
    _check_settings(fields, errors)

    if 'current_card_index' in fields and not _is_index(fields['current_card_index']):
        errors.append("current_card_index must be a non-negative integer")

    for name in ('completed_cards', 'cards_flipped'):
        if name not in fields:
            continue
        values = fields[name]
        if not isinstance(values, (list, set, tuple)) or not all(_is_index(v) for v in values):
            errors.append(f"{name} must be a list of non-negative integers")
        else:
            fields[name] = set(values)

    for name, value_check, description in (
        ('audio_replays', _is_index, "non-negative integers"),
        ('time_per_card', lambda v: _is_number(v) and v >= 0, "non-negative numbers"),
    ):
        if name not in fields:
            continue
        mapping = fields[name]
        if not isinstance(mapping, dict):
            errors.append(f"{name} must be an object")
            continue
        converted = {}
        for key, value in mapping.items():
            try:
                index = int(key)
            except (TypeError, ValueError):
                errors.append(f"{name} key {key!r} is not a card index")
                continue
            if index < 0 or not value_check(value):
                errors.append(f"{name}[{key}] must map a card index to {description}")
                continue
            converted[index] = value
        fields[name] = converted

    if 'completed_at' in fields:
        try:
            fields['completed_at'] = _parse_timestamp(fields['completed_at'])
        except (TypeError, ValueError):
            errors.append("completed_at must be an ISO timestamp")

    _raise_if_errors(errors, payload)
    return fields


def validate_card_completion(card_index: Any, time_spent: Any, was_flipped: Any,
                             audio_replay_count: Any, total_cards: int) -> None:
    """Validate the arguments of a card completion against a session."""
    errors: List[str] = []

    if not _is_index(card_index):
        errors.append("card_index must be a non-negative integer")
    elif card_index >= total_cards:
        errors.append(f"Invalid card index {card_index} for a session of {total_cards} cards")

    if not _is_number(time_spent) or time_spent < 0:
        errors.append("time_spent must be a non-negative number")

    if not isinstance(was_flipped, bool):
        errors.append("was_flipped must be a boolean")

    if not _is_index(audio_replay_count):
        errors.append("audio_replay_count must be a non-negative integer")

    _raise_if_errors(errors, {'card_index': card_index})
