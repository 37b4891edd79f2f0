"""
Validation utilities for sentence card sequences.
"""

from typing import List, Dict, Sequence

from ..models import SentenceCard


def find_card_issues(cards: Sequence[SentenceCard]) -> Dict[int, List[str]]:
    """
    Check each card for empty text and out-of-place card indices.

    Args:
        cards: Sentence cards in display order

    Returns:
        Dictionary mapping card positions to lists of error messages.
        Empty dictionary if every card is valid.

    Examples:
        >>> cards = [SentenceCard("你好", "Hello", 0), SentenceCard("", "Bye", 2)]
        >>> find_card_issues(cards)
        {1: ['Chinese text is empty', 'Card index 2 does not match position 1']}
    """
    card_issues: Dict[int, List[str]] = {}

    for position, card in enumerate(cards):
        issues = []

        if not isinstance(card.chinese, str) or not card.chinese.strip():
            issues.append("Chinese text is empty")

        if not isinstance(card.english, str) or not card.english.strip():
            issues.append("English text is empty")

        if card.card_index != position:
            issues.append(f"Card index {card.card_index} does not match position {position}")

        if issues:
            card_issues[position] = issues

    return card_issues


def validate_sentence_cards(cards: Sequence[SentenceCard]) -> bool:
    """
    A card sequence is valid if it is non-empty, every card has text on
    both sides, and every card index equals the card's position.
    """
    if not cards:
        return False
    return not find_card_issues(cards)
