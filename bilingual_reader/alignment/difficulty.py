"""
Difficulty classification and reading-time estimates for sentence cards.
"""

import math
from typing import List, Sequence

import numpy as np

from ..config import Config
from ..models import Difficulty, SentenceCard, SentenceStats


# Reference set of frequent simplified Chinese characters. Anything outside
# it counts as uncommon, punctuation included.
COMMON_CHARACTERS = frozenset(
    '的一是在不了有和人这中大为上个国我以要他时来用们生到作地于出就分对成会可主发年动'
    '同工也能下过子说产种面而方后多定行学法所民得经十三之进着等部度家电力里如水化高自'
    '二理起小物现实加量都两体制机当使点从业本去把性好应开它合还因由其些然前外天政四日'
    '那社义事平形相全表间样与关各重新线内数正心反你明看原又么利比或但质气第向道命此变'
    '条只没结解问意建月公无系军很情者最立代想已通并提直题党程展五果料象员革位入常文总'
    '次品式活设及管特件长求老头基资边流路级少图山统接知较将组见计别她手角期根论运农指'
    '几九区强放决西被干做必战先回则任取据处队南给色光门即保治北造百规热领七海口东导器'
    '压志世金增争济阶油思术极交受联什认六共权收证改清己美再采转单风切打白教速花带安场'
    '身车例真务具万每目至达走积示议声报斗完类八离华名确才科张信马节话米整空元况今集温'
    '传土许步群广石记需段研界拉林律叫且究观越织装影算低持音众书布复容儿须际商非验连断'
    '深难近矿千周委素技备半办青省列习响约支般史感劳便团往酸历市克何除消构府称太准精值'
    '号率族维划选标写存候毛亲快效斯院查江型眼王按格养易置派层片始却专状育厂京识适属圆'
    '包火住调满县局照参红细引听该铁价严龙飞'
)


def count_uncommon_characters(text: str) -> int:
    """Count the characters of text that are not in the common reference set."""
    return sum(1 for char in text if char not in COMMON_CHARACTERS)


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def calculate_difficulty(sentences: Sequence[SentenceCard]) -> Difficulty:
    """
    Classify a card sequence as beginner, intermediate or advanced.

    Uses the average Chinese sentence length, the average English word count
    and the average number of uncommon Chinese characters per sentence.
    An empty sequence is beginner.
    """
    if not sentences:
        return Difficulty.BEGINNER

    avg_chinese_length = np.mean([len(card.chinese) for card in sentences])
    avg_english_words = np.mean([count_words(card.english) for card in sentences])
    avg_uncommon = np.mean([count_uncommon_characters(card.chinese) for card in sentences])

    max_length, max_words, max_uncommon = Config.BEGINNER_THRESHOLDS
    if avg_chinese_length <= max_length and avg_english_words <= max_words and avg_uncommon <= max_uncommon:
        return Difficulty.BEGINNER

    max_length, max_words, max_uncommon = Config.INTERMEDIATE_THRESHOLDS
    if avg_chinese_length <= max_length and avg_english_words <= max_words and avg_uncommon <= max_uncommon:
        return Difficulty.INTERMEDIATE

    return Difficulty.ADVANCED


def estimate_minutes(sentence_count: int) -> int:
    """Estimate reading time in whole minutes, rounding up."""
    return math.ceil(sentence_count * Config.SECONDS_PER_SENTENCE / 60)


def get_sentence_stats(sentences: List[SentenceCard]) -> SentenceStats:
    """Compute summary statistics for a card sequence."""
    if not sentences:
        return SentenceStats(0, 0, 0, 0)

    chinese_lengths = np.array([len(card.chinese) for card in sentences])
    english_lengths = np.array([count_words(card.english) for card in sentences])

    return SentenceStats(
        total_sentences=len(sentences),
        average_chinese_length=int(math.floor(chinese_lengths.mean() + 0.5)),
        average_english_length=int(math.floor(english_lengths.mean() + 0.5)),
        total_reading_time=math.ceil(len(sentences) * Config.SECONDS_PER_SENTENCE)
    )
