import re
from dataclasses import dataclass
from typing import List, Optional

from utilities.constants import (
    EXAMPLE_CUES, GENERIC_KEYWORDS, JOB_KEYWORDS, TIMEFRAME_CUES,
)

_SENTENCE_SPLIT = re.compile(r'[.!?]+')
_DIGIT = re.compile(r'\d')


@dataclass(frozen=True)
class AnswerFeatures:
    word_count: int
    sentence_count: int
    avg_words_per_sentence: float
    keyword_matches: int
    has_numbers: bool
    has_examples: bool
    has_timeframe: bool


def job_keywords(category: str, custom_category: Optional[str] = None) -> List[str]:
    """Keyword list for a category; `other` uses the custom category when given."""
    if category == 'other':
        return [custom_category] if custom_category else list(GENERIC_KEYWORDS)
    return list(JOB_KEYWORDS.get(category, []))


def extract_features(answer: str, category: str, custom_category: Optional[str] = None) -> AnswerFeatures:
    answer = answer or ''
    word_count = len(answer.split())
    sentence_count = len([s for s in _SENTENCE_SPLIT.split(answer) if s.strip()])

    lowered = answer.lower()
    keyword_matches = sum(1 for kw in job_keywords(category, custom_category) if kw.lower() in lowered)

    return AnswerFeatures(
        word_count=word_count,
        sentence_count=sentence_count,
        avg_words_per_sentence=word_count / max(sentence_count, 1),
        keyword_matches=keyword_matches,
        has_numbers=bool(_DIGIT.search(answer)),
        has_examples=any(cue in answer for cue in EXAMPLE_CUES),
        has_timeframe=any(cue in answer for cue in TIMEFRAME_CUES),
    )
