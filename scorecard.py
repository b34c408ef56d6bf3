import logging
import math
import random
from typing import List, Optional

from answer_features import AnswerFeatures, extract_features
from interview_types import AnalysisResult, AnalysisScore, InterviewQuestion, clamp
from utilities.constants import MAX_AXIS_SCORE, MAX_FEEDBACK_ITEMS, PROBLEM_SOLVING_CUES
from utilities.validators import job_title

logger = logging.getLogger(__name__)

SHORT_ANSWER_WORDS = 20
LONG_ANSWER_WORDS = 200
SHORT_ANSWER_PENALTY = {'understanding': 0.6, 'logic': 0.6, 'specificity': 0.4, 'job_fit': 0.7}
LONG_ANSWER_PENALTY = {'understanding': 0.9, 'logic': 0.8}

SAMPLE_ANSWER_TEMPLATES = (
    "{title} 직무에서 이 질문에 대한 이상적인 답변은 구체적인 경험과 성과를 포함하여 논리적으로 구성되어야 합니다. "
    "문제 상황, 해결 과정, 결과를 순서대로 설명하고 배운 점을 언급하는 것이 좋습니다.",
    "효과적인 답변을 위해서는 STAR 기법(Situation, Task, Action, Result)을 활용하여 상황을 설명하고, "
    "본인의 역할과 행동, 그리고 구체적인 성과를 수치와 함께 제시하는 것이 중요합니다.",
    "이 질문에 대해서는 {title} 직무의 핵심 역량을 보여줄 수 있는 실제 사례를 들어 설명하고, "
    "그 과정에서 어떤 어려움이 있었는지, 어떻게 극복했는지를 구체적으로 언급하면 좋습니다.",
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def raw_axis_scores(features: AnswerFeatures) -> dict:
    """Axis scores before rounding, with the length penalties applied."""
    axes = {
        'understanding': clamp(features.word_count * 0.3 + features.keyword_matches * 3, 0, MAX_AXIS_SCORE),
        'logic': clamp(features.sentence_count * 2 + (5 if features.avg_words_per_sentence > 8 else 0),
                       0, MAX_AXIS_SCORE),
        'specificity': clamp((8 if features.has_numbers else 0)
                             + (10 if features.has_examples else 0)
                             + (7 if features.has_timeframe else 0), 0, MAX_AXIS_SCORE),
        'job_fit': clamp(features.keyword_matches * 4 + (5 if features.word_count > 50 else 0),
                         0, MAX_AXIS_SCORE),
    }

    if features.word_count < SHORT_ANSWER_WORDS:
        for axis, factor in SHORT_ANSWER_PENALTY.items():
            axes[axis] *= factor

    if features.word_count > LONG_ANSWER_WORDS:
        for axis, factor in LONG_ANSWER_PENALTY.items():
            axes[axis] *= factor

    return axes


def generate_strengths(answer: str, features: AnswerFeatures) -> List[str]:
    strengths = []
    if features.word_count >= 50:
        strengths.append("충분한 분량으로 답변을 작성했습니다")
    if features.has_examples:
        strengths.append("구체적인 경험과 예시를 포함했습니다")
    if features.keyword_matches >= 2:
        strengths.append("직무와 관련된 전문 용어를 적절히 사용했습니다")
    if any(cue in answer for cue in PROBLEM_SOLVING_CUES):
        strengths.append("문제 해결 능력을 잘 어필했습니다")
    if not strengths:
        strengths.append("질문에 성실하게 답변하려는 의지가 보입니다")
    return strengths[:MAX_FEEDBACK_ITEMS]


def generate_improvements(features: AnswerFeatures) -> List[str]:
    improvements = []
    if features.word_count < 30:
        improvements.append("답변을 더 구체적이고 자세하게 작성해보세요")
    if not features.has_examples:
        improvements.append("실제 경험이나 구체적인 예시를 포함하면 더 좋습니다")
    if not features.has_numbers:
        improvements.append("성과나 결과를 수치로 표현하면 더 설득력이 있습니다")
    if features.keyword_matches < 2:
        improvements.append("해당 직무와 관련된 전문 용어를 더 활용해보세요")
    if not improvements:
        improvements.append("답변의 논리적 구조를 더 명확하게 정리해보세요")
    return improvements[:MAX_FEEDBACK_ITEMS]


def generate_sample_answer(category: str, custom_category: Optional[str] = None, rng=None) -> str:
    """Pick one of the generic templates; not tailored to the question."""
    rng = rng or random.Random()
    template = rng.choice(SAMPLE_ANSWER_TEMPLATES)
    return template.format(title=job_title(category, custom_category))


def score_heuristically(question: InterviewQuestion, answer: str, category: str,
                        custom_category: Optional[str] = None, rng=None) -> AnalysisResult:
    """Score an answer locally, without any remote call.

    Deterministic for a given answer and category; the only random draw is the
    sample-answer template, taken from `rng`.
    """
    features = extract_features(answer, category, custom_category)
    axes = raw_axis_scores(features)
    total_score = _round_half_up(sum(axes.values()))

    strengths = generate_strengths(answer, features)
    improvements = generate_improvements(features)
    title = job_title(category, custom_category)

    logger.debug(
        "[SCORE] heuristic words=%s sentences=%s keywords=%s total=%s",
        features.word_count, features.sentence_count, features.keyword_matches, total_score,
    )

    return AnalysisResult(
        question_id=question.id,
        answer=answer,
        scores=AnalysisScore(
            understanding=_round_half_up(axes['understanding']),
            logic=_round_half_up(axes['logic']),
            specificity=_round_half_up(axes['specificity']),
            job_fit=_round_half_up(axes['job_fit']),
        ),
        total_score=total_score,
        strengths=strengths,
        improvements=improvements,
        sample_answer=generate_sample_answer(category, custom_category, rng),
        detailed_feedback=(
            f"답변의 {len(strengths)}가지 강점이 있으나, {len(improvements)}가지 개선점이 필요합니다. "
            f"특히 {improvements[0]}."
        ),
        conceptual_explanation=(
            f"이 질문은 {title}의 핵심 역량을 평가하기 위한 것입니다. "
            "실무 경험과 문제 해결 능력을 구체적으로 보여주는 것이 중요합니다."
        ),
        ai_generated=False,
    )
