"""Remote scoring and question generation through the Gemini API.

Both entry points share one shape: build a prompt, call the model, pull the
first balanced JSON region out of the reply, validate it, and retry the whole
attempt with exponential backoff on any failure. They return an
`AdapterResult` instead of raising, so callers decide what a failure means.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from config import BACKOFF_FACTOR, MAX_RETRIES, MIN_QUESTION_YIELD, QUESTION_BATCH_SIZE
from interview_types import AnalysisResult, AnalysisScore, InterviewQuestion, clamp, new_id
from utilities.constants import DIFFICULTY_LEVELS, MAX_AXIS_SCORE, MAX_FEEDBACK_ITEMS, MAX_TOTAL_SCORE
from utilities.errors import InsufficientYieldError, ParseError, ProviderError, StructureError
from utilities.llm import _backoff_sleep, call_gemini_api
from utilities.validators import job_title

logger = logging.getLogger(__name__)

FALLBACK_STRENGTH = "AI 분석 결과를 정상적으로 받지 못했습니다."
FALLBACK_IMPROVEMENT = "다시 시도해주세요."
FALLBACK_SAMPLE_ANSWER = "모범 답변을 생성할 수 없습니다."


@dataclass
class AdapterResult:
    """Ok(value) when `error` is None, Err(error) otherwise."""
    value: Any = None
    error: Optional[ProviderError] = None
    attempts: int = 0

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None


def build_analysis_prompt(question: str, answer: str, category: str, custom_category=None) -> str:
    title = job_title(category, custom_category)
    return f"""당신은 {title} 분야의 전문 면접관입니다. 다음 면접 질문과 지원자의 답변을 상세히 분석해주세요.

면접 질문: {question}
지원자 답변: {answer}
직무: {title}

분석 절차:
1. 이 질문이 평가하려는 의도와 역량이 무엇인지 먼저 파악하세요.
2. 상황(Situation) - 행동(Action) - 결과(Result) 구조로 이상적인 모범 답변을 작성하세요.
3. 지원자의 답변을 아래 네 가지 기준으로 각각 0-25점으로 평가하세요.
   - understanding (질문 이해도): 질문의 핵심 의도를 정확히 파악하고 답변했는가
   - logic (논리적 구성): 답변이 체계적이고 논리적으로 구성되었는가
   - specificity (구체성): 구체적인 경험, 사례, 수치 등이 포함되었는가
   - relevance (직무 적합성): {title} 직무에서 요구하는 역량과 연관성이 있는가

답변이 너무 짧거나 "모르겠습니다"와 같은 경우, 해당 질문이 요구하는 지식과 경험을 구체적으로 안내해주세요.

**중요: 오직 아래 형식의 JSON 객체 하나로만 응답하세요. 추가 설명이나 텍스트는 포함하지 마세요.**

{{
  "scores": {{"understanding": 0, "logic": 0, "specificity": 0, "relevance": 0}},
  "totalScore": 0,
  "strengths": ["강점"],
  "improvements": ["개선점"],
  "feedback": "구체적인 첨삭 내용",
  "idealAnswer": "모범 답변",
  "conceptualExplanation": "질문의 의도와 핵심 개념 설명"
}}"""


def build_questions_prompt(category: str, custom_category=None, count: int = QUESTION_BATCH_SIZE) -> str:
    title = job_title(category, custom_category)
    easy = max(1, round(count * 0.3))
    hard = max(1, round(count * 0.2))
    medium = max(0, count - easy - hard)
    return f"""당신은 {title} 분야의 전문 면접관입니다.
현재 트렌드에 맞는 실제적인 면접 질문 {count}개를 생성해주세요.

조건:
1. 실무 경험을 평가할 수 있는 구체적인 질문
2. 해당 직무의 핵심 역량을 다루는 질문
3. 최신 기술/트렌드가 반영된 질문
4. 난이도: 쉬움 {easy}개, 보통 {medium}개, 어려움 {hard}개
5. 질문은 15-150자 사이로 작성
6. 한국어로 작성

형식: 반드시 다음 JSON 배열 형식으로만 반환해주세요:
[
  {{"question": "질문 내용", "difficulty": "easy|medium|hard", "category": "{category}"}}
]"""


def extract_json_region(text: str, opener: str = '{', closer: str = '}') -> str:
    """Return the first balanced `opener ... closer` region of `text`.

    String literals are skipped so braces inside JSON strings do not count.
    Raises ParseError when no balanced region exists.
    """
    start = text.find(opener) if text else -1
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == '\\':
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    return text[start:idx + 1]
        # unbalanced from this opener; try the next one
        start = text.find(opener, start + 1)
    raise ParseError('Invalid JSON format in AI response: no JSON region found')


def parse_json_reply(text: str, opener: str = '{', closer: str = '}'):
    region = extract_json_region(text, opener, closer)
    try:
        return json.loads(region)
    except json.JSONDecodeError as e:
        raise ParseError(f'Failed to parse AI response JSON: {e}') from e


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _axis(scores: dict, name: str) -> int:
    value = scores.get(name)
    if not _is_number(value):
        return 0
    return int(round(clamp(value, 0, MAX_AXIS_SCORE)))


def _feedback_list(value, fallback: str):
    if isinstance(value, list):
        items = [str(item) for item in value if str(item).strip()][:MAX_FEEDBACK_ITEMS]
        if items:
            return items
    return [fallback]


def validate_analysis_payload(data) -> dict:
    """Fail fast on the fields the result cannot be built without."""
    if not isinstance(data, dict) or not isinstance(data.get('scores'), dict):
        raise StructureError('Invalid analysis response structure: missing scores')
    if not _is_number(data.get('totalScore')):
        raise StructureError('Invalid analysis response structure: invalid totalScore')
    feedback = data.get('feedback')
    if not isinstance(feedback, str) or not feedback.strip():
        raise StructureError('Invalid analysis response structure: missing feedback')
    return data


def build_remote_result(data: dict, question_id: str, answer: str) -> AnalysisResult:
    scores = data['scores']
    conceptual = data.get('conceptualExplanation')
    return AnalysisResult(
        question_id=question_id,
        answer=answer,
        scores=AnalysisScore(
            understanding=_axis(scores, 'understanding'),
            logic=_axis(scores, 'logic'),
            specificity=_axis(scores, 'specificity'),
            job_fit=_axis(scores, 'relevance'),
        ),
        # Taken as given, not recomputed from the axes.
        total_score=int(round(clamp(data['totalScore'], 0, MAX_TOTAL_SCORE))),
        strengths=_feedback_list(data.get('strengths'), FALLBACK_STRENGTH),
        improvements=_feedback_list(data.get('improvements'), FALLBACK_IMPROVEMENT),
        sample_answer=data.get('idealAnswer') or FALLBACK_SAMPLE_ANSWER,
        detailed_feedback=data['feedback'],
        conceptual_explanation=conceptual if isinstance(conceptual, str) and conceptual else None,
        ai_generated=True,
    )


def parse_questions(items, category: str, count: int) -> list:
    if not isinstance(items, list):
        raise StructureError('Invalid question response structure: expected a list')
    questions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = item.get('question')
        difficulty = str(item.get('difficulty') or '').strip().lower()
        if not isinstance(text, str) or not text.strip() or difficulty not in DIFFICULTY_LEVELS:
            continue
        questions.append(InterviewQuestion(
            id=new_id('ai'),
            category=category,
            question=text.strip(),
            difficulty=difficulty,
        ))
        if len(questions) >= count:
            break
    return questions


def _with_retries(label: str, attempt_fn, max_retries: int, backoff_factor: int, sleep) -> AdapterResult:
    """Run `attempt_fn` once plus up to `max_retries` retries.

    Any exception counts as a transient failure; the wait before retry n
    (zero-based) is `backoff_factor ** n` seconds.
    """
    last_error = None
    total_attempts = max_retries + 1
    for attempt in range(total_attempts):
        try:
            return AdapterResult(value=attempt_fn(), attempts=attempt + 1)
        except Exception as e:
            last_error = e if isinstance(e, ProviderError) else ProviderError(str(e))
            logger.warning("[remote] %s attempt %s/%s failed: %s", label, attempt + 1, total_attempts, e)
        if attempt < max_retries:
            _backoff_sleep(attempt, backoff_factor, sleep=sleep)
    logger.error("[remote] %s exhausted retries: %s", label, last_error)
    return AdapterResult(error=last_error, attempts=total_attempts)


def score_remotely(question_id: str, question: str, answer: str, category: str,
                   custom_category: Optional[str] = None, *, max_retries: int = MAX_RETRIES,
                   backoff_factor: int = BACKOFF_FACTOR, call_model=None, sleep=time.sleep) -> AdapterResult:
    """Score an answer with the remote model. Ok value is an AnalysisResult."""
    call_model = call_model or call_gemini_api
    prompt = build_analysis_prompt(question, answer, category, custom_category)

    def attempt():
        text = call_model(prompt)
        data = validate_analysis_payload(parse_json_reply(text))
        return build_remote_result(data, question_id, answer)

    return _with_retries('analysis', attempt, max_retries, backoff_factor, sleep)


def generate_questions(category: str, custom_category: Optional[str] = None, *,
                       count: int = QUESTION_BATCH_SIZE, min_yield: int = MIN_QUESTION_YIELD,
                       max_retries: int = MAX_RETRIES, backoff_factor: int = BACKOFF_FACTOR,
                       call_model=None, sleep=time.sleep) -> AdapterResult:
    """Generate a question batch. Ok value is a list of InterviewQuestion.

    A batch below `min_yield` counts as a failed attempt and is retried.
    """
    call_model = call_model or call_gemini_api
    prompt = build_questions_prompt(category, custom_category, count)

    def attempt():
        text = call_model(prompt)
        questions = parse_questions(parse_json_reply(text, '[', ']'), category, count)
        if len(questions) < min_yield:
            raise InsufficientYieldError(
                f'Generated insufficient number of valid questions: {len(questions)} < {min_yield}'
            )
        return questions

    return _with_retries('questions', attempt, max_retries, backoff_factor, sleep)
