"""Per-request decision between remote and heuristic scoring.

Validation and rate limiting run first and are the only failures a caller
normally sees. Once a request is accepted, a remote failure of any kind turns
into a heuristic result; only a failing heuristic path is fatal.
"""
import logging
import random
import time
from dataclasses import dataclass
from typing import List, Optional

import question_bank
import remote_scorer
from config import HEALTH_CACHE_SEC, MIN_QUESTION_YIELD, QUESTION_BATCH_SIZE
from interview_types import AnalysisResult, InterviewQuestion
from rate_limiter import RateLimiter
from scorecard import score_heuristically
from utilities.constants import ANSWER_ANALYSIS, QUESTION_GENERATION
from utilities.errors import FatalError, RateLimitError
from utilities.llm import check_api_health
from utilities.validators import validate_category, validate_submission

logger = logging.getLogger(__name__)

FATAL_ANALYSIS_MESSAGE = '답변 분석 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요.'
FATAL_QUESTIONS_MESSAGE = '질문을 생성하는 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요.'


@dataclass
class SubmissionOutcome:
    analysis: AnalysisResult
    ai_generated: bool
    remaining: Optional[dict] = None


@dataclass
class QuestionBatch:
    questions: List[InterviewQuestion]
    ai_generated: bool
    remaining: Optional[dict] = None


class CachedHealthCheck:
    """Wrap a health probe so it runs at most once per `ttl` seconds."""

    def __init__(self, probe=check_api_health, ttl: float = HEALTH_CACHE_SEC, clock=time.monotonic):
        self.probe = probe
        self.ttl = ttl
        self.clock = clock
        self._checked_at = None
        self._status = None

    def __call__(self) -> dict:
        now = self.clock()
        if self._status is None or now - self._checked_at >= self.ttl:
            self._status = self.probe()
            self._checked_at = now
        return self._status

    def invalidate(self):
        self._status = None


class ScoringOrchestrator:
    def __init__(self, limiter: Optional[RateLimiter] = None, health_check=None,
                 remote_score=remote_scorer.score_remotely,
                 remote_questions=remote_scorer.generate_questions,
                 heuristic_score=score_heuristically, rng: Optional[random.Random] = None,
                 batch_size: int = QUESTION_BATCH_SIZE, min_yield: int = MIN_QUESTION_YIELD):
        self.limiter = limiter or RateLimiter()
        self.health_check = health_check or CachedHealthCheck()
        self.remote_score = remote_score
        self.remote_questions = remote_questions
        self.heuristic_score = heuristic_score
        self.rng = rng or random.Random()
        self.batch_size = batch_size
        self.min_yield = min_yield

    def _check_limit(self, client_id: str, kind: str):
        status = self.limiter.check_rate_limit(client_id, kind)
        if not status.allowed:
            raise RateLimitError(status.message, remaining=status.remaining)
        return status

    def _remote_available(self) -> bool:
        try:
            health = self.health_check()
        except Exception as e:
            logger.warning("[health] probe raised: %s", e)
            return False
        if not health.get('available'):
            logger.info("[health] remote scorer unavailable: %s", health.get('error'))
            return False
        return True

    def analyze_submission(self, payload: dict, client_id: str) -> SubmissionOutcome:
        answer = validate_submission(payload)
        status = self._check_limit(client_id, ANSWER_ANALYSIS)

        question_id = str(payload['questionId'])
        question_text = str(payload['question'])
        category = payload['category']
        custom_category = payload.get('customCategory')

        if self._remote_available():
            try:
                result = self.remote_score(question_id, question_text, answer, category, custom_category)
                if result.success:
                    self.limiter.record_usage(client_id, ANSWER_ANALYSIS)
                    return SubmissionOutcome(result.value, True, status.remaining)
                logger.warning("[fallback] remote analysis failed after %s attempts: %s",
                               result.attempts, result.error_message)
            except Exception as e:
                logger.warning("[fallback] remote analysis raised: %s", e)

        question = InterviewQuestion(id=question_id, category=category, question=question_text,
                                     difficulty='medium')
        try:
            analysis = self.heuristic_score(question, answer, category, custom_category, rng=self.rng)
        except Exception as e:
            logger.exception("[fatal] heuristic scoring failed")
            raise FatalError(FATAL_ANALYSIS_MESSAGE) from e
        return SubmissionOutcome(analysis, False, status.remaining)

    def generate_question_batch(self, payload: dict, client_id: str) -> QuestionBatch:
        category = validate_category(payload)
        custom_category = (payload or {}).get('customCategory')
        status = self._check_limit(client_id, QUESTION_GENERATION)

        if self._remote_available():
            try:
                result = self.remote_questions(category, custom_category,
                                               count=self.batch_size, min_yield=self.min_yield)
                if result.success and len(result.value) >= self.min_yield:
                    self.limiter.record_usage(client_id, QUESTION_GENERATION)
                    return QuestionBatch(result.value, True, status.remaining)
                logger.warning("[fallback] remote question generation failed: %s",
                               result.error_message or 'insufficient questions')
            except Exception as e:
                logger.warning("[fallback] remote question generation raised: %s", e)

        questions = question_bank.sample_questions(category, self.batch_size, rng=self.rng)
        if not questions:
            raise FatalError(FATAL_QUESTIONS_MESSAGE)
        return QuestionBatch(questions, False, status.remaining)
