import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from utilities.constants import MAX_AXIS_SCORE, MAX_TOTAL_SCORE


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime:
    """Restore a timestamp written by `to_dict()` (ISO-8601 string)."""
    if isinstance(value, datetime):
        return value
    if not value:
        return utcnow()
    # Accept the trailing 'Z' that browser clients write
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def clamp(value, low, high):
    return max(low, min(high, value))


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class InterviewQuestion:
    id: str
    category: str
    question: str
    difficulty: str = 'medium'

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'question': self.question,
            'difficulty': self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=data['id'],
            category=data.get('category', 'other'),
            question=data['question'],
            difficulty=data.get('difficulty', 'medium'),
        )


@dataclass(frozen=True)
class AnalysisScore:
    understanding: int
    logic: int
    specificity: int
    job_fit: int

    def __post_init__(self):
        # frozen: assign through object.__setattr__
        for name in ('understanding', 'logic', 'specificity', 'job_fit'):
            object.__setattr__(self, name, int(clamp(getattr(self, name), 0, MAX_AXIS_SCORE)))

    def total(self) -> int:
        return self.understanding + self.logic + self.specificity + self.job_fit

    def to_dict(self):
        return {
            'understanding': self.understanding,
            'logic': self.logic,
            'specificity': self.specificity,
            'jobFit': self.job_fit,
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            understanding=data.get('understanding', 0),
            logic=data.get('logic', 0),
            specificity=data.get('specificity', 0),
            job_fit=data.get('jobFit', 0),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """One scored answer. Created once per submission and never mutated."""
    question_id: str
    answer: str
    scores: AnalysisScore
    total_score: int
    strengths: List[str]
    improvements: List[str]
    sample_answer: str
    detailed_feedback: Optional[str] = None
    conceptual_explanation: Optional[str] = None
    ai_generated: bool = False
    id: str = field(default_factory=lambda: new_id('analysis'))
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        object.__setattr__(self, 'total_score', int(clamp(self.total_score, 0, MAX_TOTAL_SCORE)))
        object.__setattr__(self, 'strengths', list(self.strengths))
        object.__setattr__(self, 'improvements', list(self.improvements))

    def to_dict(self):
        data = {
            'id': self.id,
            'questionId': self.question_id,
            'answer': self.answer,
            'scores': self.scores.to_dict(),
            'totalScore': self.total_score,
            'strengths': list(self.strengths),
            'improvements': list(self.improvements),
            'sampleAnswer': self.sample_answer,
            'aiGenerated': self.ai_generated,
            'createdAt': self.created_at.isoformat(),
        }
        if self.detailed_feedback is not None:
            data['detailedFeedback'] = self.detailed_feedback
        if self.conceptual_explanation is not None:
            data['conceptualExplanation'] = self.conceptual_explanation
        return data

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=data['id'],
            question_id=data['questionId'],
            answer=data['answer'],
            scores=AnalysisScore.from_dict(data.get('scores') or {}),
            total_score=data.get('totalScore', 0),
            strengths=data.get('strengths') or [],
            improvements=data.get('improvements') or [],
            sample_answer=data.get('sampleAnswer', ''),
            detailed_feedback=data.get('detailedFeedback'),
            conceptual_explanation=data.get('conceptualExplanation'),
            ai_generated=bool(data.get('aiGenerated', False)),
            created_at=parse_timestamp(data.get('createdAt')),
        )
