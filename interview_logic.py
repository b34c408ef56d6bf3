# This file holds the InterviewSession class and its redis persistence.
import json
import logging
from typing import List, Optional

from interview_types import AnalysisResult, InterviewQuestion, new_id, parse_timestamp, utcnow
from utilities.constants import HISTORY_LIMIT, REFILL_THRESHOLD

logger = logging.getLogger(__name__)


def history_key(client_id: str) -> str:
    return f"history:{client_id}"


class InterviewSession:
    def __init__(self, category, custom_category=None, client_id=None, session_id=None):
        self.session_id = session_id if session_id else new_id('session')
        self.category = category
        self.custom_category = custom_category
        self.client_id = client_id or 'unknown'
        self.results: List[AnalysisResult] = []  # append-only, chronological
        self.question_queue: List[InterviewQuestion] = []
        self.ai_generated = False
        self.created_at = utcnow()

    @classmethod
    def start(cls, category, custom_category=None, client_id=None, batch=None):
        """New session whose queue is seeded from a generated question batch."""
        session = cls(category, custom_category=custom_category, client_id=client_id)
        if batch is not None:
            session.extend_queue(batch.questions, batch.ai_generated)
        return session

    @property
    def redis_key(self):
        return f"session:{self.session_id}"

    def to_dict(self):
        data = {
            'id': self.session_id,
            'category': self.category,
            'clientId': self.client_id,
            'results': [result.to_dict() for result in self.results],
            'questionQueue': [q.to_dict() for q in self.question_queue],
            'aiGenerated': self.ai_generated,
            'createdAt': self.created_at.isoformat(),
        }
        if self.custom_category:
            data['customCategory'] = self.custom_category
        return data

    @classmethod
    def from_dict(cls, data):
        session = cls(
            data['category'],
            custom_category=data.get('customCategory'),
            client_id=data.get('clientId'),
            session_id=data['id'],
        )
        session.results = [AnalysisResult.from_dict(item) for item in data.get('results') or []]
        session.question_queue = [InterviewQuestion.from_dict(item) for item in data.get('questionQueue') or []]
        session.ai_generated = bool(data.get('aiGenerated', False))
        session.created_at = parse_timestamp(data.get('createdAt'))
        return session

    def save(self, r):
        if r:
            r.set(self.redis_key, json.dumps(self.to_dict(), ensure_ascii=False))

    @classmethod
    def load(cls, r, session_id):
        if r:
            raw = r.get(f"session:{session_id}")
            if raw:
                try:
                    return cls.from_dict(json.loads(raw))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.error("[session] Corrupted session %s: %s", session_id, e)
                    r.delete(f"session:{session_id}")
        return None

    def delete(self, r):
        if r:
            r.delete(self.redis_key)

    # --- Question queue ---

    def extend_queue(self, questions, ai_generated, refill=False):
        """Replace the queue, or append to it when refilling.

        Questions already queued (same id) are skipped on refill.
        """
        if refill:
            queued_ids = {q.id for q in self.question_queue}
            self.question_queue.extend(q for q in questions if q.id not in queued_ids)
        else:
            self.question_queue = list(questions)
        self.ai_generated = ai_generated

    def answered_ids(self):
        return {result.question_id for result in self.results}

    def unanswered_questions(self) -> List[InterviewQuestion]:
        answered = self.answered_ids()
        return [q for q in self.question_queue if q.id not in answered]

    def current_question(self) -> Optional[InterviewQuestion]:
        unanswered = self.unanswered_questions()
        return unanswered[0] if unanswered else None

    def needs_refill(self) -> bool:
        return len(self.unanswered_questions()) <= REFILL_THRESHOLD

    def find_question(self, question_id) -> Optional[InterviewQuestion]:
        for q in self.question_queue:
            if q.id == question_id:
                return q
        return None

    # --- Results ---

    def add_result(self, result: AnalysisResult):
        self.results.append(result)

    def average_score(self) -> float:
        if not self.results:
            return 0.0
        return sum(result.total_score for result in self.results) / len(self.results)

    # --- History ---

    def archive(self, r) -> bool:
        """Move the session into the client's bounded history.

        Sessions without results are dropped rather than archived.
        """
        if not r:
            return False
        archived = False
        if self.results:
            key = history_key(self.client_id)
            r.lpush(key, json.dumps(self.to_dict(), ensure_ascii=False))
            r.ltrim(key, 0, HISTORY_LIMIT - 1)
            archived = True
        self.delete(r)
        return archived


def load_history(r, client_id) -> List[InterviewSession]:
    """Archived sessions for a client, most recent first."""
    if not r:
        return []
    sessions = []
    for raw in r.lrange(history_key(client_id), 0, HISTORY_LIMIT - 1):
        try:
            sessions.append(InterviewSession.from_dict(json.loads(raw)))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.error("[history] Skipping unreadable entry for %s: %s", client_id, e)
    return sessions
