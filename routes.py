import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from interview_logic import InterviewSession, load_history
from models import archive_session
from rate_limiter import client_id_from_request
from utilities.constants import ANSWER_ANALYSIS, QUESTION_GENERATION
from utilities.errors import FatalError, InterviewError, SessionNotFoundError, ValidationError
from utilities.validators import PAYLOAD_NOT_OBJECT_MESSAGE

logger = logging.getLogger(__name__)

# Create a Flask Blueprint to organize routes
main_bp = Blueprint('main', __name__)

GENERIC_ERROR_MESSAGE = '일시적인 오류가 발생했습니다. 잠시 후 다시 시도해주세요.'


def init_app(app, redis_conn, db_conn, orchestrator):
    """Stores the connection objects on the app and registers the blueprint."""
    app.extensions['interview'] = {
        'redis': redis_conn,
        'db': db_conn,
        'orchestrator': orchestrator,
    }
    app.register_blueprint(main_bp)


def _deps():
    return current_app.extensions['interview']


def _redis():
    r = _deps()['redis']
    # Fail fast if Redis is not available
    if not r:
        raise FatalError('세션 저장소에 연결할 수 없습니다.')
    return r


def _load_session(session_id) -> InterviewSession:
    session = InterviewSession.load(_redis(), session_id)
    if not session:
        raise SessionNotFoundError('세션이 만료되었거나 존재하지 않습니다.')
    return session


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError(PAYLOAD_NOT_OBJECT_MESSAGE)
    return payload


def _custom_category_meta(category, custom_category):
    return custom_category if category == 'other' else None


@main_bp.errorhandler(InterviewError)
def handle_interview_error(error):
    return jsonify(error.to_dict()), error.status_code


@main_bp.errorhandler(Exception)
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return error
    logger.exception("Unhandled error in %s", request.path)
    return jsonify({'success': False, 'error': GENERIC_ERROR_MESSAGE}), 500


def _health_response():
    health = _deps()['orchestrator'].health_check()
    return jsonify({
        'success': True,
        'health': health,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })


def _usage_response(kind):
    status = _deps()['orchestrator'].limiter.check_rate_limit(client_id_from_request(request), kind)
    return jsonify({
        'success': True,
        'rateLimit': {
            'allowed': status.allowed,
            'remaining': status.remaining,
            'message': status.message,
        },
    })


def _action_response(kind):
    action = request.args.get('action')
    if action == 'health':
        return _health_response()
    if action == 'usage':
        return _usage_response(kind)
    return jsonify({'success': False, 'error': 'Invalid action parameter'}), 400


def _analysis_response(payload, outcome):
    category = payload['category']
    return {
        'success': True,
        'analysis': outcome.analysis.to_dict(),
        'metadata': {
            'aiGenerated': outcome.ai_generated,
            'category': category,
            'customCategory': _custom_category_meta(category, payload.get('customCategory')),
            'answerLength': len(str(payload['answer']).strip()),
            'remaining': outcome.remaining,
        },
    }


# === Stateless AI endpoints ===

@main_bp.route('/api/ai/analyze-answer', methods=['POST'])
def analyze_answer():
    """Scores one answer.

    Expects a JSON payload with 'questionId', 'question', 'answer', 'category'
    and optionally 'customCategory'.
    """
    payload = _json_body()
    outcome = _deps()['orchestrator'].analyze_submission(payload, client_id_from_request(request))
    return jsonify(_analysis_response(payload, outcome))


@main_bp.route('/api/ai/analyze-answer', methods=['GET'])
def analyze_answer_status():
    return _action_response(ANSWER_ANALYSIS)


@main_bp.route('/api/ai/generate-questions', methods=['POST'])
def generate_questions():
    payload = _json_body()
    batch = _deps()['orchestrator'].generate_question_batch(payload, client_id_from_request(request))
    category = payload['category']
    return jsonify({
        'success': True,
        'questions': [q.to_dict() for q in batch.questions],
        'metadata': {
            'aiGenerated': batch.ai_generated,
            'category': category,
            'customCategory': _custom_category_meta(category, payload.get('customCategory')),
            'count': len(batch.questions),
            'remaining': batch.remaining,
        },
    })


@main_bp.route('/api/ai/generate-questions', methods=['GET'])
def generate_questions_status():
    return _action_response(QUESTION_GENERATION)


# === Session flow ===

@main_bp.route('/sessions', methods=['POST'])
def start_session():
    """Starts a new interview session for a job category.

    Generates the first question batch, saves the session to Redis and returns
    it along with the first question.
    """
    r = _redis()
    payload = _json_body()
    client_id = client_id_from_request(request)
    batch = _deps()['orchestrator'].generate_question_batch(payload, client_id)

    session = InterviewSession.start(payload['category'], payload.get('customCategory'),
                                     client_id=client_id, batch=batch)
    session.save(r)

    question = session.current_question()
    return jsonify({
        'success': True,
        'session': session.to_dict(),
        'question': question.to_dict() if question else None,
        'metadata': {
            'aiGenerated': batch.ai_generated,
            'count': len(batch.questions),
            'remaining': batch.remaining,
        },
    })


@main_bp.route('/sessions/<session_id>', methods=['GET'])
def get_session(session_id):
    session = _load_session(session_id)
    question = session.current_question()
    return jsonify({
        'success': True,
        'session': session.to_dict(),
        'question': question.to_dict() if question else None,
    })


@main_bp.route('/sessions/<session_id>/answers', methods=['POST'])
def submit_answer(session_id):
    """Scores an answer to a queued question and appends the result.

    Expects 'answer' and optionally 'questionId' (defaults to the current
    question) in the JSON payload.
    """
    r = _redis()
    session = _load_session(session_id)
    payload = _json_body()

    question_id = payload.get('questionId')
    question = session.find_question(question_id) if question_id else session.current_question()
    if not question:
        raise ValidationError('답변할 질문을 찾을 수 없습니다.')

    submission = {
        'questionId': question.id,
        'question': question.question,
        'answer': payload.get('answer'),
        'category': session.category,
        'customCategory': session.custom_category,
    }
    outcome = _deps()['orchestrator'].analyze_submission(submission, client_id_from_request(request))
    session.add_result(outcome.analysis)
    session.save(r)
    return jsonify(_analysis_response(submission, outcome))


@main_bp.route('/sessions/<session_id>/next', methods=['POST'])
def next_question(session_id):
    """Serves the next unanswered question and tops up the queue when it runs low."""
    r = _redis()
    session = _load_session(session_id)
    orchestrator = _deps()['orchestrator']
    client_id = client_id_from_request(request)
    refill_payload = {'category': session.category, 'customCategory': session.custom_category}

    question = session.current_question()
    if question is None:
        # Queue exhausted: a new batch replaces it
        batch = orchestrator.generate_question_batch(refill_payload, client_id)
        session.extend_queue(batch.questions, batch.ai_generated)
        question = session.current_question()
    elif session.needs_refill():
        try:
            batch = orchestrator.generate_question_batch(refill_payload, client_id)
            session.extend_queue(batch.questions, batch.ai_generated, refill=True)
        except InterviewError as e:
            # Keep serving the existing queue
            logger.warning("[session] Queue refill failed for %s: %s", session_id, e.message)

    session.save(r)
    if question is None:
        raise FatalError('다음 질문을 준비하지 못했습니다. 잠시 후 다시 시도해주세요.')
    return jsonify({
        'success': True,
        'question': question.to_dict(),
        'remainingQuestions': len(session.unanswered_questions()),
        'aiGenerated': session.ai_generated,
    })


@main_bp.route('/sessions/<session_id>/end', methods=['POST'])
def end_session(session_id):
    """Ends a session: moves it into the client's history and archives it to the database."""
    r = _redis()
    session = _load_session(session_id)
    archived = session.archive(r)

    # --- Database Logging ---
    if archived:
        database = _deps()['db']
        try:
            archive_session(session, database)
            logger.info("Archived session %s with %s result(s).", session.session_id, len(session.results))
        except SQLAlchemyError as e:
            database.session.rollback()
            logger.error("Database error while archiving %s: %s", session.session_id, e)

    return jsonify({'success': True, 'archived': archived, 'sessionId': session.session_id})


@main_bp.route('/history', methods=['GET'])
def history():
    sessions = load_history(_deps()['redis'], client_id_from_request(request))
    return jsonify({'success': True, 'sessions': [s.to_dict() for s in sessions]})
