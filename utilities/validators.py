from .constants import MIN_ANSWER_LENGTH, MAX_ANSWER_LENGTH, JOB_CATEGORIES, JOB_TITLES
from .errors import ValidationError

REQUIRED_SUBMISSION_FIELDS = ('questionId', 'question', 'answer', 'category')
PAYLOAD_NOT_OBJECT_MESSAGE = '요청 본문은 JSON 객체여야 합니다.'


def validate_submission(payload: dict) -> str:
    """Run the submission pre-checks in order and return the trimmed answer.

    Raises ValidationError on the first failing check.
    """
    if payload is not None and not isinstance(payload, dict):
        raise ValidationError(PAYLOAD_NOT_OBJECT_MESSAGE)
    if not payload or not all(payload.get(field) for field in REQUIRED_SUBMISSION_FIELDS):
        raise ValidationError(
            '필수 항목이 누락되었습니다: ' + ', '.join(REQUIRED_SUBMISSION_FIELDS)
        )
    answer = str(payload['answer']).strip()
    if len(answer) < MIN_ANSWER_LENGTH:
        raise ValidationError(f'답변은 최소 {MIN_ANSWER_LENGTH}글자 이상 작성해주세요.')
    if len(answer) > MAX_ANSWER_LENGTH:
        raise ValidationError(f'답변은 {MAX_ANSWER_LENGTH}글자를 초과할 수 없습니다.')
    return answer


def validate_category(payload: dict) -> str:
    if payload is not None and not isinstance(payload, dict):
        raise ValidationError(PAYLOAD_NOT_OBJECT_MESSAGE)
    category = (payload or {}).get('category')
    if not category:
        raise ValidationError('직무 카테고리를 선택해주세요.')
    if category not in JOB_CATEGORIES:
        raise ValidationError(f'지원하지 않는 직무 카테고리입니다: {category}')
    return category


def job_title(category: str, custom_category=None) -> str:
    if category == 'other':
        return custom_category or JOB_TITLES['other']
    return JOB_TITLES.get(category, JOB_TITLES['other'])
