import pytest

from utilities.errors import ValidationError
from utilities.validators import job_title, validate_category, validate_submission


def _payload(answer):
    return {'questionId': 'q-1', 'question': '자기소개를 해주세요.', 'answer': answer, 'category': 'frontend'}


@pytest.mark.parametrize('missing', ['questionId', 'question', 'answer', 'category'])
def test_missing_field_is_rejected(missing):
    payload = _payload('충분히 긴 답변입니다 정말로')
    payload.pop(missing)
    with pytest.raises(ValidationError, match='필수 항목'):
        validate_submission(payload)


def test_length_gate_boundaries():
    with pytest.raises(ValidationError, match='최소 10글자'):
        validate_submission(_payload('  ' + 'a' * 9 + '  '))
    assert validate_submission(_payload('  ' + 'a' * 10 + '  ')) == 'a' * 10

    assert len(validate_submission(_payload('a' * 2000))) == 2000
    with pytest.raises(ValidationError, match='2000글자'):
        validate_submission(_payload('a' * 2001))


def test_missing_fields_checked_before_length():
    with pytest.raises(ValidationError, match='필수 항목'):
        validate_submission({'questionId': 'q', 'answer': 'short', 'category': 'qa'})


def test_validate_category():
    assert validate_category({'category': 'backend'}) == 'backend'
    with pytest.raises(ValidationError):
        validate_category({})
    with pytest.raises(ValidationError, match='지원하지 않는'):
        validate_category({'category': 'astronaut'})


def test_job_title():
    assert job_title('frontend') == '프론트엔드 개발자'
    assert job_title('other', '데이터 엔지니어') == '데이터 엔지니어'
    assert job_title('other') == '일반'


@pytest.mark.parametrize('payload', [[1, 2], 'text', 42])
def test_non_object_payload_is_rejected(payload):
    with pytest.raises(ValidationError, match='JSON 객체'):
        validate_submission(payload)
    with pytest.raises(ValidationError, match='JSON 객체'):
        validate_category(payload)
