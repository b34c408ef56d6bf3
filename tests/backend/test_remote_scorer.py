import json

import pytest

import remote_scorer
from remote_scorer import (
    build_analysis_prompt, extract_json_region, generate_questions, parse_json_reply,
    score_remotely, validate_analysis_payload,
)
from utilities.errors import InsufficientYieldError, NetworkError, ParseError, StructureError

VALID_REPLY = {
    'scores': {'understanding': 20, 'logic': 15, 'specificity': 10, 'relevance': 18},
    'totalScore': 63,
    'strengths': ['구체적인 예시', '논리적 설명'],
    'improvements': ['경험 추가 필요'],
    'feedback': '질문의 핵심을 이해했으나 구체적인 경험 사례가 부족합니다.',
    'idealAnswer': '실제 프로젝트에서 사용한 기술을 예시로 들어 설명합니다.',
    'conceptualExplanation': '기술적 역량과 실무 경험을 평가하는 질문입니다.',
}


def _reply(data, prose=True):
    body = json.dumps(data, ensure_ascii=False)
    return f"분석 결과입니다:\n```json\n{body}\n```\n참고하세요." if prose else body


def _score(call_model, sleeps=None, **kwargs):
    sleeps = sleeps if sleeps is not None else []
    return score_remotely('q-1', '질문', '답변입니다 충분히', 'frontend',
                          call_model=call_model, sleep=sleeps.append, **kwargs)


class TestJsonExtraction:
    def test_region_wrapped_in_prose(self):
        assert extract_json_region('앞 {"a": {"b": 1}} 뒤 } 끝') == '{"a": {"b": 1}}'

    def test_braces_inside_strings_are_ignored(self):
        text = 'x {"feedback": "중괄호 } 포함", "n": 1} y'
        assert json.loads(extract_json_region(text)) == {'feedback': '중괄호 } 포함', 'n': 1}

    def test_array_region(self):
        assert extract_json_region('목록: [1, [2, 3]] 끝', '[', ']') == '[1, [2, 3]]'

    def test_no_region(self):
        with pytest.raises(ParseError):
            extract_json_region('JSON이 없습니다')
        with pytest.raises(ParseError):
            extract_json_region('{ "unterminated": 1')

    def test_invalid_json(self):
        with pytest.raises(ParseError, match='Failed to parse'):
            parse_json_reply("{'single': 'quotes'}")


class TestValidation:
    @pytest.mark.parametrize('mutate, message', [
        (lambda d: d.pop('scores'), 'missing scores'),
        (lambda d: d.update(scores=[1, 2, 3, 4]), 'missing scores'),
        (lambda d: d.update(totalScore='63'), 'invalid totalScore'),
        (lambda d: d.update(totalScore=True), 'invalid totalScore'),
        (lambda d: d.pop('feedback'), 'missing feedback'),
    ])
    def test_each_failure_is_named(self, mutate, message):
        data = json.loads(json.dumps(VALID_REPLY))
        mutate(data)
        with pytest.raises(StructureError, match=message):
            validate_analysis_payload(data)


class TestScoreRemotely:
    def test_success_maps_and_marks_provenance(self):
        result = _score(lambda prompt: _reply(VALID_REPLY))
        assert result.success
        assert result.attempts == 1
        analysis = result.value
        assert analysis.ai_generated is True
        assert analysis.scores.to_dict() == {'understanding': 20, 'logic': 15, 'specificity': 10, 'jobFit': 18}
        assert analysis.total_score == 63
        assert analysis.detailed_feedback == VALID_REPLY['feedback']
        assert analysis.sample_answer == VALID_REPLY['idealAnswer']
        assert analysis.conceptual_explanation == VALID_REPLY['conceptualExplanation']

    def test_out_of_range_values_are_clamped(self):
        data = dict(VALID_REPLY, scores={'understanding': 40, 'logic': -3, 'specificity': 'high', 'relevance': 25},
                    totalScore=150)
        analysis = _score(lambda prompt: _reply(data)).value
        assert analysis.scores.to_dict() == {'understanding': 25, 'logic': 0, 'specificity': 0, 'jobFit': 25}
        assert analysis.total_score == 100

    def test_total_is_not_recomputed_from_axes(self):
        data = dict(VALID_REPLY, totalScore=90)
        analysis = _score(lambda prompt: _reply(data)).value
        assert analysis.scores.total() == 63
        assert analysis.total_score == 90

    def test_feedback_lists_are_truncated_or_replaced(self):
        data = dict(VALID_REPLY, strengths=['a', 'b', 'c', 'd', 'e'], improvements='개선 필요')
        data.pop('idealAnswer')
        analysis = _score(lambda prompt: _reply(data)).value
        assert analysis.strengths == ['a', 'b', 'c']
        assert analysis.improvements == [remote_scorer.FALLBACK_IMPROVEMENT]
        assert analysis.sample_answer == remote_scorer.FALLBACK_SAMPLE_ANSWER

    def test_retries_then_succeeds(self):
        replies = iter(['죄송합니다, JSON을 만들 수 없습니다.', _reply(VALID_REPLY)])
        sleeps = []
        result = _score(lambda prompt: next(replies), sleeps)
        assert result.success
        assert result.attempts == 2
        assert sleeps == [1]

    def test_structure_errors_are_retried(self):
        broken = dict(VALID_REPLY)
        broken.pop('feedback')
        replies = iter([_reply(broken), _reply(VALID_REPLY)])
        result = _score(lambda prompt: next(replies))
        assert result.success and result.attempts == 2

    def test_retry_exhaustion(self):
        calls = []

        def _down(prompt):
            calls.append(prompt)
            raise NetworkError(f'net down #{len(calls)}')

        sleeps = []
        result = _score(_down, sleeps)
        assert not result.success
        assert result.value is None
        assert len(calls) == 4
        assert sleeps == [1, 2, 4]
        assert sum(sleeps) == pytest.approx(7, abs=0.01)
        assert result.error_message == 'net down #4'
        assert result.attempts == 4

    def test_unexpected_exceptions_are_wrapped(self):
        def _boom(prompt):
            raise RuntimeError('boom')

        result = _score(_boom, max_retries=0)
        assert not result.success
        assert isinstance(result.error, remote_scorer.ProviderError)
        assert result.error_message == 'boom'

    def test_prompt_mentions_schema_and_inputs(self):
        prompt = build_analysis_prompt('질문 본문', '답변 본문', 'other', '물류 관리자')
        assert '질문 본문' in prompt and '답변 본문' in prompt
        assert '물류 관리자' in prompt
        for key in ('"relevance"', '"totalScore"', '"feedback"', '"idealAnswer"', '"conceptualExplanation"'):
            assert key in prompt


def _question_items(n, difficulty='medium'):
    return [{'question': f'질문 {i}번입니다', 'difficulty': difficulty, 'category': 'backend'} for i in range(n)]


class TestGenerateQuestions:
    def test_success_caps_batch(self):
        reply = '여기 있습니다: ' + json.dumps(_question_items(30), ensure_ascii=False)
        result = generate_questions('backend', call_model=lambda p: reply, sleep=lambda s: None)
        assert result.success
        assert len(result.value) == 25
        assert {q.category for q in result.value} == {'backend'}
        assert len({q.id for q in result.value}) == 25

    def test_invalid_items_are_dropped(self):
        items = _question_items(20) + [{'question': '', 'difficulty': 'easy'},
                                       {'question': '난이도 없음'},
                                       {'question': '이상한 난이도', 'difficulty': 'extreme'},
                                       'not an object']
        result = generate_questions('backend', call_model=lambda p: json.dumps(items), sleep=lambda s: None)
        assert result.success
        assert len(result.value) == 20

    def test_insufficient_yield_is_retried_then_fails(self):
        calls = []

        def _few(prompt):
            calls.append(prompt)
            return json.dumps(_question_items(10))

        sleeps = []
        result = generate_questions('backend', call_model=_few, sleep=sleeps.append)
        assert not result.success
        assert isinstance(result.error, InsufficientYieldError)
        assert len(calls) == 4
        assert sleeps == [1, 2, 4]

    def test_custom_minimum(self):
        reply = json.dumps(_question_items(5))
        result = generate_questions('backend', count=10, min_yield=5, call_model=lambda p: reply,
                                    sleep=lambda s: None)
        assert result.success and len(result.value) == 5
