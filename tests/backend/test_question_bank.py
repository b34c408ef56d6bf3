import random

from question_bank import QUESTION_BANK, questions_for, sample_questions


def test_unknown_category_uses_generic_questions():
    questions = questions_for('astronaut')
    assert [q.question for q in questions] == [text for text, _ in QUESTION_BANK['generic']]
    assert {q.category for q in questions} == {'astronaut'}


def test_sample_is_capped_by_pool():
    questions = sample_questions('frontend', 25, rng=random.Random(1))
    assert len(questions) == len(QUESTION_BANK['frontend'])


def test_repeated_draws_get_fresh_ids():
    rng = random.Random(1)
    first = sample_questions('backend', 25, rng=rng)
    second = sample_questions('backend', 25, rng=rng)
    assert {q.question for q in first} == {q.question for q in second}
    assert not {q.id for q in first} & {q.id for q in second}


def test_draws_follow_seed():
    first = sample_questions('planner', 3, rng=random.Random(5))
    second = sample_questions('planner', 3, rng=random.Random(5))
    assert first == second
