import random
from typing import List, Optional

from interview_types import InterviewQuestion

# (question, difficulty) pairs served when the remote generator is unavailable.
QUESTION_BANK = {
    'frontend': [
        ("React에서 컴포넌트 리렌더링을 최적화했던 경험을 설명해주세요.", 'medium'),
        ("브라우저 렌더링 과정과 성능에 영향을 주는 요소를 설명해주세요.", 'medium'),
        ("반응형 웹을 구현할 때 어떤 기준으로 레이아웃을 설계하나요?", 'easy'),
        ("상태 관리 라이브러리를 선택할 때 고려하는 기준은 무엇인가요?", 'medium'),
        ("웹 접근성을 개선하기 위해 적용해본 방법을 말씀해주세요.", 'easy'),
        ("대규모 프론트엔드 프로젝트에서 번들 크기를 줄인 경험이 있나요?", 'hard'),
    ],
    'backend': [
        ("API 응답 속도를 개선했던 경험과 그 결과를 설명해주세요.", 'medium'),
        ("데이터베이스 인덱스를 설계할 때 고려하는 점은 무엇인가요?", 'medium'),
        ("트래픽이 급증했을 때 서버 확장성을 어떻게 확보하나요?", 'hard'),
        ("인증과 인가의 차이와 구현 방식을 설명해주세요.", 'easy'),
        ("장애가 발생했을 때 원인을 찾고 해결한 과정을 말씀해주세요.", 'medium'),
        ("트랜잭션 격리 수준과 각각의 문제점을 설명해주세요.", 'hard'),
    ],
    'planner': [
        ("사용자 요구사항을 수집하고 우선순위를 정한 경험을 설명해주세요.", 'medium'),
        ("기획한 서비스의 성과를 어떤 지표로 측정했나요?", 'medium'),
        ("개발팀과 의견이 충돌했을 때 어떻게 조율했나요?", 'easy'),
        ("기존 프로세스를 개선해 효율을 높인 사례가 있나요?", 'medium'),
        ("신규 서비스 기획 시 시장 분석은 어떻게 진행하나요?", 'easy'),
        ("데이터를 근거로 기획 방향을 바꾼 경험을 말씀해주세요.", 'hard'),
    ],
    'designer': [
        ("사용자 경험을 개선하기 위해 진행한 리서치 경험을 설명해주세요.", 'medium'),
        ("디자인 시스템을 구축하거나 운영해본 경험이 있나요?", 'hard'),
        ("브랜드 아이덴티티를 인터페이스에 반영하는 방법은 무엇인가요?", 'medium'),
        ("개발자와 협업할 때 디자인 의도를 어떻게 전달하나요?", 'easy'),
        ("사용성 테스트 결과로 디자인을 수정한 사례를 말씀해주세요.", 'medium'),
        ("색상과 레이아웃을 결정할 때 어떤 원칙을 따르나요?", 'easy'),
    ],
    'marketer': [
        ("가장 성과가 좋았던 마케팅 캠페인과 그 이유를 설명해주세요.", 'medium'),
        ("타겟 고객을 정의하고 세분화한 경험을 말씀해주세요.", 'easy'),
        ("캠페인 성과를 분석할 때 어떤 지표를 중요하게 보나요?", 'medium'),
        ("한정된 예산으로 마케팅 효과를 극대화한 경험이 있나요?", 'hard'),
        ("브랜드 인지도를 높이기 위한 전략을 제안해주세요.", 'medium'),
        ("실패한 캠페인에서 배운 점을 말씀해주세요.", 'easy'),
    ],
    'generic': [
        ("지원한 직무에서 가장 중요하다고 생각하는 역량은 무엇인가요?", 'easy'),
        ("가장 도전적이었던 프로젝트와 본인의 역할을 설명해주세요.", 'medium'),
        ("목표를 달성하기 위해 계획을 세우고 실행한 경험을 말씀해주세요.", 'medium'),
        ("팀원과 갈등이 있었을 때 어떻게 해결했나요?", 'easy'),
        ("실패한 경험과 그 이후 달라진 점을 말씀해주세요.", 'medium'),
        ("입사 후 1년 동안 이루고 싶은 성과는 무엇인가요?", 'hard'),
    ],
}


def questions_for(category: str, draw: str = '0') -> List[InterviewQuestion]:
    """Bank questions for a category. `draw` keeps ids unique across repeated draws."""
    entries = QUESTION_BANK.get(category) or QUESTION_BANK['generic']
    return [
        InterviewQuestion(id=f"bank-{category}-{idx}-{draw}", category=category, question=text, difficulty=difficulty)
        for idx, (text, difficulty) in enumerate(entries)
    ]


def sample_questions(category: str, count: int, rng: Optional[random.Random] = None) -> List[InterviewQuestion]:
    """Random draw of up to `count` questions for the category."""
    rng = rng or random.Random()
    pool = questions_for(category, draw=f"{rng.getrandbits(32):08x}")
    return rng.sample(pool, min(count, len(pool)))
