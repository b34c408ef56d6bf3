MIN_ANSWER_LENGTH = 10
MAX_ANSWER_LENGTH = 2000

MAX_FEEDBACK_ITEMS = 3
MAX_AXIS_SCORE = 25
MAX_TOTAL_SCORE = 100

HISTORY_LIMIT = 10
REFILL_THRESHOLD = 3

QUESTION_GENERATION = 'questionGeneration'
ANSWER_ANALYSIS = 'answerAnalysis'

DIFFICULTY_LEVELS = ('easy', 'medium', 'hard')

JOB_CATEGORIES = (
    'frontend', 'backend', 'planner', 'designer', 'marketer', 'data-science',
    'devops', 'product-management', 'qa', 'mobile-development', 'other',
)

JOB_TITLES = {
    'frontend': '프론트엔드 개발자',
    'backend': '백엔드 개발자',
    'planner': '서비스 기획자',
    'designer': 'UI/UX 디자이너',
    'marketer': '마케터',
    'data-science': '데이터 사이언티스트',
    'devops': 'DevOps 엔지니어',
    'product-management': '프로덕트 매니저',
    'qa': 'QA 엔지니어',
    'mobile-development': '모바일 개발자',
    'other': '일반',
}

JOB_KEYWORDS = {
    'frontend': ['React', 'JavaScript', 'CSS', 'HTML', 'UI', 'UX', '컴포넌트', '반응형', '브라우저', '사용자'],
    'backend': ['API', '데이터베이스', '서버', '성능', '보안', '확장성', '아키텍처', '최적화'],
    'planner': ['기획', '요구사항', '분석', '사용자', '프로세스', '개선', '전략', '목표'],
    'designer': ['디자인', '사용자', '경험', '인터페이스', '브랜드', '시각적', '레이아웃', '색상'],
    'marketer': ['마케팅', '고객', '브랜드', '캠페인', '분석', '성과', '타겟', '전략'],
    'data-science': ['데이터', '모델', '분석', '통계', '머신러닝', '피처', '지표', '실험'],
    'devops': ['배포', '자동화', 'CI', 'CD', '모니터링', '인프라', '컨테이너', '장애'],
    'product-management': ['제품', '로드맵', '우선순위', '사용자', '지표', '가설', '출시', '이해관계자'],
    'qa': ['테스트', '품질', '버그', '자동화', '시나리오', '회귀', '결함', '검증'],
    'mobile-development': ['iOS', 'Android', '앱', '네이티브', '성능', '배포', '사용자', '화면'],
}
GENERIC_KEYWORDS = ['경험', '역량', '성과', '목표']

EXAMPLE_CUES = ('예를 들어', '예시', '경험', '프로젝트', '회사', '팀')
TIMEFRAME_CUES = ('년', '개월', '주', '일', '기간', '동안')
PROBLEM_SOLVING_CUES = ('문제', '해결')
