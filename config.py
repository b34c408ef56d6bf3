import os
from dotenv import load_dotenv

load_dotenv()

API_KEY = os.getenv('GEMINI_API_KEY')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-1.5-flash')
API_URL = f"https://generativelanguage.googleapis.com/v1beta/models/{GEMINI_MODEL}:generateContent?key={API_KEY}"
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379')
DATABASE_URL = os.getenv('DATABASE_URL')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Remote scorer
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '120'))
MAX_RETRIES = int(os.getenv('MAX_RETRIES', '3'))
BACKOFF_FACTOR = int(os.getenv('BACKOFF_FACTOR', '2'))
HEALTH_CACHE_SEC = int(os.getenv('HEALTH_CACHE_SEC', '60'))

# Question generation
QUESTION_BATCH_SIZE = int(os.getenv('QUESTION_BATCH_SIZE', '25'))
MIN_QUESTION_YIELD = int(os.getenv('MIN_QUESTION_YIELD', '20'))

# Per-client usage limits
RATE_LIMITS = {
    'questionGeneration': {
        'hourly': int(os.getenv('QUESTION_HOURLY_LIMIT', '20')),
        'daily': int(os.getenv('QUESTION_DAILY_LIMIT', '50')),
    },
    'answerAnalysis': {
        'hourly': int(os.getenv('ANALYSIS_HOURLY_LIMIT', '50')),
        'daily': int(os.getenv('ANALYSIS_DAILY_LIMIT', '100')),
    },
}
