import logging
import time
import requests
from config import API_KEY, API_URL, REQUEST_TIMEOUT
from typing import Optional

from .errors import NetworkError

logger = logging.getLogger(__name__)


def _build_request(prompt: str):
    """Headers and `generateContent` body for a single-prompt request."""
    headers = {'Content-Type': 'application/json'}
    data = {'contents': [{'parts': [{'text': prompt}]}]}
    return headers, data


def _extract_text(response_json: dict) -> Optional[str]:
    """Extract plain text from a Gemini-style response JSON.

    Expected shape (minimal):
    {
      "candidates": [
        { "content": { "parts": [ { "text": "..." } ] } }
      ]
    }

    Returns None if any of the expected keys/arrays are missing/empty.
    """
    candidates = response_json.get('candidates') or []
    if not candidates:
        return None
    candidate = candidates[0]
    content = candidate.get('content') or {}
    parts = content.get('parts') or []
    if not parts:
        return None
    text = parts[0].get('text')
    return text.strip() if isinstance(text, str) else None


def _backoff_sleep(attempt: int, backoff_factor: int, sleep=time.sleep) -> float:
    """Sleep using exponential backoff based on the attempt number.

    The wait time is `backoff_factor ** attempt`, so a factor of 2 gives
    1, 2, 4, ... seconds for attempts 0, 1, 2.

    Returns:
        The number of seconds slept.
    """
    wait_time = max(0, backoff_factor ** attempt)
    if wait_time:
        logger.info("[llm] Retrying in %s seconds...", wait_time)
        sleep(wait_time)
    return wait_time


def call_gemini_api(prompt: str, timeout: int = REQUEST_TIMEOUT) -> str:
    """Send one prompt to the Gemini endpoint and return the response text.

    A single attempt only: retry policy belongs to the caller so that every
    failure mode (network, parse, schema) shares one backoff schedule.

    Raises:
        NetworkError: missing API key, transport failure, non-2xx status, or a
            payload without candidate text.
    """
    if not API_KEY:
        raise NetworkError('GEMINI_API_KEY not configured')

    headers, data = _build_request(prompt)
    try:
        resp = requests.post(API_URL, headers=headers, json=data, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except requests.exceptions.HTTPError as e:
        status = getattr(e.response, 'status_code', None)
        error_text = getattr(e.response, 'text', '')
        raise NetworkError(f"API request failed with status {status}: {error_text[:200]}") from e
    except requests.RequestException as e:
        raise NetworkError(f"Request failed: {e}") from e
    except ValueError as e:
        raise NetworkError(f"Response body is not JSON: {e}") from e

    text = _extract_text(payload)
    if not text:
        raise NetworkError(f"Unexpected API response format: {resp.text[:200]}")
    return text


def check_api_health(call_model=None) -> dict:
    """Probe the provider with a tiny prompt.

    Returns:
        {'available': bool, 'error': Optional[str]}
    """
    if not API_KEY and call_model is None:
        return {'available': False, 'error': 'GEMINI_API_KEY not configured'}
    call_model = call_model or call_gemini_api
    try:
        text = call_model("Hello, respond with 'OK'")
    except NetworkError as e:
        return {'available': False, 'error': str(e)}
    if 'OK' in text:
        return {'available': True, 'error': None}
    return {'available': False, 'error': 'Unexpected response'}
