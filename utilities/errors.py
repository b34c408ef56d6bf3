class InterviewError(Exception):
    """Base class for errors that cross the service boundary.

    Each subclass carries the HTTP status and the `type` tag rendered in the
    `{success: false, error, type}` response body.
    """
    status_code = 500
    error_type = 'INTERNAL_ERROR'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'success': False, 'error': self.message, 'type': self.error_type}


class ValidationError(InterviewError):
    status_code = 400
    error_type = 'VALIDATION_ERROR'


class RateLimitError(InterviewError):
    status_code = 429
    error_type = 'RATE_LIMIT_EXCEEDED'

    def __init__(self, message: str, remaining=None):
        super().__init__(message)
        self.remaining = remaining

    def to_dict(self):
        payload = super().to_dict()
        payload['remaining'] = self.remaining
        return payload


class SessionNotFoundError(InterviewError):
    status_code = 404
    error_type = 'SESSION_NOT_FOUND'


class FatalError(InterviewError):
    status_code = 500
    error_type = 'INTERNAL_ERROR'


# Provider-level failures. These stay below the orchestrator and are turned
# into a fallback decision there.

class ProviderError(Exception):
    pass


class NetworkError(ProviderError):
    pass


class ParseError(ProviderError):
    pass


class StructureError(ProviderError):
    pass


class InsufficientYieldError(ProviderError):
    pass
