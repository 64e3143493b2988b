from typing import List, Optional


class GuidanceError(Exception):
    """Base class for career guidance errors"""


class ProfileValidationError(GuidanceError):
    """Student profile is missing required fields"""

    def __init__(self, fields: List[str], message: Optional[str] = None):
        self.fields = list(fields)
        if message is None:
            message = f"Missing or invalid profile fields: {', '.join(self.fields)}"
        super().__init__(message)


class ConfigurationError(GuidanceError):
    """No provider credential is configured"""


class UpstreamError(GuidanceError):
    """The text-generation provider answered with a non-2xx status"""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"AI service error: {status_code}")


class TransportError(GuidanceError):
    """The provider or relay could not be reached"""


class SessionBusyError(GuidanceError):
    """A reply is still pending for this chat session"""
