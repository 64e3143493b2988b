import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


# ==================== CREDENTIALS ====================

@dataclass(frozen=True)
class ApiKey:
    """A configured provider API key"""
    value: str

    @property
    def is_missing(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ApiKey(****)"


class MissingCredential:
    """No provider API key is configured"""

    @property
    def is_missing(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "MissingCredential()"


MISSING = MissingCredential()

Credential = Union[ApiKey, MissingCredential]


def load_credential(name: str = "GEMINI_API_KEY") -> Credential:
    """Read an API key from the environment, MISSING when absent or blank"""
    value = (os.getenv(name) or "").strip()
    if not value:
        logger.warning(f" {name} is not configured")
        return MISSING
    return ApiKey(value)


# ==================== SETTINGS ====================

def _optional_float(name: str) -> Optional[float]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}")


@dataclass
class Settings:
    """Runtime configuration for the career guidance service"""
    credential: Credential = MISSING
    model_name: str = DEFAULT_MODEL
    relay_url: Optional[str] = None
    relay_token: Optional[str] = field(default=None, repr=False)
    request_timeout: Optional[float] = None
    reply_timeout: Optional[float] = None
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def relay_mode(self) -> str:
        return "relayed" if self.relay_url else "direct"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        relay_url = (os.getenv("GUIDANCE_RELAY_URL") or "").strip() or None
        relay_token = (os.getenv("GUIDANCE_RELAY_TOKEN") or "").strip() or None

        return cls(
            credential=load_credential(),
            model_name=(os.getenv("GEMINI_MODEL") or DEFAULT_MODEL).strip(),
            relay_url=relay_url,
            relay_token=relay_token,
            request_timeout=_optional_float("GUIDANCE_REQUEST_TIMEOUT"),
            reply_timeout=_optional_float("GUIDANCE_REPLY_TIMEOUT"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", 8000)),
        )
