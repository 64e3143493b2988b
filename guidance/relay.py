import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Optional

import httpx
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from pydantic import BaseModel, ConfigDict, Field

from guidance.config import DEFAULT_MODEL, Credential, Settings
from guidance.errors import ConfigurationError, GuidanceError, TransportError, UpstreamError
from guidance.profile import StudentProfile
from guidance.prompt import compose


logger = logging.getLogger(__name__)

GENERATION_CONFIG = {
    "temperature": 0.7,
    "top_k": 40,
    "top_p": 0.95,
    "max_output_tokens": 1024,
}

EMPTY_RESPONSE_FALLBACK = "I apologize, but I couldn't generate a response at this time. Please try again."
TECHNICAL_DIFFICULTIES_FALLBACK = "I'm experiencing technical difficulties..."
MISSING_KEY_FALLBACK = "Please add your Gemini API key to get personalized AI career guidance."

TECHNICAL_DIFFICULTIES_NOTICE = "The AI service is unavailable right now. Please try again in a moment."
MISSING_KEY_NOTICE = "No Gemini API key is configured."

DEFAULT_RELAY_TIMEOUT = 30.0


class GuidanceRequest(BaseModel):
    """Question plus the profile it should be answered for (relay wire format)"""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    student_data: StudentProfile = Field(alias="studentData")

    def to_payload(self) -> Dict[str, Any]:
        return {"prompt": self.prompt, "studentData": self.student_data.to_payload()}


@dataclass
class RelayReply:
    """Generated text, or the fallback shown in its place"""
    text: str
    ok: bool = True
    notification: Optional[str] = None
    error: Optional[GuidanceError] = None


def extract_text(response: Any) -> str:
    """First candidate's first text part, or the fixed fallback"""
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        if parts:
            text = getattr(parts[0], "text", None)
            if text:
                return text
    logger.warning(" Provider response had no candidate text, using fallback")
    return EMPTY_RESPONSE_FALLBACK


# ==================== GEMINI CLIENT ====================

class GeminiClient:
    """Single-attempt Gemini generateContent calls"""

    def __init__(self, credential: Credential, model_name: str = DEFAULT_MODEL, timeout: Optional[float] = None):
        self.credential = credential
        self.model_name = model_name
        self.timeout = timeout
        self.model = None

        if not credential.is_missing:
            genai.configure(api_key=credential.value, transport="rest")
            self.model = genai.GenerativeModel(model_name, generation_config=GENERATION_CONFIG)
            logger.info(f" GeminiClient initialized with model {model_name}")
        else:
            logger.warning(" GeminiClient created without an API key")

    @property
    def is_configured(self) -> bool:
        return self.model is not None

    def _request_options(self) -> Dict[str, Any]:
        # retry=None disables the SDK's own retry policy
        options: Dict[str, Any] = {"retry": None}
        if self.timeout is not None:
            options["timeout"] = self.timeout
        return options

    async def generate(self, prompt_text: str) -> str:
        if self.model is None:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        logger.info(f" Calling Gemini API with prompt length: {len(prompt_text)}")

        try:
            response = await asyncio.to_thread(
                self.model.generate_content,
                prompt_text,
                request_options=self._request_options(),
            )
        except google_exceptions.DeadlineExceeded as e:
            raise TransportError(f"Gemini API timed out: {e}") from e
        except google_exceptions.GoogleAPICallError as e:
            status_code = int(e.code) if isinstance(e.code, int) else 502
            logger.error(f" Gemini API error: {status_code} {e.message}")
            raise UpstreamError(status_code) from e
        except (google_exceptions.RetryError, OSError) as e:
            raise TransportError(f"Gemini API unreachable: {e}") from e

        text = extract_text(response)
        logger.info(f" Successfully generated response, length: {len(text)}")
        return text


# ==================== RELAYS ====================

class GuidanceRelay:
    """Boundary between a chat session and the text-generation provider"""

    mode = "direct"

    @property
    def is_configured(self) -> bool:
        return True

    async def ask(self, request: GuidanceRequest) -> RelayReply:
        raise NotImplementedError

    async def _reply(self, call: Awaitable[str]) -> RelayReply:
        try:
            text = await call
        except ConfigurationError as e:
            logger.warning(f" Guidance request not sent: {e}")
            return RelayReply(MISSING_KEY_FALLBACK, ok=False, notification=MISSING_KEY_NOTICE, error=e)
        except (UpstreamError, TransportError) as e:
            logger.error(f" Guidance relay failed: {e}")
            return RelayReply(
                TECHNICAL_DIFFICULTIES_FALLBACK,
                ok=False,
                notification=TECHNICAL_DIFFICULTIES_NOTICE,
                error=e,
            )
        return RelayReply(text)


class GeminiRelay(GuidanceRelay):
    """Calls Gemini from this process with the injected key"""

    mode = "direct"

    def __init__(self, client: GeminiClient):
        self.client = client

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    async def ask_prompt(self, prompt_text: str) -> RelayReply:
        return await self._reply(self.client.generate(prompt_text))

    async def ask(self, request: GuidanceRequest) -> RelayReply:
        return await self.ask_prompt(compose(request.student_data, request.prompt))


class EndpointRelay(GuidanceRelay):
    """Forwards questions to a relay endpoint that holds the key server-side"""

    mode = "relayed"

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.token = token
        self.timeout = timeout if timeout is not None else DEFAULT_RELAY_TIMEOUT
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
            headers["apikey"] = self.token
        return headers

    async def _post(self, request: GuidanceRequest) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.url, json=request.to_payload(), headers=self._headers())
        except httpx.TimeoutException as e:
            raise TransportError(f"Guidance relay timeout: {self.url}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Guidance relay unavailable: {self.url} ({e})") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not resp.is_success:
            raise UpstreamError(resp.status_code, data.get("error") or f"AI service error: {resp.status_code}")

        return data.get("generatedText") or EMPTY_RESPONSE_FALLBACK

    async def ask(self, request: GuidanceRequest) -> RelayReply:
        return await self._reply(self._post(request))


def build_relay(settings: Settings, client: Optional[GeminiClient] = None) -> GuidanceRelay:
    """Relayed shape when a relay URL is configured, direct otherwise"""
    if settings.relay_url:
        logger.info(f" Using guidance relay endpoint {settings.relay_url}")
        return EndpointRelay(settings.relay_url, token=settings.relay_token, timeout=settings.request_timeout)
    if client is None:
        client = GeminiClient(settings.credential, model_name=settings.model_name, timeout=settings.request_timeout)
    return GeminiRelay(client)
