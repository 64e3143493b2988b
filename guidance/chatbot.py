import uuid
import asyncio
import logging
import itertools
from enum import Enum
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from guidance.errors import ConfigurationError, SessionBusyError, TransportError
from guidance.formatting import message_payload
from guidance.profile import ProfileInput, StudentProfile, submit as submit_profile
from guidance.recommendation import StructuredRecommendation, build_greeting, build_seed_recommendation
from guidance.relay import (
    MISSING_KEY_FALLBACK,
    MISSING_KEY_NOTICE,
    TECHNICAL_DIFFICULTIES_FALLBACK,
    TECHNICAL_DIFFICULTIES_NOTICE,
    GuidanceRelay,
    GuidanceRequest,
    RelayReply,
)


logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_REPLY = "awaiting_reply"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """One entry of the chat log, immutable once created"""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Literal["user", "assistant"]
    text: str
    created_at: datetime = Field(default_factory=_utcnow)
    structured: Optional[StructuredRecommendation] = None


MessageListener = Callable[[Message], Awaitable[None]]
StateListener = Callable[[SessionState], Awaitable[None]]
NotificationListener = Callable[[str], Awaitable[None]]


class ChatSession:
    """
    Career guidance chat for one student profile.

    The log starts with a seed assistant message carrying the structured
    recommendation. Each submitted question appends the user message right
    away, then exactly one assistant message once the relay answers. Only one
    turn may be pending at a time. Listener events are delivered in log order,
    even when the next question arrives while the previous reply is still
    being delivered.
    """

    def __init__(
        self,
        profile: ProfileInput,
        relay: GuidanceRelay,
        *,
        session_id: Optional[str] = None,
        on_message: Optional[MessageListener] = None,
        on_state_change: Optional[StateListener] = None,
        on_notification: Optional[NotificationListener] = None,
        reply_timeout: Optional[float] = None,
    ):
        self.profile: StudentProfile = submit_profile(profile)
        self.relay = relay
        self.session_id = session_id or str(uuid.uuid4())
        self.on_message = on_message
        self.on_state_change = on_state_change
        self.on_notification = on_notification
        self.reply_timeout = reply_timeout

        self.state = SessionState.IDLE
        self._messages: List[Message] = []
        self._ids = itertools.count(1)
        self._pending: Optional[asyncio.Task] = None
        self._emit_lock: Optional[asyncio.Lock] = None

        self._seed()
        logger.info(f" ChatSession initialized for session {self.session_id} ({relay.mode} relay)")

    # ==================== MESSAGE LOG ====================

    def _append(self, role: str, text: str, structured: Optional[StructuredRecommendation] = None) -> Message:
        message = Message(id=str(next(self._ids)), role=role, text=text, structured=structured)
        self._messages.append(message)
        return message

    def _seed(self) -> Message:
        return self._append(
            "assistant",
            build_greeting(self.profile),
            structured=build_seed_recommendation(self.profile),
        )

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def is_awaiting_reply(self) -> bool:
        return self.state is SessionState.AWAITING_REPLY

    # ==================== TURNS ====================

    def submit(self, question: str) -> Optional[asyncio.Task]:
        """
        Start a turn for ``question``.

        Returns None without touching the log when the question is blank.
        Raises SessionBusyError while a previous reply is pending. Otherwise
        the user message is appended immediately and the returned task
        resolves to the assistant message.
        """
        if not question or not question.strip():
            logger.info(f" Ignoring empty question in session {self.session_id}")
            return None

        if self.is_awaiting_reply:
            raise SessionBusyError("Please wait for the current reply before asking another question.")

        loop = asyncio.get_running_loop()
        if self._emit_lock is None:
            self._emit_lock = asyncio.Lock()

        user_message = self._append("user", question)
        self.state = SessionState.AWAITING_REPLY
        logger.info(f" Session {self.session_id} question #{user_message.id}: '{question[:50]}'")

        self._pending = loop.create_task(self._run_turn(user_message))
        self._pending.add_done_callback(self._log_turn_failure)
        return self._pending

    def cancel(self) -> bool:
        """Cancel the pending turn, if any; no assistant message is appended for it"""
        task = self._pending
        if task is None or task.done():
            return False
        task.cancel()
        self._finish_turn(task)
        logger.info(f" Cancelled pending reply in session {self.session_id}")
        return True

    def _finish_turn(self, task: Optional[asyncio.Task]) -> None:
        if self._pending is not task:
            return
        self.state = SessionState.IDLE
        self._pending = None

    async def _run_turn(self, user_message: Message) -> Message:
        task = asyncio.current_task()
        try:
            async with self._emit_lock:
                await self._emit(self.on_message, user_message)
                await self._emit(self.on_state_change, SessionState.AWAITING_REPLY)
            reply = await self._request_reply(user_message.text)
        except BaseException:
            self._finish_turn(task)
            raise

        assistant_message = self._append("assistant", reply.text)
        self._finish_turn(task)

        # A turn submitted from here on emits only after this one's closing events
        async with self._emit_lock:
            if reply.notification:
                await self._emit(self.on_notification, reply.notification)
            await self._emit(self.on_message, assistant_message)
            await self._emit(self.on_state_change, SessionState.IDLE)
        return assistant_message

    async def _request_reply(self, question: str) -> RelayReply:
        if not self.relay.is_configured:
            logger.warning(f" Session {self.session_id}: no API key configured, request not sent")
            return RelayReply(
                MISSING_KEY_FALLBACK,
                ok=False,
                notification=MISSING_KEY_NOTICE,
                error=ConfigurationError("GEMINI_API_KEY is not configured"),
            )

        request = GuidanceRequest(prompt=question, student_data=self.profile)
        try:
            if self.reply_timeout is not None:
                return await asyncio.wait_for(self.relay.ask(request), self.reply_timeout)
            return await self.relay.ask(request)
        except asyncio.TimeoutError:
            logger.error(f" Session {self.session_id}: reply timed out after {self.reply_timeout}s")
            error = TransportError(f"No reply within {self.reply_timeout} seconds")
        except Exception as e:
            logger.exception(f" Session {self.session_id}: unexpected relay failure: {e}")
            error = TransportError(str(e))

        return RelayReply(
            TECHNICAL_DIFFICULTIES_FALLBACK,
            ok=False,
            notification=TECHNICAL_DIFFICULTIES_NOTICE,
            error=error,
        )

    @staticmethod
    async def _emit(listener: Optional[Callable[[Any], Awaitable[None]]], value: Any) -> None:
        if listener is not None:
            await listener(value)

    def _log_turn_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f" Turn failed in session {self.session_id}: {error}")

    # ==================== UTILITY METHODS ====================

    def get_conversation_history(self) -> List[Dict]:
        """Full message log as wire payloads"""
        return [message_payload(m) for m in self._messages]

    def get_stats(self) -> Dict:
        """Get conversation statistics"""
        user_msgs = [m for m in self._messages if m.role == "user"]
        assistant_msgs = [m for m in self._messages if m.role == "assistant"]

        return {
            "session_id": self.session_id,
            "total_messages": len(self._messages),
            "user_messages": len(user_msgs),
            "assistant_messages": len(assistant_msgs),
            "state": self.state.value,
            "relay_mode": self.relay.mode,
            "student_name": self.profile.name,
            "last_interaction": self._messages[-1].created_at.isoformat() if self._messages else None,
        }
