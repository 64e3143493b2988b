import logging
import uuid
from typing import Dict

from fastapi import WebSocket

from guidance.chatbot import ChatSession


logger = logging.getLogger(__name__)


class ConnectionManager:

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.chat_sessions: Dict[str, ChatSession] = {}

        logger.info(" ConnectionManager initialized for Career Guidance Chat")

    def generate_session_id(self) -> str:
        """Generate unique session ID"""
        session_id = str(uuid.uuid4())
        logger.info(f"Generated new session ID: {session_id}")
        return session_id

    def connect(self, websocket: WebSocket, session_id: str, session: ChatSession):
        """Register a socket together with the chat session it drives"""
        self.active_connections[session_id] = websocket
        self.chat_sessions[session_id] = session

        logger.info(f" Session connected: {session_id}")
        logger.info(f"Active sessions: {self.get_active_session_count()}")

    def disconnect(self, session_id: str):
        if session_id in self.active_connections:
            del self.active_connections[session_id]
            logger.info(f" Removed connection for session {session_id}")

        session = self.chat_sessions.pop(session_id, None)
        if session is not None:
            if session.cancel():
                logger.info(f" Dropped pending reply for session {session_id}")
            stats = session.get_stats()
            logger.info(f" Session {session_id} stats: {stats['user_messages']} user messages, state: {stats['state']}")

        logger.info(f" Remaining active sessions: {self.get_active_session_count()}")

    async def send_message(self, session_id: str, message: dict):
        """Send a JSON message to a specific connected session"""
        websocket = self.active_connections.get(session_id)
        if websocket:
            try:
                await websocket.send_json(message)
                logger.info(f" Sent message to session {session_id}: {message.get('type', 'unknown')}")
            except Exception as e:
                logger.error(f" Error sending message to session {session_id}: {e}")
                self.disconnect(session_id)
        else:
            logger.warning(f" No active connection for session {session_id}")

    def get_active_session_count(self) -> int:
        """Get number of active connections"""
        return len(self.active_connections)

    def is_session_active(self, session_id: str) -> bool:
        """Check if a session is currently active"""
        return session_id in self.active_connections

    def get_manager_stats(self) -> Dict:
        """Get overall manager statistics"""
        awaiting = sum(1 for s in self.chat_sessions.values() if s.is_awaiting_reply)

        return {
            "total_active_sessions": self.get_active_session_count(),
            "sessions_awaiting_reply": awaiting,
        }


manager = ConnectionManager()
