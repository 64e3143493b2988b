import json
import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from guidance.chatbot import ChatSession, Message, SessionState
from guidance.config import Settings
from guidance.errors import ConfigurationError, ProfileValidationError, SessionBusyError, UpstreamError
from guidance.formatting import message_payload
from guidance.profile import submit as submit_profile
from guidance.prompt import QUICK_QUESTIONS, compose
from guidance.recommendation import build_greeting
from guidance.relay import GeminiClient, GuidanceRelay, GuidanceRequest, build_relay
from websocket_manager import manager


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = Settings.from_env()
gemini_client = GeminiClient(settings.credential, model_name=settings.model_name, timeout=settings.request_timeout)
guidance_relay = build_relay(settings, client=gemini_client)

app = FastAPI(title="AI Career Guidance Chat API")

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}

# Browsers reject "*" with credentials
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=CORS_ALLOW_HEADERS,
)

SUPPORTED_TYPES = ["ping", "text", "history", "profile", "stats"]


def get_gemini_client() -> GeminiClient:
    return gemini_client


def get_guidance_relay() -> GuidanceRelay:
    return guidance_relay


def _timestamp() -> str:
    return datetime.now().isoformat()


# ==================== HTTP ENDPOINTS ====================

@app.get("/health")
async def health(relay: GuidanceRelay = Depends(get_guidance_relay)):
    stats = manager.get_manager_stats()
    return {
        "status": "healthy",
        "active_sessions": stats["total_active_sessions"],
        "sessions_awaiting_reply": stats["sessions_awaiting_reply"],
        "relay_mode": relay.mode,
        "timestamp": _timestamp()
    }


@app.post("/profile")
async def validate_profile(payload: Dict[str, Any]):
    try:
        profile = submit_profile(payload)
    except ProfileValidationError as e:
        return JSONResponse(status_code=422, content={"error": str(e), "fields": e.fields})

    return {"profile": profile.to_payload(), "greeting": build_greeting(profile)}


def _relay_response(status_code: int, content: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


@app.options("/career-guidance")
async def career_guidance_preflight():
    return Response(headers=CORS_HEADERS)


@app.post("/career-guidance")
async def career_guidance(request: Request, client: GeminiClient = Depends(get_gemini_client)):
    """Relay endpoint: compose the prompt server-side and call Gemini with the server's key"""
    try:
        body = await request.json()
        guidance_request = GuidanceRequest.model_validate(body)

        prompt = compose(guidance_request.student_data, guidance_request.prompt)
        generated_text = await client.generate(prompt)

        return _relay_response(200, {"generatedText": generated_text})

    except ConfigurationError:
        logger.error("GEMINI_API_KEY is not configured")
        return _relay_response(500, {"error": "API configuration error. Please contact support."})
    except UpstreamError as e:
        return _relay_response(e.status_code, {"error": f"AI service error: {e.status_code}"})
    except Exception as e:
        logger.error(f" Error in career-guidance endpoint: {e}")
        return _relay_response(500, {"error": str(e) or "Unknown error occurred"})


# ==================== WEBSOCKET ENDPOINT ====================

def _create_session(session_id: str, profile_data: Any, relay: GuidanceRelay) -> ChatSession:

    async def on_message(message: Message):
        await manager.send_message(session_id, {
            "type": "message",
            "message": message_payload(message),
            "timestamp": _timestamp()
        })

    async def on_state_change(state: SessionState):
        await manager.send_message(session_id, {
            "type": "status",
            "status": "typing" if state is SessionState.AWAITING_REPLY else "idle",
            "timestamp": _timestamp()
        })

    async def on_notification(text: str):
        await manager.send_message(session_id, {
            "type": "notification",
            "message": text,
            "timestamp": _timestamp()
        })

    return ChatSession(
        profile_data,
        relay,
        session_id=session_id,
        on_message=on_message,
        on_state_change=on_state_change,
        on_notification=on_notification,
        reply_timeout=settings.reply_timeout,
    )


async def _open_session(websocket: WebSocket, session_id: str, relay: GuidanceRelay) -> ChatSession:
    """Wait for a 'start' frame carrying a valid profile"""
    while True:
        data = await websocket.receive_text()
        try:
            message = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f" JSON decode error: {e}")
            await websocket.send_json({"type": "error", "message": "Invalid JSON format"})
            continue

        if not isinstance(message, dict) or message.get("type") != "start":
            await websocket.send_json({
                "type": "error",
                "message": "Send a 'start' message with your profile to begin"
            })
            continue

        try:
            return _create_session(session_id, message.get("profile") or {}, relay)
        except ProfileValidationError as e:
            await websocket.send_json({"type": "error", "message": str(e), "fields": e.fields})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, relay: GuidanceRelay = Depends(get_guidance_relay)):

    session_id = None

    try:
        await websocket.accept()
        logger.info(" WebSocket connection accepted")

        session_id = manager.generate_session_id()
        session = await _open_session(websocket, session_id, relay)
        manager.connect(websocket, session_id, session)

        await manager.send_message(session_id, {
            "type": "connected",
            "session_id": session_id,
            "message": "Connected to AI Career Guidance Chat",
            "relay_mode": relay.mode,
            "quick_questions": QUICK_QUESTIONS,
            "timestamp": _timestamp()
        })
        await manager.send_message(session_id, {
            "type": "message",
            "message": message_payload(session.messages[0]),
            "timestamp": _timestamp()
        })

        logger.info(f" New career guidance session created: {session_id}")

        while True:
            try:
                data = await websocket.receive_text()
                message = json.loads(data)
                msg_type = message.get("type", "") if isinstance(message, dict) else ""

                logger.info(f"Received from session {session_id}: {msg_type}")

                if msg_type == "ping":
                    await manager.send_message(session_id, {
                        "type": "pong",
                        "timestamp": _timestamp()
                    })

                elif msg_type == "text":
                    user_text = str(message.get("message") or "")
                    try:
                        turn = session.submit(user_text)
                    except SessionBusyError as e:
                        await manager.send_message(session_id, {
                            "type": "error",
                            "message": str(e)
                        })
                        continue

                    if turn is None:
                        await manager.send_message(session_id, {
                            "type": "error",
                            "message": "Empty message"
                        })

                elif msg_type == "history":
                    history = session.get_conversation_history()
                    await manager.send_message(session_id, {
                        "type": "history",
                        "conversation": history,
                        "total_messages": len(history),
                        "timestamp": _timestamp()
                    })

                elif msg_type == "profile":
                    await manager.send_message(session_id, {
                        "type": "profile",
                        "student_profile": session.profile.to_payload(),
                        "timestamp": _timestamp()
                    })

                elif msg_type == "stats":
                    await manager.send_message(session_id, {
                        "type": "stats",
                        "stats": session.get_stats(),
                        "timestamp": _timestamp()
                    })

                else:
                    await manager.send_message(session_id, {
                        "type": "error",
                        "message": f"Unknown message type: {msg_type}",
                        "supported_types": SUPPORTED_TYPES
                    })

            except json.JSONDecodeError as e:
                logger.error(f" JSON decode error: {e}")
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": "Invalid JSON format"
                })

    except WebSocketDisconnect:
        logger.info(f" Session {session_id} disconnected")
    except Exception as e:
        logger.error(f" WebSocket error for session {session_id}: {e}", exc_info=True)
    finally:
        if session_id and manager.is_session_active(session_id):
            manager.disconnect(session_id)


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
