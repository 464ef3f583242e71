"""
FastAPI Application — HTTP host for the support bot.

Provides:
- Health and dialog listing
- One endpoint per inbound message, answering with the turn status and
  every activity the bot emitted during that turn
- Conversation reset and profile inspection
"""
from __future__ import annotations

import structlog
from datetime import datetime, timezone
from typing import Any, Optional
from contextlib import asynccontextmanager

# Load .env before any config is read
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from channels.base import InMemoryChannel
from config.settings import get_settings
from core.bot import create_support_bot
from dialogs.errors import DialogError

logger = structlog.get_logger()

# ──────────────────────────────────────────────────────────────
#  Bootstrap
# ──────────────────────────────────────────────────────────────

channel = InMemoryChannel()
bot = create_support_bot(channel=channel)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("supportbot_started",
                app_name=settings.app_name,
                dialogs=bot.dialogs.list_ids(),
                lookup=type(bot.lookup).__name__)
    yield

    await bot.lookup.close()
    logger.info("supportbot_stopped")


# ──────────────────────────────────────────────────────────────
#  App
# ──────────────────────────────────────────────────────────────

app = FastAPI(
    title="SupportBot API",
    description="Customer-support chat bot built on a waterfall dialog engine",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DialogError)
async def dialog_error_handler(request: Request, exc: DialogError):
    logger.error("dialog_error", path=request.url.path, error_type=type(exc).__name__, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": type(exc).__name__, "detail": "The conversation could not be processed."},
    )


# ──────────────────────────────────────────────────────────────
#  Request/Response Models
# ──────────────────────────────────────────────────────────────

class MessageRequest(BaseModel):
    conversation_id: str
    text: Optional[str] = None
    dialog_id: Optional[str] = None
    options: dict[str, Any] = {}


class ActivityResponse(BaseModel):
    text: str
    sequence: int
    timestamp: datetime


class MessageResponse(BaseModel):
    conversation_id: str
    status: str
    result: Any = None
    activities: list[ActivityResponse] = []


# ══════════════════════════════════════════════════════════════
#  HEALTH & DIAGNOSTICS
# ══════════════════════════════════════════════════════════════

@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "dialogs": len(bot.dialogs),
        "channel": channel.stats(),
    }


@app.get("/api/v1/dialogs")
async def list_dialogs():
    return {"dialogs": bot.dialogs.list_ids(), "default": bot.default_dialog}


# ══════════════════════════════════════════════════════════════
#  CONVERSATIONS
# ══════════════════════════════════════════════════════════════

@app.post("/api/v1/messages", response_model=MessageResponse)
async def receive_message(req: MessageRequest):
    if req.dialog_id and req.dialog_id not in bot.dialogs:
        raise HTTPException(404, f"Unknown dialog '{req.dialog_id}'")
    try:
        result = await bot.on_turn(
            req.conversation_id,
            text=req.text,
            dialog_id=req.dialog_id,
            options=req.options,
        )
    except DialogError:
        # Drop whatever the failed turn managed to emit
        channel.drain(req.conversation_id)
        raise

    activities = channel.drain(req.conversation_id)
    return MessageResponse(
        conversation_id=req.conversation_id,
        status=result.status.value,
        result=result.result,
        activities=[ActivityResponse(text=a.text, sequence=a.sequence, timestamp=a.timestamp)
                    for a in activities],
    )


@app.post("/api/v1/conversations/{conversation_id}/reset")
async def reset_conversation(conversation_id: str):
    result = await bot.reset(conversation_id)
    channel.drain(conversation_id)
    return {"conversation_id": conversation_id, "status": result.status.value}


@app.get("/api/v1/conversations/{conversation_id}/profile")
async def get_profile(conversation_id: str):
    profile = await bot.get_profile(conversation_id)
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return profile.model_dump()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
