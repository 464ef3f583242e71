"""
Core data models for the SupportBot system.
These are the universal types shared across all modules.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ──────────────────────────────────────────────────────────────
#  Enums
# ──────────────────────────────────────────────────────────────

class DialogTurnStatus(str, Enum):
    EMPTY = "empty"                 # no dialog on the stack
    WAITING = "waiting"             # suspended on a prompt
    COMPLETE = "complete"           # last dialog ended this turn
    CANCELLED = "cancelled"         # stack cleared via cancel_all


# ──────────────────────────────────────────────────────────────
#  User Profile — answers accumulated across turns
# ──────────────────────────────────────────────────────────────

class UserProfile(BaseModel):
    """Per-conversation record of what the user has told us."""
    name: Optional[str] = None
    service_tag_id: Optional[str] = None
    issue_detail: Optional[str] = None
    replay: Optional[str] = None                  # last yes/no answer
    schedule: Optional[str] = None                # call-back slot choice
    phone_number: Optional[str] = None
    order_number: Optional[str] = None
    service_request_number: Optional[str] = None

    def is_set(self, field: str) -> bool:
        return bool(getattr(self, field))

    def set_once(self, field: str, value: Any) -> bool:
        """Store `value` only if the field is still empty. Returns True when written."""
        if field not in type(self).model_fields:
            raise AttributeError(f"UserProfile has no field '{field}'")
        if self.is_set(field) or not value:
            return False
        setattr(self, field, value)
        return True


# ──────────────────────────────────────────────────────────────
#  Dialog State — the persisted execution cursor
# ──────────────────────────────────────────────────────────────

class PromptRecord(BaseModel):
    """A prompt the active step is waiting on."""
    prompt_id: str
    message: str
    retry_message: str = ""
    attempts: int = 0                             # rejected inputs so far


class DialogInstance(BaseModel):
    """One frame on the dialog stack."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:16])
    dialog_id: str
    step_index: int = 0
    options: dict[str, Any] = {}
    pending_prompt: Optional[PromptRecord] = None
    started_at: datetime = Field(default_factory=_utcnow)


class DialogState(BaseModel):
    """Everything the engine persists for a conversation between turns."""
    dialog_stack: list[DialogInstance] = []

    @property
    def active(self) -> Optional[DialogInstance]:
        return self.dialog_stack[-1] if self.dialog_stack else None


class DialogTurnResult(BaseModel):
    status: DialogTurnStatus
    result: Any = None


# ──────────────────────────────────────────────────────────────
#  Activity — an outbound message
# ──────────────────────────────────────────────────────────────

class Activity(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    conversation_key: str
    text: str
    sequence: int = 0                             # emission order within the conversation
    timestamp: datetime = Field(default_factory=_utcnow)
