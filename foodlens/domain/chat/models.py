"""
Domain models for the nutrition chat assistant.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from foodlens.domain.shared.value_objects import ConversationId

DEFAULT_TITLE = "New Conversation"
TITLE_LENGTH = 30


class MessageType(str, Enum):
    """Classification of a chat turn, used for display."""

    TEXT = "text"
    HEALTH_TIP = "health_tip"
    SCAN_SUMMARY = "scan_summary"
    NUTRITION_ADVICE = "nutrition_advice"
    GREETING = "greeting"


_CLASSIFIERS = [
    (MessageType.HEALTH_TIP, re.compile(r"\b(tips?|advice)\b")),
    (MessageType.SCAN_SUMMARY, re.compile(r"\b(scan\w*|nutriscore)\b")),
    (MessageType.NUTRITION_ADVICE, re.compile(r"\b(nutrition\w*|vitamins?|minerals?)\b")),
    (MessageType.GREETING, re.compile(r"\b(hello|hi|welcome)\b")),
]


def classify_reply(text: str) -> MessageType:
    """Pick a message type from keywords in an assistant reply.

    Rules are checked in order; the first match wins.

    Example:
        >>> classify_reply("Here is a tip: drink water")
        <MessageType.HEALTH_TIP: 'health_tip'>
        >>> classify_reply("This looks fine")
        <MessageType.TEXT: 'text'>
    """
    lowered = text.lower()
    for message_type, pattern in _CLASSIFIERS:
        if pattern.search(lowered):
            return message_type
    return MessageType.TEXT


class ChatTurn(BaseModel):
    """One message in a conversation."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., min_length=1, description="Message text")
    is_user: bool = Field(..., description="True for user turns")
    timestamp: datetime = Field(..., description="When the turn was added")
    message_type: MessageType = Field(MessageType.TEXT, description="Display classification")

    @property
    def role(self) -> str:
        return "User" if self.is_user else "Assistant"


class Conversation(BaseModel):
    """
    Append-only chat conversation, persisted as a unit.

    Example:
        >>> conversation = Conversation.start("user_123", now)
        >>> conversation.add_turn(ChatTurn(content="Is oat milk ok?", is_user=True, timestamp=now))
        >>> conversation.title
        'Is oat milk ok?'
    """

    conversation_id: ConversationId = Field(default_factory=ConversationId.generate)
    user_id: str = Field(..., min_length=1, description="Owner")
    title: str = Field(DEFAULT_TITLE, description="Display title")
    turns: List[ChatTurn] = Field(default_factory=list, description="Messages in order")
    created_at: datetime = Field(..., description="Creation time")
    last_updated: datetime = Field(..., description="Time of the last turn")

    @classmethod
    def start(cls, user_id: str, now: datetime, title: str = DEFAULT_TITLE) -> Conversation:
        return cls(user_id=user_id, title=title, created_at=now, last_updated=now)

    def add_turn(self, turn: ChatTurn) -> None:
        """Append a turn; the first user turn names an untitled conversation."""
        self.turns.append(turn)
        self.last_updated = turn.timestamp

        if self.title == DEFAULT_TITLE and turn.is_user:
            content = turn.content.strip()
            self.title = content[:TITLE_LENGTH] + ("..." if len(content) > TITLE_LENGTH else "")

    def tail(self, size: int) -> List[ChatTurn]:
        """Last ``size`` turns, oldest first."""
        if size <= 0:
            return []
        return list(self.turns[-size:])
