"""
Chat Service.

Nutrition assistant conversations grounded in the user's health profile
and recent scans.
"""

from typing import List, Optional, Sequence

import structlog

from foodlens.domain.chat.conversation_repository import IConversationRepository
from foodlens.domain.chat.models import ChatTurn, Conversation, classify_reply
from foodlens.domain.chat.prompts import MAX_CONVERSATION_TURNS, build_chat_prompt
from foodlens.domain.profile.models import HealthProfile
from foodlens.domain.scan.persistence.models import ScanRecord
from foodlens.domain.shared.clock import Clock, utc_now
from foodlens.domain.shared.errors import ConversationNotFoundError, ModelResponseError
from foodlens.domain.shared.inference import (
    CHAT_GENERATION,
    GenerationSettings,
    IInferenceClient,
)
from foodlens.domain.shared.markdown import strip_markdown
from foodlens.domain.shared.value_objects import ConversationId

logger = structlog.get_logger(__name__)


class ChatService:
    """
    Runs chat turns against the inference client.

    Each send appends the user turn, asks the model for a reply built
    from the prior turns, and appends the sanitized, classified reply.
    The conversation is saved only once both turns are in place, so a
    failed inference call leaves stored history untouched.

    Example:
        >>> service = ChatService(inference=gemini, conversations=repo)
        >>> conversation = await service.send_message(
        ...     "user_123", "Is oat milk ok for me?", profile, scans
        ... )
        >>> conversation.turns[-1].content
    """

    def __init__(
        self,
        inference: IInferenceClient,
        conversations: IConversationRepository,
        clock: Optional[Clock] = None,
        generation: GenerationSettings = CHAT_GENERATION,
    ):
        self.inference = inference
        self.conversations = conversations
        self.clock = clock or utc_now
        self.generation = generation

    async def start_conversation(self, user_id: str) -> Conversation:
        """Create and store an empty conversation."""
        conversation = Conversation.start(user_id, self.clock())
        await self.conversations.save(conversation)
        logger.info(
            "Conversation started",
            user_id=user_id,
            conversation_id=conversation.conversation_id.value,
        )
        return conversation

    async def send_message(
        self,
        user_id: str,
        content: str,
        profile: Optional[HealthProfile],
        scan_history: Sequence[ScanRecord],
        conversation_id: Optional[ConversationId] = None,
    ) -> Conversation:
        """
        Send a user message and append the assistant's reply.

        Args:
            user_id: Conversation owner
            content: User message
            profile: Health profile, if any
            scan_history: User's scans, newest first
            conversation_id: Existing conversation; a new one if None

        Returns:
            Updated conversation

        Raises:
            ValueError: If content is blank
            ConversationNotFoundError: If conversation_id is unknown
            TransportError: If the inference call fails
            ModelResponseError: If the model reply is empty
        """
        message = content.strip()
        if not message:
            raise ValueError("Message cannot be empty")

        if conversation_id is None:
            conversation = Conversation.start(user_id, self.clock())
        else:
            existing = await self.conversations.get(conversation_id, user_id)
            if existing is None:
                raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
            conversation = existing

        prior_turns = conversation.tail(MAX_CONVERSATION_TURNS)
        conversation.add_turn(ChatTurn(content=message, is_user=True, timestamp=self.clock()))

        prompt = build_chat_prompt(profile, scan_history, prior_turns, message)
        raw_reply = await self.inference.generate(prompt, settings=self.generation)

        reply = strip_markdown(raw_reply)
        if not reply:
            raise ModelResponseError("Chat reply is empty after sanitizing")

        message_type = classify_reply(reply)
        conversation.add_turn(
            ChatTurn(
                content=reply,
                is_user=False,
                timestamp=self.clock(),
                message_type=message_type,
            )
        )
        await self.conversations.save(conversation)

        logger.info(
            "Chat reply added",
            user_id=user_id,
            conversation_id=conversation.conversation_id.value,
            message_type=message_type.value,
            turns=len(conversation.turns),
        )
        return conversation

    async def list_conversations(self, user_id: str) -> List[Conversation]:
        """Conversations of a user, most recently updated first."""
        return await self.conversations.list_by_user(user_id)

    async def delete_conversation(self, conversation_id: ConversationId, user_id: str) -> None:
        """
        Raises:
            ConversationNotFoundError: If missing or owned by another user
        """
        await self.conversations.delete(conversation_id, user_id)
        logger.info(
            "Conversation deleted", user_id=user_id, conversation_id=conversation_id.value
        )
