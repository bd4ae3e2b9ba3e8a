"""
Unit tests for ChatService.

The inference client is an AsyncMock; conversations use the in-memory
repository.
"""

from datetime import datetime
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from foodlens.application.chat.chat_service import ChatService
from foodlens.domain.chat.models import DEFAULT_TITLE, MessageType
from foodlens.domain.profile.models import HealthProfile
from foodlens.domain.scan.persistence.models import ScanRecord
from foodlens.domain.shared.errors import (
    ConversationNotFoundError,
    ModelResponseError,
    TransportError,
)
from foodlens.domain.shared.inference import CHAT_GENERATION
from foodlens.domain.shared.value_objects import ConversationId
from foodlens.infrastructure.persistence.in_memory.conversation_repository import (
    InMemoryConversationRepository,
)


@pytest.fixture
def chat_inference() -> AsyncMock:
    inference = AsyncMock()
    inference.generate.return_value = "**Great** question! Oat milk is fine in moderation."
    return inference


@pytest.fixture
def service(
    chat_inference: AsyncMock,
    conversation_repository: InMemoryConversationRepository,
    clock: Callable[[], datetime],
) -> ChatService:
    return ChatService(
        inference=chat_inference, conversations=conversation_repository, clock=clock
    )


class TestSendMessage:
    """Test chat turns."""

    async def test_new_conversation(
        self,
        service: ChatService,
        profile: HealthProfile,
        conversation_repository: InMemoryConversationRepository,
        fixed_now: datetime,
    ) -> None:
        conversation = await service.send_message("user_123", "Is oat milk ok?", profile, [])

        assert conversation.title == "Is oat milk ok?"
        assert [t.is_user for t in conversation.turns] == [True, False]
        assert conversation.turns[0].content == "Is oat milk ok?"
        assert conversation.turns[1].content == "Great question! Oat milk is fine in moderation."
        assert conversation.last_updated == fixed_now

        stored = await conversation_repository.get(conversation.conversation_id, "user_123")
        assert stored == conversation

    async def test_prompt_and_settings(
        self,
        service: ChatService,
        profile: HealthProfile,
        chat_inference: AsyncMock,
        make_scan_record: Callable[..., ScanRecord],
    ) -> None:
        scans = [make_scan_record(product_name="Nutella")]

        await service.send_message("user_123", "  Is oat milk ok?  ", profile, scans)

        call = chat_inference.generate.call_args
        prompt = call.args[0]
        assert "USER MESSAGE: Is oat milk ok?" in prompt
        assert "- Nutella: NutriScore E" in prompt
        assert "- Name: Alex" in prompt
        assert "CONVERSATION HISTORY" not in prompt
        assert call.kwargs["settings"] == CHAT_GENERATION
        assert call.kwargs.get("image") is None

    async def test_history_in_follow_up(
        self,
        service: ChatService,
        profile: HealthProfile,
        chat_inference: AsyncMock,
    ) -> None:
        first = await service.send_message("user_123", "Is oat milk ok?", profile, [])
        chat_inference.generate.return_value = "Try unsweetened versions."

        second = await service.send_message(
            "user_123", "Which brand?", profile, [], conversation_id=first.conversation_id
        )

        prompt = chat_inference.generate.call_args.args[0]
        assert "User: Is oat milk ok?" in prompt
        assert "Assistant: Great question! Oat milk is fine in moderation." in prompt
        assert "User: Which brand?" not in prompt
        assert "USER MESSAGE: Which brand?" in prompt

        assert second.conversation_id == first.conversation_id
        assert len(second.turns) == 4
        assert second.title == "Is oat milk ok?"

    @pytest.mark.parametrize(
        "reply, expected",
        [
            ("Here is a tip: add protein to breakfast.", MessageType.HEALTH_TIP),
            ("Your last scan looked sugary.", MessageType.SCAN_SUMMARY),
            ("Vitamins matter for energy.", MessageType.NUTRITION_ADVICE),
            ("Hello! How can I help?", MessageType.GREETING),
            ("Sounds good.", MessageType.TEXT),
        ],
    )
    async def test_reply_classified(
        self,
        service: ChatService,
        chat_inference: AsyncMock,
        reply: str,
        expected: MessageType,
    ) -> None:
        chat_inference.generate.return_value = reply

        conversation = await service.send_message("user_123", "Question", None, [])

        assert conversation.turns[-1].message_type == expected
        assert conversation.turns[0].message_type == MessageType.TEXT

    async def test_unknown_conversation(self, service: ChatService) -> None:
        with pytest.raises(ConversationNotFoundError):
            await service.send_message(
                "user_123", "Hi", None, [], conversation_id=ConversationId.generate()
            )

    async def test_other_users_conversation(self, service: ChatService) -> None:
        conversation = await service.start_conversation("user_123")

        with pytest.raises(ConversationNotFoundError):
            await service.send_message(
                "user_456", "Hi", None, [], conversation_id=conversation.conversation_id
            )

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_blank_message(
        self, service: ChatService, chat_inference: AsyncMock, content: str
    ) -> None:
        with pytest.raises(ValueError):
            await service.send_message("user_123", content, None, [])

        chat_inference.generate.assert_not_called()

    async def test_inference_failure_leaves_history(
        self,
        service: ChatService,
        chat_inference: AsyncMock,
        conversation_repository: InMemoryConversationRepository,
    ) -> None:
        conversation = await service.send_message("user_123", "Is oat milk ok?", None, [])
        chat_inference.generate.side_effect = TransportError("Gemini API error: 503", status=503)

        with pytest.raises(TransportError):
            await service.send_message(
                "user_123", "Which brand?", None, [], conversation_id=conversation.conversation_id
            )

        stored = await conversation_repository.get(conversation.conversation_id, "user_123")
        assert stored is not None
        assert len(stored.turns) == 2

    async def test_failed_first_message_not_saved(
        self,
        service: ChatService,
        chat_inference: AsyncMock,
        conversation_repository: InMemoryConversationRepository,
    ) -> None:
        chat_inference.generate.side_effect = TransportError("down")

        with pytest.raises(TransportError):
            await service.send_message("user_123", "Hi", None, [])

        assert conversation_repository.count() == 0

    async def test_empty_reply(
        self,
        service: ChatService,
        chat_inference: AsyncMock,
        conversation_repository: InMemoryConversationRepository,
    ) -> None:
        chat_inference.generate.return_value = "  \n  "

        with pytest.raises(ModelResponseError):
            await service.send_message("user_123", "Hi", None, [])

        assert conversation_repository.count() == 0


class TestConversationManagement:
    async def test_start_conversation(
        self,
        service: ChatService,
        conversation_repository: InMemoryConversationRepository,
        fixed_now: datetime,
    ) -> None:
        conversation = await service.start_conversation("user_123")

        assert conversation.title == DEFAULT_TITLE
        assert conversation.turns == []
        assert conversation.created_at == fixed_now
        assert conversation_repository.count() == 1

    async def test_list_conversations(self, service: ChatService) -> None:
        await service.send_message("user_123", "First", None, [])
        await service.send_message("user_123", "Second", None, [])
        await service.send_message("user_456", "Other", None, [])

        conversations = await service.list_conversations("user_123")

        assert sorted(c.title for c in conversations) == ["First", "Second"]

    async def test_delete_conversation(
        self,
        service: ChatService,
        conversation_repository: InMemoryConversationRepository,
    ) -> None:
        conversation = await service.start_conversation("user_123")

        await service.delete_conversation(conversation.conversation_id, "user_123")

        assert conversation_repository.count() == 0
        with pytest.raises(ConversationNotFoundError):
            await service.delete_conversation(conversation.conversation_id, "user_123")
