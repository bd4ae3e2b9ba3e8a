"""In-memory conversation repository implementation."""

from copy import deepcopy
from typing import Dict, List, Optional

from foodlens.domain.chat.models import Conversation
from foodlens.domain.shared.errors import ConversationNotFoundError
from foodlens.domain.shared.value_objects import ConversationId


class InMemoryConversationRepository:
    """
    In-memory implementation of IConversationRepository.

    Conversations are mutable, so deep copies go in and out to prevent
    callers from changing stored state.
    """

    def __init__(self) -> None:
        self._storage: Dict[str, Conversation] = {}

    async def save(self, conversation: Conversation) -> None:
        self._storage[conversation.conversation_id.value] = deepcopy(conversation)

    async def get(self, conversation_id: ConversationId, user_id: str) -> Optional[Conversation]:
        conversation = self._storage.get(conversation_id.value)

        if conversation is None or conversation.user_id != user_id:
            return None

        return deepcopy(conversation)

    async def list_by_user(self, user_id: str) -> List[Conversation]:
        conversations = [c for c in self._storage.values() if c.user_id == user_id]
        conversations.sort(key=lambda c: c.last_updated, reverse=True)
        return [deepcopy(c) for c in conversations]

    async def delete(self, conversation_id: ConversationId, user_id: str) -> None:
        conversation = self._storage.get(conversation_id.value)

        if conversation is None or conversation.user_id != user_id:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")

        del self._storage[conversation_id.value]

    def count(self) -> int:
        return len(self._storage)
