"""
Conversation repository interface.
"""

from typing import List, Optional, Protocol, runtime_checkable

from foodlens.domain.chat.models import Conversation
from foodlens.domain.shared.value_objects import ConversationId


@runtime_checkable
class IConversationRepository(Protocol):
    """
    Repository interface for chat conversations.

    A conversation is saved as a whole after every appended turn.
    """

    async def save(self, conversation: Conversation) -> None:
        """
        Insert or replace a conversation.

        Raises:
            PersistenceError: On storage failure
        """
        ...

    async def get(self, conversation_id: ConversationId, user_id: str) -> Optional[Conversation]:
        """Conversation owned by user_id, or None."""
        ...

    async def list_by_user(self, user_id: str) -> List[Conversation]:
        """Conversations of one user, most recently updated first."""
        ...

    async def delete(self, conversation_id: ConversationId, user_id: str) -> None:
        """
        Delete a conversation.

        Raises:
            ConversationNotFoundError: If missing or owned by another user
        """
        ...
