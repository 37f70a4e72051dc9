"""
Session Context

Per-conversation state for the query pipeline. A conversation reuses its
schema snapshot across turns so the database is introspected at most once
per conversation and connection, unless a refresh is requested.

Connection strings are never stored: snapshots are keyed by the SHA-256
fingerprint of the string.
"""

import hashlib
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from uuid import uuid4

from dbchat.models.schema import SchemaSnapshot

logger = logging.getLogger(__name__)


def connection_fingerprint(connection_string: str) -> str:
    """Stable, non-reversible key for a connection string."""
    return hashlib.sha256(connection_string.encode("utf-8")).hexdigest()


def new_conversation_id() -> str:
    return f"conv_{uuid4().hex[:16]}"


@dataclass
class ConversationContext:
    """
    Tracks one conversation.

    Holds:
    - Cached schema snapshots, keyed by connection fingerprint
    - Turn count and the last question/SQL pair
    """

    conversation_id: str = field(default_factory=new_conversation_id)
    turn_count: int = 0
    last_question: str | None = None
    last_sql: str | None = None
    _snapshots: dict[str, SchemaSnapshot] = field(default_factory=dict, repr=False)

    def cached_snapshot(self, connection_string: str) -> SchemaSnapshot | None:
        """Snapshot previously introspected for this connection, if any."""
        return self._snapshots.get(connection_fingerprint(connection_string))

    def remember_snapshot(self, connection_string: str, snapshot: SchemaSnapshot) -> None:
        self._snapshots[connection_fingerprint(connection_string)] = snapshot

    def forget_snapshots(self) -> None:
        self._snapshots.clear()

    def record_turn(self, question: str, sql: str | None) -> None:
        self.turn_count += 1
        self.last_question = question
        if sql is not None:
            self.last_sql = sql


class ConversationStore:
    """
    In-memory, bounded map of conversation ids to contexts.

    Least recently used conversations are evicted once ``max_conversations``
    is exceeded. Only touched from the event loop, so no locking.
    """

    def __init__(self, max_conversations: int = 500) -> None:
        if max_conversations < 1:
            raise ValueError("max_conversations must be at least 1")
        self.max_conversations = max_conversations
        self._contexts: OrderedDict[str, ConversationContext] = OrderedDict()

    def get(self, conversation_id: str) -> ConversationContext | None:
        context = self._contexts.get(conversation_id)
        if context is not None:
            self._contexts.move_to_end(conversation_id)
        return context

    def get_or_create(self, conversation_id: str | None = None) -> ConversationContext:
        """
        Return the context for ``conversation_id``, creating it if unknown.

        A missing id starts a new conversation with a generated id.
        """
        if conversation_id:
            existing = self.get(conversation_id)
            if existing is not None:
                return existing
            context = ConversationContext(conversation_id=conversation_id)
        else:
            context = ConversationContext()

        self._contexts[context.conversation_id] = context
        while len(self._contexts) > self.max_conversations:
            evicted, _ = self._contexts.popitem(last=False)
            logger.debug(f"Evicted conversation {evicted}")
        return context

    def drop(self, conversation_id: str) -> bool:
        return self._contexts.pop(conversation_id, None) is not None

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._contexts
