"""
Chat History Store
==================

Persistence for the conversation between staff and the NEXO agent.

Related files:
- nexo/models.py: ChatHistory table
- nexo/services/analysis_service.py: Appends the user/agent pair per question
- nexo/routers/agent.py: GET/DELETE /api/agent/history

Design:
- Append-only: a turn is never edited; the only mutation is clearing all
- A question and its answer are committed in one transaction, so readers
  never see one without the other
- Structured data travels as JSON text and is decoded on read
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nexo.agent.exceptions import HistoryPersistenceError
from nexo.models import ChatHistory, ChatRoleEnum
from nexo.utils.serialization import convert_decimals_to_floats

logger = logging.getLogger(__name__)


DEFAULT_HISTORY_LIMIT = 50


@dataclass
class ChatTurn:
    """
    One conversational event.

    `id` and `timestamp` are assigned by the store; they are None for turns
    that have not been persisted yet.
    """
    role: str
    content: str
    data: Optional[Dict[str, Any]] = None
    id: Optional[int] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: ChatHistory) -> "ChatTurn":
        return cls(
            id=row.id,
            role=row.role,
            content=row.content,
            data=_decode_data(row),
            timestamp=row.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": str(self.id) if self.id is not None else None,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload


def _encode_data(data: Optional[Dict[str, Any]]) -> Optional[str]:
    if not data:
        return None
    return json.dumps(convert_decimals_to_floats(data), default=str, ensure_ascii=False)


def _decode_data(row: ChatHistory) -> Optional[Dict[str, Any]]:
    if not row.data:
        return None
    try:
        return json.loads(row.data)
    except json.JSONDecodeError:
        logger.warning(f"[HISTORY] Turn {row.id} has unreadable data; returning it without payload")
        return None


class ChatHistoryStore:
    """
    Append / list / clear over the chat_history table.

    USAGE:
        store = ChatHistoryStore(db)
        store.append_turns([ChatTurn("user", "Quem está inativo?"),
                            ChatTurn("agent", answer, data)])
        turns = store.list_turns(limit=20)
        store.clear()
    """

    def __init__(self, db: Session):
        self.db = db

    def append_turns(self, turns: Sequence[ChatTurn]) -> List[ChatTurn]:
        """
        Persist `turns` atomically, in order.

        RAISES:
            HistoryPersistenceError: Nothing was written
        """
        valid_roles = {role.value for role in ChatRoleEnum}
        for turn in turns:
            if turn.role not in valid_roles:
                raise ValueError(f"Invalid chat role: {turn.role}")

        rows = [
            ChatHistory(role=turn.role, content=turn.content, data=_encode_data(turn.data))
            for turn in turns
        ]
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"[HISTORY] Failed to append {len(rows)} turns: {exc}")
            raise HistoryPersistenceError(f"Erro ao salvar histórico: {exc}") from exc

        for row in rows:
            self.db.refresh(row)
        logger.info(f"[HISTORY] Appended {len(rows)} turns")
        return [ChatTurn.from_row(row) for row in rows]

    def list_turns(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[ChatTurn]:
        """The most recent `limit` turns, oldest first."""
        try:
            rows = (
                self.db.query(ChatHistory)
                .order_by(ChatHistory.id.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.error(f"[HISTORY] Failed to list turns: {exc}")
            raise HistoryPersistenceError(f"Erro ao buscar histórico: {exc}") from exc

        return [ChatTurn.from_row(row) for row in reversed(rows)]

    def clear(self) -> int:
        """Delete every turn. Clearing an empty history succeeds."""
        try:
            deleted = self.db.query(ChatHistory).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"[HISTORY] Failed to clear history: {exc}")
            raise HistoryPersistenceError(f"Erro ao limpar histórico: {exc}") from exc

        logger.info(f"[HISTORY] Cleared {deleted} turns")
        return deleted
