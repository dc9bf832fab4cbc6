# src/whatswho/models/message.py
"""Models describing chat messages and their per-viewer visibility."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from whatswho.db.session import Base
from whatswho.db.time import utcnow


class Message(Base):
    """Message exchanged between two identities.

    Rows are never physically removed. Deleting for everyone flips
    ``is_deleted_everyone`` and overwrites the body with a placeholder;
    deleting for one viewer adds a :class:`MessageTombstone`.
    """

    __tablename__ = "message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Lowercased email identities.
    sender: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    body: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_deleted_everyone: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    tombstones: Mapped[list[MessageTombstone]] = relationship(
        "MessageTombstone",
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MessageTombstone.id",
    )

    @property
    def deleted_for(self) -> list[str]:
        """Return the identities that hid this message from their own history."""
        return [tombstone.viewer for tombstone in self.tombstones]


class MessageTombstone(Base):
    """Marks a message as deleted for a single viewer."""

    __tablename__ = "message_tombstone"
    __table_args__ = (UniqueConstraint("message_id", "viewer", name="uq_message_tombstone_viewer"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("message.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    viewer: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    message: Mapped[Message] = relationship("Message", back_populates="tombstones")
