from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    memo_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("memos.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True)

    content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    # picked from the palette at creation, never updated
    color: Mapped[str] = mapped_column(sa.String(7), nullable=False)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    author = relationship("User", lazy="joined")
