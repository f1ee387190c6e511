from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class Friend(Base):
    __tablename__ = "friends"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    from_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True)
    to_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True)

    # PENDING | ACCEPTED | REJECTED
    status: Mapped[str] = mapped_column(sa.String(10), nullable=False, server_default="PENDING")

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("from_id", "to_id", name="uq_friends_pair"),
        sa.CheckConstraint("from_id <> to_id", name="ck_friends_not_self"),
        sa.CheckConstraint("status IN ('PENDING','ACCEPTED','REJECTED')", name="ck_friends_status"),
    )
