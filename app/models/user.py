from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(sa.String(320), unique=True, index=True, nullable=False)
    # public handle other users search for and send friend requests to
    handle: Mapped[str] = mapped_column(sa.String(50), unique=True, index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(sa.String(120), nullable=False)

    avatar_url: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)

    theme: Mapped[str | None] = mapped_column(sa.String(20), nullable=True)
    bar: Mapped[str | None] = mapped_column(sa.String(10), nullable=True)  # left|right|bottom
    tutorial_completed: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, server_default=sa.false(), default=False)
    map_style: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)

    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
        nullable=False,
    )

    owned_groups = relationship("Group", back_populates="owner")
    group_memberships = relationship("GroupMembership", back_populates="user")

    __table_args__ = (
        sa.CheckConstraint("bar IS NULL OR bar IN ('left','right','bottom')", name="ck_users_bar"),
    )
