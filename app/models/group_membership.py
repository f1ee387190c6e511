from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.services.permissions import Role


class GroupMembership(Base):
    __tablename__ = "group_memberships"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    group_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=False, index=True)

    # OWNER | ADMIN | EDITOR | VIEWER
    role: Mapped[str] = mapped_column(sa.String(10), nullable=False, server_default="VIEWER")

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    __table_args__ = (
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_membership_pair"),
        sa.CheckConstraint("role IN ('OWNER','ADMIN','EDITOR','VIEWER')", name="ck_group_memberships_role"),
    )

    group = relationship("Group", back_populates="memberships")
    user = relationship("User", back_populates="group_memberships")

    @property
    def member_role(self) -> Role:
        return Role(self.role)
