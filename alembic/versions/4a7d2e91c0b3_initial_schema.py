"""initial schema: users, groups, memos, social graph, push

Revision ID: 4a7d2e91c0b3
Revises:
Create Date: 2026-10-19 09:12:44.502113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4a7d2e91c0b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column("id", sa.Uuid(), primary_key=True)


def _created_at():
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _updated_at():
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade():
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("handle", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(120), nullable=False),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("theme", sa.String(20), nullable=True),
        sa.Column("bar", sa.String(10), nullable=True),
        sa.Column("tutorial_completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("map_style", sa.String(200), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("bar IS NULL OR bar IN ('left','right','bottom')", name="ck_users_bar"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_handle", "users", ["handle"], unique=True)

    op.create_table(
        "groups",
        _id(),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        _created_at(),
    )
    op.create_index("ix_groups_owner_id", "groups", ["owner_id"])

    op.create_table(
        "group_memberships",
        _id(),
        sa.Column("group_id", sa.Uuid(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(10), server_default="VIEWER", nullable=False),
        _created_at(),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_membership_pair"),
        sa.CheckConstraint("role IN ('OWNER','ADMIN','EDITOR','VIEWER')", name="ck_group_memberships_role"),
    )
    op.create_index("ix_group_memberships_group_id", "group_memberships", ["group_id"])
    op.create_index("ix_group_memberships_user_id", "group_memberships", ["user_id"])

    op.create_table(
        "memos",
        _id(),
        sa.Column("title", sa.String(200), server_default="", nullable=False),
        sa.Column("content", sa.Text(), server_default="", nullable=False),
        sa.Column("place", sa.String(300), nullable=True),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("group_id", sa.Uuid(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint("latitude IS NULL OR (latitude >= -90 AND latitude <= 90)", name="ck_memos_latitude"),
        sa.CheckConstraint("longitude IS NULL OR (longitude >= -180 AND longitude <= 180)", name="ck_memos_longitude"),
    )
    op.create_index("ix_memos_created_by_id", "memos", ["created_by_id"])
    op.create_index("ix_memos_group_id", "memos", ["group_id"])

    op.create_table(
        "comments",
        _id(),
        sa.Column("memo_id", sa.Uuid(), sa.ForeignKey("memos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("color", sa.String(7), nullable=False),
        _created_at(),
    )
    op.create_index("ix_comments_memo_id", "comments", ["memo_id"])
    op.create_index("ix_comments_author_id", "comments", ["author_id"])

    op.create_table(
        "friends",
        _id(),
        sa.Column("from_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("to_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(10), server_default="PENDING", nullable=False),
        _created_at(),
        sa.UniqueConstraint("from_id", "to_id", name="uq_friends_pair"),
        sa.CheckConstraint("from_id <> to_id", name="ck_friends_not_self"),
        sa.CheckConstraint("status IN ('PENDING','ACCEPTED','REJECTED')", name="ck_friends_status"),
    )
    op.create_index("ix_friends_from_id", "friends", ["from_id"])
    op.create_index("ix_friends_to_id", "friends", ["to_id"])

    op.create_table(
        "follows",
        _id(),
        sa.Column("follower_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("following_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(10), server_default="PENDING", nullable=False),
        _created_at(),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        sa.CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
        sa.CheckConstraint("status IN ('PENDING','ACCEPTED','REJECTED')", name="ck_follows_status"),
    )
    op.create_index("ix_follows_follower_id", "follows", ["follower_id"])
    op.create_index("ix_follows_following_id", "follows", ["following_id"])

    op.create_table(
        "push_subscriptions",
        _id(),
        sa.Column("endpoint", sa.String(1000), nullable=False),
        sa.Column("p256dh", sa.String(200), nullable=False),
        sa.Column("auth", sa.String(100), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _created_at(),
    )
    op.create_index("ix_push_subscriptions_endpoint", "push_subscriptions", ["endpoint"], unique=True)
    op.create_index("ix_push_subscriptions_user_id", "push_subscriptions", ["user_id"])


def downgrade():
    op.drop_table("push_subscriptions")
    op.drop_table("follows")
    op.drop_table("friends")
    op.drop_table("comments")
    op.drop_table("memos")
    op.drop_table("group_memberships")
    op.drop_table("groups")
    op.drop_table("users")
