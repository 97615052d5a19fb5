"""messaging schema: users, friendships, requests, blocks, hidden chats, messages

Revision ID: 5a1f0c2e9b7d
Revises:
Create Date: 2026-10-18 10:12:41.204311

"""

from alembic import op
import sqlalchemy as sa
import sqlmodel

from models import UtcAwareDateTime

# revision identifiers, used by Alembic.
revision = "5a1f0c2e9b7d"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("password_hash", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "friend_code", sqlmodel.sql.sqltypes.AutoString(length=6), nullable=False
        ),
        sa.Column("avatar_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("created_at", UtcAwareDateTime(), nullable=False),
        sa.Column("updated_at", UtcAwareDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_users_username"), ["username"], unique=True)
        batch_op.create_index(
            batch_op.f("ix_users_friend_code"), ["friend_code"], unique=True
        )

    op.create_table(
        "friendships",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("friend_id", sa.Integer(), nullable=False),
        sa.Column("created_at", UtcAwareDateTime(), nullable=False),
        sa.CheckConstraint("user_id <> friend_id", name="ck_friend_self"),
        sa.ForeignKeyConstraint(["friend_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id", "friend_id"),
    )
    with op.batch_alter_table("friendships", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_friendships_friend_id"), ["friend_id"], unique=False
        )

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=False),
        sa.Column("created_at", UtcAwareDateTime(), nullable=False),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sender_id", "receiver_id", name="uq_friend_request_pair"),
    )
    with op.batch_alter_table("friend_requests", schema=None) as batch_op:
        batch_op.create_index(
            "idx_friend_requests_receiver", ["receiver_id"], unique=False
        )

    op.create_table(
        "blocks",
        sa.Column("blocker_id", sa.Integer(), nullable=False),
        sa.Column("blocked_id", sa.Integer(), nullable=False),
        sa.Column("created_at", UtcAwareDateTime(), nullable=False),
        sa.ForeignKeyConstraint(["blocked_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["blocker_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("blocker_id", "blocked_id"),
    )
    with op.batch_alter_table("blocks", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_blocks_blocked_id"), ["blocked_id"], unique=False
        )

    op.create_table(
        "deleted_chats",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("other_user_id", sa.Integer(), nullable=False),
        sa.Column("deleted_at", UtcAwareDateTime(), nullable=False),
        sa.ForeignKeyConstraint(["other_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id", "other_user_id"),
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=False),
        sa.Column(
            "type", sa.Enum("text", "image", "voice", name="messagetype"), nullable=False
        ),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("media_url", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("created_at", UtcAwareDateTime(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("sent", "delivered", "seen", name="messagestatus"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("messages", schema=None) as batch_op:
        batch_op.create_index(
            "idx_messages_pair_date",
            ["sender_id", "receiver_id", "created_at"],
            unique=False,
        )
        batch_op.create_index(
            "idx_messages_receiver_status", ["receiver_id", "status"], unique=False
        )


def downgrade() -> None:
    with op.batch_alter_table("messages", schema=None) as batch_op:
        batch_op.drop_index("idx_messages_receiver_status")
        batch_op.drop_index("idx_messages_pair_date")
    op.drop_table("messages")

    op.drop_table("deleted_chats")

    with op.batch_alter_table("blocks", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_blocks_blocked_id"))
    op.drop_table("blocks")

    with op.batch_alter_table("friend_requests", schema=None) as batch_op:
        batch_op.drop_index("idx_friend_requests_receiver")
    op.drop_table("friend_requests")

    with op.batch_alter_table("friendships", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_friendships_friend_id"))
    op.drop_table("friendships")

    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_users_friend_code"))
        batch_op.drop_index(batch_op.f("ix_users_username"))
    op.drop_table("users")
