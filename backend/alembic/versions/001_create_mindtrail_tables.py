"""Create users and form record tables

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Creates `users` and the six append-only form tables, each with a
       foreign key to users.id and a (user_id, created_at) index serving the
       profile "latest" and "history" queries.

Rollback: downgrade() drops every table (all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RECORD_TABLES = (
    "onboarding_questions",
    "journals",
    "muscle_selections",
    "journeys",
    "post_experiences",
    "audios",
)


def _record_columns() -> list:
    """id, owner and timestamp columns shared by every form table."""
    return [
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Lowercased, trimmed email; unique login identifier",
        ),
        sa.Column(
            "password_hash",
            sa.String(128),
            nullable=False,
            comment="bcrypt hash of the password",
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "is_first_login",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "onboarding_questions",
        *_record_columns(),
        sa.Column("responses", postgresql.JSONB(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "journals",
        *_record_columns(),
        sa.Column("medicine", sa.Text(), nullable=False),
        sa.Column("intention", sa.Text(), nullable=False),
        sa.Column(
            "experience_date",
            sa.String(10),
            nullable=False,
            comment="Calendar date of the experience, YYYY-MM-DD",
        ),
        sa.Column("current_state", sa.Text(), nullable=True),
        sa.Column("post_experience", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "muscle_selections",
        *_record_columns(),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("selected_muscles", postgresql.JSONB(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "journeys",
        *_record_columns(),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("levels", postgresql.JSONB(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "post_experiences",
        *_record_columns(),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("post_experience", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "audios",
        *_record_columns(),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column(
            "audio",
            sa.Text(),
            nullable=True,
            comment="Summary text returned by the chat-completion API",
        ),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'completed'"),
            comment="completed, or degraded when summarization failed",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    for table in RECORD_TABLES:
        op.create_index(f"idx_{table}_user_created", table, ["user_id", "created_at"])


def downgrade() -> None:
    """Drop every table. Destructive."""
    for table in reversed(RECORD_TABLES):
        op.drop_index(f"idx_{table}_user_created", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
