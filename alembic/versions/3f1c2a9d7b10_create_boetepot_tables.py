"""create players, reasons, fines and revoked_tokens

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 10:12:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=False), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("name", name="uq_players_name"),
    )
    op.create_index("ix_players_name", "players", ["name"])

    op.create_table(
        "reasons",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=False), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("description", name="uq_reasons_description"),
        sa.CheckConstraint("amount >= 0", name="ck_reasons_amount_non_negative"),
    )
    op.create_index("ix_reasons_description", "reasons", ["description"])

    # Fines keep their player and reason alive: deleting either is refused
    op.create_table(
        "fines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("reason_id", sa.Integer(), sa.ForeignKey("reasons.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("admin_notes", sa.String(), nullable=True),
        sa.CheckConstraint("amount >= 0", name="ck_fines_amount_non_negative"),
    )
    op.create_index("ix_fines_player_id", "fines", ["player_id"])
    op.create_index("ix_fines_reason_id", "fines", ["reason_id"])
    op.create_index("ix_fines_date", "fines", ["date"])

    op.create_table(
        "revoked_tokens",
        sa.Column("jti", sa.String(length=64), primary_key=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_revoked_tokens_expires_at", "revoked_tokens", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_revoked_tokens_expires_at", table_name="revoked_tokens")
    op.drop_table("revoked_tokens")
    op.drop_index("ix_fines_date", table_name="fines")
    op.drop_index("ix_fines_reason_id", table_name="fines")
    op.drop_index("ix_fines_player_id", table_name="fines")
    op.drop_table("fines")
    op.drop_index("ix_reasons_description", table_name="reasons")
    op.drop_table("reasons")
    op.drop_index("ix_players_name", table_name="players")
    op.drop_table("players")
