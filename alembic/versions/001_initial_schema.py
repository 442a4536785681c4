"""players and player_snapshots

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TEXT_COLUMNS = ("name", "alliance", "army", "race", "rank")

NUMERIC_COLUMNS = (
    "tiv",
    "strike_action",
    "defensive_action",
    "spy_rating",
    "sentry_rating",
    "poison_rating",
    "antidote_rating",
    "theft_rating",
    "vigilance_rating",
    "economy",
    "xp_per_turn",
    "turns_available",
    "treasury",
    "projected_income",
    "covert_skill",
    "sentry_skill",
    "siege_technology",
    "technology",
    "experience",
    "soldiers_per_turn",
    "toxic_infusion_level",
    "viperbane_level",
    "shadowmeld_level",
    "sentinel_vigil_level",
)


def upgrade() -> None:
    # ── Current records ──
    op.create_table(
        "players",
        sa.Column("id", sa.String(), primary_key=True),
        *[sa.Column(name, sa.String(), nullable=True) for name in TEXT_COLUMNS],
        *[sa.Column(name, sa.Numeric(40, 0), nullable=True) for name in NUMERIC_COLUMNS],
        sa.Column("observed_at_jsonb", postgresql.JSONB(), server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_players_name", "players", ["name"])
    op.create_index("ix_players_alliance", "players", ["alliance"])
    op.create_index("ix_players_updated_at", "players", ["updated_at"])

    # ── Append-only history ──
    op.create_table(
        "player_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("data_jsonb", postgresql.JSONB(), server_default="{}"),
    )
    op.create_index("ix_player_snapshots_player_id", "player_snapshots", ["player_id"])
    op.create_index("ix_player_snapshots_source", "player_snapshots", ["source"])
    op.create_index(
        "ix_player_snapshots_player_recorded",
        "player_snapshots",
        ["player_id", "recorded_at", "id"],
    )


def downgrade() -> None:
    op.drop_table("player_snapshots")
    op.drop_table("players")
