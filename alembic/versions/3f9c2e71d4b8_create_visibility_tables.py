"""create AI visibility tables

Revision ID: 3f9c2e71d4b8
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "3f9c2e71d4b8"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("primary_domain", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "competitors",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("primary_domain", sa.String(255), nullable=True),
    )

    op.create_table(
        "ai_engines",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(50), nullable=False, unique=True),
        sa.Column("display_name", sa.String(100), nullable=False),
    )

    op.create_table(
        "tracked_prompts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("text", sa.String(2000), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "ai_answers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "tracked_prompt_id",
            sa.Integer(),
            sa.ForeignKey("tracked_prompts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("ai_engine_id", sa.Integer(), sa.ForeignKey("ai_engines.id", ondelete="CASCADE"), nullable=False),
        sa.Column("raw_answer", sa.Text(), nullable=False),
        sa.Column("asked_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_ai_answers_brand_engine_asked", "ai_answers", ["brand_id", "ai_engine_id", "asked_at"])

    op.create_table(
        "mentions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "ai_answer_id",
            sa.Integer(),
            sa.ForeignKey("ai_answers.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_name", sa.String(255), nullable=False),
        sa.Column("sentiment", sa.String(20), nullable=False),
        sa.Column("is_recommendation", sa.Boolean(), nullable=False, server_default="false"),
    )

    op.create_table(
        "visibility_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "brand_id", sa.Integer(), sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("ai_engine_id", sa.Integer(), sa.ForeignKey("ai_engines.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_answers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("brand_mention_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("competitor_mention_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("brand_share_of_voice", sa.Float(), nullable=False, server_default="0"),
        sa.Column("competitor_share_of_voice", sa.Text(), nullable=False, server_default="{}"),
        sa.UniqueConstraint("brand_id", "ai_engine_id", "date", name="uq_visibility_snapshot"),
    )

    # Global engine registry
    op.bulk_insert(
        sa.table("ai_engines", sa.column("slug", sa.String), sa.column("display_name", sa.String)),
        [
            {"slug": "chatgpt", "display_name": "ChatGPT"},
            {"slug": "perplexity", "display_name": "Perplexity"},
            {"slug": "google-ai", "display_name": "Google AI"},
        ],
    )


def downgrade() -> None:
    op.drop_table("visibility_snapshots")
    op.drop_table("mentions")
    op.drop_index("ix_ai_answers_brand_engine_asked", table_name="ai_answers")
    op.drop_table("ai_answers")
    op.drop_table("tracked_prompts")
    op.drop_table("ai_engines")
    op.drop_table("competitors")
    op.drop_table("brands")
