"""people, prizes, batch plans and guarantee lists

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "people",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(length=64), nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("identity", sa.String(length=100), nullable=True),
        sa.Column("avatar", sa.String(length=255), nullable=True),
        sa.Column("is_win", sa.Boolean(), nullable=False),
        sa.Column("x", sa.Float(), nullable=False),
        sa.Column("y", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("prize_names", sa.JSON(), nullable=False),
        sa.Column("prize_ids", sa.JSON(), nullable=False),
        sa.Column("prize_times", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_people"),
        sa.UniqueConstraint("uuid", name="uq_people_uuid"),
    )
    op.create_index("ix_people_uid", "people", ["uid"], unique=False)

    op.create_table(
        "prizes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("sort", sa.Integer(), nullable=False),
        sa.Column("is_all", sa.Boolean(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("used_count", sa.Integer(), nullable=False),
        sa.Column("picture_id", sa.String(length=64), nullable=True),
        sa.Column("picture_name", sa.String(length=255), nullable=True),
        sa.Column("picture_url", sa.String(length=1024), nullable=True),
        sa.Column("batches_enabled", sa.Boolean(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_show", sa.Boolean(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False),
        sa.Column("frequency", sa.Integer(), nullable=False),
        sa.Column("is_temporary", sa.Boolean(), nullable=False),
        sa.Column("fixed_winners_enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("count >= 0", name="ck_prizes_count_non_negative"),
        sa.CheckConstraint(
            "used_count >= 0 AND used_count <= count",
            name="ck_prizes_used_within_count",
        ),
        sa.CheckConstraint("frequency >= 1", name="ck_prizes_frequency_positive"),
        sa.PrimaryKeyConstraint("id", name="pk_prizes"),
    )

    op.create_table(
        "prize_batches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("prize_id", sa.Integer(), nullable=False),
        sa.Column("batch_key", sa.String(length=64), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.Column("used_count", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "count >= 0", name="ck_prize_batches_batch_count_non_negative"
        ),
        sa.CheckConstraint(
            "used_count >= 0 AND used_count <= count",
            name="ck_prize_batches_batch_used_within_count",
        ),
        sa.ForeignKeyConstraint(
            ["prize_id"],
            ["prizes.id"],
            name="fk_prize_batches_prize_id_prizes",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_prize_batches"),
        sa.UniqueConstraint("prize_id", "seq", name="uq_prize_batch_seq"),
    )
    op.create_index(
        "ix_prize_batches_prize_id", "prize_batches", ["prize_id"], unique=False
    )

    op.create_table(
        "fixed_winner_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("prize_id", sa.Integer(), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False),
        sa.Column("person_uuid", sa.String(length=64), nullable=False),
        sa.Column("person_name", sa.String(length=100), nullable=False),
        sa.Column("position", sa.Integer(), nullable=True),
        sa.CheckConstraint(
            "position IS NULL OR position >= 1",
            name="ck_fixed_winner_entries_position_positive",
        ),
        sa.ForeignKeyConstraint(
            ["prize_id"],
            ["prizes.id"],
            name="fk_fixed_winner_entries_prize_id_prizes",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_fixed_winner_entries"),
        sa.UniqueConstraint("prize_id", "seq", name="uq_fixed_winner_seq"),
    )
    op.create_index(
        "ix_fixed_winner_entries_prize_id",
        "fixed_winner_entries",
        ["prize_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_fixed_winner_entries_prize_id", table_name="fixed_winner_entries")
    op.drop_table("fixed_winner_entries")
    op.drop_index("ix_prize_batches_prize_id", table_name="prize_batches")
    op.drop_table("prize_batches")
    op.drop_table("prizes")
    op.drop_index("ix_people_uid", table_name="people")
    op.drop_table("people")
