"""Create location and memorizer tables."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("pano_id", sa.String(length=255), nullable=False),
        sa.Column("map_id", sa.String(length=255), nullable=False),
        sa.Column("country", sa.String(length=128), nullable=False),
        sa.Column("country_code", sa.String(length=8), nullable=True),
        sa.Column("meta_name", sa.String(length=255), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("footer", sa.Text(), nullable=True),
        sa.Column("images", sa.Text(), server_default=sa.text("'[]'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("pano_id", name="uq_locations_pano_id"),
    )
    op.create_index("ix_locations_country", "locations", ("country",))

    op.create_table(
        "memorizer_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("repetitions", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("ease_factor", sa.Float(), server_default=sa.text("2.5"), nullable=False),
        sa.Column("interval", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "due_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("state", sa.String(length=16), server_default=sa.text("'new'"), nullable=False),
        sa.Column("lapses", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("location_id",),
            ("locations.id",),
            name="fk_memorizer_progress_location_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("location_id", name="uq_memorizer_progress_location_id"),
    )
    op.create_index("ix_memorizer_progress_due_at", "memorizer_progress", ("due_at",))

    op.create_table(
        "memorizer_reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("quality", sa.Integer(), nullable=False),
        sa.Column(
            "reviewed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("location_id",),
            ("locations.id",),
            name="fk_memorizer_reviews_location_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_memorizer_reviews_reviewed_at",
        "memorizer_reviews",
        ("reviewed_at",),
    )


def downgrade() -> None:
    op.drop_index("ix_memorizer_reviews_reviewed_at", table_name="memorizer_reviews")
    op.drop_table("memorizer_reviews")
    op.drop_index("ix_memorizer_progress_due_at", table_name="memorizer_progress")
    op.drop_table("memorizer_progress")
    op.drop_index("ix_locations_country", table_name="locations")
    op.drop_table("locations")
