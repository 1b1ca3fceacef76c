"""DB-level exclusion constraint against overlapping bookings of one room.

The application-level overlap check runs under the room row lock; this
constraint keeps the guarantee even when a writer bypasses the engine.

Revision ID: 002_no_room_overlap_constraint
Revises: 001_rooms_bookings
Create Date: 2026-10-19
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "002_no_room_overlap_constraint"
down_revision = "001_rooms_bookings"
branch_labels = None
depends_on = None

_SQL_FILE = Path(__file__).resolve().parent.parent / "sql" / "002_no_room_overlap_constraint.sql"


def upgrade() -> None:
    op.execute(_SQL_FILE.read_text(encoding="utf-8"))


def downgrade() -> None:
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS no_room_overlap")
    # btree_gist is kept: other indexes may depend on it.
