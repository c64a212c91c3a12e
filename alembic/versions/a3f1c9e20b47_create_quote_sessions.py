"""create quote_sessions

Revision ID: a3f1c9e20b47
Revises:
Create Date: 2026-10-19 09:12:40.118204

One row per customer quote. The QuoteRecord document is kept whole in
record_json; stage/status/quote_reference are copied out for listing.
Skips creation when create_all() already made the table.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = 'a3f1c9e20b47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table_name):
    bind = op.get_bind()
    insp = inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    if _table_exists("quote_sessions"):
        return

    op.create_table(
        "quote_sessions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("stage", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("quote_reference", sa.String(), nullable=True),
        sa.Column("record_json", sa.JSON(), nullable=True),
        sa.Column("accepted_quote_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_quote_sessions_quote_reference", "quote_sessions", ["quote_reference"]
    )


def downgrade() -> None:
    op.drop_index("ix_quote_sessions_quote_reference", table_name="quote_sessions")
    op.drop_table("quote_sessions")
