"""Add filter_translations table

Revision ID: add_filter_translations_table
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'add_filter_translations_table'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'filter_translations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('md5key', sa.String(32), nullable=False),
        sa.Column('lastgeneratedhash', sa.String(32), nullable=False),
        sa.Column('targetlanguage', sa.String(30), nullable=False),
        sa.Column('substitutetext', sa.Text(), nullable=False),
        sa.Column('contextid', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Lookups filter on either hash
    op.create_index('ix_filter_translations_md5key', 'filter_translations', ['md5key'])
    op.create_index('ix_filter_translations_lastgeneratedhash', 'filter_translations', ['lastgeneratedhash'])


def downgrade():
    op.drop_index('ix_filter_translations_lastgeneratedhash', table_name='filter_translations')
    op.drop_index('ix_filter_translations_md5key', table_name='filter_translations')
    op.drop_table('filter_translations')
