"""create_phrases_and_settings

Revision ID: 5f2c9a1d7e40
Revises:
Create Date: 2026-10-01 00:00:00.000000+00:00

Creates the phrases and settings tables.

phrases carries a CHECK constraint tying the processing flag to the
category column, and (on PostgreSQL) a GIN expression index for
full-text search over the phrase text.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5f2c9a1d7e40'
down_revision = None
branch_labels = None
depends_on = None


CATEGORY_LABELS = (
    "Professional",
    "Philosophical",
    "Humorous",
    "Motivational",
    "Technical",
    "Creative",
    "Life Wisdom",
)

PROCESSING_CATEGORY = "Processing..."


def _processing_state_check() -> str:
    labels = ", ".join(f"'{label}'" for label in CATEGORY_LABELS)
    return (
        f"(is_processing AND category = '{PROCESSING_CATEGORY}') "
        f"OR (NOT is_processing AND category IN ({labels}))"
    )


def upgrade() -> None:
    """Create phrases and settings."""
    op.create_table(
        'phrases',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False,
                  comment='Auto-incrementing primary key'),
        sa.Column('text', sa.Text(), nullable=False, comment='Phrase text'),
        sa.Column('source', sa.String(length=500), nullable=True,
                  comment='Optional attribution'),
        sa.Column('category', sa.String(length=50), nullable=False,
                  comment='PhraseCategory value or the processing sentinel'),
        sa.Column('is_processing', sa.Boolean(), nullable=False,
                  comment='True while the categorization job is pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  comment='Timestamp when record was created (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  comment='Timestamp when record was last updated (UTC)'),
        sa.CheckConstraint(_processing_state_check(), name=op.f('ck_phrases_processing_state')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_phrases')),
    )
    op.create_index(op.f('ix_phrases_category'), 'phrases', ['category'], unique=False)
    op.create_index('ix_phrases_created_at', 'phrases', ['created_at'], unique=False)

    # GIN index for full-text search; matches the to_tsvector expression
    # used by TextSearchService so the planner can use it
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("""
            CREATE INDEX ix_phrases_text_search_gin
            ON phrases
            USING gin(to_tsvector('english'::regconfig, text))
        """)

    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False,
                  comment='Auto-incrementing primary key'),
        sa.Column('key', sa.String(length=50), nullable=False,
                  comment="Singleton key, always 'global'"),
        sa.Column('api_key', sa.String(length=255), nullable=True,
                  comment='AI provider API key'),
        sa.Column('preferred_model', sa.String(length=255), nullable=True,
                  comment='AI model identifier; falls back to DEFAULT_AI_MODEL'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  comment='Timestamp when record was created (UTC)'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  comment='Timestamp when record was last updated (UTC)'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_settings')),
        sa.UniqueConstraint('key', name=op.f('uq_settings_key')),
    )


def downgrade() -> None:
    """Drop settings and phrases."""
    op.drop_table('settings')

    op.execute("DROP INDEX IF EXISTS ix_phrases_text_search_gin")
    op.drop_index('ix_phrases_created_at', table_name='phrases')
    op.drop_index(op.f('ix_phrases_category'), table_name='phrases')
    op.drop_table('phrases')
