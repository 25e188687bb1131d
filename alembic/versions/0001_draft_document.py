"""draft_document

Revision ID: 0001_draft_document
Revises:
Create Date: 2026-10-18 10:12:44.120391

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_draft_document'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - add draft_document table."""
    op.create_table('draft_document',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('service', sa.String(length=255), nullable=False),
        sa.Column('document_type', sa.String(length=255), nullable=False),
        sa.Column('document', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'service', 'document_type', name='uq_draft_document_owner_type')
    )

    with op.batch_alter_table('draft_document', schema=None) as batch_op:
        batch_op.create_index('ix_draft_document_owner', ['user_id', 'service'], unique=False)


def downgrade() -> None:
    """Downgrade schema - remove draft_document table."""
    with op.batch_alter_table('draft_document', schema=None) as batch_op:
        batch_op.drop_index('ix_draft_document_owner')

    op.drop_table('draft_document')
