"""create high_scores

Revision ID: 1f3a9c7d2b10
Revises:
Create Date: 2026-10-19 10:12:44.118201

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '1f3a9c7d2b10'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'high_scores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=80), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('outcome', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_high_scores')),
    )
    op.create_index(op.f('ix_high_scores_id'), 'high_scores', ['id'], unique=False)
    op.create_index('ix_high_scores_score', 'high_scores', ['score'], unique=False)

def downgrade():
    op.drop_index('ix_high_scores_score', table_name='high_scores')
    op.drop_index(op.f('ix_high_scores_id'), table_name='high_scores')
    op.drop_table('high_scores')
