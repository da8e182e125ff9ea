"""baseline_recode_schema

Revision ID: 3b7c1e9a4d20
Revises: 
Create Date: 2026-10-19 10:02:11.482913

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7c1e9a4d20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, daily usage counters and the durable solution cache."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=True),
        sa.Column('plan', sa.String(), nullable=False, server_default='trial'),
        sa.Column('trial_end_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    op.create_table(
        'user_usage',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('get_solution_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('add_solution_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('variant_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_user_usage_user_date')
    )
    op.create_index(op.f('ix_user_usage_date'), 'user_usage', ['date'], unique=False)
    op.create_index(op.f('ix_user_usage_id'), 'user_usage', ['id'], unique=False)
    op.create_index(op.f('ix_user_usage_user_id'), 'user_usage', ['user_id'], unique=False)

    op.create_table(
        'solution_cache',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cache_key', sa.String(), nullable=False),
        sa.Column('question_name', sa.String(), nullable=False),
        sa.Column('language', sa.String(), nullable=False),
        sa.Column('is_variant', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('original_name', sa.String(), nullable=True),
        sa.Column('solution', sa.JSON(), nullable=False),
        sa.Column('hit_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_solution_cache_cache_key'), 'solution_cache', ['cache_key'], unique=True)
    op.create_index(op.f('ix_solution_cache_id'), 'solution_cache', ['id'], unique=False)
    op.create_index(op.f('ix_solution_cache_question_name'), 'solution_cache', ['question_name'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_solution_cache_question_name'), table_name='solution_cache')
    op.drop_index(op.f('ix_solution_cache_id'), table_name='solution_cache')
    op.drop_index(op.f('ix_solution_cache_cache_key'), table_name='solution_cache')
    op.drop_table('solution_cache')
    op.drop_index(op.f('ix_user_usage_user_id'), table_name='user_usage')
    op.drop_index(op.f('ix_user_usage_id'), table_name='user_usage')
    op.drop_index(op.f('ix_user_usage_date'), table_name='user_usage')
    op.drop_table('user_usage')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
