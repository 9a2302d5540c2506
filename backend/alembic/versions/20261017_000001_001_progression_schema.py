"""Progression schema

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATS_COUNTERS = (
    'books_completed',
    'total_reading_minutes',
    'current_streak',
    'longest_streak',
    'cards_reviewed',
    'cards_mastered',
    'highlights_created',
    'annotations_created',
    'followers_count',
    'groups_created',
    'public_curriculums_created',
    'best_answers',
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Materialized achievement catalog
    op.create_table(
        'achievements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(100), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('category', sa.String(30), nullable=False),
        sa.Column('tier', sa.String(20), nullable=False),
        sa.Column('threshold', sa.Float(), nullable=False),
        sa.Column('xp_reward', sa.Integer(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_achievements'),
    )
    op.create_index('ix_achievements_code', 'achievements', ['code'], unique=True)
    op.create_index('ix_achievements_category', 'achievements', ['category'], unique=False)

    # Unlock records
    op.create_table(
        'user_achievements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('achievement_id', sa.Integer(), nullable=False),
        sa.Column('unlocked_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notified', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['achievement_id'], ['achievements.id'],
            name='fk_user_achievements_achievement_id_achievements',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_user_achievements'),
        sa.UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievement'),
    )
    op.create_index('ix_user_achievements_user_id', 'user_achievements', ['user_id'], unique=False)
    op.create_index('ix_user_achievements_achievement_id', 'user_achievements', ['achievement_id'], unique=False)

    # XP and level
    op.create_table(
        'user_progressions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_xp', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('total_xp >= 0', name='ck_user_progressions_total_xp_non_negative'),
        sa.CheckConstraint('level >= 1', name='ck_user_progressions_level_positive'),
        sa.PrimaryKeyConstraint('id', name='pk_user_progressions'),
    )
    op.create_index('ix_user_progressions_user_id', 'user_progressions', ['user_id'], unique=True)

    # Activity rollups written by the rest of the application
    op.create_table(
        'user_stats',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('books_completed', sa.Integer(), nullable=False),
        sa.Column('total_reading_minutes', sa.Integer(), nullable=False),
        sa.Column('avg_reading_speed', sa.Float(), nullable=True),
        sa.Column('current_streak', sa.Integer(), nullable=False),
        sa.Column('longest_streak', sa.Integer(), nullable=False),
        sa.Column('cards_reviewed', sa.Integer(), nullable=False),
        sa.Column('cards_mastered', sa.Integer(), nullable=False),
        sa.Column('retention_rate', sa.Float(), nullable=True),
        sa.Column('highlights_created', sa.Integer(), nullable=False),
        sa.Column('annotations_created', sa.Integer(), nullable=False),
        sa.Column('followers_count', sa.Integer(), nullable=False),
        sa.Column('groups_created', sa.Integer(), nullable=False),
        sa.Column('public_curriculums_created', sa.Integer(), nullable=False),
        sa.Column('best_answers', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            ' AND '.join(f'{column} >= 0' for column in STATS_COUNTERS),
            name='ck_user_stats_counters_non_negative',
        ),
        sa.CheckConstraint('avg_reading_speed >= 0', name='ck_user_stats_avg_reading_speed_non_negative'),
        sa.CheckConstraint(
            'retention_rate >= 0 AND retention_rate <= 1', name='ck_user_stats_retention_rate_range'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_user_stats'),
    )
    op.create_index('ix_user_stats_user_id', 'user_stats', ['user_id'], unique=True)

    op.create_table(
        'assessment_results',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_assessment_results_score_range'),
        sa.PrimaryKeyConstraint('id', name='pk_assessment_results'),
    )
    op.create_index('ix_assessment_results_user_id', 'assessment_results', ['user_id'], unique=False)
    op.create_index(
        'ix_assessment_results_user_completed', 'assessment_results', ['user_id', 'completed_at'], unique=False
    )


def downgrade() -> None:
    op.drop_table('assessment_results')
    op.drop_table('user_stats')
    op.drop_table('user_progressions')
    op.drop_table('user_achievements')
    op.drop_table('achievements')
