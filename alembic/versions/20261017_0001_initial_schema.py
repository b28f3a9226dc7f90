"""Initial schema - Lectern

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(80), nullable=True),
        sa.Column('username', sa.String(40), unique=True, nullable=True, index=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('image', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('elo', sa.Integer(), nullable=False, default=1000),
        sa.Column('streak', sa.Integer(), nullable=False, default=0),
        sa.Column('last_studied_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('leaderboard_opt_out', sa.Boolean(), nullable=False, default=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Refresh tokens table
    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('token_hash', sa.String(255), unique=True, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, default=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Lecture content
    op.create_table(
        'lectures',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('original_content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'subtopics',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('lecture_id', sa.Uuid(), sa.ForeignKey('lectures.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('importance', sa.String(16), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=False),
        sa.Column('overview', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False),
    )
    op.create_index('ix_subtopics_lecture_order', 'subtopics', ['lecture_id', 'order'])

    op.create_table(
        'quiz_questions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('subtopic_id', sa.Uuid(), sa.ForeignKey('subtopics.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('answer_index', sa.Integer(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False),
    )

    # Learner progress
    op.create_table(
        'user_mastery',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('subtopic_id', sa.Uuid(), sa.ForeignKey('subtopics.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'subtopic_id', name='uq_user_mastery_user_subtopic'),
    )

    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('question_id', sa.Uuid(), sa.ForeignKey('quiz_questions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('selected_index', sa.Integer(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, index=True),
    )

    op.create_table(
        'quiz_progress',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subtopic_id', sa.Uuid(), sa.ForeignKey('subtopics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.Uuid(), sa.ForeignKey('quiz_questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('selected_index', sa.Integer(), nullable=True),
        sa.Column('revealed', sa.Boolean(), nullable=False, default=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'question_id', name='uq_quiz_progress_user_question'),
    )
    op.create_index('ix_quiz_progress_user_subtopic', 'quiz_progress', ['user_id', 'subtopic_id'])

    op.create_table(
        'quiz_resets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subtopic_id', sa.Uuid(), sa.ForeignKey('subtopics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_quiz_resets_user_subtopic', 'quiz_resets', ['user_id', 'subtopic_id'])

    op.create_table(
        'lecture_completions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lecture_id', sa.Uuid(), sa.ForeignKey('lectures.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'lecture_id', name='uq_lecture_completion_user_lecture'),
    )

    op.create_table(
        'elo_events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('kind', sa.String(50), nullable=False),
        sa.Column('ref', sa.String(64), nullable=True),
        sa.Column('delta', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    # Social graph
    op.create_table(
        'follows',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('follower_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('following_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('follower_id', 'following_id', name='uq_follow_pair'),
    )

    # Rank ladder
    op.create_table(
        'ranks',
        sa.Column('slug', sa.String(40), primary_key=True),
        sa.Column('name', sa.String(40), nullable=False),
        sa.Column('min_elo', sa.Integer(), nullable=False, unique=True),
        sa.Column('icon_url', sa.Text(), nullable=True),
    )

    # AI token usage
    op.create_table(
        'token_usage',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('route', sa.String(120), nullable=False),
        sa.Column('model', sa.String(120), nullable=False),
        sa.Column('tokens_input', sa.Integer(), nullable=False, default=0),
        sa.Column('tokens_output', sa.Integer(), nullable=False, default=0),
        sa.Column('total_tokens', sa.Integer(), nullable=False, default=0),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_token_usage_user_time', 'token_usage', ['user_id', 'created_at'])
    op.create_index('ix_token_usage_model', 'token_usage', ['model'])


def downgrade() -> None:
    op.drop_table('token_usage')
    op.drop_table('ranks')
    op.drop_table('follows')
    op.drop_table('elo_events')
    op.drop_table('lecture_completions')
    op.drop_table('quiz_resets')
    op.drop_table('quiz_progress')
    op.drop_table('quiz_attempts')
    op.drop_table('user_mastery')
    op.drop_table('quiz_questions')
    op.drop_table('subtopics')
    op.drop_table('lectures')
    op.drop_table('refresh_tokens')
    op.drop_table('users')
