"""add question bank, answers, quota counters and match history

Revision ID: 002
Revises: 001
Create Date: 2026-09-08 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'
    json_type = sa.JSON() if is_sqlite else postgresql.JSONB(astext_type=sa.Text())
    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')

    # Question bank (reference data, seeded separately)
    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.String(length=50), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=30), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('weight', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('min_value', sa.Integer(), nullable=True),
        sa.Column('max_value', sa.Integer(), nullable=True),
        sa.Column('options', json_type, nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('question_id')
    )
    op.create_index('ix_questions_question_id', 'questions', ['question_id'])
    op.create_index('ix_questions_category', 'questions', ['category'])

    op.create_table(
        'answers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity_id', sa.String(length=50), nullable=False),
        sa.Column('question_id', sa.String(length=50), nullable=False),
        sa.Column('value', json_type, nullable=False),
        sa.Column('answered_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('identity_id', 'question_id', name='uq_answer_identity_question')
    )
    op.create_index('ix_answers_identity_id', 'answers', ['identity_id'])
    op.create_index('ix_answers_question_id', 'answers', ['question_id'])

    # Daily quota counters; the unique key is what makes first-of-day creation race-safe
    op.create_table(
        'quota_counters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity_id', sa.String(length=50), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('identity_id', 'day', name='uq_quota_identity_day')
    )
    op.create_index('ix_quota_counters_identity_id', 'quota_counters', ['identity_id'])
    op.create_index('ix_quota_counters_day', 'quota_counters', ['day'])

    op.create_table(
        'match_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity_id', sa.String(length=50), nullable=False),
        sa.Column('candidate_id', sa.String(length=50), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='resolved'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_match_records_identity_id', 'match_records', ['identity_id'])
    op.create_index('ix_match_records_candidate_id', 'match_records', ['candidate_id'])
    op.create_index('ix_match_records_day', 'match_records', ['day'])

    op.create_table(
        'rejections',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity_id', sa.String(length=50), nullable=False),
        sa.Column('candidate_id', sa.String(length=50), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('identity_id', 'candidate_id', 'day', name='uq_rejection_identity_candidate_day')
    )
    op.create_index('ix_rejections_identity_id', 'rejections', ['identity_id'])
    op.create_index('ix_rejections_day', 'rejections', ['day'])


def downgrade() -> None:
    op.drop_table('rejections')
    op.drop_table('match_records')
    op.drop_table('quota_counters')
    op.drop_table('answers')
    op.drop_table('questions')
