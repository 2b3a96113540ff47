"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all database tables for the Question Bank:
- questions: Question bank items with JSONB options and text[] answers/topics
- tests: Named, timed tests
- test_questions: Junction between tests and questions, unique per pair,
  cascading with either parent

Also creates the index used by random sampling.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Questions Table ───────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('code_snippet', sa.Text(), nullable=True),
        sa.Column('explanation', sa.Text(), nullable=False),
        sa.Column('options', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('correct_answers', postgresql.ARRAY(sa.Text()), nullable=False,
                  server_default='{}'),
        sa.Column('topics', postgresql.ARRAY(sa.Text()), nullable=False, server_default='{}'),
        sa.Column('difficulty', sa.Text(), nullable=False),
        sa.Column('question_type', sa.Text(), nullable=False),
        sa.Column('language', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
    )

    # Sampling filters on language, then difficulty
    op.create_index('ix_questions_language_difficulty', 'questions', ['language', 'difficulty'])

    # ── Tests Table ───────────────────────────────────────────
    op.create_table(
        'tests',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('duration_minutes > 0', name='ck_tests_duration_positive'),
    )

    # ── Test Questions Junction Table ─────────────────────────
    op.create_table(
        'test_questions',
        sa.Column('test_id', sa.Integer(),
                  sa.ForeignKey('tests.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('question_id', sa.Integer(),
                  sa.ForeignKey('questions.id', ondelete='CASCADE'), primary_key=True),
    )

    # Lookups from a question back to its tests
    op.create_index('ix_test_questions_question_id', 'test_questions', ['question_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_test_questions_question_id', table_name='test_questions')
    op.drop_table('test_questions')
    op.drop_table('tests')
    op.drop_index('ix_questions_language_difficulty', table_name='questions')
    op.drop_table('questions')
