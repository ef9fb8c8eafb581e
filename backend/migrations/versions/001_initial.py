"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-16

Creates all database tables for the Exam Prep Platform:
- users: admins and students
- questions: the question bank
- tests: timed tests, with test_questions (ordered) and test_assignments
- results: scored submissions with chapter-wise analysis and feedback

Also creates indexes for common query patterns.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Users Table ───────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='student'),
        sa.Column('student_class', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
    )

    # ── Questions Table ───────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('correct_answer', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('marks', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.String(16), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('student_class', sa.Integer(), nullable=False),
        sa.Column('topic', sa.Text(), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('source', sa.String(16), nullable=False, server_default='custom'),
        sa.Column('created_by', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('last_modified', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_questions_subject', 'questions', ['subject'])
    op.create_index('ix_questions_topic', 'questions', ['topic'])

    # ── Tests Table ───────────────────────────────────────────
    op.create_table(
        'tests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('student_class', sa.Integer(), nullable=False),
        sa.Column('topics', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('total_marks', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'test_questions',
        sa.Column('test_id', sa.String(36),
                  sa.ForeignKey('tests.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('question_id', sa.String(36),
                  sa.ForeignKey('questions.id'), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'test_assignments',
        sa.Column('test_id', sa.String(36),
                  sa.ForeignKey('tests.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.String(36),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    )

    # ── Results Table ─────────────────────────────────────────
    op.create_table(
        'results',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('test_id', sa.String(36), sa.ForeignKey('tests.id'), nullable=False),
        sa.Column('responses', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('total_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('percentage_score', sa.Float(), nullable=True),
        sa.Column('time_taken', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('submitted_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('chapter_wise_analysis', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('status', sa.String(16), nullable=False, server_default='completed'),
        sa.Column('feedback', sa.Text(), nullable=False, server_default='{}'),
    )

    # Indexes for common query patterns on results
    op.create_index('ix_results_student_id_test_id', 'results', ['student_id', 'test_id'])
    op.create_index('ix_results_submitted_at', 'results', ['submitted_at'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_results_submitted_at', table_name='results')
    op.drop_index('ix_results_student_id_test_id', table_name='results')
    op.drop_table('results')
    op.drop_table('test_assignments')
    op.drop_table('test_questions')
    op.drop_table('tests')
    op.drop_index('ix_questions_topic', table_name='questions')
    op.drop_index('ix_questions_subject', table_name='questions')
    op.drop_table('questions')
    op.drop_table('users')
