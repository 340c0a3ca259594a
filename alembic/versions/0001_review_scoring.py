"""Review scoring baseline

Creates users, programs, applications and the criteria-based review tables.

Revision ID: 0001_review_scoring
Revises: None
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_review_scoring'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255)),
        sa.Column('role', sa.String(50)),
        sa.Column('api_token', sa.String(255)),
        *_timestamps(),
    )
    op.create_index('ix_users_api_token', 'users', ['api_token'], unique=True)

    op.create_table(
        'programs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id')),
        *_timestamps(),
    )

    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('program_id', sa.Integer(), sa.ForeignKey('programs.id'), nullable=False),
        sa.Column('applicant_name', sa.String(255)),
        sa.Column('applicant_email', sa.String(255)),
        sa.Column('submitted_at', sa.DateTime()),
        sa.Column('score_avg', sa.Float()),
        sa.Column('last_evaluated_at', sa.DateTime()),
        *_timestamps(),
    )
    op.create_index('ix_applications_program_id', 'applications', ['program_id'])

    op.create_table(
        'review_criteria',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('program_id', sa.Integer(), sa.ForeignKey('programs.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('scoring_type', sa.String(20), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('min_score', sa.Float(), nullable=False),
        sa.Column('max_score', sa.Float(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('rubric_definition', sa.JSON()),
        sa.Column('scoring_guide', sa.Text()),
        sa.Column('is_required', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_review_criteria_program_id', 'review_criteria', ['program_id'])

    op.create_table(
        'review_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('application_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('reviewer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('assigned_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('deadline', sa.DateTime()),
        sa.Column('assigned_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime()),
        *_timestamps(),
    )
    op.create_index('ix_review_assignments_application_id', 'review_assignments', ['application_id'])
    op.create_index('ix_review_assignments_reviewer_id', 'review_assignments', ['reviewer_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('assignment_id', sa.Integer(), sa.ForeignKey('review_assignments.id'),
                  nullable=False, unique=True),
        sa.Column('overall_score', sa.Integer()),
        sa.Column('comments', sa.Text()),
        sa.Column('strengths', sa.Text()),
        sa.Column('weaknesses', sa.Text()),
        sa.Column('recommendation', sa.String(50)),
        *_timestamps(),
    )

    op.create_table(
        'review_scores',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('review_id', sa.Integer(), sa.ForeignKey('reviews.id', ondelete='CASCADE'), nullable=False),
        sa.Column('criteria_id', sa.Integer(), sa.ForeignKey('review_criteria.id'), nullable=False),
        sa.Column('raw_score', sa.Float()),
        sa.Column('normalized_score', sa.Float()),
        sa.Column('weight_applied', sa.Float()),
        sa.Column('weighted_score', sa.Float()),
        sa.Column('rubric_level', sa.String(100)),
        sa.Column('score_rationale', sa.Text()),
        sa.Column('reviewer_confidence', sa.Integer()),
        sa.Column('is_na', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint('review_id', 'criteria_id', name='uq_review_scores_review_criteria'),
    )
    op.create_index('ix_review_scores_review_id', 'review_scores', ['review_id'])


def downgrade() -> None:
    op.drop_index('ix_review_scores_review_id', table_name='review_scores')
    op.drop_table('review_scores')
    op.drop_table('reviews')
    op.drop_index('ix_review_assignments_reviewer_id', table_name='review_assignments')
    op.drop_index('ix_review_assignments_application_id', table_name='review_assignments')
    op.drop_table('review_assignments')
    op.drop_index('ix_review_criteria_program_id', table_name='review_criteria')
    op.drop_table('review_criteria')
    op.drop_index('ix_applications_program_id', table_name='applications')
    op.drop_table('applications')
    op.drop_table('programs')
    op.drop_index('ix_users_api_token', table_name='users')
    op.drop_table('users')
