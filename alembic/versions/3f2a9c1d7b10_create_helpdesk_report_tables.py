"""create helpdesk report tables

Revision ID: 3f2a9c1d7b10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(60), nullable=False, unique=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('email', sa.String(180), unique=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('entity', sa.String(120), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'service_categories',
        sa.Column('id', sa.String(60), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('guest_allowed', sa.Boolean(), nullable=False),
        sa.Column('survey_template_id', sa.String(64)),
        *_timestamps(),
    )
    op.create_index('ix_service_categories_created_at', 'service_categories', ['created_at'])

    op.create_table(
        'tickets',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('title', sa.String(180), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category_id', sa.String(60), sa.ForeignKey('service_categories.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('reporter_id', sa.String(36), sa.ForeignKey('users.id')),
        sa.Column('reporter_name', sa.String(120), nullable=False),
        sa.Column('is_guest', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tickets_category_id', 'tickets', ['category_id'])
    op.create_index('ix_tickets_reporter_id', 'tickets', ['reporter_id'])
    op.create_index('ix_tickets_created_at', 'tickets', ['created_at'])

    op.create_table(
        'survey_templates',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('title', sa.String(160), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category_id', sa.String(60)),
        *_timestamps(),
    )
    op.create_index('ix_survey_templates_category_id', 'survey_templates', ['category_id'])
    op.create_index('ix_survey_templates_created_at', 'survey_templates', ['created_at'])

    op.create_table(
        'survey_questions',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('template_id', sa.String(64), sa.ForeignKey('survey_templates.id'), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('type', sa.String(24), nullable=False),
        sa.Column('options', sa.JSON()),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_survey_questions_template_id', 'survey_questions', ['template_id'])

    op.create_table(
        'survey_responses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('ticket_id', sa.String(64), sa.ForeignKey('tickets.id'), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('template_id', sa.String(64), nullable=False),
        sa.Column('answers', sa.JSON()),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_survey_responses_ticket_id', 'survey_responses', ['ticket_id'])
    op.create_index('ix_survey_responses_user_id', 'survey_responses', ['user_id'])
    op.create_index('ix_survey_responses_template_id', 'survey_responses', ['template_id'])
    op.create_index('ix_survey_responses_created_at', 'survey_responses', ['created_at'])


def downgrade() -> None:
    op.drop_table('survey_responses')
    op.drop_table('survey_questions')
    op.drop_table('survey_templates')
    op.drop_table('tickets')
    op.drop_table('service_categories')
    op.drop_table('users')
