"""initial_schema

Revision ID: 6f1c2a9d4e70
Revises:
Create Date: 2026-10-19 09:12:41.208533

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '6f1c2a9d4e70'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROJECT_TYPES = ('novel', 'trilogy', 'series', 'short_story_collection', 'graphic_novel', 'screenplay')
STATUSES = ('draft', 'in_progress', 'completed', 'published', 'archived')
VISIBILITIES = ('private', 'organization', 'public')
WORK_TYPES = ('novel', 'short_story', 'novella', 'graphic_novel', 'screenplay')
PLOT_POINT_TYPES = ('inciting_incident', 'plot_point_1', 'midpoint', 'plot_point_2', 'climax',
                    'resolution', 'custom')
PLOT_POINT_STATUSES = ('planned', 'in_progress', 'completed')
LORE_TYPES = ('core_rule', 'history', 'culture', 'magic_system', 'technology', 'religion', 'politics',
              'custom')
MEMBER_ROLES = ('owner', 'admin', 'member')
NODE_TYPES = ('story_element', 'character', 'location', 'lore', 'plot_thread')
CONNECTION_TYPES = ('story_flow', 'character_arc', 'setting', 'plot_thread', 'thematic', 'reference')
AI_PROVIDERS = ('openrouter', 'openai', 'anthropic', 'ollama', 'groq', 'gemini', 'cohere')


def _in(column, values, name, nullable=False):
    condition = f"{column} IN ({', '.join(repr(v) for v in values)})"
    if nullable:
        condition = f"{column} IS NULL OR {condition}"
    return sa.CheckConstraint(condition, name=name)


def _exclusive_owner(name):
    return sa.CheckConstraint('(project_id IS NULL) <> (work_id IS NULL)', name=name)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def _codex_owner_columns():
    return [
        sa.Column('project_id', sa.Text(), sa.ForeignKey('project.id', ondelete='CASCADE'), nullable=True),
        sa.Column('work_id', sa.Text(), sa.ForeignKey('work.id', ondelete='CASCADE'), nullable=True),
    ]


def upgrade() -> None:
    # Accounts
    op.create_table(
        'user',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('image', sa.Text(), nullable=True),
        *_timestamps()
    )
    op.create_table(
        'organization',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('slug', sa.Text(), nullable=False, unique=True),
        sa.Column('logo', sa.Text(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True)
    )
    op.create_table(
        'member',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('user_id', sa.Text(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('organization_id', sa.Text(), sa.ForeignKey('organization.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'organization_id', name='member_user_organization_unique'),
        _in('role', MEMBER_ROLES, 'member_role_check')
    )
    op.create_index('member_user_id_idx', 'member', ['user_id'])
    op.create_index('member_organization_id_idx', 'member', ['organization_id'])

    # Projects, works, chapters
    op.create_table(
        'project',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('genre', sa.Text(), nullable=True),
        sa.Column('target_word_count', sa.Integer(), nullable=True),
        sa.Column('current_word_count', sa.Integer(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('visibility', sa.Text(), nullable=False),
        sa.Column('owner_id', sa.Text(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('organization_id', sa.Text(), sa.ForeignKey('organization.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('cover_image', sa.Text(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('last_written_at', sa.DateTime(), nullable=True),
        _in('type', PROJECT_TYPES, 'project_type_check'),
        _in('status', STATUSES, 'project_status_check'),
        _in('visibility', VISIBILITIES, 'project_visibility_check')
    )
    op.create_index('project_organization_id_idx', 'project', ['organization_id'])
    op.create_index('project_owner_id_idx', 'project', ['owner_id'])

    op.create_table(
        'work',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('project_id', sa.Text(), sa.ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('work_type', sa.Text(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('target_word_count', sa.Integer(), nullable=True),
        sa.Column('current_word_count', sa.Integer(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('cover_image', sa.Text(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('last_written_at', sa.DateTime(), nullable=True),
        _in('work_type', WORK_TYPES, 'work_type_check'),
        _in('status', STATUSES, 'work_status_check')
    )
    op.create_index('work_project_id_idx', 'work', ['project_id'])

    op.create_table(
        'chapter',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('word_count', sa.Integer(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('work_id', sa.Text(), sa.ForeignKey('work.id', ondelete='CASCADE'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        _in('status', STATUSES, 'chapter_status_check')
    )
    op.create_index('chapter_work_id_idx', 'chapter', ['work_id'])

    # Codex
    op.create_table(
        'character',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_codex_owner_columns(),
        sa.Column('image', sa.Text(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        *_timestamps(),
        _exclusive_owner('character_association')
    )
    op.create_index('character_project_id_idx', 'character', ['project_id'])
    op.create_index('character_work_id_idx', 'character', ['work_id'])

    op.create_table(
        'location',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_codex_owner_columns(),
        sa.Column('parent_location_id', sa.Text(), sa.ForeignKey('location.id', ondelete='SET NULL'),
                  nullable=True),
        sa.Column('image', sa.Text(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        *_timestamps(),
        _exclusive_owner('location_association')
    )
    op.create_index('location_project_id_idx', 'location', ['project_id'])
    op.create_index('location_work_id_idx', 'location', ['work_id'])

    op.create_table(
        'plot_point',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
        *_codex_owner_columns(),
        sa.Column('chapter_id', sa.Text(), sa.ForeignKey('chapter.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        *_timestamps(),
        _exclusive_owner('plot_point_association'),
        _in('type', PLOT_POINT_TYPES, 'plot_point_type_check', nullable=True),
        _in('status', PLOT_POINT_STATUSES, 'plot_point_status_check')
    )
    op.create_index('plot_point_project_id_idx', 'plot_point', ['project_id'])
    op.create_index('plot_point_work_id_idx', 'plot_point', ['work_id'])

    op.create_table(
        'lore',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.Text(), nullable=True),
        *_codex_owner_columns(),
        sa.Column('metadata', sa.Text(), nullable=True),
        *_timestamps(),
        _exclusive_owner('lore_association'),
        _in('type', LORE_TYPES, 'lore_type_check', nullable=True)
    )
    op.create_index('lore_project_id_idx', 'lore', ['project_id'])
    op.create_index('lore_work_id_idx', 'lore', ['work_id'])

    op.create_table(
        'writing_session',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('project_id', sa.Text(), sa.ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
        sa.Column('work_id', sa.Text(), sa.ForeignKey('work.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_id', sa.Text(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('chapter_id', sa.Text(), sa.ForeignKey('chapter.id', ondelete='SET NULL'), nullable=True),
        sa.Column('words_written', sa.Integer(), nullable=True),
        sa.Column('time_spent', sa.Integer(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('goal_words', sa.Integer(), nullable=True),
        sa.Column('goal_achieved', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False)
    )
    op.create_index('writing_session_project_user_idx', 'writing_session', ['project_id', 'user_id'])

    # Story graph
    op.create_table(
        'graph_node',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('project_id', sa.Text(), sa.ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
        sa.Column('node_type', sa.Text(), nullable=False),
        sa.Column('sub_type', sa.Text(), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('position_x', sa.Integer(), nullable=True),
        sa.Column('position_y', sa.Integer(), nullable=True),
        sa.Column('visual_properties', sa.Text(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('word_count', sa.Integer(), nullable=True),
        *_timestamps(),
        _in('node_type', NODE_TYPES, 'graph_node_type_check')
    )
    op.create_index('graph_node_project_id_idx', 'graph_node', ['project_id'])
    op.create_index('graph_node_type_idx', 'graph_node', ['node_type'])
    op.create_index('graph_node_project_type_idx', 'graph_node', ['project_id', 'node_type'])

    op.create_table(
        'text_block',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('story_node_id', sa.Text(), sa.ForeignKey('graph_node.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('word_count', sa.Integer(), nullable=True),
        *_timestamps()
    )
    op.create_index('text_block_story_node_id_idx', 'text_block', ['story_node_id'])
    op.create_index('text_block_order_idx', 'text_block', ['story_node_id', 'order_index'])

    op.create_table(
        'graph_connection',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('project_id', sa.Text(), sa.ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
        sa.Column('source_node_id', sa.Text(), sa.ForeignKey('graph_node.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('target_node_id', sa.Text(), sa.ForeignKey('graph_node.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('connection_type', sa.Text(), nullable=False),
        sa.Column('connection_strength', sa.Integer(), nullable=True),
        sa.Column('visual_properties', sa.Text(), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        *_timestamps(),
        _in('connection_type', CONNECTION_TYPES, 'graph_connection_type_check'),
        sa.CheckConstraint('connection_strength BETWEEN 1 AND 5', name='graph_connection_strength_check')
    )
    op.create_index('graph_connection_project_id_idx', 'graph_connection', ['project_id'])
    op.create_index('graph_connection_source_node_id_idx', 'graph_connection', ['source_node_id'])
    op.create_index('graph_connection_target_node_id_idx', 'graph_connection', ['target_node_id'])
    op.create_index('graph_connection_type_idx', 'graph_connection', ['project_id', 'connection_type'])
    op.create_index('graph_connection_source_target_idx', 'graph_connection',
                    ['source_node_id', 'target_node_id'])

    # AI provider credentials
    op.create_table(
        'ai_provider',
        sa.Column('id', sa.Text(), primary_key=True),
        sa.Column('user_id', sa.Text(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('provider', sa.Text(), nullable=False),
        sa.Column('provider_user_id', sa.Text(), nullable=True),
        sa.Column('api_key', sa.Text(), nullable=False),
        sa.Column('key_hash', sa.Text(), nullable=True),
        sa.Column('key_label', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_remaining', sa.Integer(), nullable=True),
        sa.Column('current_usage', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(), nullable=True),
        sa.Column('supported_models', sa.Text(), nullable=True),
        sa.Column('provider_config', sa.Text(), nullable=True),
        sa.UniqueConstraint('user_id', 'provider', name='ai_provider_user_provider_unique'),
        _in('provider', AI_PROVIDERS, 'ai_provider_provider_check')
    )
    op.create_index('ai_provider_user_active_idx', 'ai_provider', ['user_id', 'is_active'])
    op.create_index('ai_provider_user_default_idx', 'ai_provider', ['user_id', 'is_default'])
    op.create_index('ai_provider_last_used_idx', 'ai_provider', ['last_used_at'])
    op.create_index('ai_provider_provider_idx', 'ai_provider', ['provider'])


def downgrade() -> None:
    for table in ('ai_provider', 'graph_connection', 'text_block', 'graph_node', 'writing_session',
                  'lore', 'plot_point', 'location', 'character', 'chapter', 'work', 'project',
                  'member', 'organization', 'user'):
        op.drop_table(table)
