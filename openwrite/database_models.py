from sqlalchemy import (Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, MetaData,
                        Table, Text, UniqueConstraint)

from openwrite.schemas.enums import (AIProviderName, ConnectionType, GraphNodeType, LoreType, MemberRole,
                                     PlotPointStatus, PlotPointType, ProjectStatus, ProjectType, Visibility,
                                     WorkType, enum_values)

metadata = MetaData()


def _in_check(column, enum_cls, name, nullable=False):
    values = ", ".join(f"'{value}'" for value in enum_values(enum_cls))
    condition = f"{column} IN ({values})"
    if nullable:
        condition = f"{column} IS NULL OR {condition}"
    return CheckConstraint(condition, name=name)


def _exclusive_owner_check(name):
    # Exactly one of project_id / work_id is set
    return CheckConstraint('(project_id IS NULL) <> (work_id IS NULL)', name=name)


t_user = Table(
    'user', metadata,
    Column('id', Text, primary_key=True),
    Column('name', Text, nullable=False),
    Column('email', Text, nullable=False, unique=True),
    Column('password_hash', Text, nullable=False),
    Column('image', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False)
)

t_organization = Table(
    'organization', metadata,
    Column('id', Text, primary_key=True),
    Column('name', Text, nullable=False),
    Column('slug', Text, nullable=False, unique=True),
    Column('logo', Text),
    Column('metadata', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime)
)

t_member = Table(
    'member', metadata,
    Column('id', Text, primary_key=True),
    Column('user_id', Text, ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
    Column('organization_id', Text, ForeignKey('organization.id', ondelete='CASCADE'), nullable=False),
    Column('role', Text, nullable=False),
    Column('created_at', DateTime, nullable=False),
    UniqueConstraint('user_id', 'organization_id', name='member_user_organization_unique'),
    _in_check('role', MemberRole, 'member_role_check'),
    Index('member_user_id_idx', 'user_id'),
    Index('member_organization_id_idx', 'organization_id')
)

t_project = Table(
    'project', metadata,
    Column('id', Text, primary_key=True),
    Column('title', Text, nullable=False),
    Column('description', Text),
    Column('type', Text, nullable=False, default=ProjectType.NOVEL.value),
    Column('genre', Text),
    Column('target_word_count', Integer),
    Column('current_word_count', Integer, default=0),
    Column('status', Text, nullable=False, default=ProjectStatus.DRAFT.value),
    Column('visibility', Text, nullable=False, default=Visibility.PRIVATE.value),
    Column('owner_id', Text, ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
    Column('organization_id', Text, ForeignKey('organization.id', ondelete='CASCADE'), nullable=False),
    Column('cover_image', Text),
    Column('metadata', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    Column('published_at', DateTime),
    Column('last_written_at', DateTime),
    _in_check('type', ProjectType, 'project_type_check'),
    _in_check('status', ProjectStatus, 'project_status_check'),
    _in_check('visibility', Visibility, 'project_visibility_check'),
    Index('project_organization_id_idx', 'organization_id'),
    Index('project_owner_id_idx', 'owner_id')
)

t_work = Table(
    'work', metadata,
    Column('id', Text, primary_key=True),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
    Column('title', Text, nullable=False),
    Column('description', Text),
    Column('work_type', Text, nullable=False),
    Column('order', Integer, nullable=False, default=1),
    Column('target_word_count', Integer),
    Column('current_word_count', Integer, default=0),
    Column('status', Text, nullable=False, default=ProjectStatus.DRAFT.value),
    Column('cover_image', Text),
    Column('metadata', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    Column('published_at', DateTime),
    Column('last_written_at', DateTime),
    _in_check('work_type', WorkType, 'work_type_check'),
    _in_check('status', ProjectStatus, 'work_status_check'),
    Index('work_project_id_idx', 'project_id')
)

t_chapter = Table(
    'chapter', metadata,
    Column('id', Text, primary_key=True),
    Column('title', Text, nullable=False),
    Column('content', Text),
    Column('summary', Text),
    Column('word_count', Integer, default=0),
    Column('order', Integer, nullable=False),
    Column('status', Text, nullable=False, default=ProjectStatus.DRAFT.value),
    Column('work_id', Text, ForeignKey('work.id', ondelete='CASCADE'), nullable=False),
    Column('notes', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    _in_check('status', ProjectStatus, 'chapter_status_check'),
    Index('chapter_work_id_idx', 'work_id')
)

t_character = Table(
    'character', metadata,
    Column('id', Text, primary_key=True),
    Column('name', Text, nullable=False),
    Column('description', Text),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE')),
    Column('work_id', Text, ForeignKey('work.id', ondelete='CASCADE')),
    Column('image', Text),
    Column('metadata', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    _exclusive_owner_check('character_association'),
    Index('character_project_id_idx', 'project_id'),
    Index('character_work_id_idx', 'work_id')
)

t_location = Table(
    'location', metadata,
    Column('id', Text, primary_key=True),
    Column('name', Text, nullable=False),
    Column('description', Text),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE')),
    Column('work_id', Text, ForeignKey('work.id', ondelete='CASCADE')),
    Column('parent_location_id', Text, ForeignKey('location.id', ondelete='SET NULL')),
    Column('image', Text),
    Column('metadata', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    _exclusive_owner_check('location_association'),
    Index('location_project_id_idx', 'project_id'),
    Index('location_work_id_idx', 'work_id')
)

t_plot_point = Table(
    'plot_point', metadata,
    Column('id', Text, primary_key=True),
    Column('title', Text, nullable=False),
    Column('description', Text),
    Column('type', Text),
    Column('order', Integer, nullable=False),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE')),
    Column('work_id', Text, ForeignKey('work.id', ondelete='CASCADE')),
    Column('chapter_id', Text, ForeignKey('chapter.id', ondelete='SET NULL')),
    Column('status', Text, nullable=False, default=PlotPointStatus.PLANNED.value),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    _exclusive_owner_check('plot_point_association'),
    _in_check('type', PlotPointType, 'plot_point_type_check', nullable=True),
    _in_check('status', PlotPointStatus, 'plot_point_status_check'),
    Index('plot_point_project_id_idx', 'project_id'),
    Index('plot_point_work_id_idx', 'work_id')
)

t_lore = Table(
    'lore', metadata,
    Column('id', Text, primary_key=True),
    Column('name', Text, nullable=False),
    Column('description', Text),
    Column('type', Text),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE')),
    Column('work_id', Text, ForeignKey('work.id', ondelete='CASCADE')),
    Column('metadata', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    _exclusive_owner_check('lore_association'),
    _in_check('type', LoreType, 'lore_type_check', nullable=True),
    Index('lore_project_id_idx', 'project_id'),
    Index('lore_work_id_idx', 'work_id')
)

t_writing_session = Table(
    'writing_session', metadata,
    Column('id', Text, primary_key=True),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
    Column('work_id', Text, ForeignKey('work.id', ondelete='SET NULL')),
    Column('user_id', Text, ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
    Column('chapter_id', Text, ForeignKey('chapter.id', ondelete='SET NULL')),
    Column('words_written', Integer, default=0),
    Column('time_spent', Integer, default=0),  # minutes
    Column('start_time', DateTime, nullable=False),
    Column('end_time', DateTime),
    Column('goal_words', Integer),
    Column('goal_achieved', Boolean, default=False),
    Column('created_at', DateTime, nullable=False),
    Index('writing_session_project_user_idx', 'project_id', 'user_id')
)

t_graph_node = Table(
    'graph_node', metadata,
    Column('id', Text, primary_key=True),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
    Column('node_type', Text, nullable=False),
    Column('sub_type', Text),
    Column('title', Text, nullable=False),
    Column('description', Text),
    Column('position_x', Integer, default=0),
    Column('position_y', Integer, default=0),
    Column('visual_properties', Text),  # {color, size, icon, shape}
    Column('metadata', Text),
    Column('word_count', Integer, default=0),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    _in_check('node_type', GraphNodeType, 'graph_node_type_check'),
    Index('graph_node_project_id_idx', 'project_id'),
    Index('graph_node_type_idx', 'node_type'),
    Index('graph_node_project_type_idx', 'project_id', 'node_type')
)

t_text_block = Table(
    'text_block', metadata,
    Column('id', Text, primary_key=True),
    Column('story_node_id', Text, ForeignKey('graph_node.id', ondelete='CASCADE'), nullable=False),
    Column('content', Text),
    Column('order_index', Integer, nullable=False, default=0),
    Column('word_count', Integer, default=0),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    Index('text_block_story_node_id_idx', 'story_node_id'),
    Index('text_block_order_idx', 'story_node_id', 'order_index')
)

t_graph_connection = Table(
    'graph_connection', metadata,
    Column('id', Text, primary_key=True),
    Column('project_id', Text, ForeignKey('project.id', ondelete='CASCADE'), nullable=False),
    Column('source_node_id', Text, ForeignKey('graph_node.id', ondelete='CASCADE'), nullable=False),
    Column('target_node_id', Text, ForeignKey('graph_node.id', ondelete='CASCADE'), nullable=False),
    Column('connection_type', Text, nullable=False),
    Column('connection_strength', Integer, default=1),
    Column('visual_properties', Text),  # {lineStyle, color, animation}
    Column('metadata', Text),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    _in_check('connection_type', ConnectionType, 'graph_connection_type_check'),
    CheckConstraint('connection_strength BETWEEN 1 AND 5', name='graph_connection_strength_check'),
    Index('graph_connection_project_id_idx', 'project_id'),
    Index('graph_connection_source_node_id_idx', 'source_node_id'),
    Index('graph_connection_target_node_id_idx', 'target_node_id'),
    Index('graph_connection_type_idx', 'project_id', 'connection_type'),
    Index('graph_connection_source_target_idx', 'source_node_id', 'target_node_id')
)

t_ai_provider = Table(
    'ai_provider', metadata,
    Column('id', Text, primary_key=True),
    Column('user_id', Text, ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
    Column('provider', Text, nullable=False),
    Column('provider_user_id', Text),
    Column('api_key', Text, nullable=False),  # Fernet token, never plaintext
    Column('key_hash', Text),
    Column('key_label', Text),
    Column('is_active', Boolean, nullable=False, default=True),
    Column('is_default', Boolean, nullable=False, default=False),
    Column('usage_limit', Integer),
    Column('usage_remaining', Integer),
    Column('current_usage', Integer, default=0),
    Column('created_at', DateTime, nullable=False),
    Column('updated_at', DateTime, nullable=False),
    Column('last_used_at', DateTime),
    Column('access_token', Text),
    Column('refresh_token', Text),
    Column('token_expires_at', DateTime),
    Column('supported_models', Text),  # JSON list
    Column('provider_config', Text),  # JSON object
    UniqueConstraint('user_id', 'provider', name='ai_provider_user_provider_unique'),
    _in_check('provider', AIProviderName, 'ai_provider_provider_check'),
    Index('ai_provider_user_active_idx', 'user_id', 'is_active'),
    Index('ai_provider_user_default_idx', 'user_id', 'is_default'),
    Index('ai_provider_last_used_idx', 'last_used_at'),
    Index('ai_provider_provider_idx', 'provider')
)
