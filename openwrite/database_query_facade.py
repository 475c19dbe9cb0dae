import json
import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict

from sqlalchemy import (select,
                        insert,
                        update,
                        delete,
                        asc,
                        desc,
                        or_,
                        and_,
                        func)

from openwrite.database_models import (t_user as users,
                                       t_organization as organizations,
                                       t_member as members,
                                       t_project as projects,
                                       t_work as works,
                                       t_chapter as chapters,
                                       t_character as characters,
                                       t_location as locations,
                                       t_plot_point as plot_points,
                                       t_lore as lore,
                                       t_writing_session as writing_sessions,
                                       t_graph_node as graph_nodes,
                                       t_text_block as text_blocks,
                                       t_graph_connection as graph_connections,
                                       t_ai_provider as ai_providers)
from openwrite.exceptions import ConstraintViolationError, RecordNotFoundError
from openwrite.schemas.enums import GraphNodeType, MemberRole, StoryElementType
from openwrite.utils.text import count_words

# Codex entries share one shape: owned by a project or by one of its works
CODEX_TABLES = {
    'character': characters,
    'location': locations,
    'lore': lore,
    'plot_point': plot_points,
}

# Columns callers may never overwrite through a partial update
_PROTECTED_COLUMNS = ('id', 'created_at', 'updated_at')


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class DatabaseQueryFacade:
    def __init__(self, db, logger):
        self.db = db
        self.logger = logger

    def _get_connection(self):
        """Get a fresh connection from the database pool."""
        return self.db.get_connection()

    def _execute_with_rollback(self, statement, operation_name="query", fetch=None):
        """
        Execute a single statement, commit on success and roll back on error.

        Args:
            statement: SQLAlchemy statement
            operation_name: Description of the operation for logging
            fetch: None for the row count, or 'all' / 'one' / 'scalar' to
                materialize the result before the connection is returned

        Returns:
            Row count, list of dicts, a dict (or None), or a scalar
        """
        connection = self._get_connection()
        try:
            result = connection.execute(statement)
            if fetch == 'all':
                value = [dict(row._mapping) for row in result]
            elif fetch == 'one':
                row = result.fetchone()
                value = dict(row._mapping) if row else None
            elif fetch == 'scalar':
                value = result.scalar()
            else:
                value = result.rowcount
            connection.commit()
            return value
        except Exception as e:
            self.logger.error(f"Error executing {operation_name}: {e}")
            try:
                connection.rollback()
            except Exception as rollback_error:
                self.logger.error(f"Error during rollback: {rollback_error}")
            raise
        finally:
            connection.close()

    @staticmethod
    def _updatable(table, fields: Dict, extra_protected=()) -> Dict:
        protected = set(_PROTECTED_COLUMNS) | set(extra_protected)
        return {key: value for key, value in fields.items()
                if key in table.c and key not in protected}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, name: str, email: str, password_hash: str) -> Dict:
        """Create a user. Emails are stored lower-case."""
        now = utcnow()
        user_id = new_id()
        statement = insert(users).values(
            id=user_id,
            name=name.strip(),
            email=email.strip().lower(),
            password_hash=password_hash,
            created_at=now,
            updated_at=now
        )
        self._execute_with_rollback(statement, operation_name="create_user")
        self.logger.info(f"Created user {user_id}")
        return self.get_user_by_id(user_id)

    def get_user_by_id(self, user_id: str) -> Optional[Dict]:
        if not user_id:
            return None
        statement = select(users).where(users.c.id == user_id)
        return self._execute_with_rollback(statement, operation_name="get_user_by_id", fetch='one')

    def get_user_by_email(self, email: str) -> Optional[Dict]:
        """Get user by email (case-insensitive)."""
        if email is None:
            return None
        statement = select(users).where(users.c.email == email.strip().lower())
        return self._execute_with_rollback(statement, operation_name="get_user_by_email", fetch='one')

    # ------------------------------------------------------------------
    # Organizations and members
    # ------------------------------------------------------------------

    def organization_slug_exists(self, slug: str) -> bool:
        statement = select(func.count()).select_from(organizations).where(organizations.c.slug == slug)
        return (self._execute_with_rollback(statement, fetch='scalar') or 0) > 0

    def create_organization(self, name: str, slug: str, owner_user_id: str) -> Dict:
        """Create an organization and make ``owner_user_id`` its owner in one transaction."""
        now = utcnow()
        organization_id = new_id()
        with self.db.transaction() as connection:
            connection.execute(insert(organizations).values(
                id=organization_id,
                name=name,
                slug=slug,
                created_at=now,
                updated_at=now
            ))
            connection.execute(insert(members).values(
                id=new_id(),
                user_id=owner_user_id,
                organization_id=organization_id,
                role=MemberRole.OWNER.value,
                created_at=now
            ))
        self.logger.info(f"Created organization {organization_id} owned by {owner_user_id}")
        return {"id": organization_id, "name": name, "slug": slug}

    def get_memberships_for_user(self, user_id: str) -> List[Dict]:
        """Organizations the user belongs to, oldest membership first."""
        statement = (
            select(
                organizations.c.id,
                organizations.c.name,
                organizations.c.slug,
                organizations.c.logo,
                members.c.id.label('member_id'),
                members.c.role,
                members.c.created_at.label('joined_at'),
            )
            .select_from(members.join(organizations, members.c.organization_id == organizations.c.id))
            .where(members.c.user_id == user_id)
            .order_by(asc(members.c.created_at), asc(members.c.id))
        )
        return self._execute_with_rollback(statement, operation_name="get_memberships_for_user", fetch='all')

    def get_membership(self, user_id: str, organization_id: str) -> Optional[Dict]:
        statement = select(members).where(
            and_(members.c.user_id == user_id, members.c.organization_id == organization_id)
        )
        return self._execute_with_rollback(statement, operation_name="get_membership", fetch='one')

    def get_organization(self, organization_id: str) -> Optional[Dict]:
        statement = select(organizations).where(organizations.c.id == organization_id)
        return self._execute_with_rollback(statement, operation_name="get_organization", fetch='one')

    def list_members(self, organization_id: str) -> List[Dict]:
        statement = (
            select(
                members.c.id,
                members.c.user_id,
                members.c.role,
                members.c.created_at,
                users.c.name,
                users.c.email,
            )
            .select_from(members.join(users, members.c.user_id == users.c.id))
            .where(members.c.organization_id == organization_id)
            .order_by(asc(members.c.created_at))
        )
        return self._execute_with_rollback(statement, operation_name="list_members", fetch='all')

    def add_member(self, organization_id: str, user_id: str, role: str) -> str:
        member_id = new_id()
        statement = insert(members).values(
            id=member_id,
            user_id=user_id,
            organization_id=organization_id,
            role=role,
            created_at=utcnow()
        )
        self._execute_with_rollback(statement, operation_name="add_member")
        return member_id

    def get_member(self, organization_id: str, member_id: str) -> Optional[Dict]:
        statement = select(members).where(
            and_(members.c.id == member_id, members.c.organization_id == organization_id)
        )
        return self._execute_with_rollback(statement, operation_name="get_member", fetch='one')

    def count_owners(self, organization_id: str) -> int:
        statement = select(func.count()).select_from(members).where(
            and_(members.c.organization_id == organization_id, members.c.role == MemberRole.OWNER.value)
        )
        return self._execute_with_rollback(statement, operation_name="count_owners", fetch='scalar') or 0

    def delete_member(self, organization_id: str, member_id: str) -> bool:
        statement = delete(members).where(
            and_(members.c.id == member_id, members.c.organization_id == organization_id)
        )
        return self._execute_with_rollback(statement, operation_name="delete_member") > 0

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self, organization_id: str) -> List[Dict]:
        statement = (
            select(projects)
            .where(projects.c.organization_id == organization_id)
            .order_by(desc(projects.c.updated_at))
        )
        return self._execute_with_rollback(statement, operation_name="list_projects", fetch='all')

    def get_project(self, project_id: str, organization_id: Optional[str] = None) -> Optional[Dict]:
        """Get a project, optionally only when it belongs to ``organization_id``."""
        statement = select(projects).where(projects.c.id == project_id)
        if organization_id is not None:
            statement = statement.where(projects.c.organization_id == organization_id)
        return self._execute_with_rollback(statement, operation_name="get_project", fetch='one')

    def create_project(self, owner_id: str, organization_id: str, data: Dict) -> str:
        now = utcnow()
        project_id = new_id()
        values = self._updatable(projects, data, extra_protected=(
            'owner_id', 'organization_id', 'current_word_count', 'last_written_at'))
        statement = insert(projects).values(
            id=project_id,
            owner_id=owner_id,
            organization_id=organization_id,
            current_word_count=0,
            created_at=now,
            updated_at=now,
            **values
        )
        self._execute_with_rollback(statement, operation_name="create_project")
        self.logger.info(f"Created project {project_id} in organization {organization_id}")
        return project_id

    def update_project(self, project_id: str, fields: Dict) -> bool:
        values = self._updatable(projects, fields, extra_protected=('owner_id', 'organization_id'))
        statement = (
            update(projects)
            .where(projects.c.id == project_id)
            .values(updated_at=utcnow(), **values)
        )
        return self._execute_with_rollback(statement, operation_name="update_project") > 0

    def delete_project(self, project_id: str) -> bool:
        """Delete a project; works, codex entries and the story graph go with it."""
        statement = delete(projects).where(projects.c.id == project_id)
        deleted = self._execute_with_rollback(statement, operation_name="delete_project") > 0
        if deleted:
            self.logger.info(f"Deleted project {project_id}")
        return deleted

    # ------------------------------------------------------------------
    # Works and chapters
    # ------------------------------------------------------------------

    def list_works(self, project_id: str) -> List[Dict]:
        statement = (
            select(works)
            .where(works.c.project_id == project_id)
            .order_by(asc(works.c.order), asc(works.c.created_at))
        )
        return self._execute_with_rollback(statement, operation_name="list_works", fetch='all')

    def get_work(self, project_id: str, work_id: str) -> Optional[Dict]:
        statement = select(works).where(and_(works.c.id == work_id, works.c.project_id == project_id))
        return self._execute_with_rollback(statement, operation_name="get_work", fetch='one')

    def create_work(self, project_id: str, data: Dict) -> str:
        now = utcnow()
        work_id = new_id()
        values = self._updatable(works, data, extra_protected=('project_id', 'current_word_count'))
        statement = insert(works).values(
            id=work_id,
            project_id=project_id,
            current_word_count=0,
            created_at=now,
            updated_at=now,
            **values
        )
        self._execute_with_rollback(statement, operation_name="create_work")
        return work_id

    def update_work(self, project_id: str, work_id: str, fields: Dict) -> bool:
        values = self._updatable(works, fields, extra_protected=('project_id',))
        statement = (
            update(works)
            .where(and_(works.c.id == work_id, works.c.project_id == project_id))
            .values(updated_at=utcnow(), **values)
        )
        return self._execute_with_rollback(statement, operation_name="update_work") > 0

    def delete_work(self, project_id: str, work_id: str) -> bool:
        statement = delete(works).where(and_(works.c.id == work_id, works.c.project_id == project_id))
        return self._execute_with_rollback(statement, operation_name="delete_work") > 0

    def list_chapters(self, work_id: str) -> List[Dict]:
        statement = (
            select(chapters)
            .where(chapters.c.work_id == work_id)
            .order_by(asc(chapters.c.order), asc(chapters.c.created_at))
        )
        return self._execute_with_rollback(statement, operation_name="list_chapters", fetch='all')

    def get_chapter(self, work_id: str, chapter_id: str) -> Optional[Dict]:
        statement = select(chapters).where(and_(chapters.c.id == chapter_id, chapters.c.work_id == work_id))
        return self._execute_with_rollback(statement, operation_name="get_chapter", fetch='one')

    def get_chapter_in_project(self, project_id: str, chapter_id: str) -> Optional[Dict]:
        statement = (
            select(chapters)
            .select_from(chapters.join(works, chapters.c.work_id == works.c.id))
            .where(and_(chapters.c.id == chapter_id, works.c.project_id == project_id))
        )
        return self._execute_with_rollback(statement, operation_name="get_chapter_in_project", fetch='one')

    def create_chapter(self, work_id: str, data: Dict) -> str:
        now = utcnow()
        chapter_id = new_id()
        values = self._updatable(chapters, data, extra_protected=('work_id', 'word_count'))
        statement = insert(chapters).values(
            id=chapter_id,
            work_id=work_id,
            word_count=count_words(values.get('content')),
            created_at=now,
            updated_at=now,
            **values
        )
        self._execute_with_rollback(statement, operation_name="create_chapter")
        return chapter_id

    def update_chapter(self, work_id: str, chapter_id: str, fields: Dict) -> bool:
        values = self._updatable(chapters, fields, extra_protected=('work_id', 'word_count'))
        if 'content' in values:
            values['word_count'] = count_words(values['content'])
        statement = (
            update(chapters)
            .where(and_(chapters.c.id == chapter_id, chapters.c.work_id == work_id))
            .values(updated_at=utcnow(), **values)
        )
        return self._execute_with_rollback(statement, operation_name="update_chapter") > 0

    def delete_chapter(self, work_id: str, chapter_id: str) -> bool:
        statement = delete(chapters).where(and_(chapters.c.id == chapter_id, chapters.c.work_id == work_id))
        return self._execute_with_rollback(statement, operation_name="delete_chapter") > 0

    # ------------------------------------------------------------------
    # Codex: characters, locations, lore, plot points
    # ------------------------------------------------------------------

    @staticmethod
    def _codex_table(kind: str):
        try:
            return CODEX_TABLES[kind]
        except KeyError:
            raise ConstraintViolationError(f"Unknown codex kind: {kind}")

    @staticmethod
    def _in_project(table, project_id: str):
        """Entries owned by the project directly or by one of its works."""
        project_works = select(works.c.id).where(works.c.project_id == project_id)
        return or_(table.c.project_id == project_id, table.c.work_id.in_(project_works))

    def _resolve_codex_owner(self, project_id: str, work_id: Optional[str]) -> Dict:
        """Map an optional work id onto the mutually exclusive owner columns."""
        if work_id:
            if self.get_work(project_id, work_id) is None:
                raise ConstraintViolationError(f"Work {work_id} does not belong to this project")
            return {'project_id': None, 'work_id': work_id}
        return {'project_id': project_id, 'work_id': None}

    def _check_codex_references(self, kind: str, project_id: str, values: Dict, entry_id: Optional[str] = None):
        if kind == 'location' and values.get('parent_location_id'):
            parent_id = values['parent_location_id']
            if parent_id == entry_id:
                raise ConstraintViolationError("A location cannot be its own parent")
            parent = self.get_codex_entry('location', project_id, parent_id)
            if parent is None:
                raise ConstraintViolationError(f"Parent location {parent_id} not found in this project")
            if entry_id:
                self._check_location_ancestry(project_id, entry_id, parent)
        if kind == 'plot_point' and values.get('chapter_id'):
            if self.get_chapter_in_project(project_id, values['chapter_id']) is None:
                raise ConstraintViolationError(f"Chapter {values['chapter_id']} not found in this project")

    def _check_location_ancestry(self, project_id: str, entry_id: str, parent: Dict):
        """Reject a parent whose own ancestors include ``entry_id``."""
        seen = {parent['id']}
        ancestor_id = parent['parent_location_id']
        while ancestor_id and ancestor_id not in seen:
            if ancestor_id == entry_id:
                raise ConstraintViolationError("Location hierarchy cannot contain a cycle")
            seen.add(ancestor_id)
            ancestor = self.get_codex_entry('location', project_id, ancestor_id)
            ancestor_id = ancestor['parent_location_id'] if ancestor else None

    def list_codex_entries(self, kind: str, project_id: str, work_id: Optional[str] = None) -> List[Dict]:
        table = self._codex_table(kind)
        statement = select(table)
        if work_id:
            statement = statement.where(
                and_(table.c.work_id == work_id, table.c.work_id.in_(
                    select(works.c.id).where(works.c.project_id == project_id)))
            )
        else:
            statement = statement.where(self._in_project(table, project_id))
        if kind == 'plot_point':
            statement = statement.order_by(asc(table.c.order), asc(table.c.created_at))
        else:
            statement = statement.order_by(asc(table.c.created_at), asc(table.c.id))
        return self._execute_with_rollback(statement, operation_name=f"list_{kind}", fetch='all')

    def get_codex_entry(self, kind: str, project_id: str, entry_id: str) -> Optional[Dict]:
        table = self._codex_table(kind)
        statement = select(table).where(and_(table.c.id == entry_id, self._in_project(table, project_id)))
        return self._execute_with_rollback(statement, operation_name=f"get_{kind}", fetch='one')

    def create_codex_entry(self, kind: str, project_id: str, data: Dict) -> str:
        """
        Create a character, location, lore entry or plot point.

        Args:
            kind: Key of CODEX_TABLES
            project_id: Project the entry belongs to
            data: Column values; an optional ``work_id`` scopes the entry to
                one work of the project instead of the whole project

        Returns:
            The new entry id

        Raises:
            ConstraintViolationError: work, parent location or chapter is
                not part of the project
        """
        table = self._codex_table(kind)
        data = dict(data)
        owner = self._resolve_codex_owner(project_id, data.pop('work_id', None))
        values = self._updatable(table, data, extra_protected=('project_id', 'work_id'))
        self._check_codex_references(kind, project_id, values)

        now = utcnow()
        entry_id = new_id()
        statement = insert(table).values(
            id=entry_id,
            created_at=now,
            updated_at=now,
            **owner,
            **values
        )
        self._execute_with_rollback(statement, operation_name=f"create_{kind}")
        return entry_id

    def update_codex_entry(self, kind: str, project_id: str, entry_id: str, fields: Dict) -> bool:
        table = self._codex_table(kind)
        fields = dict(fields)
        values = {}
        if 'work_id' in fields:
            values.update(self._resolve_codex_owner(project_id, fields.pop('work_id')))
        values.update(self._updatable(table, fields, extra_protected=('project_id', 'work_id')))
        self._check_codex_references(kind, project_id, values, entry_id=entry_id)

        statement = (
            update(table)
            .where(and_(table.c.id == entry_id, self._in_project(table, project_id)))
            .values(updated_at=utcnow(), **values)
        )
        return self._execute_with_rollback(statement, operation_name=f"update_{kind}") > 0

    def delete_codex_entry(self, kind: str, project_id: str, entry_id: str) -> bool:
        table = self._codex_table(kind)
        statement = delete(table).where(and_(table.c.id == entry_id, self._in_project(table, project_id)))
        return self._execute_with_rollback(statement, operation_name=f"delete_{kind}") > 0

    # ------------------------------------------------------------------
    # Story graph: nodes
    # ------------------------------------------------------------------

    def list_graph_nodes(self, project_id: str, node_type: Optional[str] = None) -> List[Dict]:
        statement = select(graph_nodes).where(graph_nodes.c.project_id == project_id)
        if node_type:
            statement = statement.where(graph_nodes.c.node_type == node_type)
        statement = statement.order_by(asc(graph_nodes.c.created_at), asc(graph_nodes.c.id))
        return self._execute_with_rollback(statement, operation_name="list_graph_nodes", fetch='all')

    def get_graph_node(self, project_id: str, node_id: str) -> Optional[Dict]:
        statement = select(graph_nodes).where(
            and_(graph_nodes.c.id == node_id, graph_nodes.c.project_id == project_id)
        )
        return self._execute_with_rollback(statement, operation_name="get_graph_node", fetch='one')

    def create_graph_node(self, project_id: str, data: Dict) -> str:
        now = utcnow()
        node_id = new_id()
        values = self._updatable(graph_nodes, data, extra_protected=('project_id', 'word_count'))
        self._check_story_sub_type(values.get('node_type'), values.get('sub_type'))
        values.setdefault('position_x', 0)
        values.setdefault('position_y', 0)
        statement = insert(graph_nodes).values(
            id=node_id,
            project_id=project_id,
            word_count=0,
            created_at=now,
            updated_at=now,
            **values
        )
        self._execute_with_rollback(statement, operation_name="create_graph_node")
        self.logger.debug(f"Created {values.get('node_type')} node {node_id} in project {project_id}")
        return node_id

    @staticmethod
    def _check_story_sub_type(node_type: Optional[str], sub_type: Optional[str]):
        if node_type != GraphNodeType.STORY_ELEMENT.value or sub_type is None:
            return
        allowed = [member.value for member in StoryElementType]
        if sub_type not in allowed:
            raise ConstraintViolationError(
                f"subType must be one of {', '.join(allowed)} for story elements")

    def update_graph_node(self, project_id: str, node_id: str, fields: Dict) -> bool:
        """
        Apply a partial update to a node.

        A story element that still owns text blocks cannot change its type, and
        the resulting ``sub_type`` must be valid for the resulting ``node_type``.
        """
        existing = self.get_graph_node(project_id, node_id)
        if existing is None:
            return False
        values = self._updatable(graph_nodes, fields, extra_protected=('project_id', 'word_count'))

        node_type = values.get('node_type', existing['node_type'])
        sub_type = values['sub_type'] if 'sub_type' in values else existing['sub_type']
        if 'node_type' in values or 'sub_type' in values:
            self._check_story_sub_type(node_type, sub_type)
        if node_type != existing['node_type'] and self.list_text_blocks(node_id):
            raise ConstraintViolationError(
                "Delete the node's text blocks before changing it from a story_element")

        statement = (
            update(graph_nodes)
            .where(and_(graph_nodes.c.id == node_id, graph_nodes.c.project_id == project_id))
            .values(updated_at=utcnow(), **values)
        )
        return self._execute_with_rollback(statement, operation_name="update_graph_node") > 0

    def update_graph_node_position(self, project_id: str, node_id: str, position_x: int, position_y: int) -> bool:
        return self.update_graph_node(project_id, node_id, {'position_x': position_x, 'position_y': position_y})

    def delete_graph_node(self, project_id: str, node_id: str) -> bool:
        """Delete a node together with its text blocks and every connection touching it."""
        with self.db.transaction() as connection:
            exists = connection.execute(
                select(graph_nodes.c.id).where(
                    and_(graph_nodes.c.id == node_id, graph_nodes.c.project_id == project_id))
            ).first()
            if exists is None:
                return False
            connection.execute(delete(text_blocks).where(text_blocks.c.story_node_id == node_id))
            connection.execute(delete(graph_connections).where(
                or_(graph_connections.c.source_node_id == node_id,
                    graph_connections.c.target_node_id == node_id)))
            connection.execute(delete(graph_nodes).where(graph_nodes.c.id == node_id))
        return True

    # ------------------------------------------------------------------
    # Story graph: text blocks
    # ------------------------------------------------------------------

    @staticmethod
    def _refresh_node_word_count(connection, node_id: str, now: datetime):
        total = connection.execute(
            select(func.coalesce(func.sum(text_blocks.c.word_count), 0))
            .where(text_blocks.c.story_node_id == node_id)
        ).scalar()
        connection.execute(
            update(graph_nodes)
            .where(graph_nodes.c.id == node_id)
            .values(word_count=total or 0, updated_at=now)
        )

    def _require_story_node(self, project_id: str, node_id: str) -> Dict:
        node = self.get_graph_node(project_id, node_id)
        if node is None:
            raise RecordNotFoundError(f"Node {node_id} not found")
        if node['node_type'] != GraphNodeType.STORY_ELEMENT.value:
            raise ConstraintViolationError("Text blocks can only be attached to story_element nodes")
        return node

    def list_text_blocks(self, node_id: str) -> List[Dict]:
        statement = (
            select(text_blocks)
            .where(text_blocks.c.story_node_id == node_id)
            .order_by(asc(text_blocks.c.order_index), asc(text_blocks.c.created_at), asc(text_blocks.c.id))
        )
        return self._execute_with_rollback(statement, operation_name="list_text_blocks", fetch='all')

    def get_text_block(self, node_id: str, block_id: str) -> Optional[Dict]:
        statement = select(text_blocks).where(
            and_(text_blocks.c.id == block_id, text_blocks.c.story_node_id == node_id)
        )
        return self._execute_with_rollback(statement, operation_name="get_text_block", fetch='one')

    def create_text_block(self, project_id: str, node_id: str, content: Optional[str], order_index: int = 0) -> str:
        """Attach a text block to a story element and refresh the node's word count."""
        self._require_story_node(project_id, node_id)
        now = utcnow()
        block_id = new_id()
        with self.db.transaction() as connection:
            connection.execute(insert(text_blocks).values(
                id=block_id,
                story_node_id=node_id,
                content=content,
                order_index=order_index or 0,
                word_count=count_words(content),
                created_at=now,
                updated_at=now
            ))
            self._refresh_node_word_count(connection, node_id, now)
        return block_id

    def update_text_block(self, project_id: str, node_id: str, block_id: str, fields: Dict) -> bool:
        self._require_story_node(project_id, node_id)
        values = self._updatable(text_blocks, fields, extra_protected=('story_node_id', 'word_count'))
        if 'content' in values:
            values['word_count'] = count_words(values['content'])
        now = utcnow()
        with self.db.transaction() as connection:
            result = connection.execute(
                update(text_blocks)
                .where(and_(text_blocks.c.id == block_id, text_blocks.c.story_node_id == node_id))
                .values(updated_at=now, **values)
            )
            if result.rowcount == 0:
                return False
            self._refresh_node_word_count(connection, node_id, now)
        return True

    def delete_text_block(self, project_id: str, node_id: str, block_id: str) -> bool:
        if self.get_graph_node(project_id, node_id) is None:
            raise RecordNotFoundError(f"Node {node_id} not found")
        now = utcnow()
        with self.db.transaction() as connection:
            result = connection.execute(
                delete(text_blocks).where(
                    and_(text_blocks.c.id == block_id, text_blocks.c.story_node_id == node_id))
            )
            if result.rowcount == 0:
                return False
            self._refresh_node_word_count(connection, node_id, now)
        return True

    # ------------------------------------------------------------------
    # Story graph: connections
    # ------------------------------------------------------------------

    def _check_connection_endpoints(self, project_id: str, source_node_id: str, target_node_id: str):
        for label, node_id in (('Source', source_node_id), ('Target', target_node_id)):
            if self.get_graph_node(project_id, node_id) is None:
                raise ConstraintViolationError(f"{label} node {node_id} not found in this project")

    def list_graph_connections(self, project_id: str, node_id: Optional[str] = None) -> List[Dict]:
        statement = select(graph_connections).where(graph_connections.c.project_id == project_id)
        if node_id:
            statement = statement.where(or_(graph_connections.c.source_node_id == node_id,
                                            graph_connections.c.target_node_id == node_id))
        statement = statement.order_by(asc(graph_connections.c.created_at), asc(graph_connections.c.id))
        return self._execute_with_rollback(statement, operation_name="list_graph_connections", fetch='all')

    def get_graph_connection(self, project_id: str, connection_id: str) -> Optional[Dict]:
        statement = select(graph_connections).where(
            and_(graph_connections.c.id == connection_id, graph_connections.c.project_id == project_id)
        )
        return self._execute_with_rollback(statement, operation_name="get_graph_connection", fetch='one')

    def create_graph_connection(self, project_id: str, data: Dict) -> str:
        """Create a directed edge; both endpoints must be nodes of ``project_id``."""
        values = self._updatable(graph_connections, data, extra_protected=('project_id',))
        self._check_connection_endpoints(project_id, values.get('source_node_id'), values.get('target_node_id'))
        values.setdefault('connection_strength', 1)

        now = utcnow()
        connection_id = new_id()
        statement = insert(graph_connections).values(
            id=connection_id,
            project_id=project_id,
            created_at=now,
            updated_at=now,
            **values
        )
        self._execute_with_rollback(statement, operation_name="create_graph_connection")
        return connection_id

    def update_graph_connection(self, project_id: str, connection_id: str, fields: Dict) -> bool:
        existing = self.get_graph_connection(project_id, connection_id)
        if existing is None:
            return False
        values = self._updatable(graph_connections, fields, extra_protected=('project_id',))
        if 'source_node_id' in values or 'target_node_id' in values:
            self._check_connection_endpoints(
                project_id,
                values.get('source_node_id', existing['source_node_id']),
                values.get('target_node_id', existing['target_node_id'])
            )
        statement = (
            update(graph_connections)
            .where(and_(graph_connections.c.id == connection_id, graph_connections.c.project_id == project_id))
            .values(updated_at=utcnow(), **values)
        )
        return self._execute_with_rollback(statement, operation_name="update_graph_connection") > 0

    def delete_graph_connection(self, project_id: str, connection_id: str) -> bool:
        statement = delete(graph_connections).where(
            and_(graph_connections.c.id == connection_id, graph_connections.c.project_id == project_id)
        )
        return self._execute_with_rollback(statement, operation_name="delete_graph_connection") > 0

    def get_project_graph(self, project_id: str) -> Dict:
        return {
            'nodes': self.list_graph_nodes(project_id),
            'connections': self.list_graph_connections(project_id),
        }

    # ------------------------------------------------------------------
    # Writing sessions
    # ------------------------------------------------------------------

    def list_writing_sessions(self, project_id: str, user_id: str, limit: int = 50) -> List[Dict]:
        statement = (
            select(writing_sessions)
            .where(and_(writing_sessions.c.project_id == project_id, writing_sessions.c.user_id == user_id))
            .order_by(desc(writing_sessions.c.start_time))
            .limit(limit)
        )
        return self._execute_with_rollback(statement, operation_name="list_writing_sessions", fetch='all')

    def get_writing_session(self, project_id: str, user_id: str, session_id: str) -> Optional[Dict]:
        statement = select(writing_sessions).where(and_(
            writing_sessions.c.id == session_id,
            writing_sessions.c.project_id == project_id,
            writing_sessions.c.user_id == user_id
        ))
        return self._execute_with_rollback(statement, operation_name="get_writing_session", fetch='one')

    def create_writing_session(self, project_id: str, user_id: str, data: Dict) -> str:
        if data.get('work_id') and self.get_work(project_id, data['work_id']) is None:
            raise ConstraintViolationError(f"Work {data['work_id']} does not belong to this project")
        if data.get('chapter_id') and self.get_chapter_in_project(project_id, data['chapter_id']) is None:
            raise ConstraintViolationError(f"Chapter {data['chapter_id']} not found in this project")

        now = utcnow()
        session_id = new_id()
        statement = insert(writing_sessions).values(
            id=session_id,
            project_id=project_id,
            user_id=user_id,
            work_id=data.get('work_id'),
            chapter_id=data.get('chapter_id'),
            goal_words=data.get('goal_words'),
            words_written=0,
            time_spent=0,
            goal_achieved=False,
            start_time=now,
            created_at=now
        )
        self._execute_with_rollback(statement, operation_name="create_writing_session")
        return session_id

    def end_writing_session(self, project_id: str, user_id: str, session_id: str,
                            words_written: int, time_spent: Optional[int] = None) -> Optional[Dict]:
        """
        Close a writing session and credit its words to the project.

        Returns:
            The updated session, or None when it does not exist
        """
        existing = self.get_writing_session(project_id, user_id, session_id)
        if existing is None:
            return None
        if existing['end_time'] is not None:
            raise ConstraintViolationError("Writing session has already ended")

        now = utcnow()
        if time_spent is None:
            time_spent = max(0, int((now - existing['start_time']).total_seconds() // 60))
        goal = existing['goal_words']
        goal_achieved = bool(goal) and words_written >= goal

        with self.db.transaction() as connection:
            connection.execute(
                update(writing_sessions)
                .where(writing_sessions.c.id == session_id)
                .values(end_time=now, words_written=words_written, time_spent=time_spent,
                        goal_achieved=goal_achieved)
            )
            connection.execute(
                update(projects)
                .where(projects.c.id == project_id)
                .values(current_word_count=func.coalesce(projects.c.current_word_count, 0) + words_written,
                        last_written_at=now)
            )
        return self.get_writing_session(project_id, user_id, session_id)

    # ------------------------------------------------------------------
    # AI providers
    # ------------------------------------------------------------------

    @staticmethod
    def _encode_provider_json(values: Dict) -> Dict:
        for key in ('supported_models', 'provider_config'):
            if key in values and values[key] is not None and not isinstance(values[key], str):
                values[key] = json.dumps(values[key])
        return values

    @staticmethod
    def _clear_default_providers(connection, user_id: str, provider: str):
        connection.execute(
            update(ai_providers)
            .where(and_(ai_providers.c.user_id == user_id, ai_providers.c.provider == provider))
            .values(is_default=False)
        )

    def list_ai_providers(self, user_id: str) -> List[Dict]:
        statement = (
            select(ai_providers)
            .where(ai_providers.c.user_id == user_id)
            .order_by(asc(ai_providers.c.created_at))
        )
        return self._execute_with_rollback(statement, operation_name="list_ai_providers", fetch='all')

    def get_ai_provider(self, user_id: str, provider_id: str) -> Optional[Dict]:
        statement = select(ai_providers).where(
            and_(ai_providers.c.id == provider_id, ai_providers.c.user_id == user_id)
        )
        return self._execute_with_rollback(statement, operation_name="get_ai_provider", fetch='one')

    def get_ai_provider_by_type(self, user_id: str, provider: str) -> Optional[Dict]:
        statement = select(ai_providers).where(
            and_(ai_providers.c.user_id == user_id, ai_providers.c.provider == provider)
        )
        return self._execute_with_rollback(statement, operation_name="get_ai_provider_by_type", fetch='one')

    def create_ai_provider(self, user_id: str, data: Dict) -> str:
        """Store a provider credential; ``api_key`` must already be encrypted."""
        values = self._encode_provider_json(
            self._updatable(ai_providers, data, extra_protected=('user_id', 'current_usage')))
        is_default = bool(values.pop('is_default', False))
        is_active = bool(values.pop('is_active', True))

        now = utcnow()
        provider_id = new_id()
        with self.db.transaction() as connection:
            if is_default:
                self._clear_default_providers(connection, user_id, values['provider'])
            connection.execute(insert(ai_providers).values(
                id=provider_id,
                user_id=user_id,
                is_active=is_active,
                is_default=is_default,
                current_usage=0,
                created_at=now,
                updated_at=now,
                **values
            ))
        self.logger.info(f"Stored {values['provider']} credentials for user {user_id}")
        return provider_id

    def update_ai_provider(self, user_id: str, provider_id: str, fields: Dict) -> bool:
        existing = self.get_ai_provider(user_id, provider_id)
        if existing is None:
            return False
        values = self._encode_provider_json(
            self._updatable(ai_providers, fields, extra_protected=('user_id', 'provider')))
        with self.db.transaction() as connection:
            if values.get('is_default'):
                self._clear_default_providers(connection, user_id, existing['provider'])
            connection.execute(
                update(ai_providers)
                .where(and_(ai_providers.c.id == provider_id, ai_providers.c.user_id == user_id))
                .values(updated_at=utcnow(), **values)
            )
        return True

    def delete_ai_provider(self, user_id: str, provider_id: str) -> bool:
        statement = delete(ai_providers).where(
            and_(ai_providers.c.id == provider_id, ai_providers.c.user_id == user_id)
        )
        return self._execute_with_rollback(statement, operation_name="delete_ai_provider") > 0
