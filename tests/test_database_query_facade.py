import pytest
import logging
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from openwrite.database import Database
from openwrite.database_query_facade import DatabaseQueryFacade as DQF
from openwrite.database_models import (t_character as characters,
                                       t_graph_connection as graph_connections,
                                       t_graph_node as graph_nodes,
                                       t_text_block as text_blocks,
                                       t_work as works)
from openwrite.exceptions import ConstraintViolationError, RecordNotFoundError


class TestLogger:
    def __init__(self):
        self.errors = []
        self.infos = []
        self.warnings = []

    def error(self, msg):
        self.errors.append(msg)

    def info(self, msg):
        self.infos.append(msg)

    def warning(self, msg, *args, **kwargs):
        self.warnings.append(msg)

    def debug(self, msg):
        # forward to python logging so caplog can capture
        logging.getLogger(__name__).debug(msg)


@pytest.fixture()
def facade():
    # Shared in-memory DB across connections
    db = Database("sqlite://")
    db.create_tables()
    yield DQF(db, TestLogger())
    db.dispose()


@pytest.fixture()
def owner(facade):
    user = facade.create_user("Ada", "Ada@Example.com", "hash")
    organization = facade.create_organization("Ada's Workspace", "ada-1", user["id"])
    return {"user_id": user["id"], "organization_id": organization["id"]}


@pytest.fixture()
def project(facade, owner):
    return facade.create_project(owner["user_id"], owner["organization_id"], {"title": "Saga"})


def _count(facade, table):
    return facade._execute_with_rollback(select(func.count()).select_from(table), fetch='scalar')


def test_create_user_lowercases_email(facade):
    user = facade.create_user(" Ada ", "Ada@Example.COM", "hash")
    assert user["name"] == "Ada"
    assert user["email"] == "ada@example.com"
    assert facade.get_user_by_email("ADA@example.com")["id"] == user["id"]


def test_duplicate_email_raises_integrity_error_and_logs(facade):
    facade.create_user("Ada", "ada@example.com", "hash")
    with pytest.raises(IntegrityError):
        facade.create_user("Other", "ada@example.com", "hash")
    assert any("create_user" in message for message in facade.logger.errors)


def test_create_organization_makes_owner_member(facade, owner):
    memberships = facade.get_memberships_for_user(owner["user_id"])
    assert len(memberships) == 1
    assert memberships[0]["id"] == owner["organization_id"]
    assert memberships[0]["role"] == "owner"
    assert facade.count_owners(owner["organization_id"]) == 1


def test_project_defaults(facade, owner, project):
    row = facade.get_project(project)
    assert row["type"] == "novel"
    assert row["status"] == "draft"
    assert row["visibility"] == "private"
    assert row["current_word_count"] == 0
    assert facade.get_project(project, organization_id="someone-else") is None


def test_update_project_ignores_protected_columns(facade, owner, project):
    assert facade.update_project(project, {"title": "Renamed", "owner_id": "intruder", "id": "x"})
    row = facade.get_project(project)
    assert row["title"] == "Renamed"
    assert row["owner_id"] == owner["user_id"]


def test_update_missing_project_returns_false(facade):
    assert facade.update_project("missing", {"title": "Nope"}) is False


def test_chapter_word_count_follows_content(facade, project):
    work_id = facade.create_work(project, {"title": "Book One", "work_type": "novel"})
    chapter_id = facade.create_chapter(work_id, {"title": "One", "order": 1, "content": "It was a dark night"})
    assert facade.get_chapter(work_id, chapter_id)["word_count"] == 5

    facade.update_chapter(work_id, chapter_id, {"content": "   "})
    assert facade.get_chapter(work_id, chapter_id)["word_count"] == 0


class TestCodexEntries:
    """Codex entries belong to exactly one of project or work."""

    def test_project_level_entry(self, facade, project):
        entry_id = facade.create_codex_entry("character", project, {"name": "Mira"})
        entry = facade.get_codex_entry("character", project, entry_id)
        assert entry["project_id"] == project
        assert entry["work_id"] is None

    def test_work_level_entry_is_listed_with_project(self, facade, project):
        work_id = facade.create_work(project, {"title": "Book One", "work_type": "novel"})
        entry_id = facade.create_codex_entry("lore", project, {"name": "The Old Law", "work_id": work_id})

        entry = facade.get_codex_entry("lore", project, entry_id)
        assert entry["project_id"] is None
        assert entry["work_id"] == work_id

        assert [e["id"] for e in facade.list_codex_entries("lore", project)] == [entry_id]
        assert [e["id"] for e in facade.list_codex_entries("lore", project, work_id=work_id)] == [entry_id]

    def test_work_from_other_project_is_rejected(self, facade, owner, project):
        other = facade.create_project(owner["user_id"], owner["organization_id"], {"title": "Other"})
        foreign_work = facade.create_work(other, {"title": "Elsewhere", "work_type": "novel"})
        with pytest.raises(ConstraintViolationError):
            facade.create_codex_entry("character", project, {"name": "Mira", "work_id": foreign_work})

    def test_unknown_kind_is_a_constraint_violation(self, facade, project):
        with pytest.raises(ConstraintViolationError):
            facade.list_codex_entries("dragon", project)

    def test_check_constraint_rejects_both_owners(self, facade, project):
        work_id = facade.create_work(project, {"title": "Book One", "work_type": "novel"})
        statement = characters.insert().values(
            id="both", name="Twice", project_id=project, work_id=work_id,
            created_at=func.current_timestamp(), updated_at=func.current_timestamp())
        with pytest.raises(IntegrityError):
            facade._execute_with_rollback(statement)

    def test_check_constraint_rejects_no_owner(self, facade):
        statement = characters.insert().values(
            id="none", name="Nobody",
            created_at=func.current_timestamp(), updated_at=func.current_timestamp())
        with pytest.raises(IntegrityError):
            facade._execute_with_rollback(statement)

    def test_location_parent_must_be_in_project(self, facade, owner, project):
        other = facade.create_project(owner["user_id"], owner["organization_id"], {"title": "Other"})
        foreign = facade.create_codex_entry("location", other, {"name": "Far Away"})
        with pytest.raises(ConstraintViolationError):
            facade.create_codex_entry("location", project, {"name": "Here", "parent_location_id": foreign})

    def test_move_entry_from_work_to_project(self, facade, project):
        work_id = facade.create_work(project, {"title": "Book One", "work_type": "novel"})
        entry_id = facade.create_codex_entry("character", project, {"name": "Mira", "work_id": work_id})

        assert facade.update_codex_entry("character", project, entry_id, {"work_id": None})
        entry = facade.get_codex_entry("character", project, entry_id)
        assert entry["project_id"] == project
        assert entry["work_id"] is None


class TestStoryGraph:
    """Nodes, text blocks and connections."""

    def _node(self, facade, project, node_type="story_element", title="Scene"):
        return facade.create_graph_node(project, {"node_type": node_type, "title": title})

    def test_created_node_is_listed(self, facade, project):
        node_id = self._node(facade, project)
        nodes = facade.list_graph_nodes(project)
        assert [n["id"] for n in nodes] == [node_id]
        assert nodes[0]["position_x"] == 0
        assert nodes[0]["word_count"] == 0

    def test_filter_by_node_type(self, facade, project):
        self._node(facade, project)
        character = self._node(facade, project, node_type="character", title="Mira")
        assert [n["id"] for n in facade.list_graph_nodes(project, node_type="character")] == [character]

    def test_node_word_count_is_sum_of_blocks(self, facade, project):
        node_id = self._node(facade, project)
        first = facade.create_text_block(project, node_id, "one two three", 0)
        facade.create_text_block(project, node_id, "four five", 1)
        assert facade.get_graph_node(project, node_id)["word_count"] == 5

        facade.update_text_block(project, node_id, first, {"content": "one"})
        assert facade.get_graph_node(project, node_id)["word_count"] == 3

        facade.delete_text_block(project, node_id, first)
        assert facade.get_graph_node(project, node_id)["word_count"] == 2

    def test_text_blocks_ordered_by_index(self, facade, project):
        node_id = self._node(facade, project)
        later = facade.create_text_block(project, node_id, "later", 5)
        earlier = facade.create_text_block(project, node_id, "earlier", 1)
        assert [b["id"] for b in facade.list_text_blocks(node_id)] == [earlier, later]

    def test_text_block_requires_story_element(self, facade, project):
        character = self._node(facade, project, node_type="character", title="Mira")
        with pytest.raises(ConstraintViolationError):
            facade.create_text_block(project, character, "text", 0)

    def test_text_block_on_missing_node(self, facade, project):
        with pytest.raises(RecordNotFoundError):
            facade.create_text_block(project, "missing", "text", 0)

    def test_connection_endpoints_must_share_project(self, facade, owner, project):
        other = facade.create_project(owner["user_id"], owner["organization_id"], {"title": "Other"})
        here = self._node(facade, project)
        there = self._node(facade, other)
        with pytest.raises(ConstraintViolationError):
            facade.create_graph_connection(project, {
                "source_node_id": here, "target_node_id": there, "connection_type": "story_flow"})

        connection_id = facade.create_graph_connection(project, {
            "source_node_id": here, "target_node_id": self._node(facade, project),
            "connection_type": "story_flow"})
        with pytest.raises(ConstraintViolationError):
            facade.update_graph_connection(project, connection_id, {"target_node_id": there})

    def test_delete_node_removes_blocks_and_connections(self, facade, project):
        a = self._node(facade, project, title="A")
        b = self._node(facade, project, title="B")
        facade.create_text_block(project, a, "words", 0)
        facade.create_graph_connection(project, {
            "source_node_id": a, "target_node_id": b, "connection_type": "story_flow"})
        facade.create_graph_connection(project, {
            "source_node_id": b, "target_node_id": a, "connection_type": "thematic"})

        assert facade.delete_graph_node(project, a)
        assert _count(facade, text_blocks) == 0
        assert _count(facade, graph_connections) == 0
        assert facade.get_graph_node(project, b) is not None

    def test_delete_project_cascades(self, facade, project):
        a = self._node(facade, project, title="A")
        b = self._node(facade, project, title="B")
        facade.create_text_block(project, a, "words", 0)
        facade.create_graph_connection(project, {
            "source_node_id": a, "target_node_id": b, "connection_type": "reference"})
        work_id = facade.create_work(project, {"title": "Book", "work_type": "novel"})
        facade.create_chapter(work_id, {"title": "One", "order": 1})
        facade.create_codex_entry("character", project, {"name": "Mira", "work_id": work_id})
        facade.create_codex_entry("location", project, {"name": "Harbor"})

        assert facade.delete_project(project)
        for table in (graph_nodes, graph_connections, text_blocks, works, characters):
            assert _count(facade, table) == 0


def test_end_writing_session_credits_project(facade, owner, project):
    session_id = facade.create_writing_session(project, owner["user_id"], {"goal_words": 500})
    session = facade.end_writing_session(project, owner["user_id"], session_id, 650, time_spent=30)

    assert session["end_time"] is not None
    assert session["time_spent"] == 30
    assert session["goal_achieved"] is True
    row = facade.get_project(project)
    assert row["current_word_count"] == 650
    assert row["last_written_at"] is not None

    with pytest.raises(ConstraintViolationError):
        facade.end_writing_session(project, owner["user_id"], session_id, 10)


def test_default_ai_provider_swap(facade, owner):
    user_id = owner["user_id"]
    first = facade.create_ai_provider(user_id, {"provider": "openai", "api_key": "token", "is_default": True})
    second = facade.create_ai_provider(user_id, {"provider": "anthropic", "api_key": "token",
                                                 "supported_models": ["claude"], "is_default": True})

    assert facade.get_ai_provider(user_id, first)["is_default"] is True
    assert facade.get_ai_provider(user_id, second)["supported_models"] == '["claude"]'
    assert facade.update_ai_provider("someone-else", first, {"key_label": "x"}) is False
