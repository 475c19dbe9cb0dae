from conftest import create_project, create_workspace, register


def test_create_and_get_project(author):
    project_id = create_project(author, title="  The Long Night  ", genre="fantasy", targetWordCount=90000)
    project = author.get(f"/api/projects/{project_id}").json()["project"]

    assert project["title"] == "The Long Night"
    assert project["genre"] == "fantasy"
    assert project["targetWordCount"] == 90000
    assert project["currentWordCount"] == 0
    assert project["type"] == "novel"
    assert "createdAt" in project and "updatedAt" in project


def test_list_orders_by_most_recently_updated(author):
    first = create_project(author, title="First")
    second = create_project(author, title="Second")
    assert [p["id"] for p in author.get("/api/projects").json()["projects"]] == [second, first]

    author.put(f"/api/projects/{first}", json={"status": "in_progress"})
    assert [p["id"] for p in author.get("/api/projects").json()["projects"]] == [first, second]


def test_partial_update(author, project_id):
    response = author.put(f"/api/projects/{project_id}", json={"description": "A winter tale"})
    assert response.json() == {"success": True}

    project = author.get(f"/api/projects/{project_id}").json()["project"]
    assert project["description"] == "A winter tale"
    assert project["title"] == "The Long Night"


def test_invalid_input_is_rejected(author, project_id):
    assert author.post("/api/projects", json={"title": "   "}).status_code == 400
    assert author.post("/api/projects", json={"title": "X", "type": "poem"}).status_code == 400
    assert author.put(f"/api/projects/{project_id}", json={"title": None}).status_code == 400
    assert author.put(f"/api/projects/{project_id}", json={"metadata": "{broken"}).status_code == 400


def test_other_organization_sees_404(author, project_id, make_client):
    stranger = make_client()
    register(stranger, name="Eve", email="eve@example.com")
    create_workspace(stranger)

    assert stranger.get(f"/api/projects/{project_id}").status_code == 404
    assert stranger.put(f"/api/projects/{project_id}", json={"title": "Stolen"}).status_code == 404
    assert stranger.delete(f"/api/projects/{project_id}").status_code == 404
    assert stranger.get(f"/api/projects/{project_id}/graph/nodes").status_code == 404


def test_delete_project(author, project_id):
    assert author.delete(f"/api/projects/{project_id}").json() == {"success": True}
    assert author.get(f"/api/projects/{project_id}").status_code == 404
    assert author.get("/api/projects").json()["projects"] == []


class TestWorksAndChapters:
    """Works belong to a project; chapters belong to a work."""

    def _work(self, client, project_id, title="Book One", order=1):
        response = client.post(f"/api/projects/{project_id}/works",
                               json={"title": title, "workType": "novel", "order": order})
        assert response.status_code == 201, response.text
        return response.json()["id"]

    def test_work_crud(self, author, project_id):
        work_id = self._work(author, project_id)
        base = f"/api/projects/{project_id}/works"

        assert author.get(f"{base}/{work_id}").json()["work"]["workType"] == "novel"
        assert author.put(f"{base}/{work_id}", json={"title": "Book I"}).status_code == 200
        assert author.get(f"{base}/{work_id}").json()["work"]["title"] == "Book I"
        assert author.delete(f"{base}/{work_id}").status_code == 200
        assert author.get(f"{base}/{work_id}").status_code == 404

    def test_works_listed_in_order(self, author, project_id):
        second = self._work(author, project_id, title="Two", order=2)
        first = self._work(author, project_id, title="One", order=1)
        works = author.get(f"/api/projects/{project_id}/works").json()["works"]
        assert [w["id"] for w in works] == [first, second]

    def test_chapter_word_count(self, author, project_id):
        work_id = self._work(author, project_id)
        base = f"/api/projects/{project_id}/works/{work_id}/chapters"

        chapter_id = author.post(base, json={"title": "Opening", "order": 1,
                                             "content": "Snow fell on the quiet harbor"}).json()["id"]
        assert author.get(f"{base}/{chapter_id}").json()["chapter"]["wordCount"] == 6

        author.put(f"{base}/{chapter_id}", json={"content": "Snow fell"})
        assert author.get(f"{base}/{chapter_id}").json()["chapter"]["wordCount"] == 2

    def test_chapters_listed_in_order(self, author, project_id):
        work_id = self._work(author, project_id)
        base = f"/api/projects/{project_id}/works/{work_id}/chapters"
        later = author.post(base, json={"title": "Later", "order": 2}).json()["id"]
        earlier = author.post(base, json={"title": "Earlier", "order": 1}).json()["id"]
        assert [c["id"] for c in author.get(base).json()["chapters"]] == [earlier, later]

    def test_missing_chapter(self, author, project_id):
        work_id = self._work(author, project_id)
        base = f"/api/projects/{project_id}/works/{work_id}/chapters"
        assert author.get(f"{base}/missing").status_code == 404
        assert author.put(f"{base}/missing", json={"title": "X"}).status_code == 404
        assert author.delete(f"{base}/missing").status_code == 404

    def test_work_of_other_project_is_404(self, author, project_id):
        other_project = create_project(author, title="Other")
        work_id = self._work(author, other_project)
        assert author.get(f"/api/projects/{project_id}/works/{work_id}").status_code == 404
