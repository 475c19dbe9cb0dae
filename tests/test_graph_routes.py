import json

from conftest import create_project


def _node(client, project_id, node_type="story_element", title="Scene", **fields):
    response = client.post(f"/api/projects/{project_id}/graph/nodes",
                           json={"nodeType": node_type, "title": title, **fields})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _connect(client, project_id, source, target, connection_type="story_flow", **fields):
    return client.post(f"/api/projects/{project_id}/graph/connections", json={
        "sourceNodeId": source, "targetNodeId": target, "connectionType": connection_type, **fields})


class TestNodes:
    """Story graph nodes."""

    def test_created_node_is_listed(self, author, project_id):
        visual = json.dumps({"color": "#ff0000", "shape": "circle"})
        node_id = _node(author, project_id, subType="scene", positionX=120, positionY=-40,
                        visualProperties=visual)

        nodes = author.get(f"/api/projects/{project_id}/graph/nodes").json()["nodes"]
        assert len(nodes) == 1
        node = nodes[0]
        assert node["id"] == node_id
        assert node["nodeType"] == "story_element"
        assert node["subType"] == "scene"
        assert (node["positionX"], node["positionY"]) == (120, -40)
        assert json.loads(node["visualProperties"]) == {"color": "#ff0000", "shape": "circle"}
        assert node["wordCount"] == 0

    def test_filter_by_type(self, author, project_id):
        _node(author, project_id)
        character = _node(author, project_id, node_type="character", title="Mira")
        nodes = author.get(f"/api/projects/{project_id}/graph/nodes", params={"nodeType": "character"}).json()
        assert [n["id"] for n in nodes["nodes"]] == [character]

    def test_invalid_json_and_types(self, author, project_id):
        base = f"/api/projects/{project_id}/graph/nodes"
        assert author.post(base, json={"nodeType": "story_element", "title": "X",
                                       "metadata": "not json"}).status_code == 400
        assert author.post(base, json={"nodeType": "dragon", "title": "X"}).status_code == 400
        assert author.post(base, json={"nodeType": "story_element", "title": "X",
                                       "subType": "epilogue"}).status_code == 400

    def test_update_and_move(self, author, project_id):
        node_id = _node(author, project_id)
        url = f"/api/projects/{project_id}/graph/nodes/{node_id}"

        assert author.put(url, json={"title": "Renamed", "description": "Night"}).json() == {"success": True}
        assert author.put(f"{url}/position", json={"positionX": 10, "positionY": 20}).status_code == 200

        node = author.get(url).json()["node"]
        assert node["title"] == "Renamed"
        assert (node["positionX"], node["positionY"]) == (10, 20)

    def test_fractional_positions_are_rounded(self, author, project_id):
        node_id = _node(author, project_id, positionX=120.7, positionY=-40.2)
        url = f"/api/projects/{project_id}/graph/nodes/{node_id}"
        node = author.get(url).json()["node"]
        assert (node["positionX"], node["positionY"]) == (121, -40)

        assert author.put(f"{url}/position", json={"positionX": 10.7, "positionY": 3.2}).status_code == 200
        node = author.get(url).json()["node"]
        assert (node["positionX"], node["positionY"]) == (11, 3)

    def test_sub_type_checked_on_update(self, author, project_id):
        node_id = _node(author, project_id, subType="scene")
        url = f"/api/projects/{project_id}/graph/nodes/{node_id}"

        assert author.put(url, json={"subType": "epilogue"}).status_code == 400
        assert author.get(url).json()["node"]["subType"] == "scene"
        assert author.put(url, json={"subType": "beat"}).status_code == 200

        # Free-form sub types are fine off the story spine, but not on the way back
        assert author.put(url, json={"nodeType": "character", "subType": "protagonist"}).status_code == 200
        assert author.put(url, json={"nodeType": "story_element"}).status_code == 400
        assert author.put(url, json={"nodeType": "story_element", "subType": "act"}).status_code == 200

    def test_missing_node(self, author, project_id):
        url = f"/api/projects/{project_id}/graph/nodes/missing"
        assert author.get(url).status_code == 404
        assert author.put(url, json={"title": "X"}).status_code == 404
        assert author.delete(url).status_code == 404


class TestTextBlocks:
    """Ordered prose attached to story elements."""

    def test_word_counts_roll_up_to_node(self, author, project_id):
        node_id = _node(author, project_id)
        base = f"/api/projects/{project_id}/graph/nodes/{node_id}/text-blocks"

        first = author.post(base, json={"content": "The tide went out", "orderIndex": 0}).json()["id"]
        author.post(base, json={"content": "  and never came back  ", "orderIndex": 1})

        blocks = author.get(base).json()["textBlocks"]
        assert [b["wordCount"] for b in blocks] == [4, 4]
        node_url = f"/api/projects/{project_id}/graph/nodes/{node_id}"
        assert author.get(node_url).json()["node"]["wordCount"] == 8

        author.put(f"{base}/{first}", json={"content": ""})
        assert author.get(node_url).json()["node"]["wordCount"] == 4

        author.delete(f"{base}/{first}")
        assert len(author.get(base).json()["textBlocks"]) == 1

    def test_blocks_ordered_by_index(self, author, project_id):
        node_id = _node(author, project_id)
        base = f"/api/projects/{project_id}/graph/nodes/{node_id}/text-blocks"
        third = author.post(base, json={"content": "c", "orderIndex": 7}).json()["id"]
        first = author.post(base, json={"content": "a", "orderIndex": 0}).json()["id"]
        second = author.post(base, json={"content": "b", "orderIndex": 0}).json()["id"]
        assert [b["id"] for b in author.get(base).json()["textBlocks"]] == [first, second, third]

    def test_only_story_elements_take_blocks(self, author, project_id):
        character = _node(author, project_id, node_type="character", title="Mira")
        response = author.post(f"/api/projects/{project_id}/graph/nodes/{character}/text-blocks",
                               json={"content": "Backstory"})
        assert response.status_code == 400

    def test_story_element_with_blocks_keeps_its_type(self, author, project_id):
        node_id = _node(author, project_id)
        url = f"/api/projects/{project_id}/graph/nodes/{node_id}"
        block_id = author.post(f"{url}/text-blocks", json={"content": "one two three"}).json()["id"]

        assert author.put(url, json={"nodeType": "character"}).status_code == 400
        node = author.get(url).json()["node"]
        assert node["nodeType"] == "story_element"
        assert node["wordCount"] == 3

        author.delete(f"{url}/text-blocks/{block_id}")
        assert author.put(url, json={"nodeType": "character"}).status_code == 200

    def test_missing_block(self, author, project_id):
        node_id = _node(author, project_id)
        base = f"/api/projects/{project_id}/graph/nodes/{node_id}/text-blocks"
        assert author.put(f"{base}/missing", json={"content": "x"}).status_code == 404
        assert author.delete(f"{base}/missing").status_code == 404


class TestConnections:
    """Typed, directed edges between nodes of the same project."""

    def test_connection_crud(self, author, project_id):
        a = _node(author, project_id, title="A")
        b = _node(author, project_id, title="B")
        response = _connect(author, project_id, a, b, connectionStrength=3)
        assert response.status_code == 201
        connection_id = response.json()["id"]
        url = f"/api/projects/{project_id}/graph/connections/{connection_id}"

        connection = author.get(url).json()["connection"]
        assert (connection["sourceNodeId"], connection["targetNodeId"]) == (a, b)
        assert connection["connectionStrength"] == 3

        assert author.put(url, json={"connectionType": "thematic"}).status_code == 200
        assert author.get(url).json()["connection"]["connectionType"] == "thematic"

        assert author.delete(url).status_code == 200
        assert author.get(url).status_code == 404

    def test_strength_bounds(self, author, project_id):
        a = _node(author, project_id, title="A")
        b = _node(author, project_id, title="B")
        assert _connect(author, project_id, a, b, connectionStrength=6).status_code == 400
        assert _connect(author, project_id, a, b, connectionStrength=0).status_code == 400

    def test_cross_project_connection_rejected(self, author, project_id):
        other = create_project(author, title="Other")
        here = _node(author, project_id)
        there = _node(author, other)
        assert _connect(author, project_id, here, there).status_code == 400
        assert _connect(author, project_id, here, "missing").status_code == 400

        local = _node(author, project_id, title="Local")
        connection_id = _connect(author, project_id, here, local).json()["id"]
        response = author.put(f"/api/projects/{project_id}/graph/connections/{connection_id}",
                              json={"targetNodeId": there})
        assert response.status_code == 400

    def test_filter_by_node(self, author, project_id):
        a = _node(author, project_id, title="A")
        b = _node(author, project_id, title="B")
        c = _node(author, project_id, title="C")
        ab = _connect(author, project_id, a, b).json()["id"]
        bc = _connect(author, project_id, b, c).json()["id"]

        base = f"/api/projects/{project_id}/graph/connections"
        assert [x["id"] for x in author.get(base, params={"nodeId": a}).json()["connections"]] == [ab]
        assert {x["id"] for x in author.get(base, params={"nodeId": b}).json()["connections"]} == {ab, bc}


def test_delete_node_removes_its_connections(author, project_id):
    a = _node(author, project_id, title="A")
    b = _node(author, project_id, title="B")
    _connect(author, project_id, a, b)
    author.post(f"/api/projects/{project_id}/graph/nodes/{a}/text-blocks", json={"content": "words"})

    assert author.delete(f"/api/projects/{project_id}/graph/nodes/{a}").status_code == 200
    graph = author.get(f"/api/projects/{project_id}/graph").json()
    assert [n["id"] for n in graph["nodes"]] == [b]
    assert graph["connections"] == []


def test_graph_hydration_and_project_cascade(author, project_id):
    a = _node(author, project_id, title="A")
    b = _node(author, project_id, title="B")
    _connect(author, project_id, a, b)

    graph = author.get(f"/api/projects/{project_id}/graph").json()
    assert len(graph["nodes"]) == 2
    assert len(graph["connections"]) == 1

    author.delete(f"/api/projects/{project_id}")
    assert author.get(f"/api/projects/{project_id}/graph").status_code == 404
