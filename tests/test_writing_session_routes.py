from conftest import register


def test_session_lifecycle(author, project_id):
    base = f"/api/projects/{project_id}/writing-sessions"
    response = author.post(base, json={"goalWords": 500})
    assert response.status_code == 201
    session_id = response.json()["id"]

    response = author.put(f"{base}/{session_id}", json={"wordsWritten": 620, "timeSpent": 45})
    assert response.status_code == 200
    session = response.json()["session"]
    assert session["wordsWritten"] == 620
    assert session["timeSpent"] == 45
    assert session["goalAchieved"] is True
    assert session["endTime"] is not None

    project = author.get(f"/api/projects/{project_id}").json()["project"]
    assert project["currentWordCount"] == 620
    assert project["lastWrittenAt"] is not None

    # Ending twice is rejected
    assert author.put(f"{base}/{session_id}", json={"wordsWritten": 1}).status_code == 400


def test_time_spent_is_derived_and_goal_missed(author, project_id):
    base = f"/api/projects/{project_id}/writing-sessions"
    session_id = author.post(base, json={"goalWords": 1000}).json()["id"]

    session = author.put(f"{base}/{session_id}", json={"wordsWritten": 10}).json()["session"]
    assert session["timeSpent"] == 0
    assert session["goalAchieved"] is False


def test_sessions_are_private_to_the_writer(author, project_id, make_client):
    base = f"/api/projects/{project_id}/writing-sessions"
    session_id = author.post(base, json={}).json()["id"]
    assert [s["id"] for s in author.get(base).json()["sessions"]] == [session_id]

    organization_id = author.get("/api/organizations").json()["activeOrganizationId"]
    friend = make_client()
    register(friend, name="Bea", email="bea@example.com")
    author.post(f"/api/organizations/{organization_id}/members", json={"email": "bea@example.com"})

    assert friend.get(base).json()["sessions"] == []
    assert friend.put(f"{base}/{session_id}", json={"wordsWritten": 5}).status_code == 404


def test_unknown_chapter_rejected(author, project_id):
    response = author.post(f"/api/projects/{project_id}/writing-sessions", json={"chapterId": "missing"})
    assert response.status_code == 400
