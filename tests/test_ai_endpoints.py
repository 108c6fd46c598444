"""Tests for the outline / content / refinement endpoints and the project lifecycle."""
import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS, create_project


def _content_body(project: dict, sections=None) -> dict:
    sections = project["sections"] if sections is None else sections
    return {
        "projectId": project["id"],
        "topic": project["topic"],
        "documentType": project["document_type"],
        "sections": [{"id": s["id"], "title": s["title"]} for s in sections],
    }


async def _get_project(client: AsyncClient, project_id: int) -> dict:
    resp = await client.get(f"/api/projects/{project_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    return resp.json()


async def _history(client: AsyncClient, section_id: int) -> list:
    resp = await client.get(f"/api/sections/{section_id}/history", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    return resp.json()


# ---------------------------------------------------------------------------
# Outline
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_generate_outline(client: AsyncClient, fake_ai):
    fake_ai.outline = ["Why EVs", "Battery costs", "Charging networks"]

    resp = await client.post(
        "/api/ai/generate-outline",
        json={"topic": "EV market analysis", "documentType": "pptx"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json() == {"outline": ["Why EVs", "Battery costs", "Charging networks"]}
    assert fake_ai.calls == [("outline", "EV market analysis", "pptx")]


@pytest.mark.asyncio
async def test_generate_outline_does_not_persist(client: AsyncClient):
    await client.post(
        "/api/ai/generate-outline",
        json={"topic": "EV market analysis", "documentType": "docx"},
        headers=AUTH_HEADERS,
    )
    resp = await client.get("/api/projects", headers=AUTH_HEADERS)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_generate_outline_blank_topic_rejected(client: AsyncClient, fake_ai):
    resp = await client.post(
        "/api/ai/generate-outline",
        json={"topic": "  ", "documentType": "docx"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 422
    assert fake_ai.calls == []


@pytest.mark.asyncio
async def test_generate_outline_failure_returns_error_body(client: AsyncClient, fake_ai):
    fake_ai.error = "AI API error: 503 Service Unavailable"

    resp = await client.post(
        "/api/ai/generate-outline",
        json={"topic": "EV market analysis", "documentType": "docx"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 500
    assert resp.json() == {"error": "AI API error: 503 Service Unavailable"}


# ---------------------------------------------------------------------------
# Content generation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_generate_content_fills_sections_and_completes(client: AsyncClient):
    project = await create_project(client, sections=["A", "B", "C"])

    resp = await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    data = await _get_project(client, project["id"])
    assert data["status"] == "completed"
    assert [s["content"] for s in data["sections"]] == [
        "A body (run 1)",
        "B body (run 1)",
        "C body (run 1)",
    ]
    assert all(s["is_generated"] for s in data["sections"])


@pytest.mark.asyncio
async def test_generate_content_failure_reverts_to_draft(client: AsyncClient, fake_ai):
    project = await create_project(client)
    fake_ai.error = "AI API error: 500 Internal Server Error"

    resp = await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)
    assert resp.status_code == 500
    assert resp.json() == {"error": "AI API error: 500 Internal Server Error"}

    data = await _get_project(client, project["id"])
    assert data["status"] == "draft"
    assert all(s["content"] is None for s in data["sections"])
    assert all(s["is_generated"] is False for s in data["sections"])


@pytest.mark.asyncio
async def test_generate_content_can_be_retried_after_failure(client: AsyncClient, fake_ai):
    project = await create_project(client)
    fake_ai.error = "timeout"
    await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)

    fake_ai.error = None
    resp = await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert (await _get_project(client, project["id"]))["status"] == "completed"


@pytest.mark.asyncio
async def test_generate_content_twice_overwrites_without_audit(client: AsyncClient):
    project = await create_project(client, sections=["A", "B"])

    for _ in range(2):
        resp = await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)
        assert resp.status_code == 200

    data = await _get_project(client, project["id"])
    assert [s["id"] for s in data["sections"]] == [s["id"] for s in project["sections"]]
    assert [s["content"] for s in data["sections"]] == ["A body (run 2)", "B body (run 2)"]

    for section in data["sections"]:
        assert await _history(client, section["id"]) == []


@pytest.mark.asyncio
async def test_generate_content_unknown_section_is_404_and_no_state_change(client: AsyncClient, fake_ai):
    project = await create_project(client, topic="Mine")
    other = await create_project(client, topic="Other")

    body = _content_body(project, sections=project["sections"] + other["sections"][:1])
    resp = await client.post("/api/ai/generate-content", json=body, headers=AUTH_HEADERS)
    assert resp.status_code == 404

    assert (await _get_project(client, project["id"]))["status"] == "draft"
    assert [call for call in fake_ai.calls if call[0] == "content"] == []


# ---------------------------------------------------------------------------
# Refinement
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_refine_content_overwrites_and_logs(client: AsyncClient):
    project = await create_project(client, sections=["A"])
    section = project["sections"][0]
    await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)

    resp = await client.post(
        "/api/ai/refine-content",
        json={
            "sectionId": section["id"],
            "prompt": "Make it formal",
            "currentContent": "A body (run 1)",
            "title": "A",
        },
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "content": "A rewritten: Make it formal"}

    data = await _get_project(client, project["id"])
    assert data["sections"][0]["content"] == "A rewritten: Make it formal"

    history = await _history(client, section["id"])
    assert len(history) == 1
    assert history[0]["prompt"] == "Make it formal"
    assert history[0]["previous_content"] == "A body (run 1)"
    assert history[0]["new_content"] == "A rewritten: Make it formal"


@pytest.mark.asyncio
async def test_two_refinements_last_write_wins(client: AsyncClient):
    project = await create_project(client, sections=["A"])
    section = project["sections"][0]

    for prompt in ("Shorter", "Add statistics"):
        current = (await _get_project(client, project["id"]))["sections"][0]["content"]
        resp = await client.post(
            "/api/ai/refine-content",
            json={"sectionId": section["id"], "prompt": prompt, "currentContent": current, "title": "A"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 200

    data = await _get_project(client, project["id"])
    assert data["sections"][0]["content"] == "A rewritten: Add statistics"

    history = await _history(client, section["id"])
    assert [h["prompt"] for h in history] == ["Shorter", "Add statistics"]
    assert history[1]["previous_content"] == "A rewritten: Shorter"


@pytest.mark.asyncio
async def test_refine_defaults_to_stored_content_and_title(client: AsyncClient, fake_ai):
    project = await create_project(client, sections=["Intro"])
    section = project["sections"][0]
    await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)

    resp = await client.post(
        "/api/ai/refine-content",
        json={"sectionId": section["id"], "prompt": "Simplify"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert fake_ai.calls[-1] == ("refine", "Intro", "Intro body (run 1)", "Simplify")


@pytest.mark.asyncio
async def test_refine_blank_prompt_rejected(client: AsyncClient, fake_ai):
    project = await create_project(client, sections=["A"])
    resp = await client.post(
        "/api/ai/refine-content",
        json={"sectionId": project["sections"][0]["id"], "prompt": "   "},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 422
    assert fake_ai.calls == []


@pytest.mark.asyncio
async def test_refine_failure_leaves_section_untouched(client: AsyncClient, fake_ai):
    project = await create_project(client, sections=["A"])
    section = project["sections"][0]
    await client.post("/api/ai/generate-content", json=_content_body(project), headers=AUTH_HEADERS)

    fake_ai.error = "AI API error: 429 Too Many Requests"
    resp = await client.post(
        "/api/ai/refine-content",
        json={"sectionId": section["id"], "prompt": "Shorter"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 500
    assert "error" in resp.json()

    data = await _get_project(client, project["id"])
    assert data["sections"][0]["content"] == "A body (run 1)"
    assert await _history(client, section["id"]) == []


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_preflight_is_permissive(client: AsyncClient):
    resp = await client.options(
        "/api/ai/refine-content",
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type, x-user-id",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] in ("*", "https://app.example.com")
    assert "POST" in resp.headers["access-control-allow-methods"]
