"""HTTP contract tests for the progress, quiz and lesson routes."""

import asyncio

import httpx

from conftest import make_token
from learntrack.dependencies import get_catalog
from learntrack.errors import Inconsistent, Unavailable
from learntrack.services import identity
from learntrack.services.catalog import SqlContentCatalog
from learntrack.services.identity import RemoteIdentityProvider
from main import app


class _SlowCatalog(SqlContentCatalog):
    async def _get_lesson(self, lesson_id):
        await asyncio.sleep(1)
        return await super()._get_lesson(lesson_id)


class _BrokenCatalog(SqlContentCatalog):
    async def _get_question(self, question_id):
        raise Inconsistent(f"question {question_id} points at missing lesson 77")


async def test_progress_requires_identity(client: httpx.AsyncClient, seeded):
    response = await client.post(
        f"/api/progress/lesson/{seeded['l1'].id}",
        json={"status": "in_progress", "progressPercentage": 10, "timeSpent": 1},
    )
    assert response.status_code == 401
    assert response.json()["code"] == "unauthenticated"


async def test_invalid_token_is_unauthenticated(client: httpx.AsyncClient, seeded):
    response = await client.get(
        "/api/progress/summary", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


async def test_expired_token_is_unauthenticated(client: httpx.AsyncClient, seeded):
    token = make_token("42", exp=1)
    response = await client.get(
        "/api/progress/summary", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 401


async def test_record_then_complete_lesson(client: httpx.AsyncClient, auth_headers, seeded):
    url = f"/api/progress/lesson/{seeded['l1'].id}"

    first = await client.post(
        url,
        json={"status": "in_progress", "progressPercentage": 50, "timeSpent": 5},
        headers=auth_headers,
    )
    assert first.status_code == 200
    body = first.json()
    assert body["learnerId"] == "42"
    assert body["status"] == "in_progress"
    assert body["progressPercentage"] == 50
    assert body["timeSpentSeconds"] == 5

    second = await client.post(
        url,
        json={"status": "completed", "progressPercentage": 100, "timeSpent": 3},
        headers=auth_headers,
    )
    body = second.json()
    assert body["status"] == "completed"
    assert body["progressPercentage"] == 100
    assert body["timeSpentSeconds"] == 8


async def test_progress_validation_reports_fields(client: httpx.AsyncClient, auth_headers, seeded):
    response = await client.post(
        f"/api/progress/lesson/{seeded['l1'].id}",
        json={"status": "done", "progressPercentage": 150},
        headers=auth_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "invalid_argument"
    fields = {e["field"] for e in body["errors"]}
    assert {"status", "progressPercentage"} <= fields


async def test_progress_rejects_unknown_fields(client: httpx.AsyncClient, auth_headers, seeded):
    response = await client.post(
        f"/api/progress/lesson/{seeded['l1'].id}",
        json={"status": "in_progress", "percent": 10},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert any(e["field"] == "percent" for e in response.json()["errors"])


async def test_progress_unknown_lesson(client: httpx.AsyncClient, auth_headers, seeded):
    response = await client.post(
        "/api/progress/lesson/9999", json={"status": "in_progress"}, headers=auth_headers
    )
    assert response.status_code == 404


async def test_summary_endpoint(client: httpx.AsyncClient, auth_headers, seeded):
    await client.post(
        f"/api/progress/lesson/{seeded['l1'].id}",
        json={"status": "completed"},
        headers=auth_headers,
    )
    await client.post(
        f"/api/progress/lesson/{seeded['l2'].id}",
        json={"status": "in_progress", "progressPercentage": 30},
        headers=auth_headers,
    )

    response = await client.get("/api/progress/summary", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["completed"] == 1
    assert body["inProgress"] == 1
    assert body["notStarted"] == 0


async def test_lesson_progress_is_null_when_anonymous(client: httpx.AsyncClient, seeded):
    response = await client.get(f"/api/progress/lesson/{seeded['l1'].id}")
    assert response.status_code == 200
    assert response.json() == {"progress": None}


async def test_overview_endpoint(client: httpx.AsyncClient, auth_headers, seeded):
    await client.post(
        f"/api/progress/lesson/{seeded['l3'].id}",
        json={"status": "in_progress", "progressPercentage": 60},
        headers=auth_headers,
    )
    response = await client.get("/api/progress/overview", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["categoryProgress"][0]["categorySlug"] == "backend"
    assert body["recentActivity"][0]["lessonSlug"] == "l3"


async def test_submit_wrong_answer(client: httpx.AsyncClient, auth_headers, seeded):
    response = await client.post(
        "/api/quiz/submit",
        json={"questionId": seeded["q1"].id, "userAnswer": "A"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["isCorrect"] is False
    assert body["correctAnswer"] == "B"
    assert body["pointsEarned"] == 0
    assert body["explanation"] == "B is right."


async def test_submit_requires_identity(client: httpx.AsyncClient, seeded):
    response = await client.post(
        "/api/quiz/submit", json={"questionId": seeded["q1"].id, "userAnswer": "B"}
    )
    assert response.status_code == 401


async def test_submit_empty_answer(client: httpx.AsyncClient, auth_headers, seeded):
    response = await client.post(
        "/api/quiz/submit",
        json={"questionId": seeded["q1"].id, "userAnswer": "  "},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "userAnswer"


async def test_submit_unknown_question(client: httpx.AsyncClient, auth_headers, seeded):
    response = await client.post(
        "/api/quiz/submit",
        json={"questionId": 9999, "userAnswer": "B"},
        headers=auth_headers,
    )
    assert response.status_code == 404


async def test_quiz_stats_and_lesson_attempts(client: httpx.AsyncClient, auth_headers, seeded):
    await client.post(
        "/api/quiz/submit",
        json={"questionId": seeded["q_medium"].id, "userAnswer": "204"},
        headers=auth_headers,
    )

    stats = (await client.get("/api/quiz/stats", headers=auth_headers)).json()
    assert stats["totalPoints"] == 20
    assert stats["accuracyPercentage"] == 100.0

    attempts = (
        await client.get(f"/api/quiz/lesson/{seeded['l1'].id}", headers=auth_headers)
    ).json()["attempts"]
    assert len(attempts) == 1
    assert attempts[0]["isCorrect"] is True

    anonymous = await client.get(f"/api/quiz/lesson/{seeded['l1'].id}")
    assert anonymous.json() == {"attempts": []}


async def test_lesson_view_anonymous(client: httpx.AsyncClient, seeded):
    response = await client.get("/api/lessons/l2")
    assert response.status_code == 200
    body = response.json()
    assert body["lesson"]["slug"] == "l2"
    assert body["userProgress"] is None
    assert body["navigation"]["previous"] == {"slug": "l1", "title": "Lesson 1"}
    assert body["navigation"]["next"] == {"slug": "l3", "title": "Lesson 3"}


async def test_lesson_view_never_leaks_answers(client: httpx.AsyncClient, seeded):
    response = await client.get("/api/lessons/l1")
    questions = response.json()["quizQuestions"]
    assert len(questions) == 2
    for question in questions:
        assert "correctAnswer" not in question
        assert "explanation" not in question
    assert "B is right." not in response.text


async def test_lesson_view_includes_progress(client: httpx.AsyncClient, auth_headers, seeded):
    await client.post(
        f"/api/progress/lesson/{seeded['l1'].id}",
        json={"status": "in_progress", "progressPercentage": 25, "timeSpent": 4},
        headers=auth_headers,
    )
    body = (await client.get("/api/lessons/l1", headers=auth_headers)).json()
    assert body["userProgress"]["progressPercentage"] == 25
    assert body["navigation"]["previous"] is None


async def test_lesson_view_unknown_slug(client: httpx.AsyncClient, seeded):
    response = await client.get("/api/lessons/missing")
    assert response.status_code == 404


async def test_lesson_view_survives_inconsistent_catalog(client: httpx.AsyncClient, db_session):
    from learntrack.models import Lesson

    db_session.add(Lesson(topic_id=None, title="Orphan", slug="orphan", content="x"))
    await db_session.commit()

    response = await client.get("/api/lessons/orphan")
    assert response.status_code == 200
    navigation = response.json()["navigation"]
    assert navigation["unavailable"] is True
    assert navigation["message"] == "Navigation unavailable"


async def test_time_spent_over_one_day_is_rejected(
    client: httpx.AsyncClient, auth_headers, seeded
):
    for time_spent in (86_401, 2**63):
        response = await client.post(
            f"/api/progress/lesson/{seeded['l1'].id}",
            json={"status": "in_progress", "timeSpent": time_spent},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert any(e["field"] == "timeSpent" for e in response.json()["errors"])


async def test_catalog_timeout_is_service_unavailable(
    client: httpx.AsyncClient, db_session, auth_headers, seeded
):
    app.dependency_overrides[get_catalog] = lambda: _SlowCatalog(db_session, timeout=0.01)

    response = await client.post(
        f"/api/progress/lesson/{seeded['l1'].id}",
        json={"status": "in_progress", "progressPercentage": 10},
        headers=auth_headers,
    )

    assert response.status_code == 503
    body = response.json()
    assert body["code"] == "unavailable"
    assert body["detail"] == Unavailable.public_message
    assert "timed out" not in response.text


async def test_inconsistent_catalog_hides_internal_detail(
    client: httpx.AsyncClient, db_session, auth_headers, seeded
):
    app.dependency_overrides[get_catalog] = lambda: _BrokenCatalog(db_session)

    response = await client.post(
        "/api/quiz/submit",
        json={"questionId": seeded["q1"].id, "userAnswer": "B"},
        headers=auth_headers,
    )

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "inconsistent"
    assert body["detail"] == Inconsistent.public_message
    assert "missing lesson 77" not in response.text


async def test_identity_outage_is_service_unavailable(
    client: httpx.AsyncClient, monkeypatch, seeded
):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("auth service down", request=request)

    provider = RemoteIdentityProvider(
        base_url="http://auth.test", timeout=1.0, transport=httpx.MockTransport(handler)
    )
    monkeypatch.setattr(identity, "_identity_provider", provider)

    response = await client.get(
        "/api/progress/summary", headers={"Authorization": "Bearer some-token"}
    )

    assert response.status_code == 503
    body = response.json()
    assert body["code"] == "unavailable"
    assert body["detail"] == Unavailable.public_message
