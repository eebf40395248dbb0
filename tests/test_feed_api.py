from app.api.deps import get_narrative_generator
from app.core.errors import get_friendly_error_message
from app.main import app
from app.services.narrative import NarrativeGenerator
from conftest import FakeCompletions, fake_client


def test_feed_requires_session(client):
    assert client.get("/api/feed/").status_code in (401, 403)


def test_feed_sorted_with_wire_field_names(client, user_headers):
    response = client.get("/api/feed/", headers=user_headers)

    assert response.status_code == 200
    surveys = response.json()
    assert [s["category"] for s in surveys] == ["Movilidad urbana", "Salud", "Seguridad"]
    stacked = surveys[0]
    assert stacked["chartType"] == "stackedBar"
    assert stacked["chartData"]["datasets"][0]["name"] == "Bueno"
    assert "report" in stacked


def test_feed_store_failure_is_503(client, user_headers, feed_collection):
    feed_collection.fail_reads = True

    response = client.get("/api/feed/", headers=user_headers)

    assert response.status_code == 503
    assert response.json()["detail"] == "No se pudieron cargar los datos de las encuestas"


def test_categories_stats_and_search(client, user_headers):
    categories = client.get("/api/feed/categories", headers=user_headers).json()
    stats = client.get("/api/feed/stats", headers=user_headers).json()
    search = client.get("/api/feed/search", params={"category": "salud"}, headers=user_headers).json()

    assert categories == ["Movilidad urbana", "Salud", "Seguridad"]
    assert stats == {"totalSurveys": 3, "distinctCategories": 3, "distinctChartTypes": 3}
    assert [s["title"] for s in search] == ["Servicio de salud"]


def test_categories_degrade_to_empty_on_store_failure(client, user_headers, feed_collection):
    feed_collection.fail_reads = True

    assert client.get("/api/feed/categories", headers=user_headers).json() == []


def test_get_survey_by_id(client, user_headers, feed_collection):
    survey_id = str(feed_collection.docs[0]["_id"])

    found = client.get(f"/api/feed/{survey_id}", headers=user_headers)
    missing = client.get("/api/feed/no-existe", headers=user_headers)

    assert found.status_code == 200
    assert found.json()["id"] == survey_id
    assert missing.status_code == 404


def test_report_default_text_is_generated_once_and_cached(client, user_headers, feed_collection):
    survey_id = str(feed_collection.docs[0]["_id"])

    first = client.get(f"/api/feed/{survey_id}/report", headers=user_headers)
    second = client.get(f"/api/feed/{survey_id}/report", headers=user_headers)

    assert first.status_code == 200
    assert first.json()["report"].startswith("## Análisis de Satisfacción Ciudadana: Servicio de salud")
    assert second.json() == first.json()
    assert feed_collection.docs[0]["report"] == first.json()["report"]
    assert len([w for w in feed_collection.writes if w[0] == "update"]) == 1


def test_report_for_unknown_survey_is_404(client, user_headers):
    assert client.get("/api/feed/no-existe/report", headers=user_headers).status_code == 404


def test_report_generation_failure_offers_retry(client, user_headers, feed_collection):
    completions = FakeCompletions(error=RuntimeError("servicio saturado"))
    failing = NarrativeGenerator(client=fake_client(completions), ai_mode_enabled=True)
    app.dependency_overrides[get_narrative_generator] = lambda: failing
    survey_id = str(feed_collection.docs[0]["_id"])

    response = client.get(f"/api/feed/{survey_id}/report", headers=user_headers)

    assert response.status_code == 502
    assert response.json()["detail"]["reintentar"] is True
    assert "report" not in feed_collection.docs[0]


def test_report_store_failure_is_503(client, user_headers, feed_collection):
    survey_id = str(feed_collection.docs[0]["_id"])
    feed_collection.fail_reads = True

    response = client.get(f"/api/feed/{survey_id}/report", headers=user_headers)

    assert response.status_code == 503
    assert response.json()["detail"] == get_friendly_error_message("unavailable")
