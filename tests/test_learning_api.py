"""
End-to-end API tests using FastAPI TestClient.

Exercises every router against the in-memory database, including the
error-to-status mapping (422 / 404 / 502).
"""

import pytest


@pytest.fixture
def content(make_content):
    return make_content(output_text="this serum is amazing for dry skin #glow")


# =============================================================================
# Ratings
# =============================================================================

class TestRatingsAPI:
    def test_save_and_get_rating(self, client, content):
        response = client.post("/ratings", json={
            "contentHistoryId": content.id,
            "userId": 1,
            "overallRating": 88,
            "tiktokRating": 92,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["overall_rating"] == 88
        assert data["tiktok_rating"] == 92

        fetched = client.get(f"/ratings/{content.id}", params={"userId": 1})
        assert fetched.json()["id"] == data["id"]

    def test_unrated_content_returns_null(self, client, content):
        response = client.get(f"/ratings/{content.id}")

        assert response.status_code == 200
        assert response.json() is None

    def test_out_of_range_rating(self, client, content):
        response = client.post("/ratings", json={"contentHistoryId": content.id, "overallRating": 101})

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    def test_missing_content(self, client):
        response = client.post("/ratings", json={"contentHistoryId": 999, "overallRating": 80})

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_stats_and_insights(self, client, content):
        client.post("/ratings", json={"contentHistoryId": content.id, "userId": 1, "overallRating": 80})

        stats = client.get("/ratings/stats", params={"userId": 1}).json()
        insights = client.get("/ratings/insights", params={"limit": 5}).json()

        assert stats["total_ratings"] == 1
        assert stats["average_overall_rating"] == 80.0
        assert insights["insights"][0]["id"] == content.id


# =============================================================================
# Evaluations
# =============================================================================

class TestEvaluationsAPI:
    def test_store_evaluation(self, client, content):
        response = client.post("/evaluations", json={
            "contentHistoryId": content.id,
            "evaluatorModel": "gpt-4o",
            "viralityScore": 8,
            "clarityScore": 9,
            "persuasivenessScore": 7,
            "creativityScore": 10,
            "viralityJustification": "Strong hook",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["overall_score"] == "8.5"
        assert data["virality_justification"] == "Strong hook"

        listed = client.get(f"/evaluations/{content.id}").json()
        assert [e["evaluator_model"] for e in listed] == ["gpt-4o"]

    def test_score_out_of_range(self, client, content):
        response = client.post("/evaluations", json={
            "contentHistoryId": content.id,
            "evaluatorModel": "gpt-4o",
            "viralityScore": 0,
            "clarityScore": 9,
            "persuasivenessScore": 7,
            "creativityScore": 10,
        })

        assert response.status_code == 422

    def test_run_evaluation(self, client, content):
        response = client.post(f"/evaluations/{content.id}/run")

        assert response.status_code == 200
        data = response.json()
        assert {e["evaluator_model"] for e in data["evaluations"]} == {"mock-gpt", "mock-claude"}
        assert data["errors"] == {}

    def test_run_with_failing_providers(self, client, content, mock_evaluators):
        for provider in mock_evaluators:
            provider.error = RuntimeError("provider down")

        response = client.post(f"/evaluations/{content.id}/run")

        assert response.status_code == 502
        assert response.json()["error"] == "LLMError"


# =============================================================================
# Patterns
# =============================================================================

class TestPatternsAPI:
    def _rate_group(self, client, make_content, ratings):
        for rating in ratings:
            item = make_content(output_text="this serum is a must have")
            client.post("/ratings", json={"contentHistoryId": item.id, "userId": 1, "overallRating": rating})

    def test_generate_and_suggest(self, client, make_content):
        self._rate_group(client, make_content, [90, 80, 75])

        generated = client.post("/patterns/generate", json={"minRating": 70}).json()
        suggestions = client.get("/patterns/suggestions", params={"niche": "skincare"}).json()

        assert generated["patterns_generated"] == 1
        assert generated["patterns"][0]["average_rating"] == 81.67
        assert suggestions[0]["pattern_name"] == "skincare friendly original"
        assert suggestions[0]["sample_count"] == 3

    def test_generate_uses_default_min_rating(self, client, make_content):
        self._rate_group(client, make_content, [69, 69, 69])

        response = client.post("/patterns/generate")

        assert response.status_code == 200
        assert response.json()["min_rating"] == 70
        assert response.json()["patterns_generated"] == 0

    def test_suggested_pattern_id_links_application(self, client, make_content):
        self._rate_group(client, make_content, [90, 80, 75])
        target = make_content(output_text="new serum draft")

        generated = client.post("/patterns/generate").json()
        suggestions = client.get("/patterns/suggestions", params={"niche": "skincare"}).json()
        pattern_id = suggestions[0]["id"]

        assert generated["patterns"][0]["id"] == pattern_id
        assert suggestions[0]["is_active"] is True

        response = client.post("/patterns/applications", json={
            "contentHistoryId": target.id,
            "patternId": pattern_id,
            "applicationStrength": 0.8,
        })

        assert response.status_code == 200
        assert response.json()["pattern_id"] == pattern_id

    @pytest.mark.parametrize("params", [
        {"niche": "gardening"},
        {"templateType": "haiku"},
    ])
    def test_suggestions_reject_unknown_filters(self, client, params):
        response = client.get("/patterns/suggestions", params=params)

        assert response.status_code == 422

    def test_track_application(self, client, content):
        response = client.post("/patterns/applications", json={
            "contentHistoryId": content.id,
            "applicationStrength": 0.4,
            "modifiedAttributes": ["tone"],
        })

        assert response.status_code == 200
        assert response.json()["modified_attributes"] == ["tone"]

    def test_track_application_bad_strength(self, client, content):
        response = client.post("/patterns/applications", json={
            "contentHistoryId": content.id,
            "applicationStrength": 2,
        })

        assert response.status_code == 422


# =============================================================================
# Preferences & Recommendations
# =============================================================================

class TestPreferencesAPI:
    def test_defaults_then_patch(self, client):
        defaults = client.get("/preferences/5").json()
        assert defaults["min_overall_rating"] == 70
        assert defaults["learning_intensity"] == "moderate"

        patched = client.put("/preferences/5", json={"minOverallRating": 80, "learningIntensity": "aggressive"})

        assert patched.status_code == 200
        assert patched.json()["min_overall_rating"] == 80
        assert patched.json()["learning_intensity"] == "aggressive"

    def test_unknown_field_rejected(self, client):
        response = client.put("/preferences/5", json={"favoriteColor": "blue"})

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"


class TestRecommendationsAPI:
    def test_empty_recommendation(self, client):
        response = client.get("/recommendations", params={"userId": 1})

        assert response.status_code == 200
        assert response.json() == {"recommendation": None}

    def test_recommendation_and_top_style(self, client, content):
        client.post("/ratings", json={"contentHistoryId": content.id, "userId": 1, "overallRating": 95})

        recommendation = client.get(
            "/recommendations", params={"userId": 1, "niche": "skincare", "platform": "instagram"}
        ).json()["recommendation"]
        top = client.get("/recommendations/top-style", params={"userId": 1}).json()

        assert recommendation["average_rating"] == 95
        assert recommendation["user_sample_count"] == 1
        assert top["style"]["top_hashtags"] == ["#glow"]
        assert top["instructions"].startswith("SMART STYLE LEARNING")

    def test_invalid_niche(self, client):
        response = client.get("/recommendations", params={"userId": 1, "niche": "gardening"})

        assert response.status_code == 422


# =============================================================================
# Templates & Health
# =============================================================================

class TestTemplatesAPI:
    def test_resolve_with_default_fallback(self, client):
        response = client.post("/templates/resolve", json={
            "niche": "tech",
            "templateType": "seo_blog",
            "productName": "Pixel 9",
            "tone": "informative",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["fallback_level"] == "default"
        assert "Pixel 9" in data["prompt"]

    def test_template_metadata(self, client):
        assert client.get("/templates/tech/original").json()["title"] == "Tech Review"

    def test_niche_info(self, client):
        assert client.get("/templates/niches/skincare").json()["name"] == "Skincare"

    def test_reload(self, client):
        data = client.post("/templates/reload").json()

        assert data["niches"] == 8
        assert data["errors"] == {}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["dependencies"]["evaluation_providers"] == ["mock"]
        assert response.json()["dependencies"]["database"] == {"database_connected": True, "database_type": "sqlite"}
