"""Tests for the matching API."""
import pytest
from fastapi.testclient import TestClient

from plantmatch.match.exceptions import StoreUnavailable

from conftest import PINUS_MONTANA_ID, PINUS_MUGO_ID


@pytest.fixture
def client(catalog_db, monkeypatch):
    """Create a test client over the fixture catalog."""
    import plantmatch.api.app as api_module

    monkeypatch.setattr(api_module, "DB_PATH", catalog_db)
    # Reset cached matcher
    monkeypatch.setattr(api_module, "_matcher", None)

    yield TestClient(api_module.app)
    if api_module._matcher is not None:
        api_module._matcher.close()


class TestHealth:
    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["canonical_plants"] == 10

    def test_missing_database(self, tmp_path, monkeypatch):
        import plantmatch.api.app as api_module

        monkeypatch.setattr(api_module, "DB_PATH", str(tmp_path / "missing.db"))
        monkeypatch.setattr(api_module, "_matcher", None)
        resp = TestClient(api_module.app).get("/health")
        assert resp.status_code == 503
        assert "not found" in resp.json()["detail"]


class TestMatch:
    def test_match(self, client):
        resp = client.get("/match", params={"q": "Pinus cemba"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["query"] == "Pinus cemba"
        assert data["normalized"] == "pinus cemba"
        assert data["matches"][0]["name"] == "Pinus cembra"
        assert data["count"] == len(data["matches"])
        assert data["has_strict_match"] is False

    def test_match_response_structure(self, client):
        data = client.get("/match", params={"q": "Pinus montana"}).json()
        top = data["matches"][0]
        assert top["id"] == PINUS_MUGO_ID
        assert top["similarity_score"] == 1.0
        assert top["is_strict_match"] is True
        assert top["suggested_reason"] == "matched via synonym"
        assert top["match_details"]["matched_synonym_id"] == str(PINUS_MONTANA_ID)
        assert data["has_strict_match"] is True

    def test_limit(self, client):
        data = client.get("/match", params={"q": "Pinus", "limit": 1}).json()
        assert data["count"] == 1

    def test_limit_validated(self, client):
        assert client.get("/match", params={"q": "Pinus", "limit": 0}).status_code == 422
        assert client.get("/match", params={"q": "Pinus", "limit": 101}).status_code == 422

    def test_blank_query(self, client):
        data = client.get("/match", params={"q": "  "}).json()
        assert data["matches"] == []
        assert data["count"] == 0

    def test_store_unavailable_is_503(self, client, monkeypatch):
        import plantmatch.api.app as api_module

        matcher = api_module._get_matcher()

        def broken(*args, **kwargs):
            raise StoreUnavailable("catalog.db", "database is locked")

        monkeypatch.setattr(matcher, "match", broken)
        resp = client.get("/match", params={"q": "Rosa"})
        assert resp.status_code == 503
        assert "database is locked" in resp.json()["detail"]


class TestBatch:
    def test_batch(self, client):
        resp = client.post("/match/batch", json={"terms": ["", "Rosa", "  ", "Tulipa"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 2
        assert data["completed"] is True
        assert [r["term"] for r in data["results"]] == ["Rosa", "Tulipa"]

    def test_batch_per_term_limit(self, client):
        data = client.post(
            "/match/batch", json={"terms": ["Pinus", "Rosa"], "per_term_limit": 1}
        ).json()
        assert all(r["count"] <= 1 for r in data["results"])

    def test_batch_validation(self, client):
        assert client.post("/match/batch", json={}).status_code == 422


class TestDuplicateCheck:
    def test_duplicate(self, client):
        data = client.post("/plants/check", json={"name": "Pinus cembra 'Stricta'"}).json()
        assert data["is_duplicate"] is True
        assert data["duplicates"][0]["name"] == "Pinus cembra 'Stricta'"

    def test_not_duplicate(self, client):
        data = client.post("/plants/check", json={"name": "Abies balsamea"}).json()
        assert data["is_duplicate"] is False
        assert data["duplicates"] == []

    def test_threshold(self, client):
        data = client.post(
            "/plants/check", json={"name": "Pinus cemba", "threshold": 0.95}
        ).json()
        assert data["is_duplicate"] is False

    def test_empty_name_rejected(self, client):
        assert client.post("/plants/check", json={"name": ""}).status_code == 422
