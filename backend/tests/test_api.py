"""Tests for the HTTP surface."""
import pytest
from fastapi.testclient import TestClient

from petday import __version__
from petday.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def walk_payload():
    return {
        "duration": 90,
        "analysis": {
            "title": "Morning walk",
            "petName": "Rex",
            "highlightTimestamps": [{"start": "0:00", "end": "0:10", "score": 12}],
            "friends": [{"name": "Biscuit", "timestamps": [{"time": "1:00", "duration": 4}]}],
            "narrativeSegments": [{"text": "Who is that?", "timestamp": "1:02"}],
        },
    }


class TestHealth:
    """Tests for service endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["api"] == "/api"


class TestCurate:
    """Tests for POST /api/curate."""

    def test_curate(self, client, walk_payload):
        response = client.post("/api/curate", json=walk_payload)
        assert response.status_code == 200

        body = response.json()
        assert body["totalDuration"] == 17
        assert body["fallbackToOriginal"] is False
        assert [h["start"] for h in body["highlightTimestamps"]] == ["0:00", "0:57"]
        assert "report" not in body

        occurrence = body["analysis"]["friends"][0]["timestamps"][0]
        assert occurrence["time"] == "0:13"
        assert occurrence["originalTime"] == "1:00"
        assert occurrence["isMapped"] is True

    def test_unknown_fields_preserved(self, client, walk_payload):
        body = client.post("/api/curate", json=walk_payload).json()
        assert body["analysis"]["petName"] == "Rex"

    def test_include_report(self, client, walk_payload):
        body = client.post("/api/curate", params={"include_report": True}, json=walk_payload).json()
        assert body["report"]["coverage"]["subject"][0]["action"] == "synthesized"

    def test_empty_analysis(self, client):
        body = client.post("/api/curate", json={"duration": 60, "analysis": {}}).json()
        assert body["fallbackToOriginal"] is True
        assert body["highlightTimestamps"] == []

    @pytest.mark.parametrize("payload", [
        {"analysis": {}},
        {"duration": -5, "analysis": {}},
        {"duration": 60},
    ])
    def test_invalid_request(self, client, payload):
        response = client.post("/api/curate", json=payload)
        assert response.status_code == 422


class TestRemap:
    """Tests for POST /api/remap."""

    def test_remap_and_repeat(self, client):
        payload = {
            "analysis": {
                "highlightTimestamps": [{"start": "0:00", "end": "0:10"}, {"start": "0:57", "end": "1:04"}],
                "narrativeSegments": [{"text": "Who is that?", "timestamp": "1:02"}],
            },
        }
        body = client.post("/api/remap", json=payload).json()
        segment = body["analysis"]["narrativeSegments"][0]

        assert body["remappedCount"] > 0
        assert segment["timestamp"] == "0:15"
        assert segment["inHighlight"] is True

        again = client.post("/api/remap", json={"analysis": body["analysis"]}).json()
        assert again["remappedCount"] == 0
        assert again["analysis"] == body["analysis"]
