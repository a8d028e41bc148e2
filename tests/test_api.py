"""Tests for the HTTP API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from dataapi import main
from dataapi.database import QueryServiceError
from dataapi.registry import Registry


VIEWS_YAML = """\
entities:
  indexes:
    object: "table::test.index_research"
    description: Index research
  names:
    object: "query::SELECT name FROM test.index_research %filter% %orderBy% %pageSize% %pageToken%"
"""

REPLY = {
    "jobComplete": True,
    "totalRows": "1",
    "schema": {
        "fields": [
            {"name": "name", "type": "STRING", "mode": "NULLABLE"},
            {
                "name": "weights",
                "type": "RECORD",
                "mode": "REPEATED",
                "fields": [
                    {"name": "ticker", "type": "STRING", "mode": "NULLABLE"},
                    {"name": "weight", "type": "FLOAT", "mode": "NULLABLE"},
                ],
            },
        ]
    },
    "rows": [
        {
            "f": [
                {"v": "Euro 50"},
                {"v": [{"v": {"f": [{"v": "ASML"}, {"v": "0.1"}]}}]},
            ]
        }
    ],
}


@pytest.fixture
def registry(tmp_path, monkeypatch):
    path = tmp_path / "views.yaml"
    path.write_text(VIEWS_YAML, encoding="utf-8")
    reg = Registry(allow_unmapped=True)
    reg.load_views(path)
    monkeypatch.setattr(main, "REG", reg)
    return reg


@pytest.fixture
def limits():
    """`max_results` of every upstream call, filled by `queries`."""
    return []


@pytest.fixture
def queries(monkeypatch, limits):
    """Record queries sent upstream and answer with REPLY."""
    sent = []

    def fake_run_query(sql, max_results=None):
        sent.append(sql)
        limits.append(max_results)
        return REPLY

    monkeypatch.setattr(main, "_run_query", fake_run_query)
    return sent


@pytest.fixture
def client(registry):
    return TestClient(main.app)


class TestHealthAndEntities:
    """Service metadata endpoints."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "entities": ["indexes", "names"]}

    def test_entities(self, client: TestClient) -> None:
        data = client.get("/entities").json()["entities"]
        assert data[0] == {
            "entity": "indexes",
            "mode": "table",
            "target": "test.index_research",
            "description": "Index research",
        }
        assert data[1]["mode"] == "query"

    def test_reload(self, client: TestClient) -> None:
        response = client.post("/reload")
        assert response.status_code == 200
        assert response.json() == {"reloaded": {"indexes": "table", "names": "query"}}


class TestSqlEndpoint:
    """Building queries without running them."""

    def test_table_entity(self, client: TestClient) -> None:
        response = client.post(
            "/sql",
            json={"entityName": "indexes", "filter": "family = 'EU'", "pageSize": "5", "pageToken": "3"},
        )
        assert response.status_code == 200
        assert response.json() == {
            "sql": "SELECT * FROM test.index_research WHERE family = 'EU'  LIMIT 5 OFFSET 10",
            "entity": "indexes",
            "mode": "table",
        }

    def test_query_entity(self, client: TestClient) -> None:
        response = client.post("/sql", json={"entityName": "names", "orderBy": "name"})
        assert response.json()["sql"] == "SELECT name FROM test.index_research  ORDER BY name  "

    def test_unknown_entity_when_disallowed(self, client: TestClient, registry) -> None:
        registry.allow_unmapped = False
        response = client.post("/sql", json={"entityName": "missing"})
        assert response.status_code == 404

    def test_entity_name_required(self, client: TestClient) -> None:
        assert client.post("/sql", json={}).status_code == 422


class TestDataEndpoint:
    """Full query and conversion round."""

    def test_first_page(self, client: TestClient, queries) -> None:
        response = client.get("/data/indexes")
        assert response.status_code == 200
        assert response.json() == {
            "indexes": [{"name": "Euro 50", "weights": [{"ticker": "ASML", "weight": "0.1"}]}],
            "next_page_token": 2,
        }
        assert queries == ["SELECT * FROM test.index_research    "]

    def test_query_params(self, client: TestClient, queries) -> None:
        response = client.get(
            "/data/indexes",
            params={"filter": "name = 'x'", "orderBy": "name", "pageSize": "10", "pageToken": "2"},
        )
        assert response.json()["next_page_token"] == 3
        assert queries == ["SELECT * FROM test.index_research WHERE name = 'x' ORDER BY name LIMIT 10 OFFSET 10"]

    def test_unmapped_entity_is_a_table(self, client: TestClient, queries) -> None:
        response = client.get("/data/ds.people")
        assert response.status_code == 200
        assert "ds.people" in response.json()
        assert queries == ["SELECT * FROM ds.people    "]

    def test_default_max_results(self, client: TestClient, queries, limits) -> None:
        client.get("/data/indexes")
        assert limits == [None]

    def test_entity_max_results(self, client: TestClient, registry, queries, limits, tmp_path) -> None:
        path = tmp_path / "capped.yaml"
        path.write_text('entities:\n  capped:\n    object: "table::ds.big"\n    maxResults: 50\n', encoding="utf-8")
        registry.load_views(path)

        response = client.get("/data/capped")

        assert response.status_code == 200
        assert limits == [50]
        assert client.get("/entities").json()["entities"][0]["maxResults"] == 50

    def test_missing_project_is_a_server_error(self, client: TestClient, monkeypatch) -> None:
        def unconfigured(sql, **kwargs):
            raise QueryServiceError(500, "BIGQUERY_PROJECT not configured", upstream=False)

        monkeypatch.setattr(main, "_run_query", unconfigured)
        response = client.get("/data/indexes")
        assert response.status_code == 500
        assert response.json()["detail"] == "BIGQUERY_PROJECT not configured"

    def test_unknown_entity_when_disallowed(self, client: TestClient, registry, queries) -> None:
        registry.allow_unmapped = False
        assert client.get("/data/missing").status_code == 404
        assert queries == []

    def test_upstream_client_error(self, client: TestClient, monkeypatch) -> None:
        def failing(sql, **kwargs):
            raise QueryServiceError(400, "Unrecognized name: foo")

        monkeypatch.setattr(main, "_run_query", failing)
        response = client.get("/data/indexes", params={"filter": "foo = 1"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Unrecognized name: foo"

    def test_upstream_server_error(self, client: TestClient, monkeypatch) -> None:
        def failing(sql, **kwargs):
            raise QueryServiceError(503, "backend unavailable")

        monkeypatch.setattr(main, "_run_query", failing)
        assert client.get("/data/indexes").status_code == 502

    def test_schema_mismatch(self, client: TestClient, monkeypatch) -> None:
        bad = {"schema": {"fields": []}, "rows": [{"f": [{"v": "1"}]}]}
        monkeypatch.setattr(main, "_run_query", lambda sql, **kwargs: bad)
        assert client.get("/data/indexes").status_code == 502
