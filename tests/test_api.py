"""
Tests — REST API end-to-end (FastAPI TestClient)

  - Countries (lista, filtri, paginacija, detalj)
  - Custom links / formats / legislation (CRUD + validacija)
  - Admin odobrenja
  - Export
  - Envelope, greške, rate limit, health
"""

import json

import pytest
from fastapi.testclient import TestClient

from compliance_tracker.api.app import create_app
from compliance_tracker.core.config import TrackerConfig

API = "/api/v1"

FORMAT = {
    "countryCode": "DEU",
    "name": "XRechnung",
    "version": "3.0",
    "url": "https://xeinkauf.de/xrechnung/",
    "authority": "KoSIT",
    "type": "standard",
}

LEGISLATION = {
    "countryCode": "fra",
    "name": "Loi de finances 2024",
    "url": "https://www.legifrance.gouv.fr/",
    "language": "fr",
    "jurisdiction": "national",
    "type": "law",
}

LINK = {
    "countryCode": "DEU",
    "linkType": "specification",
    "originalUrl": "https://old.example.org/spec",
    "customUrl": "https://new.example.org/spec",
    "title": "XRechnung spec",
}


# ═══════════════════════════════════════════
# HEALTH & INDEX
# ═══════════════════════════════════════════

class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        d = r.json()
        assert d["success"] is True
        assert d["data"]["status"] == "healthy"
        assert d["data"]["version"] == "1.0.0"
        assert d["data"]["dataLoaded"] == {"countries": 8, "compliance": 3}

    def test_index(self, client):
        r = client.get(API)
        assert r.status_code == 200
        assert r.json()["data"]["endpoints"]["countries"] == f"{API}/countries"

    def test_request_id_echoed(self, client):
        r = client.get(f"{API}/countries", headers={"X-Request-ID": "abc-123"})
        assert r.headers["X-Request-ID"] == "abc-123"
        assert r.json()["meta"]["requestId"] == "abc-123"

    def test_request_id_generated(self, client):
        r = client.get("/health")
        assert r.headers["X-Request-ID"]

    def test_unknown_route(self, client):
        r = client.get(f"{API}/nothing-here")
        assert r.status_code == 404
        d = r.json()
        assert d["success"] is False
        assert d["error"]["code"] == "ROUTE_NOT_FOUND"
        assert d["meta"]["timestamp"]


# ═══════════════════════════════════════════
# COUNTRIES
# ═══════════════════════════════════════════

class TestCountries:
    def test_list(self, client):
        r = client.get(f"{API}/countries")
        assert r.status_code == 200
        d = r.json()
        assert d["meta"]["total"] == 8
        assert d["meta"]["page"] == 1
        assert d["meta"]["limit"] == 50
        codes = [c["isoCode3"] for c in d["data"]]
        assert len(codes) == len(set(codes))
        assert "EUR" not in codes

    def test_continent_and_search(self, client):
        r = client.get(f"{API}/countries", params={"continent": "Europe", "search": "ger"})
        d = r.json()
        assert [c["name"] for c in d["data"]] == ["Germany"]
        for c in d["data"]:
            assert c["continent"] == "Europe"
            assert "ger" in (c["name"] + c["isoCode2"] + c["isoCode3"]).lower()

    def test_pagination(self, client):
        full = client.get(f"{API}/countries").json()["data"]
        r = client.get(f"{API}/countries", params={"page": 2, "limit": 3})
        d = r.json()
        # države bez compliance zapisa dobiju lastUpdated=now pri svakom čitanju
        assert [c["isoCode3"] for c in d["data"]] == [c["isoCode3"] for c in full[3:6]]
        assert d["meta"]["total"] == 8

    def test_status_filter(self, client):
        d = client.get(f"{API}/countries", params={"status": "planned"}).json()
        assert [c["isoCode3"] for c in d["data"]] == ["XYZ"]

    def test_updated_since(self, client):
        d = client.get(f"{API}/countries", params={"updatedSince": "2024-01-01"}).json()
        codes = {c["isoCode3"] for c in d["data"]}
        assert "FRA" in codes and "BRA" not in codes

    @pytest.mark.parametrize("params", [
        {"limit": 0}, {"limit": 101}, {"page": 0}, {"status": "sometimes"},
        {"updatedSince": "not-a-date"},
    ])
    def test_invalid_query(self, client, params):
        r = client.get(f"{API}/countries", params=params)
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_get_country(self, client):
        r = client.get(f"{API}/countries/fra")
        assert r.status_code == 200
        d = r.json()["data"]
        assert d["id"] == "FRA"
        assert d["eInvoicing"]["b2b"]["status"] == "mandatory"

    def test_country_not_found(self, client):
        r = client.get(f"{API}/countries/QQQ")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "COUNTRY_NOT_FOUND"

    def test_country_bad_id(self, client):
        r = client.get(f"{API}/countries/DE")
        assert r.status_code == 400
        err = r.json()["error"]
        assert err["code"] == "VALIDATION_ERROR"
        assert err["details"]["value"] == "DE"

    def test_broken_data_is_500(self, client, config):
        config.countries_file.write_text("[{oops", encoding="utf-8")
        r = client.get(f"{API}/countries")
        assert r.status_code == 500
        d = r.json()
        assert d["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "stack" not in d["meta"]


# ═══════════════════════════════════════════
# CUSTOM CONTENT
# ═══════════════════════════════════════════

class TestCustomFormats:
    def test_create_and_get(self, client):
        r = client.post(f"{API}/custom-content/formats", json=FORMAT)
        assert r.status_code == 201
        rec = r.json()["data"]
        assert rec["countryName"] == "Germany"
        assert rec["approved"] is True

        r = client.get(f"{API}/custom-content/formats/{rec['id']}")
        assert r.json()["data"]["name"] == "XRechnung"

        r = client.get(f"{API}/custom-content/formats", params={"countryCode": "deu"})
        assert r.json()["meta"]["total"] == 1

    def test_invalid_type_not_persisted(self, client, config):
        r = client.post(f"{API}/custom-content/formats", json=dict(FORMAT, type="bogus"))
        assert r.status_code == 400
        d = r.json()
        assert d["error"]["code"] == "VALIDATION_ERROR"
        fields = [e["field"] for e in d["error"]["details"]["errors"]]
        assert "type" in fields
        assert not config.custom_formats_file.exists()
        assert client.get(f"{API}/custom-content/formats").json()["data"] == []

    @pytest.mark.parametrize("changes", [
        {"url": "not a url"},
        {"countryCode": "DEUX"},
        {"name": "   "},
    ])
    def test_invalid_fields(self, client, changes):
        r = client.post(f"{API}/custom-content/formats", json=dict(FORMAT, **changes))
        assert r.status_code == 400

    def test_missing_required(self, client):
        body = dict(FORMAT)
        del body["authority"]
        r = client.post(f"{API}/custom-content/formats", json=body)
        assert r.status_code == 400
        assert r.json()["error"]["details"]["errors"][0]["field"] == "authority"

    def test_update_and_delete(self, client):
        rec = client.post(f"{API}/custom-content/formats", json=FORMAT).json()["data"]
        r = client.put(f"{API}/custom-content/formats/{rec['id']}", json={"version": "3.1"})
        assert r.status_code == 200
        assert r.json()["data"]["version"] == "3.1"

        r = client.delete(f"{API}/custom-content/formats/{rec['id']}")
        assert r.status_code == 200
        r = client.get(f"{API}/custom-content/formats/{rec['id']}")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "FORMAT_NOT_FOUND"

    def test_update_unknown(self, client):
        r = client.put(f"{API}/custom-content/formats/missing", json={"version": "1"})
        assert r.status_code == 404

    def test_update_null_fields_ignored(self, client):
        rec = client.post(f"{API}/custom-content/formats", json=FORMAT).json()["data"]
        r = client.put(f"{API}/custom-content/formats/{rec['id']}",
                       json={"approved": None, "name": None, "version": "3.2"})
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["name"] == "XRechnung"
        assert data["approved"] is True
        assert data["version"] == "3.2"
        assert client.get(f"{API}/custom-content/admin/pending").json()["meta"]["total"] == 0

    def test_update_blank_required(self, client):
        rec = client.post(f"{API}/custom-content/formats", json=FORMAT).json()["data"]
        r = client.put(f"{API}/custom-content/formats/{rec['id']}", json={"authority": " "})
        assert r.status_code == 400
        assert client.get(f"{API}/custom-content/formats/{rec['id']}").json()["data"]["authority"] \
            == FORMAT["authority"]


class TestCustomLegislation:
    def test_crud(self, client):
        r = client.post(f"{API}/custom-content/legislation", json=LEGISLATION)
        assert r.status_code == 201
        rec = r.json()["data"]
        assert rec["countryCode"] == "FRA"
        assert rec["countryName"] == "France"

        r = client.put(f"{API}/custom-content/legislation/{rec['id']}", json={"type": "decree"})
        assert r.json()["data"]["type"] == "decree"

        assert client.delete(f"{API}/custom-content/legislation/{rec['id']}").status_code == 200
        r = client.delete(f"{API}/custom-content/legislation/{rec['id']}")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "LEGISLATION_NOT_FOUND"

    def test_invalid_type(self, client):
        r = client.post(f"{API}/custom-content/legislation", json=dict(LEGISLATION, type="memo"))
        assert r.status_code == 400


class TestAdmin:
    def test_pending_and_approve(self, client):
        rec = client.post(f"{API}/custom-content/formats", json=FORMAT).json()["data"]
        client.put(f"{API}/custom-content/formats/{rec['id']}", json={"approved": False})

        pending = client.get(f"{API}/custom-content/admin/pending").json()
        assert [f["id"] for f in pending["data"]["formats"]] == [rec["id"]]
        assert pending["meta"]["total"] == 1

        r = client.post(f"{API}/custom-content/admin/formats/{rec['id']}/approve")
        assert r.status_code == 200
        assert r.json()["data"]["approvedBy"] == "system"
        assert client.get(f"{API}/custom-content/admin/pending").json()["meta"]["total"] == 0

    def test_approve_unknown(self, client):
        r = client.post(f"{API}/custom-content/admin/links/missing/approve")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "LINK_NOT_FOUND"

    def test_approve_bad_kind(self, client):
        r = client.post(f"{API}/custom-content/admin/widgets/x/approve")
        assert r.status_code == 400


# ═══════════════════════════════════════════
# CUSTOM LINKS
# ═══════════════════════════════════════════

class TestCustomLinks:
    def test_upsert(self, client):
        r = client.post(f"{API}/custom-links", json=LINK)
        assert r.status_code == 201
        link = r.json()["data"]
        r = client.post(f"{API}/custom-links", json=dict(LINK, title="Updated"))
        assert r.status_code == 200
        assert r.json()["data"]["id"] == link["id"]
        assert client.get(f"{API}/custom-links").json()["meta"]["total"] == 1

    def test_by_country_and_resolve(self, client):
        client.post(f"{API}/custom-links", json=LINK)
        d = client.get(f"{API}/custom-links/country/deu").json()
        assert len(d["data"]) == 1

        r = client.get(f"{API}/custom-links/resolve/DEU", params={
            "originalUrl": LINK["originalUrl"], "linkType": "specification"})
        assert r.json()["data"] == {"hasCustomLink": True, "customUrl": LINK["customUrl"],
                                    "shouldUseCustom": True}

        r = client.get(f"{API}/custom-links/resolve/DEU", params={
            "originalUrl": LINK["originalUrl"], "linkType": "specification",
            "lastUpdated": "2999-01-01"})
        assert r.json()["data"]["shouldUseCustom"] is False

    def test_resolve_requires_params(self, client):
        r = client.get(f"{API}/custom-links/resolve/DEU")
        assert r.status_code == 400

    def test_invalid_link_type(self, client):
        r = client.post(f"{API}/custom-links", json=dict(LINK, linkType="blog"))
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_update_get_delete(self, client):
        link = client.post(f"{API}/custom-links", json=LINK).json()["data"]
        r = client.put(f"{API}/custom-links/{link['id']}", json={"notes": "provjereno"})
        assert r.json()["data"]["notes"] == "provjereno"
        assert client.get(f"{API}/custom-links/{link['id']}").status_code == 200
        assert client.delete(f"{API}/custom-links/{link['id']}").status_code == 200
        assert client.get(f"{API}/custom-links/{link['id']}").status_code == 404

    def test_delete_unknown_leaves_file(self, client, config):
        client.post(f"{API}/custom-links", json=LINK)
        before = config.custom_links_file.read_bytes()
        r = client.delete(f"{API}/custom-links/does-not-exist")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "LINK_NOT_FOUND"
        assert config.custom_links_file.read_bytes() == before


# ═══════════════════════════════════════════
# EXPORT
# ═══════════════════════════════════════════

class TestExport:
    def test_csv(self, client):
        r = client.post(f"{API}/export/csv", json={"filters": {"continents": ["Europe"]}})
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert "attachment" in r.headers["content-disposition"]
        lines = r.text.split("\n")
        assert lines[0].startswith("id,name,isoCode2,isoCode3")
        assert len(lines) == 1 + 4

    def test_json_summary(self, client):
        r = client.post(f"{API}/export/json", json={"format": "summary"})
        d = r.json()["data"]
        assert d["total"] == 8
        assert d["byStatus"]["b2c"]["mandatory"] == 1
        assert d["byContinent"]["Unknown"] == 1

    def test_json_basic_with_status(self, client):
        r = client.post(f"{API}/export/json",
                        json={"format": "basic", "filters": {"status": ["planned"]}})
        assert r.json()["data"] == [{"id": "XYZ", "name": "Test", "continent": "Unknown",
                                     "b2g": "mandatory", "b2b": "planned", "b2c": "none"}]

    def test_bad_format(self, client):
        r = client.post(f"{API}/export/json", json={"format": "xlsx"})
        assert r.status_code == 400


# ═══════════════════════════════════════════
# RATE LIMIT & STARTUP
# ═══════════════════════════════════════════

class TestRateLimit:
    def test_limit_exceeded(self, tmp_path):
        cfg = TrackerConfig(environment="test", data_dir=tmp_path, rate_limit_max=3)
        (tmp_path / "countries.json").write_text("[]", encoding="utf-8")
        (tmp_path / "compliance-data.json").write_text("[]", encoding="utf-8")
        with TestClient(create_app(cfg)) as c:
            for _ in range(3):
                assert c.get(f"{API}/countries").status_code == 200
            r = c.get(f"{API}/countries")
            assert r.status_code == 429
            assert r.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
            # /health nije ograničen
            assert c.get("/health").status_code == 200

    def test_defaults_by_environment(self):
        assert TrackerConfig(environment="production").rate_limit_max == 100
        assert TrackerConfig(environment="development").rate_limit_max == 1000
        assert TrackerConfig().rate_limit_window_sec == 900


class TestStartup:
    def test_existing_collections_loaded(self, config):
        config.custom_links_file.write_text(json.dumps([dict(LINK, id="l1", isActive=True)]),
                                            encoding="utf-8")
        with TestClient(create_app(config)) as c:
            assert c.get(f"{API}/custom-links/l1").json()["data"]["title"] == LINK["title"]

    def test_stack_in_development(self, tmp_path):
        cfg = TrackerConfig(environment="development", data_dir=tmp_path)
        (tmp_path / "countries.json").write_text("[", encoding="utf-8")
        with TestClient(create_app(cfg)) as c:
            r = c.get(f"{API}/countries")
            assert r.status_code == 500
            assert "stack" in r.json()["meta"]
