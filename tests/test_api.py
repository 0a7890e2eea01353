import time
from datetime import date

import pytest
from fastapi.testclient import TestClient

from catalogue.api import create_app
from catalogue.engine import CrawlEngine
from catalogue.resolvers.calendar_resolver import CalendarResolver
from catalogue.resolvers.redirect_resolver import RedirectResolver
from catalogue.store import CourseStore
from conftest import BASE_URL, SEMESTER, FakeFetcher, department_url


@pytest.fixture
def resolver():
    # 2025-10-01 resolves to the fixture semester 2510
    return CalendarResolver(BASE_URL, today=lambda: date(2025, 10, 1))


@pytest.fixture
def client(engine, resolver):
    with TestClient(create_app(engine, resolver)) as test_client:
        yield test_client


def test_health_check(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_redirects_to_v1(client):
    response = client.get("/", follow_redirects=False)

    assert response.status_code == 301
    assert response.headers["location"] == "/v1"


def test_introspection(client):
    body = client.get("/v1").json()

    assert set(body) == {"runtime", "hostname", "platform", "buildCommit", "buildDate", "uptime"}
    assert float(body["uptime"]) >= 0


def test_course_lookup_miss_crawls_the_department_once(client, fetcher):
    response = client.get("/v1/courses/COMP1021")

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "COMP1021"
    assert body["title"] == "Introduction to Computer Science"
    assert body["credits"] == 3.0
    assert body["sections"] == ["L1", "LA1"]
    assert fetcher.requests == [department_url("COMP")]

    # Second course of the same department is already cached
    assert client.get("/v1/courses/COMP2011").status_code == 200
    assert fetcher.requests == [department_url("COMP")]


def test_course_lookup_normalizes_the_code(client):
    response = client.get("/v1/courses/comp%201021")

    assert response.status_code == 200
    assert response.json()["code"] == "COMP1021"


def test_unknown_course_is_a_structured_404(client):
    response = client.get("/v1/courses/COMP9999")

    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"


def test_unreachable_department_is_a_structured_404(client, fetcher):
    response = client.get("/v1/courses/ELEC1100")

    assert response.status_code == 404
    assert response.json()["kind"] == "not_found"
    assert fetcher.requests == [department_url("ELEC")]


def test_too_short_course_code_is_a_validation_error(client):
    response = client.get("/v1/courses/CO")

    assert response.status_code == 400
    assert response.json()["kind"] == "validation"


def test_list_courses_starts_empty(client):
    response = client.get("/v1/courses")

    assert response.status_code == 200
    assert response.json() == {}


def test_refresh_crawls_everything(client, fetcher):
    response = client.patch("/v1/courses")

    assert response.status_code == 200
    assert sorted(response.json()) == ["COMP1021", "COMP2011", "MATH1013"]
    assert sorted(client.get("/v1/courses").json()) == ["COMP1021", "COMP2011", "MATH1013"]
    assert fetcher.requests == [department_url("COMP"), department_url("MATH")]


def test_refresh_with_unresolvable_semester_is_a_502(engine):
    broken = RedirectResolver(BASE_URL, FakeFetcher())
    with TestClient(create_app(engine, broken)) as client:
        response = client.patch("/v1/courses")

    assert response.status_code == 502
    assert response.json() == {"kind": "upstream", "message": "Could not resolve the current semester."}


def test_semester_lookup(client):
    response = client.get("/v1/semesters/2510")

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "2510"
    assert body["name"].endswith("Fall")


def test_current_semester(client):
    response = client.get("/v1/semesters/current")

    assert response.status_code == 200
    assert response.json()["code"] == SEMESTER


def test_invalid_semester_is_a_validation_error(client):
    response = client.get("/v1/semesters/2599")

    assert response.status_code == 400
    assert response.json()["kind"] == "validation"


def test_unknown_route_uses_the_error_shape(client):
    response = client.get("/v2/nothing")

    assert response.status_code == 404
    assert response.json()["kind"] == "http"


def test_precache_fills_the_store_in_the_background(catalogue_pages, resolver):
    engine = CrawlEngine(FakeFetcher(catalogue_pages), CourseStore(), BASE_URL, SEMESTER)
    with TestClient(create_app(engine, resolver, precache=True)) as client:
        deadline = time.monotonic() + 5
        while len(engine.store) < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        courses = client.get("/v1/courses").json()

    assert sorted(courses) == ["COMP1021", "COMP2011", "MATH1013"]
    assert engine.fetcher.closed is True


def test_trailing_slash_is_tolerated(client):
    response = client.get("/v1/courses/")

    assert response.status_code == 200
    assert response.json() == {}


def test_unexpected_errors_use_the_error_shape(resolver):
    class ExplodingFetcher(FakeFetcher):
        def get_text(self, url: str) -> str:
            raise RuntimeError("boom")

    engine = CrawlEngine(ExplodingFetcher(), CourseStore(), BASE_URL, SEMESTER)
    with TestClient(create_app(engine, resolver), raise_server_exceptions=False) as client:
        response = client.get("/v1/courses/COMP1021")

    assert response.status_code == 500
    assert response.json() == {"kind": "internal", "message": "Internal server error."}


def test_metrics_exposition(client):
    client.patch("/v1/courses")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'catalogue_pages_fetched_total{outcome="ok"}' in response.text
    assert "catalogue_http_requests_total" in response.text
