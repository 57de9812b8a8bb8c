import pytest

from stackr_app import create_app
from stackr_app.config import Settings
from stackr_app.search.aggregator import SearchAggregator
from stackr_app.search.cache import SearchCache
from stackr_app.search.models import MediaCategory

from fakes import FakeAdapter, failing_adapter, make_result


@pytest.fixture
def client(tmp_path):
    movies = FakeAdapter("movies", [MediaCategory.MOVIE], [
        make_result("Heat", MediaCategory.MOVIE, "movies", item_id="heat-1995", year=1995, rating=8.3),
        make_result("Heat Wave", MediaCategory.MOVIE, "movies", item_id="heat-wave", year=2009, rating=5.1),
    ])
    books = FakeAdapter("books", [MediaCategory.BOOK], [
        make_result("Heat", MediaCategory.BOOK, "books", creator="Bill Buford", year=2006),
    ])
    aggregator = SearchAggregator(
        [movies, books, failing_adapter("broken", [MediaCategory.GAME])],
        cache=SearchCache(ttl=60),
    )
    settings = Settings(log_dir=str(tmp_path), debug_logging=False)
    app = create_app(aggregator=aggregator, settings=settings)
    with app.test_client() as client:
        yield client


def test_search(client):
    resp = client.get("/api/search?q=heat&categories=movies,books&limit=5")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["query"] == "heat"
    assert data["results"][0]["title"] == "Heat"
    assert {r["category"] for r in data["results"]} == {"movie", "book"}
    assert data["results"][0]["scores"]["title"] == 100
    assert data["all_failed"] is False


def test_search_reports_failed_sources(client):
    resp = client.get("/api/search?q=heat")
    data = resp.get_json()
    assert data["failed_sources"] == ["broken"]
    assert set(data["succeeded_sources"]) == {"movies", "books"}


@pytest.mark.parametrize("query,code", [
    ("q=h", "invalid_query"),
    ("q=heat&categories=podcasts", "invalid_category"),
    ("q=heat&limit=abc", "invalid_option"),
    ("q=heat&sort=random", "invalid_option"),
    ("q=heat&min_year=2010&max_year=2000", "invalid_option"),
    ("q=heat&explicit=maybe", "invalid_option"),
])
def test_search_rejects_invalid_input(client, query, code):
    resp = client.get(f"/api/search?{query}")
    assert resp.status_code == 400
    assert resp.get_json()["code"] == code


def test_sources_and_metrics(client):
    client.get("/api/search?q=heat")
    client.get("/api/search?q=heat")

    sources = client.get("/api/search/sources").get_json()
    assert sources["count"] == 3

    metrics = client.get("/api/search/metrics").get_json()
    assert metrics["metrics"]["searches"] == 2
    assert metrics["metrics"]["cache_hits"] == 1
    assert metrics["cache"]["size"] == 1


def test_health(client):
    data = client.get("/api/search/health").get_json()
    assert data["sources"] == {"movies": True, "books": True, "broken": False}
    assert data["healthy_count"] == 2
    assert data["healthy"] is True


def test_match(client):
    resp = client.get("/api/search/match?title=Heat&category=movie&year=1995")
    assert resp.status_code == 200
    assert resp.get_json()["match"]["id"] == "heat-1995"

    missing = client.get("/api/search/match?title=Interstellar&category=movie")
    assert missing.status_code == 404

    bad = client.get("/api/search/match?title=Heat&category=podcast")
    assert bad.status_code == 400


def test_item_lookup(client):
    resp = client.get("/api/search/item/movies/heat-wave")
    assert resp.status_code == 200
    assert resp.get_json()["item"]["title"] == "Heat Wave"

    assert client.get("/api/search/item/movies/nope").status_code == 404
    assert client.get("/api/search/item/unknown/heat").get_json()["code"] == "invalid_source"
