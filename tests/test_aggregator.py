import httpx
import pytest

from stackr_app.adapters import OmdbAdapter, TmdbAdapter
from stackr_app.search.aggregator import SearchAggregator, diversify
from stackr_app.search.cache import SearchCache
from stackr_app.search.errors import TransportError
from stackr_app.search.models import MediaCategory, SearchOptions
from stackr_app.search.scorer import RelevanceScorer

from fakes import FakeAdapter, failing_adapter, make_result

MOVIE = MediaCategory.MOVIE
BOOK = MediaCategory.BOOK


def movie_adapter():
    return FakeAdapter("movies", [MOVIE, MediaCategory.TV], [
        make_result("Dune", MOVIE, "movies", year=2021, rating=8.0, rating_count=800_000,
                    external_ids={"imdb": "tt1160419"}),
        make_result("Dune", MOVIE, "movies", item_id="dune-1984", year=1984, rating=6.3, rating_count=170_000),
        make_result("Dune: Part Two", MOVIE, "movies", year=2024, rating=8.5, rating_count=600_000),
        make_result("Dune Official Trailer", MOVIE, "movies", year=2021),
    ])


def book_adapter():
    return FakeAdapter("books", [BOOK], [
        make_result("Dune", BOOK, "books", creator="Frank Herbert", year=1965, rating=8.6,
                    rating_count=4_000, popularity_metric=4_000),
        make_result("Dune Messiah", BOOK, "books", creator="Frank Herbert", year=1969, rating=8.0),
        make_result("Dune", BOOK, "books", creator=None, year=1965),
    ])


def make_aggregator(*adapters, **kwargs):
    kwargs.setdefault("scorer", RelevanceScorer(current_year=2026))
    return SearchAggregator(adapters, **kwargs)


@pytest.mark.asyncio
async def test_search_merges_filters_and_ranks():
    aggregator = make_aggregator(movie_adapter(), book_adapter())

    answer = await aggregator.search("dune")

    titles = [r.title for r in answer.results]
    assert "Dune Official Trailer" not in titles
    assert all(r.creator for r in answer.results if r.category == BOOK)
    assert titles[0] == "Dune"
    scores = [r.total_score for r in answer.results]
    assert scores == sorted(scores, reverse=True)
    assert answer.succeeded_sources == ["movies", "books"]
    assert not answer.all_failed


@pytest.mark.asyncio
async def test_search_is_idempotent_without_cache():
    aggregator = make_aggregator(movie_adapter(), book_adapter())

    first = await aggregator.search("dune")
    second = await aggregator.search("dune")

    assert [(r.source_id, r.id, r.total_score) for r in first.results] == \
        [(r.source_id, r.id, r.total_score) for r in second.results]


@pytest.mark.asyncio
async def test_categories_select_adapters_and_results():
    movies, books = movie_adapter(), book_adapter()
    aggregator = make_aggregator(movies, books)

    answer = await aggregator.search("dune", categories=[BOOK])

    assert movies.calls == 0
    assert books.calls == 1
    assert {r.category for r in answer.results} == {BOOK}


@pytest.mark.asyncio
async def test_truncation_keeps_top_results():
    aggregator = make_aggregator(movie_adapter(), book_adapter())

    full = await aggregator.search("dune", limit=50)
    top = await aggregator.search("dune", limit=2)

    assert len(top.results) == 2
    assert top.total_count == full.total_count == len(full.results)
    assert [r.id for r in top.results] == [r.id for r in full.results[:2]]


@pytest.mark.asyncio
async def test_failed_adapter_does_not_affect_others():
    healthy = make_aggregator(movie_adapter())
    mixed = make_aggregator(movie_adapter(), failing_adapter("broken", [MOVIE]))

    baseline = await healthy.search("dune")
    answer = await mixed.search("dune")

    assert [r.id for r in answer.results] == [r.id for r in baseline.results]
    assert answer.failed_sources == ["broken"]
    assert answer.succeeded_sources == ["movies"]
    assert not answer.all_failed
    assert mixed.metrics.snapshot()["source_failures"] == {"broken": 1}


@pytest.mark.asyncio
async def test_all_failed_is_distinguishable_from_no_matches():
    broken = make_aggregator(failing_adapter("a", [MOVIE]), failing_adapter("b", [MOVIE]))
    empty = make_aggregator(FakeAdapter("empty", [MOVIE], []))

    failed = await broken.search("dune")
    no_match = await empty.search("dune")

    assert failed.results == [] and failed.all_failed
    assert no_match.results == [] and not no_match.all_failed


@pytest.mark.asyncio
async def test_slow_adapter_times_out():
    slow = FakeAdapter("slow", [MOVIE], [make_result("Dune", MOVIE, "slow")], delay=1.0)
    fast = movie_adapter()
    aggregator = make_aggregator(slow, fast, branch_timeout=0.05)

    answer = await aggregator.search("dune")

    assert answer.failed_sources == ["slow"]
    assert all(r.source_id == "movies" for r in answer.results)


@pytest.mark.asyncio
async def test_fan_out_keeps_batch_order():
    a = FakeAdapter("a", [MOVIE], [make_result("One", MOVIE, "a"), make_result("Two", MOVIE, "a")])
    b = failing_adapter("b", [MOVIE])
    c = FakeAdapter("c", [MOVIE], [make_result("Three", MOVIE, "c")])
    aggregator = make_aggregator(a, b, c)

    fan_out = await aggregator.fan_out("x", [a, b, c], SearchOptions())

    assert [r.title for r in fan_out.results] == ["One", "Two", "Three"]
    assert [o.source_id for o in fan_out.failed] == ["b"]
    assert "HTTP 503" in fan_out.failed[0].error


@pytest.mark.asyncio
async def test_cache_hit_skips_adapters():
    movies = movie_adapter()
    aggregator = make_aggregator(movies, cache=SearchCache(ttl=60))

    first = await aggregator.search("Dune")
    second = await aggregator.search("  dune ")

    assert movies.calls == 1
    assert second.from_cache
    assert not first.from_cache
    assert [r.id for r in second.results] == [r.id for r in first.results]
    assert aggregator.metrics.snapshot()["cache_hits"] == 1


@pytest.mark.asyncio
async def test_cache_keyed_on_options_and_bypassable():
    movies = movie_adapter()
    aggregator = make_aggregator(movies, cache=SearchCache(ttl=60))

    await aggregator.search("dune", limit=5)
    await aggregator.search("dune", limit=10)
    await aggregator.search("dune", limit=5, use_cache=False)

    assert movies.calls == 3


@pytest.mark.asyncio
async def test_failed_search_is_not_cached():
    broken = FakeAdapter("broken", [MOVIE], error=TransportError("broken", "down"))
    cache = SearchCache(ttl=60)
    aggregator = make_aggregator(broken, cache=cache)

    await aggregator.search("dune")
    await aggregator.search("dune")

    assert broken.calls == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_short_query_returns_empty():
    movies = movie_adapter()
    aggregator = make_aggregator(movies)

    answer = await aggregator.search(" d ")

    assert answer.results == []
    assert movies.calls == 0


def test_diversify_caps_categories_in_head():
    games = [make_result(f"Game {i}", MediaCategory.GAME) for i in range(5)]
    books = [make_result(f"Book {i}", BOOK, creator="x") for i in range(2)]

    mixed = diversify(games + books)

    head_categories = [r.category for r in mixed[:5]]
    assert head_categories.count(MediaCategory.GAME) == 3
    assert [r.title for r in mixed[3:5]] == ["Book 0", "Book 1"]
    assert len(mixed) == 7


@pytest.mark.asyncio
async def test_find_best_match_resolves_title():
    movies = FakeAdapter("movies", [MOVIE], [
        make_result("The Lord of the Rings: The Return of the King", MOVIE, "movies", year=2003),
        make_result("The Lord of the Rings: The Fellowship of the Ring", MOVIE, "movies", year=2001),
        make_result("The Lord of the Rings", MOVIE, "movies", year=1978),
    ])
    aggregator = make_aggregator(movies)

    match = await aggregator.find_best_match(
        "Lord of the Rings - Extended Edition", MOVIE, year=1978
    )

    assert match is not None
    assert match.year == 1978


@pytest.mark.asyncio
async def test_get_by_id_and_close():
    movies = movie_adapter()
    aggregator = make_aggregator(movies)
    target = movies.results[0]

    assert (await aggregator.get_by_id("movies", target.id)).title == "Dune"
    assert await aggregator.get_by_id("unknown", target.id) is None
    assert aggregator.get_available_adapters() == [
        {"id": "movies", "name": "Movies", "categories": ["movie", "tv"]}
    ]

    await aggregator.close()
    assert movies.closed


@pytest.mark.asyncio
async def test_health_check_reports_each_adapter():
    aggregator = make_aggregator(movie_adapter(), failing_adapter("broken", [MOVIE]))

    health = await aggregator.health_check()

    assert health == {"movies": True, "broken": False}


def test_duplicate_adapter_ids_rejected():
    with pytest.raises(ValueError):
        SearchAggregator([movie_adapter(), movie_adapter()])


@pytest.mark.asyncio
async def test_same_movie_from_omdb_and_tmdb_collapses():
    omdb_search = {"Response": "True", "Search": [
        {"Title": "The Matrix", "Year": "1999", "imdbID": "tt0133093", "Type": "movie", "Poster": "N/A"},
    ]}
    omdb_detail = {
        "Response": "True", "Title": "The Matrix", "Year": "1999", "Type": "movie", "imdbID": "tt0133093",
        "Director": "Lana Wachowski, Lilly Wachowski", "imdbRating": "8.7", "imdbVotes": "2,100,000",
    }
    tmdb_search = {"page": 1, "results": [
        {"id": 603, "media_type": "movie", "title": "The Matrix", "release_date": "1999-03-31",
         "vote_average": 8.2, "vote_count": 25000, "genre_ids": [28]},
    ]}

    def handler(request):
        if request.url.host == "api.themoviedb.org":
            return httpx.Response(200, json=tmdb_search)
        if "s" in request.url.params:
            return httpx.Response(200, json=omdb_search)
        return httpx.Response(200, json=omdb_detail)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    aggregator = make_aggregator(
        OmdbAdapter(api_key="o", client=client),
        TmdbAdapter(api_key="t", client=client),
    )

    answer = await aggregator.search("The Matrix", categories=[MOVIE])

    assert answer.succeeded_sources == ["omdb", "tmdb"]
    assert answer.total_count == 1
    assert len(answer.results) == 1


@pytest.mark.asyncio
async def test_queries_differing_in_punctuation_are_cached_apart():
    echo = FakeAdapter("echo", [BOOK], [
        make_result("C++ Programming", BOOK, "echo", creator="Bjarne Stroustrup", year=2013),
        make_result("C# in Depth", BOOK, "echo", creator="Jon Skeet", year=2019),
    ])
    aggregator = make_aggregator(echo, cache=SearchCache(ttl=60))

    await aggregator.search("C++")
    second = await aggregator.search("C#")

    assert echo.calls == 2
    assert not second.from_cache


@pytest.mark.asyncio
async def test_adapter_branch_timeout_overrides_default():
    slow = FakeAdapter("slow", [MOVIE], [make_result("Dune", MOVIE, "slow")], delay=0.3)
    slow.branch_timeout = 0.05
    fast = movie_adapter()
    aggregator = make_aggregator(slow, fast, branch_timeout=5.0)

    answer = await aggregator.search("dune")

    assert aggregator.timeout_for(slow) == 0.05
    assert aggregator.timeout_for(fast) == 5.0
    assert answer.failed_sources == ["slow"]
    assert answer.succeeded_sources == ["movies"]
