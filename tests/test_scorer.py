import math

import pytest

from stackr_app.search.models import MediaCategory, SortMode
from stackr_app.search.scorer import RelevanceScorer, match_score
from stackr_app.search.weights import DEFAULT_WEIGHTS, with_overrides

from fakes import make_result


@pytest.fixture
def scorer():
    return RelevanceScorer(current_year=2026)


def test_match_score_tiers():
    assert match_score("Dune", "Dune", 100, 60, 40) == 100
    assert match_score("dune", "Dune Messiah", 100, 60, 40) == 60
    assert match_score("dune messiah", "Messiah of Dune", 100, 60, 40) == 40
    assert match_score("matrix reloaded", "The Matrix", 100, 60, 40) == 20
    assert match_score("dune", None, 100, 60, 40) == 0
    assert match_score("!!", "Dune", 100, 60, 40) == 0


def test_exact_title_beats_longer_title(scorer):
    exact = make_result("Inception", year=2010, rating=8.8, rating_count=2_500_000)
    longer = make_result("Inception: The Cobol Job", year=2010, rating=7.0, rating_count=5_000)

    ranked = scorer.rank([longer, exact], "inception")

    assert ranked[0] is exact
    assert exact.title_score == 100
    assert longer.title_score == 60


def test_higher_rating_never_lowers_score(scorer):
    for category in MediaCategory:
        low = make_result("Dune", category, creator="Frank Herbert", rating=5.0, rating_count=100)
        high = make_result("Dune", category, creator="Frank Herbert", rating=9.0, rating_count=100)

        scorer.score(low, "dune")
        scorer.score(high, "dune")

        assert high.total_score >= low.total_score


def test_better_title_tier_never_lowers_score(scorer):
    exact = make_result("Heat", rating=8.0)
    contains = make_result("Heat Wave", rating=8.0)
    words = make_result("The Wave of Heat", rating=8.0)

    for result in (exact, contains, words):
        scorer.score(result, "heat")

    assert exact.total_score > contains.total_score
    assert contains.total_score >= words.total_score


def test_quality_score_uses_log_of_count(scorer):
    book = make_result("Dune", MediaCategory.BOOK, creator="Frank Herbert", rating=8.0, rating_count=999)

    scorer.score(book, "dune")

    assert book.quality_score == pytest.approx(8.0 * 4.0 + math.log10(1000) * 3.0)


def test_popularity_tiers_and_direct_metric(scorer):
    weights = DEFAULT_WEIGHTS[MediaCategory.BOOK]
    assert scorer.popularity_score(make_result("a", popularity_metric=1500), weights) == 20
    assert scorer.popularity_score(make_result("a", popularity_metric=50), weights) == 10
    assert scorer.popularity_score(make_result("a", popularity_metric=5), weights) == 0
    assert scorer.popularity_score(make_result("a"), weights) == 0

    music = DEFAULT_WEIGHTS[MediaCategory.MUSIC_TRACK]
    assert scorer.popularity_score(make_result("a", popularity_metric=45), music) == 45
    assert scorer.popularity_score(make_result("a", popularity_metric=250), music) == 100
    assert scorer.popularity_score(make_result("a"), music) == 30


def test_recency_tiers(scorer):
    weights = DEFAULT_WEIGHTS[MediaCategory.GAME]
    assert scorer.recency_score(make_result("a", year=2026), weights) == 20
    assert scorer.recency_score(make_result("a", year=2024), weights) == 10
    assert scorer.recency_score(make_result("a", year=2021), weights) == 5
    assert scorer.recency_score(make_result("a", year=2015), weights) == 0
    assert scorer.recency_score(make_result("a"), weights) == 0


def test_date_sort_rewards_fresh_releases(scorer):
    fresh = make_result("Alien: Earth", MediaCategory.TV, year=2025, rating=7.0)
    classic = make_result("Alien: Earth", MediaCategory.TV, year=1999, rating=7.0)

    scorer.score(fresh, "alien earth", SortMode.MIXED)
    mixed_gap = fresh.total_score - scorer.score(classic, "alien earth", SortMode.MIXED).total_score

    scorer.score(fresh, "alien earth", SortMode.DATE)
    date_gap = fresh.total_score - scorer.score(classic, "alien earth", SortMode.DATE).total_score

    assert date_gap > mixed_gap >= 0


def test_rescoring_is_idempotent(scorer):
    result = make_result("Heat", rating=8.3, rating_count=700_000, year=1995)

    first = scorer.score(result, "heat").total_score
    second = scorer.score(result, "heat").total_score

    assert first == second


def test_rank_is_stable_for_ties(scorer):
    a = make_result("Heat", source_id="omdb")
    b = make_result("Heat", source_id="tmdb")
    c = make_result("Heat", source_id="rawg")

    ranked = scorer.rank([a, b, c], "heat")

    assert [r.source_id for r in ranked] == ["omdb", "tmdb", "rawg"]


def test_weights_table_is_data():
    table = with_overrides(DEFAULT_WEIGHTS, MediaCategory.MOVIE, title=0.0)
    scorer = RelevanceScorer(weights=table, current_year=2026)
    result = make_result("Heat")

    scorer.score(result, "heat")

    assert result.title_score == 100
    assert result.total_score == 0
    assert DEFAULT_WEIGHTS[MediaCategory.MOVIE].title == 1.0
