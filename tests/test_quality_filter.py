from stackr_app.search.models import MediaCategory, SearchOptions
from stackr_app.search.quality_filter import FilterPolicy, QualityFilter

from fakes import make_result


def test_drops_empty_title():
    qf = QualityFilter()
    results = [make_result(""), make_result("   "), make_result("Heat")]

    kept = qf.apply(results)

    assert [r.title for r in kept] == ["Heat"]


def test_book_and_music_require_creator():
    qf = QualityFilter()
    book = make_result("Dune", MediaCategory.BOOK)
    track = make_result("Halo", MediaCategory.MUSIC_TRACK, creator="  ")
    movie = make_result("Dune", MediaCategory.MOVIE)

    assert qf.rejection_reason(book) == "missing creator"
    assert qf.rejection_reason(track) == "missing creator"
    assert qf.accepts(movie)


def test_rating_floor_only_applies_when_rating_present():
    qf = QualityFilter()
    low = make_result("Bad Movie", rating=3.9)
    floor = make_result("Meh Movie", rating=4.0)
    unrated = make_result("New Movie", rating=None)

    kept = qf.apply([low, floor, unrated])

    assert [r.title for r in kept] == ["Meh Movie", "New Movie"]


def test_min_rating_option_overrides_floor():
    qf = QualityFilter()
    result = make_result("Decent", rating=6.5)

    assert qf.accepts(result)
    assert not qf.accepts(result, SearchOptions(min_rating=7.0))


def test_denylisted_phrases_per_category():
    qf = QualityFilter()

    assert not qf.accepts(make_result("Dune Official Trailer", MediaCategory.MOVIE))
    assert not qf.accepts(make_result("Elden Ring Soundtrack", MediaCategory.GAME))
    assert not qf.accepts(make_result("Summary of Dune", MediaCategory.BOOK, creator="X"))
    assert not qf.accepts(make_result("Halo (Karaoke Version)", MediaCategory.MUSIC_TRACK, creator="Beyonce"))
    # Phrases are category specific and whole-word
    assert qf.accepts(make_result("The Trailer Park Boys", MediaCategory.BOOK, creator="X")) is True
    assert qf.accepts(make_result("Dlcx", MediaCategory.GAME))


def test_completeness_switches():
    policies = {
        MediaCategory.BOOK: FilterPolicy(requires_creator=True, require_image=True, min_description_length=20),
    }
    qf = QualityFilter(policies=policies)
    bare = make_result("Dune", MediaCategory.BOOK, creator="Frank Herbert")
    full = make_result(
        "Dune", MediaCategory.BOOK, creator="Frank Herbert",
        image="https://img/dune.jpg", description="A desert planet and its spice.",
    )

    assert qf.rejection_reason(bare) == "missing image"
    assert qf.accepts(full)


def test_option_filters():
    qf = QualityFilter()
    explicit = make_result("Song", MediaCategory.MUSIC_TRACK, creator="A", explicit=True, year=2020)
    old = make_result("Old Movie", year=1950, genres=["Drama"])
    undated = make_result("Undated Movie", genres=[])

    options = SearchOptions(include_explicit=False, min_year=1960, genre="comedy")

    assert qf.rejection_reason(explicit, options) == "explicit content"
    assert qf.rejection_reason(old, options) == "released before min_year"
    # No year and no genres: nothing to judge, so it passes
    assert qf.accepts(undated, options)
    assert not qf.accepts(make_result("Drama", year=2000, genres=["Drama"]), options)
    assert qf.accepts(make_result("Funny", year=2000, genres=["Romantic Comedy"]), options)


def test_filter_is_pure():
    qf = QualityFilter()
    results = [make_result("Heat", rating=8.3), make_result("", rating=9.0)]
    snapshot = [(r.title, r.rating, r.total_score) for r in results]

    kept = qf.apply(results)

    assert kept[0] is results[0]
    assert [(r.title, r.rating, r.total_score) for r in results] == snapshot
