"""Filtering, fallback ranking and pagination over the mock catalog."""

from __future__ import annotations

import pytest

from reelscout.errors import NotFoundError
from reelscout.models import CatalogDetails, CatalogItem, poster_url
from reelscout.services.catalog import matches_genres, refine
from reelscout.services.mock_catalog import MockCatalogClient


def titles(result):
    return [item.title for item in result.results]


def test_search_by_genre_keeps_only_crime(catalog):
    result = catalog.search("the", genre_ids=[80])
    assert titles(result) == ["The Dark Knight"]
    assert "Interstellar" not in titles(result)


def test_discover_year_and_genre(catalog):
    assert titles(catalog.discover(year=1999, genre_ids=[28])) == ["The Matrix"]


def test_search_year_miss_falls_back_to_closest_year(catalog):
    result = catalog.search("matrix", year=2010)
    assert titles(result) == ["The Matrix"]
    assert result.total_results == 1


def test_fallback_ties_break_by_title(catalog):
    # Action titles: 1999, 2008, 2010 -> 2008 and 2010 are both one year from 2009.
    result = catalog.discover(year=2009, genre_ids=[28])
    assert titles(result) == ["Inception", "The Dark Knight", "The Matrix"]


def test_fallback_stays_within_genre(catalog):
    result = catalog.discover(year=2000, genre_ids=[80])
    assert titles(result) == ["The Dark Knight"]


def test_fallback_is_empty_when_no_genre_match(catalog):
    result = catalog.discover(year=2000, genre_ids=[99])
    assert result.results == []
    assert result.total_pages == 0
    assert result.page == 1


def test_no_year_orders_by_recency(catalog):
    assert titles(catalog.search("the")) == ["The Dark Knight", "The Matrix"]
    assert titles(catalog.discover()) == ["Interstellar", "Inception", "The Dark Knight", "The Matrix"]


@pytest.mark.parametrize("genre_ids", [[28], [80], [878], [12, 53], [99]])
@pytest.mark.parametrize("query", ["the", "a", "in", ""])
def test_genre_filter_never_adds_results(catalog, query, genre_ids):
    everything = {i.id for i in catalog.search(query).results}
    narrowed = {i.id for i in catalog.search(query, genre_ids=genre_ids).results}
    assert narrowed <= everything


def test_matches_genres_is_any_of():
    item = CatalogItem(id=1, title="x", genre_ids=[18, 80])
    assert matches_genres(item, None)
    assert matches_genres(item, [])
    assert matches_genres(item, [80, 99])
    assert not matches_genres(item, [28])


def test_undated_items_rank_last_in_fallback():
    items = [
        CatalogItem(id=1, title="No Date"),
        CatalogItem(id=2, title="Far", release_date="1950-01-01"),
        CatalogItem(id=3, title="Near", release_date="2001-05-01"),
    ]
    assert [i.title for i in refine(items, year=2000).results] == ["Near", "Far", "No Date"]


def _corpus(count):
    return [
        CatalogDetails(id=n, title=f"Movie {n:03d}", release_date=f"{1950 + n}-01-01", genre_ids=[18])
        for n in range(1, count + 1)
    ]


def test_pagination_over_final_list():
    client = MockCatalogClient(_corpus(45))
    first = client.discover(page=1)
    last = client.discover(page=3)
    assert (first.page, first.total_pages, first.total_results) == (1, 3, 45)
    assert len(first.results) == 20
    assert len(last.results) == 5
    assert first.results[0].title == "Movie 045"


@pytest.mark.parametrize("requested, expected", [(0, 1), (-4, 1), (3, 3), (99, 3)])
def test_page_is_clamped(requested, expected):
    client = MockCatalogClient(_corpus(45))
    assert client.discover(page=requested).page == expected


def test_trending_keeps_recent_first(catalog):
    result = catalog.get_trending(1)
    assert result.results[0].title == "Interstellar"
    assert result.total_results == 4


def test_details_and_missing_id(catalog):
    details = catalog.get_details(603)
    assert details.title == "The Matrix"
    assert [g.name for g in details.genres] == ["Action", "Science Fiction"]
    with pytest.raises(NotFoundError):
        catalog.get_details(1)


def test_similar_ranks_by_shared_genres(catalog):
    assert [m.title for m in catalog.get_similar(603)] == ["Inception", "Interstellar", "The Dark Knight"]
    with pytest.raises(NotFoundError):
        catalog.get_similar(42)


def test_genres_are_distinct(catalog):
    genres = catalog.get_genres()
    assert len({g.id for g in genres}) == len(genres)
    assert "Science Fiction" in [g.name for g in genres]


def test_search_id_by_title(catalog):
    assert catalog.search_id_by_title("Inception", "2010") == 27205
    assert catalog.search_id_by_title("inception") == 27205
    assert catalog.search_id_by_title("Inception", "1999") is None
    assert catalog.search_id_by_title("Dark City", "1998") is None


def test_poster_url_in_wire_shape():
    item = CatalogItem(id=1, title="Heat", poster_path="/x.jpg")
    assert item.to_dict()["poster_url"] == "https://image.tmdb.org/t/p/w342/x.jpg"
    assert poster_url("/x.jpg", "w185") == "https://image.tmdb.org/t/p/w185/x.jpg"
    assert CatalogItem(id=2, title="Tenet").to_dict()["poster_url"] is None
