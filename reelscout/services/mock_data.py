"""Built-in offline movie dataset.

A handful of well-known titles with overlapping genres and distinct release
years. Used when ``TMDB_MOCK`` is enabled and throughout the test suite.
"""

from __future__ import annotations

from typing import Dict, List

from ..models import CatalogDetails, Genre

ACTION = Genre(28, "Action")
ADVENTURE = Genre(12, "Adventure")
CRIME = Genre(80, "Crime")
DRAMA = Genre(18, "Drama")
SCIENCE_FICTION = Genre(878, "Science Fiction")
THRILLER = Genre(53, "Thriller")


def _movie(movie_id: int, title: str, overview: str, poster_path: str, release_date: str, genres: List[Genre]) -> CatalogDetails:
    return CatalogDetails(
        id=movie_id,
        title=title,
        overview=overview,
        release_date=release_date,
        poster_path=poster_path,
        genre_ids=[g.id for g in genres],
        genres=list(genres),
    )


MOCK_MOVIES: List[CatalogDetails] = [
    _movie(
        603,
        "The Matrix",
        "A computer hacker learns about the true nature of his reality and his role "
        "in the war against its controllers.",
        "/f89U3ADr1oiB1s9GkdPOEpXUk5H.jpg",
        "1999-03-30",
        [ACTION, SCIENCE_FICTION],
    ),
    _movie(
        157336,
        "Interstellar",
        "A team of explorers travel through a wormhole in space in an attempt to "
        "ensure humanity's survival.",
        "/gEU2QniE6E77NI6lCU6MxlNBvIx.jpg",
        "2014-11-05",
        [ADVENTURE, DRAMA, SCIENCE_FICTION],
    ),
    _movie(
        27205,
        "Inception",
        "A thief who steals corporate secrets through dream-sharing technology is "
        "given an impossible task.",
        "/oYuLEt3zVCKq57qu2F8dT7NIa6f.jpg",
        "2010-07-16",
        [ACTION, SCIENCE_FICTION, THRILLER],
    ),
    _movie(
        155,
        "The Dark Knight",
        "Batman raises the stakes in his war on crime. With the help of Lt. Jim "
        "Gordon and Harvey Dent...",
        "/qJ2tW6WMUDux911r6m7haRef0WH.jpg",
        "2008-07-18",
        [DRAMA, ACTION, CRIME],
    ),
]


def mock_genres() -> List[Genre]:
    """Distinct genres of the dataset, in first-seen order."""
    seen: Dict[int, Genre] = {}
    for movie in MOCK_MOVIES:
        for genre in movie.genres:
            seen.setdefault(genre.id, genre)
    return list(seen.values())
