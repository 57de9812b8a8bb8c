"""
Pydantic schemas for vendor API payloads.

Envelopes are validated as a whole (a mismatch is a ParseError for the call).
Items are kept as raw dicts in the envelope and validated one at a time by
the adapter, so one malformed item is skipped instead of failing the search.

Only the fields the adapters read are declared; everything else is ignored.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel


class VendorModel(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)


# =============================================================================
# GOOGLE BOOKS
# =============================================================================

class GoogleIndustryIdentifier(VendorModel):
    type: str
    identifier: str


class GoogleVolumeInfo(VendorModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    authors: List[str] = []
    publisher: Optional[str] = None
    publishedDate: Optional[str] = None
    description: Optional[str] = None
    industryIdentifiers: List[GoogleIndustryIdentifier] = []
    pageCount: Optional[int] = None
    categories: List[str] = []
    averageRating: Optional[float] = None
    ratingsCount: Optional[int] = None
    maturityRating: Optional[str] = None
    imageLinks: Dict[str, str] = {}
    language: Optional[str] = None
    infoLink: Optional[str] = None


class GoogleVolume(VendorModel):
    id: str
    volumeInfo: GoogleVolumeInfo


class GoogleVolumesResponse(VendorModel):
    totalItems: int = 0
    items: List[Dict[str, Any]] = []


# =============================================================================
# ITUNES
# =============================================================================

class ITunesTrack(VendorModel):
    wrapperType: Optional[str] = None
    kind: Optional[str] = None
    trackId: int
    trackName: Optional[str] = None
    artistName: Optional[str] = None
    collectionName: Optional[str] = None
    releaseDate: Optional[str] = None
    primaryGenreName: Optional[str] = None
    artworkUrl100: Optional[str] = None
    trackViewUrl: Optional[str] = None
    previewUrl: Optional[str] = None
    trackExplicitness: Optional[str] = None
    trackNumber: Optional[int] = None
    trackTimeMillis: Optional[int] = None


class ITunesSearchResponse(VendorModel):
    resultCount: int = 0
    results: List[Dict[str, Any]] = []


# =============================================================================
# RAWG
# =============================================================================

class RawgNamed(VendorModel):
    id: Optional[int] = None
    name: str


class RawgGame(VendorModel):
    id: int
    slug: Optional[str] = None
    name: Optional[str] = None
    released: Optional[str] = None
    background_image: Optional[str] = None
    rating: Optional[float] = None
    ratings_count: Optional[int] = None
    added: Optional[int] = None
    metacritic: Optional[int] = None
    genres: List[RawgNamed] = []
    # Detail endpoint only
    developers: List[RawgNamed] = []
    description_raw: Optional[str] = None
    website: Optional[str] = None


class RawgGamesResponse(VendorModel):
    count: int = 0
    results: List[Dict[str, Any]] = []


# =============================================================================
# OMDB
# =============================================================================

class OmdbSearchItem(VendorModel):
    title: str = Field(alias='Title')
    year: Optional[str] = Field(default=None, alias='Year')
    imdb_id: str = Field(alias='imdbID')
    type: Optional[str] = Field(default=None, alias='Type')
    poster: Optional[str] = Field(default=None, alias='Poster')


class OmdbSearchResponse(VendorModel):
    response: str = Field(alias='Response')
    search: List[Dict[str, Any]] = Field(default=[], alias='Search')
    total_results: Optional[str] = Field(default=None, alias='totalResults')
    error: Optional[str] = Field(default=None, alias='Error')


class OmdbDetail(VendorModel):
    response: str = Field(default='True', alias='Response')
    error: Optional[str] = Field(default=None, alias='Error')
    title: Optional[str] = Field(default=None, alias='Title')
    year: Optional[str] = Field(default=None, alias='Year')
    rated: Optional[str] = Field(default=None, alias='Rated')
    genre: Optional[str] = Field(default=None, alias='Genre')
    director: Optional[str] = Field(default=None, alias='Director')
    writer: Optional[str] = Field(default=None, alias='Writer')
    plot: Optional[str] = Field(default=None, alias='Plot')
    poster: Optional[str] = Field(default=None, alias='Poster')
    metascore: Optional[str] = Field(default=None, alias='Metascore')
    imdb_rating: Optional[str] = Field(default=None, alias='imdbRating')
    imdb_votes: Optional[str] = Field(default=None, alias='imdbVotes')
    imdb_id: Optional[str] = Field(default=None, alias='imdbID')
    type: Optional[str] = Field(default=None, alias='Type')
    total_seasons: Optional[str] = Field(default=None, alias='totalSeasons')


# =============================================================================
# TMDB
# =============================================================================

class TmdbGenre(VendorModel):
    id: int
    name: str


class TmdbItem(VendorModel):
    id: int
    media_type: Optional[str] = None
    title: Optional[str] = None
    name: Optional[str] = None
    release_date: Optional[str] = None
    first_air_date: Optional[str] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    popularity: Optional[float] = None
    genre_ids: List[int] = []
    adult: bool = False
    # Detail endpoint only
    genres: List[TmdbGenre] = []
    imdb_id: Optional[str] = None
    external_ids: Dict[str, Any] = {}
    credits: Dict[str, Any] = {}
    created_by: List[Dict[str, Any]] = []


class TmdbSearchResponse(VendorModel):
    page: int = 1
    total_results: int = 0
    results: List[Dict[str, Any]] = []


# =============================================================================
# STEAM
# =============================================================================

class SteamStoreItem(VendorModel):
    id: int
    type: Optional[str] = None
    name: Optional[str] = None
    tiny_image: Optional[str] = None
    # "" when absent, otherwise a numeric string
    metascore: Optional[Union[str, int]] = None
    price: Optional[Dict[str, Any]] = None


class SteamStoreSearchResponse(VendorModel):
    total: int = 0
    items: List[Dict[str, Any]] = []


class SteamReviewSummary(VendorModel):
    num_reviews: int = 0
    review_score: Optional[int] = None
    review_score_desc: Optional[str] = None
    total_positive: int = 0
    total_negative: int = 0
    total_reviews: int = 0


class SteamReviewsResponse(VendorModel):
    success: int = 0
    query_summary: Optional[SteamReviewSummary] = None


# =============================================================================
# CHEAPSHARK
# =============================================================================

class CheapSharkDeal(VendorModel):
    dealID: Optional[str] = None
    gameID: str
    title: Optional[str] = None
    salePrice: Optional[str] = None
    normalPrice: Optional[str] = None
    metacriticScore: Optional[str] = None
    metacriticLink: Optional[str] = None
    steamRatingText: Optional[str] = None
    steamRatingPercent: Optional[str] = None
    steamRatingCount: Optional[str] = None
    steamAppID: Optional[str] = None
    releaseDate: Optional[int] = None
    thumb: Optional[str] = None


class CheapSharkDealsResponse(RootModel[List[Dict[str, Any]]]):
    pass
