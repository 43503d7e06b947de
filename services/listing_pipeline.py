"""
Listing Filter, Sort and Pagination Pipeline.

Turns a broker's full set of listings plus the visitor's current search
intent into the page of cards to render on the portal:

    filter -> sort -> paginate

The pipeline is a pure function over in-memory records. It never mutates
its input and never raises for empty or non-matching input; an empty
result is a valid terminal state.

Ordering contract:
- 'newest' keeps the caller's order. Callers load listings newest first
  (Property.Meta.ordering does this), so no re-sort happens here.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

PAGE_SIZE = 9

EMPTY_NO_LISTINGS = 'no_listings'
EMPTY_NO_MATCHES = 'no_matches'


# =============================================================================
# LISTING RECORDS
# =============================================================================

@dataclass(frozen=True)
class ListingImage:
    """An image attached to a listing."""
    url: str
    is_cover: bool = False


def resolve_cover_image(images: Sequence[ListingImage]) -> Optional[ListingImage]:
    """
    Pick the image that represents a listing in grid views.

    The image flagged as cover wins; otherwise the first image in insertion
    order; a listing without images has no cover.
    """
    for image in images:
        if image.is_cover:
            return image
    return images[0] if images else None


@dataclass(frozen=True)
class ListingRecord:
    """Read-only view of a property listing used by the pipeline."""
    id: Any
    title: str
    address: str
    price: Decimal
    neighborhood: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_m2: Optional[float] = None
    created_at: Optional[datetime] = None
    images: Tuple[ListingImage, ...] = ()
    slug: str = ''

    @property
    def cover_image(self) -> Optional[ListingImage]:
        return resolve_cover_image(self.images)


# =============================================================================
# FILTER / SORT CRITERIA
# =============================================================================

class SortMode(str, Enum):
    """Supported orderings for the portal grid."""
    NEWEST = 'newest'
    PRICE_ASC = 'price-asc'
    PRICE_DESC = 'price-desc'
    AREA_DESC = 'area-desc'

    @classmethod
    def parse(cls, value) -> 'SortMode':
        """Map user input to a sort mode, falling back to NEWEST."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST


@dataclass(frozen=True)
class AnyBedrooms:
    """Bedroom filter that accepts every listing."""

    def matches(self, bedrooms: Optional[int]) -> bool:
        return True


@dataclass(frozen=True)
class ExactBedrooms:
    """Bedroom filter that accepts listings with exactly `count` bedrooms."""
    count: int

    def matches(self, bedrooms: Optional[int]) -> bool:
        return bedrooms == self.count


BedroomFilter = Union[AnyBedrooms, ExactBedrooms]

ANY_BEDROOMS = AnyBedrooms()

_ANY_BEDROOM_TOKENS = {'', 'all', 'any'}


def parse_bedroom_filter(value) -> BedroomFilter:
    """
    Build a bedroom filter from raw user input.

    None, '', 'all' and 'any' mean no filter. Non-negative integers (or
    their string form) mean an exact count. Anything else is ignored.
    """
    if isinstance(value, (AnyBedrooms, ExactBedrooms)):
        return value
    if value is None:
        return ANY_BEDROOMS
    if isinstance(value, str):
        if value.strip().lower() in _ANY_BEDROOM_TOKENS:
            return ANY_BEDROOMS
    try:
        count = int(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring unparseable bedroom filter {value!r}")
        return ANY_BEDROOMS
    if count < 0:
        return ANY_BEDROOMS
    return ExactBedrooms(count)


def _parse_price(value) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.debug(f"Ignoring unparseable price filter {value!r}")
        return None
    if not price.is_finite():
        return None
    return price


@dataclass(frozen=True)
class FilterSpec:
    """
    The visitor's current search intent.

    Immutable and never persisted: a fresh spec is built from user input on
    every change.
    """
    search: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    bedrooms: BedroomFilter = field(default=ANY_BEDROOMS)
    sort: SortMode = SortMode.NEWEST

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> 'FilterSpec':
        """
        Build a spec from query-string style parameters.

        Recognised keys: search, min_price, max_price, bedrooms, sort.
        Unparseable values are dropped rather than rejected.
        """
        search = params.get('search')
        if search is not None:
            search = str(search).strip() or None

        return cls(
            search=search,
            min_price=_parse_price(params.get('min_price')),
            max_price=_parse_price(params.get('max_price')),
            bedrooms=parse_bedroom_filter(params.get('bedrooms')),
            sort=SortMode.parse(params.get('sort')),
        )

    @property
    def is_filtering(self) -> bool:
        """True when at least one predicate can drop listings."""
        return bool(
            self.search
            or self.min_price is not None
            or self.max_price is not None
            or isinstance(self.bedrooms, ExactBedrooms)
        )


# =============================================================================
# PIPELINE STAGES
# =============================================================================

def _matches_search(listing: ListingRecord, term: str) -> bool:
    for text in (listing.title, listing.neighborhood, listing.address):
        if text and term in text.lower():
            return True
    return False


def filter_listings(listings: Iterable[ListingRecord], spec: FilterSpec) -> List[ListingRecord]:
    """Keep the listings satisfying every active predicate of spec, in order."""
    term = spec.search.strip().lower() if spec.search else ''

    retained = []
    for listing in listings:
        if term and not _matches_search(listing, term):
            continue
        if spec.min_price is not None and listing.price < spec.min_price:
            continue
        if spec.max_price is not None and listing.price > spec.max_price:
            continue
        if not spec.bedrooms.matches(listing.bedrooms):
            continue
        retained.append(listing)
    return retained


def sort_listings(listings: Iterable[ListingRecord], mode: SortMode = SortMode.NEWEST) -> List[ListingRecord]:
    """Return a new list ordered by mode; ties keep their input order."""
    mode = SortMode.parse(mode)
    listings = list(listings)

    if mode is SortMode.PRICE_ASC:
        return sorted(listings, key=lambda listing: listing.price)
    if mode is SortMode.PRICE_DESC:
        return sorted(listings, key=lambda listing: listing.price, reverse=True)
    if mode is SortMode.AREA_DESC:
        return sorted(listings, key=lambda listing: listing.area_m2 or 0, reverse=True)
    return listings


@dataclass(frozen=True)
class ListingPage:
    """One page of pipeline output plus the counts the UI needs."""
    items: List[ListingRecord]
    page: int
    page_size: int
    filtered_count: int
    total_count: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def empty_state(self) -> Optional[str]:
        """
        Which empty message the portal should show, if any.

        'no_listings' when the broker has nothing published, 'no_matches'
        when listings exist but the filters exclude all of them.
        """
        if self.total_count == 0:
            return EMPTY_NO_LISTINGS
        if self.filtered_count == 0:
            return EMPTY_NO_MATCHES
        return None


def paginate(
    listings: Sequence[ListingRecord],
    page: int = 1,
    page_size: int = PAGE_SIZE,
    total_count: Optional[int] = None,
) -> ListingPage:
    """
    Slice one 1-based page out of listings.

    A page past the end (or below 1) is not corrected; it yields an empty
    slice and callers clamp navigation with total_pages.
    """
    if page_size < 1:
        raise ValueError('page_size must be positive')

    filtered_count = len(listings)
    total_pages = -(-filtered_count // page_size)

    if page < 1:
        items = []
    else:
        start = (page - 1) * page_size
        items = list(listings[start:start + page_size])

    return ListingPage(
        items=items,
        page=page,
        page_size=page_size,
        filtered_count=filtered_count,
        total_count=filtered_count if total_count is None else total_count,
        total_pages=total_pages,
    )


def build_listing_page(
    listings: Sequence[ListingRecord],
    spec: Optional[FilterSpec] = None,
    page: int = 1,
    page_size: int = PAGE_SIZE,
) -> ListingPage:
    """Run filter, sort and paginate over listings for a single request."""
    spec = spec or FilterSpec()
    filtered = filter_listings(listings, spec)
    ordered = sort_listings(filtered, spec.sort)
    return paginate(ordered, page=page, page_size=page_size, total_count=len(listings))


# =============================================================================
# BROWSING STATE
# =============================================================================

class ListingBrowser:
    """
    Current search state of one portal visitor.

    Holds the full collection, the active FilterSpec and the page number.
    Any change to the criteria sends the visitor back to page 1.
    """

    def __init__(self, listings: Sequence[ListingRecord], spec: Optional[FilterSpec] = None,
                 page_size: int = PAGE_SIZE):
        self.listings = tuple(listings)
        self.spec = spec or FilterSpec()
        self.page_size = page_size
        self.page = 1

    def update(self, **changes) -> FilterSpec:
        """
        Apply field changes (search, min_price, max_price, bedrooms, sort).

        Raw user input is accepted and parsed the same way as from_params.
        """
        parsed = {}
        for name, value in changes.items():
            if name == 'bedrooms':
                parsed[name] = parse_bedroom_filter(value)
            elif name == 'sort':
                parsed[name] = SortMode.parse(value)
            elif name in ('min_price', 'max_price'):
                parsed[name] = _parse_price(value)
            elif name == 'search':
                text = '' if value is None else str(value)
                parsed[name] = text.strip() or None
            else:
                raise TypeError(f"Unknown filter field: {name}")

        new_spec = replace(self.spec, **parsed)
        if new_spec != self.spec:
            self.spec = new_spec
            self.page = 1
        return self.spec

    def reset(self) -> None:
        self.spec = FilterSpec()
        self.page = 1

    def go_to(self, page: int) -> None:
        self.page = page

    def current_page(self) -> ListingPage:
        return build_listing_page(self.listings, self.spec, page=self.page, page_size=self.page_size)
