"""Catalog and pipeline data models."""

from enum import Enum
from typing import Generic, List, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.normalizer import TextNormalizer

T = TypeVar("T")

_normalizer = TextNormalizer()


class SortOrder(str, Enum):
    """Catalog ordering requested by the caller."""
    
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class MatchKind(str, Enum):
    """How a result matched the query."""
    
    EXACT = "exact"
    STARTS_WITH = "starts-with"
    TOKEN_STARTS_WITH = "token-starts-with"
    FUZZY = "fuzzy"
    NONE = "none"


class CatalogRecord(BaseModel):
    """A product row as returned by a catalog store."""
    
    model_config = ConfigDict(frozen=True)
    
    id: Union[int, str] = Field(..., description="Product identifier")
    name: str = Field(..., description="Display name")
    category: Optional[str] = Field(None, description="Category name")
    subcategory: Optional[str] = Field(None, description="Subcategory name")
    price: Optional[float] = Field(None, description="Price per unit of measure")
    unit: Optional[str] = Field(None, description="Unit of measure")
    sale_format: Optional[str] = Field(None, description="Sale format (pack, bottle, ...)")
    sale_price: Optional[float] = Field(None, description="Price of the sale format")
    image_url: Optional[str] = Field(None, description="Product image")
    url: Optional[str] = Field(None, description="Product page")


class Candidate(BaseModel):
    """A catalog record considered for matching, with its normalized name."""
    
    model_config = ConfigDict(frozen=True)
    
    record: CatalogRecord
    normalized_name: str
    
    @classmethod
    def from_record(cls, record: CatalogRecord) -> "Candidate":
        return cls(record=record, normalized_name=_normalizer.normalize(record.name))
    
    @property
    def id(self) -> Union[int, str]:
        return self.record.id
    
    @property
    def name(self) -> str:
        return self.record.name


class Query(BaseModel):
    """A user query: raw input, normalized form and tokens."""
    
    model_config = ConfigDict(frozen=True)
    
    raw: str
    normalized: str
    tokens: Tuple[str, ...]
    
    @classmethod
    def parse(cls, raw: Optional[str]) -> "Query":
        raw = raw or ""
        normalized = _normalizer.normalize(raw)
        return cls(raw=raw, normalized=normalized, tokens=tuple(_normalizer.tokenize(normalized)))
    
    @property
    def is_empty(self) -> bool:
        return not self.normalized
    
    @property
    def first_token(self) -> Optional[str]:
        return self.tokens[0] if self.tokens else None


class ScoredResult(BaseModel):
    """A ranked search result."""
    
    model_config = ConfigDict(frozen=True)
    
    product: CatalogRecord = Field(..., description="The matched catalog record")
    normalized_name: str = Field(..., description="Normalized product name")
    match_kind: MatchKind = Field(..., description="How the product matched the query")
    tier: int = Field(..., ge=0, le=3, description="Relevance tier (3 = exact name)")
    fuzzy_score: Optional[float] = Field(
        None, ge=0.0, le=1.0, description="Approximate-match score (0 = perfect) for fuzzy hits"
    )


class SearchFilters(BaseModel):
    """Catalog bounds passed through to the fetcher unmodified."""
    
    model_config = ConfigDict(frozen=True)
    
    category: Optional[str] = Field(None, description="Category name")
    subcategory: Optional[str] = Field(None, description="Subcategory name")
    price_min: Optional[float] = Field(None, ge=0.0, description="Minimum price per unit")
    price_max: Optional[float] = Field(None, ge=0.0, description="Maximum price per unit")
    order: SortOrder = Field(default=SortOrder.NAME_ASC, description="Catalog ordering")
    
    @model_validator(mode="after")
    def check_price_bounds(self) -> "SearchFilters":
        if (
            self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            raise ValueError("price_min cannot be greater than price_max")
        return self


class CatalogQuery(SearchFilters):
    """A coarse fetch request sent to a candidate fetcher.
    
    ``name_filter`` is only ever the first normalized query token (or None).
    Items whose name lacks that token are never fetched, so multi-word
    queries only match products containing their first word.
    """
    
    name_filter: Optional[str] = Field(None, description="First normalized query token")
    limit: int = Field(default=1000, ge=1, description="Maximum number of records")
    
    @classmethod
    def build(
        cls,
        name_filter: Optional[str],
        filters: SearchFilters,
        limit: int
    ) -> "CatalogQuery":
        return cls(name_filter=name_filter, limit=limit, **filters.model_dump())


class CategoryInfo(BaseModel):
    """A catalog category with its subcategories."""
    
    name: str
    subcategories: List[str] = Field(default_factory=list)


class Page(BaseModel, Generic[T]):
    """A window over an ordered result sequence."""
    
    model_config = ConfigDict(frozen=True)
    
    items: List[T]
    page: int
    page_size: int
    offset: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool
