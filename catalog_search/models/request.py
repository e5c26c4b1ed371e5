"""Request models for API endpoints."""

from typing import Optional

from pydantic import Field, field_validator

from .catalog import SearchFilters


class SearchRequest(SearchFilters):
    """Request model for catalog searches."""
    
    query: str = Field(default="", description="Search query (empty lists the catalog)")
    page: int = Field(default=1, description="1-indexed page number")
    include_suggestions: bool = Field(
        default=True, description="Whether to include 'did you mean' suggestions"
    )
    seq: Optional[int] = Field(
        None, ge=0, description="Caller sequence number, echoed back as 'sequence'"
    )

    @field_validator("query")
    @classmethod
    def strip_query(cls, v: str) -> str:
        """Trim surrounding whitespace; an empty query is allowed."""
        return v.strip()

    def to_filters(self) -> SearchFilters:
        """Extract the catalog bounds from the request."""
        return SearchFilters(**self.model_dump(include=set(SearchFilters.model_fields)))
