"""In-memory catalog store, loadable from a JSON file."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import structlog

from ..core.exceptions import FetchFailure
from ..core.normalizer import TextNormalizer
from ..models.catalog import CatalogQuery, CatalogRecord, CategoryInfo, SortOrder

logger = structlog.get_logger(__name__)


class InMemoryCatalog:
    """Catalog held in process memory.
    
    The coarse name filter keeps records whose normalized name contains the
    filter token, mirroring an accent-insensitive ``ILIKE '%token%'``.
    """
    
    def __init__(self, records: Iterable[CatalogRecord] = ()) -> None:
        self.normalizer = TextNormalizer()
        self._records: List[CatalogRecord] = []
        self._normalized: List[str] = []
        self.add_records(records)
    
    @classmethod
    def from_dicts(cls, rows: Iterable[Dict[str, Any]]) -> "InMemoryCatalog":
        """Build a catalog from plain dictionaries."""
        return cls(CatalogRecord(**row) for row in rows)
    
    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryCatalog":
        """
        Load a catalog from a JSON file.
        
        The file holds either a list of products or an object with a
        ``products`` list.
        
        Args:
            path: Path to the JSON file
            
        Returns:
            The loaded catalog
            
        Raises:
            FetchFailure: The file is missing or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise FetchFailure(f"Cannot load catalog file {path}: {e}", backend="memory") from e
        
        rows = data.get("products", []) if isinstance(data, dict) else data
        catalog = cls.from_dicts(rows)
        logger.info("catalog.loaded", path=str(path), products=len(catalog))
        return catalog
    
    def add_records(self, records: Iterable[CatalogRecord]) -> None:
        for record in records:
            self._records.append(record)
            self._normalized.append(self.normalizer.normalize(record.name))
    
    def __len__(self) -> int:
        return len(self._records)
    
    def fetch(self, query: CatalogQuery) -> List[CatalogRecord]:
        """Return the records matching a coarse catalog query."""
        name_filter = self.normalizer.normalize(query.name_filter or "")
        
        matched = []
        for record, normalized in zip(self._records, self._normalized):
            if name_filter and name_filter not in normalized:
                continue
            if query.category and record.category != query.category:
                continue
            if query.subcategory and record.subcategory != query.subcategory:
                continue
            if query.price_min is not None and (record.price is None or record.price < query.price_min):
                continue
            if query.price_max is not None and (record.price is None or record.price > query.price_max):
                continue
            matched.append(record)
        
        return self._order(matched, query.order)[:query.limit]
    
    def list_categories(self) -> List[CategoryInfo]:
        """List categories and their subcategories, alphabetically."""
        categories: Dict[str, set] = {}
        for record in self._records:
            if not record.category:
                continue
            subcategories = categories.setdefault(record.category, set())
            if record.subcategory:
                subcategories.add(record.subcategory)
        
        return [
            CategoryInfo(name=name, subcategories=sorted(subcategories))
            for name, subcategories in sorted(categories.items())
        ]
    
    def _order(self, records: List[CatalogRecord], order: SortOrder) -> List[CatalogRecord]:
        if order in (SortOrder.PRICE_ASC, SortOrder.PRICE_DESC):
            # Unpriced products go last either way
            priced = [r for r in records if r.price is not None]
            unpriced = [r for r in records if r.price is None]
            priced.sort(key=lambda r: r.price, reverse=order == SortOrder.PRICE_DESC)
            return priced + unpriced
        
        return sorted(
            records,
            key=lambda r: self.normalizer.normalize(r.name),
            reverse=order == SortOrder.NAME_DESC
        )
