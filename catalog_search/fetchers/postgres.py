"""PostgreSQL catalog store."""

from typing import Any, Dict, List, Optional, Tuple

import psycopg2
import psycopg2.extras
import structlog

from ..core.exceptions import FetchFailure
from ..models.catalog import CatalogQuery, CatalogRecord, CategoryInfo, SortOrder

logger = structlog.get_logger(__name__)

_ORDER_BY = {
    SortOrder.NAME_ASC: "p.name ASC",
    SortOrder.NAME_DESC: "p.name DESC",
    SortOrder.PRICE_ASC: "p.price_per_unit ASC NULLS LAST",
    SortOrder.PRICE_DESC: "p.price_per_unit DESC NULLS LAST",
}

_SELECT_PRODUCTS = """
    SELECT p.id, p.name, c.name AS category, s.name AS subcategory,
           p.price_per_unit, p.unit, p.sale_format, p.sale_price,
           p.image_url, p.url
    FROM products p
    JOIN subcategories s ON s.id = p.subcategory_id
    JOIN categories c ON c.id = s.category_id
"""

_SELECT_CATEGORIES = """
    SELECT c.name, s.name
    FROM categories c
    LEFT JOIN subcategories s ON s.category_id = c.id
    ORDER BY c.name, s.name
"""


class PostgresCatalog:
    """Catalog stored in PostgreSQL (products, subcategories, categories).
    
    Only active products are returned. The coarse name filter is an
    ``ILIKE '%token%'``, wrapped in ``unaccent`` when the extension is
    enabled so that "azucar" finds "Azúcar".
    """
    
    def __init__(self, db_config: Dict[str, Any], use_unaccent: bool = True) -> None:
        """
        Initialize the catalog.
        
        Args:
            db_config: psycopg2 connection keyword arguments
            use_unaccent: Compare names through the unaccent extension
        """
        self.db_config = db_config
        self.use_unaccent = use_unaccent
    
    def build_query(self, query: CatalogQuery) -> Tuple[str, List[Any]]:
        """
        Build the SQL statement and parameters for a catalog query.
        
        Args:
            query: Coarse catalog query
            
        Returns:
            Tuple of (sql, params)
        """
        conditions = ["p.active = TRUE"]
        params: List[Any] = []
        
        if query.name_filter:
            if self.use_unaccent:
                conditions.append("unaccent(p.name) ILIKE unaccent(%s)")
            else:
                conditions.append("p.name ILIKE %s")
            params.append(f"%{self._escape_like(query.name_filter)}%")
        
        if query.category:
            conditions.append("c.name = %s")
            params.append(query.category)
        
        if query.subcategory:
            conditions.append("s.name = %s")
            params.append(query.subcategory)
        
        if query.price_min is not None:
            conditions.append("p.price_per_unit >= %s")
            params.append(query.price_min)
        
        if query.price_max is not None:
            conditions.append("p.price_per_unit <= %s")
            params.append(query.price_max)
        
        sql = (
            f"{_SELECT_PRODUCTS} WHERE {' AND '.join(conditions)}"
            f" ORDER BY {_ORDER_BY[query.order]} LIMIT %s"
        )
        params.append(query.limit)
        return sql, params
    
    def fetch(self, query: CatalogQuery) -> List[CatalogRecord]:
        """Return the records matching a coarse catalog query."""
        sql, params = self.build_query(query)
        rows = self._execute(sql, params)
        return [self._to_record(row) for row in rows]
    
    def list_categories(self) -> List[CategoryInfo]:
        """List categories and their subcategories."""
        rows = self._execute(_SELECT_CATEGORIES, [], dict_rows=False)
        
        categories: Dict[str, List[str]] = {}
        for category, subcategory in rows:
            subcategories = categories.setdefault(category, [])
            if subcategory:
                subcategories.append(subcategory)
        
        return [CategoryInfo(name=name, subcategories=subs) for name, subs in categories.items()]
    
    def _execute(self, sql: str, params: List[Any], dict_rows: bool = True) -> List[Any]:
        cursor_factory = psycopg2.extras.RealDictCursor if dict_rows else None
        conn = None
        try:
            conn = psycopg2.connect(**self.db_config)
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
        except psycopg2.Error as e:
            logger.error("catalog.postgres_error", error=str(e))
            raise FetchFailure(f"Catalog query failed: {e}", backend="postgres") from e
        finally:
            if conn is not None:
                conn.close()
        
        logger.debug("catalog.postgres_rows", rows=len(rows))
        return rows
    
    @staticmethod
    def _escape_like(value: str) -> str:
        return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    
    @staticmethod
    def _to_record(row: Dict[str, Any]) -> CatalogRecord:
        return CatalogRecord(
            id=row["id"],
            name=row["name"],
            category=row.get("category"),
            subcategory=row.get("subcategory"),
            price=_as_float(row.get("price_per_unit")),
            unit=row.get("unit"),
            sale_format=row.get("sale_format"),
            sale_price=_as_float(row.get("sale_price")),
            image_url=row.get("image_url"),
            url=row.get("url")
        )


def _as_float(value: Any) -> Optional[float]:
    # NUMERIC columns arrive as Decimal
    return float(value) if value is not None else None
