"""
Product catalog handling for the shopping assistant.
"""
import logging
import json
import os
import uuid
from typing import Any, Dict, List, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.orm import sessionmaker

from config import DB_CONFIG, DIALOGUE_CONFIG
from models.chat import Product
from models.parameters import ProductFilters

logger = logging.getLogger(__name__)

DEFAULT_SORT = ("rating", "desc")
SORTABLE_FIELDS = ("rating", "price", "name", "stock_quantity")

class ProductCatalog:
    """Catalog search collaborator over file-based or database storage."""

    def __init__(self, data_file: Optional[str] = None, connection_string: Optional[str] = None):
        """
        Initialize the product catalog.

        Args:
            data_file: Path to a JSON product file (file-based storage only)
            connection_string: SQLAlchemy URL; enables database storage when set
        """
        self.data_file = data_file
        self._products: List[Dict[str, Any]] = []

        if connection_string:
            self._use_db = True
            self._init_db_connection(connection_string)
            logger.info("Using database for product catalog")
        else:
            self._use_db = False
            self._load_products()
            logger.info("Using file-based storage for product catalog")

    @classmethod
    def from_config(cls) -> "ProductCatalog":
        if DB_CONFIG["use_database"]:
            return cls(connection_string=DB_CONFIG["connection_string"])
        return cls(data_file=DB_CONFIG["catalog_file"])

    def _init_db_connection(self, connection_string: str):
        """Initialize database connection and tables."""
        engine = sa.create_engine(connection_string)
        metadata = sa.MetaData()

        self.products_table = sa.Table(
            'products', metadata,
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('name', sa.String(255), nullable=False),
            sa.Column('description', sa.Text),
            sa.Column('price', sa.Float, nullable=False),
            sa.Column('category', sa.String(100)),
            sa.Column('brand', sa.String(100)),
            sa.Column('stock_quantity', sa.Integer, default=0),
            sa.Column('rating', sa.Float, default=0.0),
            sa.Column('review_count', sa.Integer, default=0),
            sa.Column('is_active', sa.Boolean, default=True),
            sa.Column('main_image', sa.String(500)),
            sa.Column('created_at', sa.DateTime, server_default=sa.func.now())
        )

        metadata.create_all(engine)
        self.Session = sessionmaker(bind=engine)
        logger.info("Database connection initialized")

    def _load_products(self):
        """Load products from the data file, if one is configured."""
        if not self.data_file:
            return

        try:
            if os.path.exists(self.data_file):
                with open(self.data_file, 'r') as f:
                    self._products = [Product(**p).model_dump() for p in json.load(f)]
                logger.info(f"Loaded {len(self._products)} products from {self.data_file}")
            else:
                logger.warning(f"Product data file not found: {self.data_file}")
        except Exception as e:
            logger.error(f"Error loading products: {str(e)}")
            self._products = []

    def add_product(self, product_data: Dict[str, Any]) -> str:
        """
        Add a product to the catalog.

        Args:
            product_data: Product fields; an id is generated when missing

        Returns:
            Product ID
        """
        product = Product(**{"id": str(uuid.uuid4()), **product_data})

        if self._use_db:
            with self.Session() as session:
                session.execute(sa.insert(self.products_table).values(**product.model_dump()))
                session.commit()
        else:
            self._products.append(product.model_dump())

        logger.info(f"Added product: {product.id}")
        return product.id

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        if self._use_db:
            with self.Session() as session:
                row = session.execute(
                    sa.select(self.products_table).where(self.products_table.c.id == product_id)
                ).first()
            return self._row_to_product(row) if row else None

        for product in self._products:
            if product["id"] == product_id:
                return Product(**product)
        return None

    def search(self,
               query: str,
               filters: Optional[ProductFilters] = None,
               sort: Tuple[str, str] = DEFAULT_SORT,
               limit: Optional[int] = None) -> List[Product]:
        """
        Search active products.

        Every whitespace-separated term of the query must appear in the
        product's name, description, brand or category. Brand is carried
        through the query terms, not the filters.

        Args:
            query: Search query
            filters: Category, price and rating constraints
            sort: (field, "asc" | "desc")
            limit: Maximum number of results

        Returns:
            List of matching products
        """
        filters = filters or ProductFilters()
        terms = query.lower().split()
        limit = limit or DIALOGUE_CONFIG["search_limit"]
        sort_field, direction = sort
        if sort_field not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {sort_field}")
        descending = direction.lower() == "desc"

        if self._use_db:
            products = self._search_db(terms, filters, sort_field, descending, limit)
        else:
            products = self._search_memory(terms, filters, sort_field, descending, limit)

        logger.info(f"Found {len(products)} products for query '{query}' with filters "
                    f"{filters.model_dump(exclude_none=True)}")
        return products

    def _search_db(self, terms, filters, sort_field, descending, limit) -> List[Product]:
        table = self.products_table
        conditions = [table.c.is_active.is_(True)]

        for term in terms:
            pattern = f"%{term}%"
            conditions.append(sa.or_(
                table.c.name.ilike(pattern),
                table.c.description.ilike(pattern),
                table.c.brand.ilike(pattern),
                table.c.category.ilike(pattern)
            ))

        if filters.category:
            conditions.append(sa.func.lower(table.c.category) == filters.category.lower())

        if filters.min_price is not None:
            conditions.append(table.c.price >= filters.min_price)

        if filters.max_price is not None:
            conditions.append(table.c.price <= filters.max_price)

        if filters.min_rating is not None:
            conditions.append(table.c.rating >= filters.min_rating)

        order_column = getattr(table.c, sort_field)
        statement = (
            sa.select(table)
            .where(sa.and_(*conditions))
            .order_by(order_column.desc() if descending else order_column.asc())
            .limit(limit)
        )

        with self.Session() as session:
            rows = session.execute(statement).all()
        return [self._row_to_product(row) for row in rows]

    def _search_memory(self, terms, filters, sort_field, descending, limit) -> List[Product]:
        results = [p for p in self._products if p.get("is_active", True)]
        results = [p for p in results if self._product_matches_terms(p, terms)]

        if filters.category:
            results = [p for p in results if (p.get("category") or "").lower() == filters.category.lower()]

        if filters.min_price is not None:
            results = [p for p in results if p["price"] >= filters.min_price]

        if filters.max_price is not None:
            results = [p for p in results if p["price"] <= filters.max_price]

        if filters.min_rating is not None:
            results = [p for p in results if p.get("rating", 0) >= filters.min_rating]

        results = sorted(results, key=lambda p: p.get(sort_field) or 0, reverse=descending)
        return [Product(**p) for p in results[:limit]]

    def _product_matches_terms(self, product: Dict[str, Any], terms: List[str]) -> bool:
        """Check that every term appears in one of the searchable fields."""
        searchable = " ".join(
            (product.get(field) or "") for field in ("name", "description", "brand", "category")
        ).lower()
        return all(term in searchable for term in terms)

    def _row_to_product(self, row) -> Product:
        data = {key: value for key, value in row._mapping.items() if key in Product.model_fields}
        return Product(**data)
