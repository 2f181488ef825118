"""
Product catalog: customer listings and admin maintenance.

Stock set here is an absolute admin correction; order placement is the only
path that decrements stock and counts sales.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from glowify.core.errors import InvalidRequest, NotFound
from glowify.data.database import atomic
from glowify.data.models import Product
from glowify.schemas import CreateProductRequest, UpdateProductRequest
from glowify.utils.logger import get_logger, log_operation

logger = get_logger("catalog")


def create_product(session: Session, request: CreateProductRequest) -> Product:
    with atomic(session):
        product = Product(**request.model_dump(), total_sales=0, average_rating=0.0, review_count=0)
        session.add(product)
        session.flush()
    log_operation(logger, "catalog", "create_product", product_id=product.id, price=product.price, stock=product.stock)
    return product


def get_product(session: Session, product_id: int, include_inactive: bool = False) -> Product:
    product = session.get(Product, product_id)
    if product is None or (not product.is_active and not include_inactive):
        raise NotFound("Product", product_id)
    return product


NEWEST_FIRST = (Product.created_at.desc(), Product.id.desc())

SORT_ORDERS = {
    "newest": NEWEST_FIRST,
    "price_asc": (Product.price.asc(),) + NEWEST_FIRST,
    "price_desc": (Product.price.desc(),) + NEWEST_FIRST,
    "popularity": (Product.total_sales.desc(),) + NEWEST_FIRST,
    "rating": (Product.average_rating.desc(),) + NEWEST_FIRST,
}

TOP_SELLING_LIMIT = 8


def list_products(
    session: Session,
    include_inactive: bool = False,
    anime_name: Optional[str] = None,
    sort_by: Optional[str] = None,
) -> List[Product]:
    """
    Catalog listing.

    Args:
        include_inactive: Admin view; also return switched-off products.
        anime_name: Exact anime name filter.
        sort_by: One of SORT_ORDERS; newest first when omitted.
    """
    if sort_by is not None and sort_by not in SORT_ORDERS:
        raise InvalidRequest(f"Unknown sort order '{sort_by}'", {"sort_by": sort_by})

    stmt = select(Product).order_by(*SORT_ORDERS[sort_by or "newest"])
    if not include_inactive:
        stmt = stmt.where(Product.is_active.is_(True))
    if anime_name:
        stmt = stmt.where(Product.anime_name == anime_name)
    return list(session.execute(stmt).scalars())


def top_selling_products(session: Session, limit: int = TOP_SELLING_LIMIT) -> List[Product]:
    """Active products with the highest total_sales."""
    stmt = (
        select(Product)
        .where(Product.is_active.is_(True))
        .order_by(*SORT_ORDERS["popularity"])
        .limit(limit)
    )
    return list(session.execute(stmt).scalars())


def list_anime_names(session: Session) -> List[str]:
    """Distinct anime names across active products, alphabetical."""
    stmt = (
        select(Product.anime_name)
        .where(Product.is_active.is_(True), Product.anime_name != "")
        .distinct()
        .order_by(Product.anime_name)
    )
    return list(session.execute(stmt).scalars())


def update_product(session: Session, product_id: int, request: UpdateProductRequest) -> Product:
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    with atomic(session):
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        product = session.execute(stmt).scalar_one_or_none()
        if product is None:
            raise NotFound("Product", product_id)
        for field, value in changes.items():
            setattr(product, field, value)
    log_operation(logger, "catalog", "update_product", product_id=product_id, fields=",".join(sorted(changes)) or None)
    return product
