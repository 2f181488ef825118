"""Tests for catalog listings, top sellers and anime-name browsing."""

import pytest

from glowify.catalog import list_anime_names, list_products, top_selling_products
from glowify.core.errors import InvalidRequest
from glowify.orders.placement import place_order
from glowify.schemas import PlaceOrderRequest


def _ids(products):
    return [p.id for p in products]


@pytest.fixture
def shelf(session, make_product):
    """Three active posters across two series plus one retired poster."""
    jjk = make_product(name="Gojo Poster", price=39900, total_sales=5)
    tanjiro = make_product(name="Tanjiro Poster", price=29900, total_sales=9)
    nezuko = make_product(name="Nezuko Poster", price=59900, total_sales=1)
    retired = make_product(name="Retired Poster", price=9900, total_sales=50, is_active=False)
    for product in (tanjiro, nezuko, retired):
        product.anime_name = "Demon Slayer"
    tanjiro.average_rating = 4.8
    nezuko.average_rating = 4.9
    session.commit()
    return {"jjk": jjk, "tanjiro": tanjiro, "nezuko": nezuko, "retired": retired}


class TestListProducts:
    def test_default_is_newest_first(self, session, shelf):
        assert _ids(list_products(session)) == [shelf["nezuko"].id, shelf["tanjiro"].id, shelf["jjk"].id]

    @pytest.mark.parametrize("sort_by,expected", [
        ("price_asc", ["tanjiro", "jjk", "nezuko"]),
        ("price_desc", ["nezuko", "jjk", "tanjiro"]),
        ("popularity", ["tanjiro", "jjk", "nezuko"]),
        ("rating", ["nezuko", "tanjiro", "jjk"]),
    ])
    def test_sort_orders(self, session, shelf, sort_by, expected):
        assert _ids(list_products(session, sort_by=sort_by)) == [shelf[k].id for k in expected]

    def test_anime_filter(self, session, shelf):
        products = list_products(session, anime_name="Demon Slayer", sort_by="price_asc")
        assert _ids(products) == [shelf["tanjiro"].id, shelf["nezuko"].id]

    def test_admin_view_includes_inactive(self, session, shelf):
        products = list_products(session, include_inactive=True, anime_name="Demon Slayer")
        assert shelf["retired"].id in _ids(products)

    def test_unknown_sort_rejected(self, session):
        with pytest.raises(InvalidRequest):
            list_products(session, sort_by="cheapest")


class TestTopSelling:
    def test_ranks_active_products_by_sales(self, session, shelf):
        assert _ids(top_selling_products(session)) == [shelf["tanjiro"].id, shelf["jjk"].id, shelf["nezuko"].id]

    def test_limit(self, session, make_product):
        for i in range(10):
            make_product(name=f"Poster {i}", total_sales=i)
        top = top_selling_products(session)
        assert len(top) == 8
        assert top[0].total_sales == 9

    def test_placed_order_moves_product_up(self, session, shelf):
        request = PlaceOrderRequest(
            customer={
                "name": "Asha Patel",
                "email": "asha@example.com",
                "phone": "+91 98765 43210",
                "address": "12 MG Road, Pune",
            },
            product_id=shelf["nezuko"].id,
            quantity=9,
            order_method="email",
        )
        place_order(session, request)
        session.expire_all()
        assert _ids(top_selling_products(session))[0] == shelf["nezuko"].id
        session.commit()


class TestAnimeNames:
    def test_distinct_sorted_active_only(self, session, shelf, make_product):
        make_product(name="Hidden Series Poster", is_active=False).anime_name = "Hidden Series"
        session.commit()
        assert list_anime_names(session) == ["Demon Slayer", "Jujutsu Kaisen"]
