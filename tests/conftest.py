"""Pytest configuration for storefront tests."""

import os
from datetime import timedelta

import pytest

# The app must not build its default database when the test client starts
os.environ.setdefault("GLOWIFY_SKIP_DB_INIT", "1")

from glowify.core.config import StorefrontConfig, get_config, set_config  # noqa: E402
from glowify.data import models  # noqa: E402,F401
from glowify.data.database import Base, create_session_factory, create_storefront_engine  # noqa: E402
from glowify.data.models import Coupon, Product, utcnow  # noqa: E402


# ---------------------------------------------------------------------------
# Configuration: every test sees the same handoff targets regardless of the
# developer's config/default.yaml or .env.
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function", autouse=True)
def storefront_config():
    previous = get_config()
    config = StorefrontConfig(
        whatsapp_number="+91 98765-43210",
        order_emails=["orders@glowify.test", "owner@glowify.test"],
        signature="Glowify Team",
        enforce_percentage_bounds=True,
    )
    set_config(config)
    yield config
    set_config(previous)


# ---------------------------------------------------------------------------
# Database: a fresh SQLite file per test. A file (not :memory:) so that
# threads in the concurrency tests get their own connections to the same DB.
# ---------------------------------------------------------------------------

@pytest.fixture
def engine(tmp_path):
    eng = create_storefront_engine(f"sqlite:///{tmp_path / 'glowify_test.db'}", sqlite_busy_timeout=30)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_product(session):
    def _make(price=500, stock=10, name="Gojo Satoru Poster", is_active=True, total_sales=0):
        product = Product(
            name=name,
            description="A3 matte print",
            anime_name="Jujutsu Kaisen",
            price=price,
            stock=stock,
            total_sales=total_sales,
            is_active=is_active,
        )
        session.add(product)
        session.commit()
        return product
    return _make


@pytest.fixture
def make_coupon(session):
    def _make(
        code="SAVE20",
        discount_type="percentage",
        discount_value=20,
        is_active=True,
        valid_from=None,
        valid_until=None,
        usage_limit=None,
        used_count=0,
    ):
        now = utcnow()
        coupon = Coupon(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            is_active=is_active,
            valid_from=valid_from or now - timedelta(days=1),
            valid_until=valid_until or now + timedelta(days=30),
            usage_limit=usage_limit,
            used_count=used_count,
        )
        session.add(coupon)
        session.commit()
        return coupon
    return _make


@pytest.fixture
def reload(session):
    """Read a row fresh from the database and release the read transaction."""
    def _reload(model, pk):
        session.expire_all()
        obj = session.get(model, pk)
        session.commit()
        return obj
    return _reload
