"""
FastAPI server for the Glowify storefront.

Customer routes live under /api, admin routes under /api/admin behind
``require_admin``.

Usage:
    python -m glowify.api.server
    # or
    uvicorn glowify.api.server:app --reload --port 8000
"""
import os
import time as _time
import traceback
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from glowify import __version__
from glowify.api.auth import get_current_user_id, is_admin, require_admin, require_user, setup_first_admin
from glowify.catalog import (
    create_product, get_product, list_anime_names, list_products, top_selling_products, update_product,
)
from glowify.core.errors import NotFound, StorefrontError
from glowify.data import database
from glowify.data.database import get_db
from glowify.data.store import StorefrontStore
from glowify.orders import (
    build_handoff, get_order, list_all_orders, list_user_orders, place_order, update_order_status,
)
from glowify.pricing.coupon_manager import create_coupon, list_coupons, toggle_coupon_active
from glowify.pricing.coupons import validate_coupon
from glowify.schemas import (
    AdminStatusOut, CouponOut, CreateCouponRequest, CreateProductRequest, HandoffOut, OrderListResponse, OrderOut,
    OrderStatus, PlaceOrderRequest, PlaceOrderResponse, ProductOut, ProductSort, UpdateOrderStatusRequest,
    UpdateProductRequest, ValidateCouponRequest, ValidateCouponResponse,
)
from glowify.utils.logger import get_logger

logger = get_logger("api.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup unless the test suite supplies its own database."""
    if os.getenv("GLOWIFY_SKIP_DB_INIT", "0") != "1":
        database.init_db()
    yield


app = FastAPI(
    title="Glowify Storefront API",
    description="Catalog, coupon and order placement API for the Glowify poster store",
    version=__version__,
    lifespan=lifespan,
)

# Enable CORS for the storefront frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class LatencyLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration for every non-OPTIONS request."""

    async def dispatch(self, request: StarletteRequest, call_next) -> StarletteResponse:
        if request.method == "OPTIONS":
            return await call_next(request)
        t0 = _time.perf_counter()
        response = await call_next(request)
        duration_ms = round((_time.perf_counter() - t0) * 1000, 1)
        logger.info(
            "[LATENCY] %s %s -> %d  %.1fms",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        return response


app.add_middleware(LatencyLoggingMiddleware)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    """Render business failures with their own status code and machine code."""
    logger.info("Request %s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions and return 500 so 'Internal server error' is debuggable."""
    err_msg = str(exc)
    tb = traceback.format_exc()
    logger.error("Unhandled exception: %s\n%s", err_msg, tb)
    is_dev = os.getenv("ENV", "development").lower() in ("development", "dev", "")
    detail = err_msg if is_dev else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"detail": detail, "type": type(exc).__name__},
    )


#
# Health Check
#

@app.get("/")
def root():
    return {
        "service": "Glowify Storefront API",
        "version": __version__,
        "status": "operational",
    }


#
# Catalog
#

@app.get("/api/products", response_model=List[ProductOut])
def api_list_products(
    anime_name: Optional[str] = None,
    sort_by: Optional[ProductSort] = None,
    db: Session = Depends(get_db),
):
    return list_products(db, anime_name=anime_name, sort_by=sort_by)


@app.get("/api/products/top-selling", response_model=List[ProductOut])
def api_top_selling(db: Session = Depends(get_db)):
    return top_selling_products(db)


@app.get("/api/products/anime-names", response_model=List[str])
def api_anime_names(db: Session = Depends(get_db)):
    return list_anime_names(db)


@app.get("/api/products/{product_id}", response_model=ProductOut)
def api_get_product(product_id: int, db: Session = Depends(get_db)):
    return get_product(db, product_id)


#
# Coupons
#

@app.post("/api/coupons/validate", response_model=ValidateCouponResponse)
def api_validate_coupon(request: ValidateCouponRequest, db: Session = Depends(get_db)):
    """
    Validate a coupon code against an order amount.
    Read-only: the coupon's usage count is not touched.
    """
    result = validate_coupon(StorefrontStore(db), request.code, request.order_amount)
    return ValidateCouponResponse(
        valid=result.valid,
        code=result.code,
        reason=result.reason,
        error=result.error,
        discount_type=result.discount_type,
        discount_value=result.discount_value,
        discount_amount=result.discount_amount,
        final_amount=result.final_amount,
    )


#
# Orders
#

def _handoff_out(order) -> HandoffOut:
    handoff = build_handoff(order)
    return HandoffOut(method=handoff.method, url=handoff.url, subject=handoff.subject, body=handoff.body)


@app.post("/api/orders", response_model=PlaceOrderResponse, status_code=201)
def api_place_order(
    request: PlaceOrderRequest,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    order = place_order(db, request, user_id=user_id)
    return PlaceOrderResponse(order=OrderOut.model_validate(order), handoff=_handoff_out(order))


def _visible_order(db: Session, order_id: int, user_id: Optional[str]):
    """Signed-in customers only see their own orders; guests only see guest orders."""
    order = get_order(db, order_id)
    if order.user_id is not None and order.user_id != user_id:
        raise NotFound("Order", order_id)
    return order


@app.get("/api/orders/{order_id}", response_model=OrderOut)
def api_get_order(
    order_id: int,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    return _visible_order(db, order_id, user_id)


@app.get("/api/orders/{order_id}/handoff", response_model=HandoffOut)
def api_order_handoff(
    order_id: int,
    db: Session = Depends(get_db),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    return _handoff_out(_visible_order(db, order_id, user_id))


@app.get("/api/me/orders", response_model=OrderListResponse)
def api_my_orders(db: Session = Depends(get_db), user_id: str = Depends(require_user)):
    return OrderListResponse(orders=[OrderOut.model_validate(o) for o in list_user_orders(db, user_id)])


@app.get("/api/me/admin", response_model=AdminStatusOut)
def api_my_admin_status(db: Session = Depends(get_db), user_id: str = Depends(require_user)):
    return AdminStatusOut(user_id=user_id, is_admin=is_admin(db, user_id))


@app.post("/api/me/admin/setup", response_model=AdminStatusOut, status_code=201)
def api_setup_first_admin(db: Session = Depends(get_db), user_id: str = Depends(require_user)):
    """Claim admin rights on a fresh install; 409 once any admin exists."""
    setup_first_admin(db, user_id)
    return AdminStatusOut(user_id=user_id, is_admin=True)


#
# Admin
#

admin_router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_router.get("/coupons", response_model=List[CouponOut])
def admin_list_coupons(db: Session = Depends(get_db)):
    return list_coupons(db)


@admin_router.post("/coupons", response_model=CouponOut, status_code=201)
def admin_create_coupon(request: CreateCouponRequest, db: Session = Depends(get_db)):
    return create_coupon(db, request)


@admin_router.post("/coupons/{coupon_id}/toggle", response_model=CouponOut)
def admin_toggle_coupon(coupon_id: int, db: Session = Depends(get_db)):
    return toggle_coupon_active(db, coupon_id)


@admin_router.get("/orders", response_model=OrderListResponse)
def admin_list_orders(status: Optional[OrderStatus] = None, db: Session = Depends(get_db)):
    return OrderListResponse(orders=[OrderOut.model_validate(o) for o in list_all_orders(db, status)])


@admin_router.patch("/orders/{order_id}/status", response_model=OrderOut)
def admin_update_order_status(order_id: int, request: UpdateOrderStatusRequest, db: Session = Depends(get_db)):
    return update_order_status(db, order_id, request.status, request.notes)


@admin_router.get("/products", response_model=List[ProductOut])
def admin_list_products(
    anime_name: Optional[str] = None,
    sort_by: Optional[ProductSort] = None,
    db: Session = Depends(get_db),
):
    return list_products(db, include_inactive=True, anime_name=anime_name, sort_by=sort_by)


@admin_router.post("/products", response_model=ProductOut, status_code=201)
def admin_create_product(request: CreateProductRequest, db: Session = Depends(get_db)):
    return create_product(db, request)


@admin_router.patch("/products/{product_id}", response_model=ProductOut)
def admin_update_product(product_id: int, request: UpdateProductRequest, db: Session = Depends(get_db)):
    return update_product(db, product_id, request)


app.include_router(admin_router)


#
# Development Server
#

if __name__ == "__main__":
    uvicorn.run(
        "glowify.api.server:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True,
    )
