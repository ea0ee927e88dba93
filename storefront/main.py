import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import settings
from storefront.database import create_db_and_tables
from storefront.routes import (
    admin_orders,
    admin_payments,
    cart,
    coupons_admin,
    health,
    orders,
    payments,
    products_admin,
    products_public,
    reviews,
    webhooks,
    wishlist,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local; other environments use alembic
    if settings.env == "local":
        create_db_and_tables()
    yield

app = FastAPI(title=f"{settings.store_name} Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products_public.router, prefix="/products", tags=["Products"])
app.include_router(reviews.router, tags=["Reviews"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(wishlist.router, prefix="/wishlist", tags=["Wishlist"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(payments.router, prefix="/payments", tags=["Payments"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
app.include_router(products_admin.router, prefix="/admin/products", tags=["Admin Products"])
app.include_router(coupons_admin.router, prefix="/admin/coupons", tags=["Admin Coupons"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(admin_payments.router, prefix="/admin/payments", tags=["Admin Payments"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "products": ["/products", "/products/{slug}", "/products/{slug}/reviews", "/reviews/{review_id}"],
        "wishlist": ["/wishlist", "/wishlist/{item_id}", "/wishlist/count", "/wishlist/status/{product_id}"],
        "cart": [
            "/cart", "/cart/items", "/cart/items/{item_id}",
            "/cart/coupon", "/cart/clear", "/cart/count"
        ],
        "orders": [
            "/orders", "/orders/verify", "/orders/{order_id}",
            "/orders/{order_id}/cancel", "/orders/{order_id}/refund"
        ],
        "payments": [
            "/payments", "/payments/{payment_id}",
            "/payments/retry/{order_id}", "/payments/callback"
        ],
        "webhooks": ["/webhooks/paystack"],
        "admin": [
            "/admin/products", "/admin/products/{product_id}", "/admin/coupons",
            "/admin/orders", "/admin/payments", "/orders/{order_id}/status"
        ],
    }
