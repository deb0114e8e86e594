from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy.engine import Engine

from bookheaven.config import settings
from bookheaven.database import build_engine, create_db_and_tables
from bookheaven.exception_handlers import register_exception_handlers
from bookheaven.logging_config import setup_logging
from bookheaven.routes import (
    admin_orders,
    books_admin,
    books_public,
    cart,
    categories_public,
    health,
    orders,
)
from bookheaven.services.cart_ledger import CartLedger
from bookheaven.services.order_service import OrderService


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    setup_logging("bookheaven-api", settings.log_level)

    owns_engine = engine is None
    if owns_engine:
        engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Run DB creation ONLY in local
        if settings.env == "local":
            create_db_and_tables(app.state.engine)
        yield
        if owns_engine:
            app.state.engine.dispose()

    app = FastAPI(title="Book Heaven API", lifespan=lifespan)

    # the only process-wide state: one pool, shared by the ledger and order service
    app.state.engine = engine
    app.state.cart_ledger = CartLedger(engine, max_attempts=settings.cart_max_attempts)
    app.state.order_service = OrderService(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(books_public.router, prefix="/api/books", tags=["Public Books"])
    app.include_router(categories_public.router, prefix="/api/categories", tags=["Public Categories"])
    app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
    app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
    app.include_router(books_admin.router, prefix="/api/admin/books", tags=["Admin Books"])
    app.include_router(admin_orders.router, prefix="/api/admin/orders", tags=["Admin Orders"])
    app.include_router(health.router, prefix="/api/health", tags=["Health"])

    @app.get("/")
    def root():
        return {
            "success": True,
            "message": "Book Heaven API is running!",
            "endpoints": {
                "books": ["/api/books", "/api/books/featured", "/api/books/search", "/api/books/{book_id}"],
                "categories": ["/api/categories", "/api/categories/{category}/books"],
                "cart": [
                    "/api/cart/{session_id}", "/api/cart/{session_id}/add",
                    "/api/cart/{session_id}/update/{book_id}",
                    "/api/cart/{session_id}/remove/{book_id}", "/api/cart/{session_id}/clear"
                ],
                "orders": ["/api/orders", "/api/orders/{order_id}"],
                "admin": ["/api/admin/books", "/api/admin/orders", "/api/admin/orders/{order_id}/status"],
            }
        }

    return app


app = create_app()
