"""
POS REST API main application.
Entry point for the FastAPI server:

    uvicorn pos_api.main:app --reload
"""

from fastapi import FastAPI

from pos_api import __version__
from pos_api.core import configure_cors, lifespan, register_exception_handlers
from pos_api.routers.analytics import router as analytics_router
from pos_api.routers.auth import router as auth_router
from pos_api.routers.billing import router as billing_router
from pos_api.routers.health import router as health_router
from pos_api.routers.inventory import router as inventory_router
from pos_api.routers.menu import router as menu_router
from pos_api.routers.orders import router as orders_router
from pos_api.routers.outlets import router as outlets_router
from pos_api.routers.reports import router as reports_router
from pos_api.routers.settings import router as settings_router
from pos_api.routers.tables import router as tables_router
from pos_shared.infrastructure.correlation import CorrelationIdMiddleware
from pos_shared.security.rate_limit import limiter

app = FastAPI(
    title="Outlet POS API",
    description="Multi-outlet restaurant point of sale: orders, billing, tables and inventory",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
register_exception_handlers(app)

configure_cors(app)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(orders_router)
app.include_router(billing_router)
app.include_router(tables_router)
app.include_router(inventory_router)
app.include_router(menu_router)
app.include_router(settings_router)
app.include_router(analytics_router)
app.include_router(outlets_router)
app.include_router(reports_router)
