import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from storefront.version import VERSION
from storefront.api import catalog, price_tiers, cart, payments, orders
from storefront.core.logging import configure_logging
from storefront.errors import StorefrontError

configure_logging()
logger = logging.getLogger(__name__)

# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title="Storefront Service", version=VERSION)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/storefront/metrics",
    should_gzip=True,
)

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/storefront/health")
def storefront_health():
    return {"status": "ok"}

@app.get("/v1/_info")
def info():
    return {"service": "storefront", "version": VERSION}

@app.on_event("startup")
async def startup_event():
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", route.methods, route.path)

app.include_router(catalog.router, prefix="/catalog/v1/variations", tags=["catalog"])
app.include_router(price_tiers.router, prefix="/catalog/v1/price-tiers", tags=["price-tiers"])
app.include_router(cart.router, prefix="/cart", tags=["cart"])
app.include_router(payments.router, prefix="/payment", tags=["payments"])
app.include_router(orders.router, prefix="/order", tags=["orders"])
