import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from furever_orders.version import VERSION
from furever_orders.core.config import settings
from furever_orders.api import orders, notifications, inventory
from furever_orders.errors import OrderServiceError
from prometheus_fastapi_instrumentator import Instrumentator

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("furever_orders")

# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title="FurEver Orders Service", version=VERSION)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/metrics",
    should_gzip=True,
)

@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

# Health endpoints
@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/api/v1/health")
def api_health():
    return {"status": "ok"}

@app.get("/v1/_info")
def info():
    return {"service": "orders", "version": VERSION}

@app.on_event("startup")
async def startup_event():
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", sorted(route.methods), route.path)

# Include routers
app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["notifications"])
app.include_router(inventory.router, prefix="/api/v1/inventory", tags=["inventory"])
