"""Main FastAPI application serving module data to the BI dashboard."""

import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status

from insights import __version__
from insights.core import ModuleKey, ModuleNotConfigured, ModuleRegistry, default_registry
from insights.db import DataStore, get_store
from insights.services import (
    ActivityFeed,
    DataFetcher,
    FetchOptions,
    MetricsService,
    export_csv,
    export_filename,
    today_in,
)
from insights.services.fetcher import DEFAULT_LIMIT
from .schemas import (
    ActivityResponse,
    FetchResponse,
    MetricsResponse,
    ModuleInfoResponse,
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="ERP Insights API",
    description="Module data, cross-module activity, exports and metrics for the ERP dashboards",
    version=__version__,
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
)

# Query parameters that are not column filters
RESERVED_PARAMS = {"limit", "order_by", "ascending", "subtable"}

# Set by configure() from run_api.py
_registry: Optional[ModuleRegistry] = None
_settings = {
    "timezone": "UTC",
    "per_module_limit": 5,
    "max_records": 20,
}


def configure(registry: ModuleRegistry = None, **settings):
    """Set the registry and activity/timezone settings used by the endpoints."""
    global _registry
    if registry is not None:
        _registry = registry
    unknown = set(settings) - set(_settings)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    _settings.update(settings)


def get_registry() -> ModuleRegistry:
    """Get the module registry (built-in catalog unless configured)."""
    global _registry
    if _registry is None:
        _registry = default_registry()
    return _registry


def get_data_store() -> DataStore:
    """Get the store, or 503 if the database is not initialized."""
    try:
        return get_store()
    except RuntimeError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )


def get_fetcher(
    store: DataStore = Depends(get_data_store),
    registry: ModuleRegistry = Depends(get_registry),
) -> DataFetcher:
    feed = ActivityFeed(
        store,
        registry,
        per_module_limit=_settings["per_module_limit"],
        max_records=_settings["max_records"],
        timezone=_settings["timezone"],
    )
    return DataFetcher(store, registry, feed)


def _module_key(key: str, registry: ModuleRegistry) -> ModuleKey:
    try:
        return registry.get_descriptor(key).key
    except ModuleNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _options(request: Request, limit: int, order_by: str, ascending: bool,
             subtable: Optional[str]) -> FetchOptions:
    filters = {
        name: value
        for name, value in request.query_params.items()
        if name not in RESERVED_PARAMS
    }
    try:
        return FetchOptions(
            limit=limit,
            order_by=order_by,
            ascending=ascending,
            filters=filters,
            subtable=subtable,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@app.get("/", tags=["general"])
async def root():
    """Root endpoint - API information."""
    return {
        "name": "ERP Insights API",
        "version": __version__,
        "status": "online",
        "docs": "/docs",
        "endpoints": {
            "modules": "GET /modules - List configured modules",
            "data": "GET /modules/{key}/data - Fetch a page of module data",
            "export": "GET /modules/{key}/export - Download module data as CSV",
            "activity": "GET /activity - Recent activity across all modules",
            "metrics": "GET /metrics - Dashboard headline numbers",
        }
    }


@app.get("/health", tags=["general"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/modules", response_model=List[ModuleInfoResponse], tags=["modules"])
async def list_modules(registry: ModuleRegistry = Depends(get_registry)):
    """List every module in the registry, the synthetic "all" view included."""
    return registry.get_module_info()


@app.get("/modules/{key}/data", response_model=FetchResponse, tags=["modules"])
async def module_data(
    key: str,
    request: Request,
    limit: int = Query(DEFAULT_LIMIT, gt=0),
    order_by: str = "id",
    ascending: bool = False,
    subtable: Optional[str] = None,
    fetcher: DataFetcher = Depends(get_fetcher),
):
    """
    Fetch one page of a module's rows with aggregations.

    Any other query parameter is applied as an equality filter, e.g.
    `/modules/customer_service/data?status=open`. Store failures are reported
    in `error` rather than as an HTTP error.
    """
    module_key = _module_key(key, fetcher.registry)
    options = _options(request, limit, order_by, ascending, subtable)

    result = fetcher.fetch(module_key, options)
    if result.error:
        logger.warning(f"Module {module_key.value} fetch failed: {result.error}")

    return FetchResponse(module=module_key.value, **result.to_dict())


@app.get("/modules/{key}/export", tags=["modules"])
async def export_module(
    key: str,
    request: Request,
    limit: int = Query(DEFAULT_LIMIT, gt=0),
    order_by: str = "id",
    ascending: bool = False,
    subtable: Optional[str] = None,
    fetcher: DataFetcher = Depends(get_fetcher),
):
    """Download the same page as /data as a CSV attachment."""
    module_key = _module_key(key, fetcher.registry)
    options = _options(request, limit, order_by, ascending, subtable)

    result = fetcher.fetch(module_key, options)
    if result.error:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to export {module_key.value}: {result.error}"
        )

    filename = export_filename(module_key, today_in(_settings["timezone"]))
    logger.info(f"Exported {len(result.rows)} {module_key.value} records")

    return Response(
        content=export_csv(result.rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/activity", response_model=ActivityResponse, tags=["activity"])
async def activity(fetcher: DataFetcher = Depends(get_fetcher)):
    """Recent records from every module, highest ids first."""
    feed = fetcher.activity_feed.build()
    return ActivityResponse(
        records=[record.to_row() for record in feed.records],
        total_available=feed.total_available,
        failed_modules=[key.value for key in feed.failed_modules],
    )


@app.get("/metrics", response_model=MetricsResponse, tags=["metrics"])
async def metrics(store: DataStore = Depends(get_data_store)):
    """Revenue, order, inventory, customer and support counts."""
    service = MetricsService(store)
    return MetricsResponse(
        dashboard=service.dashboard_metrics().to_dict(),
        customer_service=service.customer_service_metrics().to_dict(),
        stock_transactions=service.stock_transactions_count(),
    )
