"""
FareScope API - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, Response
import time
import logging

# Prometheus metrics
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST, REGISTRY

from farescope import __version__
from farescope.config import settings
from farescope.routers import flights, health
from farescope.services.price_trend import PriceTrendAggregator
from farescope.services.providers import create_provider
from farescope.services.search_orchestrator import SearchOrchestrator

# Define Prometheus metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint']
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - wires the provider and search objects
    """
    logger.info("Starting FareScope API...")

    provider = create_provider()
    if provider.name == "mock":
        logger.warning("Amadeus credentials not configured, using mock flight data")

    aggregator = PriceTrendAggregator(
        provider,
        batch_size=settings.PRICE_TREND_BATCH_SIZE,
        inter_batch_delay=settings.PRICE_TREND_BATCH_DELAY,
        trailing_days=settings.PRICE_TREND_TRAILING_DAYS,
    )
    app.state.provider = provider
    app.state.orchestrator = SearchOrchestrator(provider, aggregator)

    logger.info(f"FareScope API ready, flight data from {provider.name}")

    yield

    logger.info("Shutting down FareScope API...")


# Create FastAPI application
app = FastAPI(
    title="FareScope API",
    description="""
    ## Flight Search & Price Trends

    Search flight offers between two airports, narrow them down by stops,
    price and airline, and follow the average price per departure day.
    """,
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware with Prometheus metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    # Record metrics (skip /metrics endpoint to avoid recursion)
    if request.url.path != "/metrics":
        endpoint = request.url.path
        method = request.method
        status = response.status_code

        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(process_time)

    response.headers["X-Process-Time"] = str(process_time)
    return response


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(flights.router, prefix="/flights", tags=["Flights"])


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - API information"""
    return {
        "name": "FareScope API",
        "version": __version__,
        "status": "running",
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )
