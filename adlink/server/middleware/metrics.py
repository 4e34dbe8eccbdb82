"""
Prometheus metrics middleware for monitoring.

Provides:
- Request latency histograms
- Request counters by endpoint
- Active request gauge
- Business metrics (impressions, content clicks, gateway outcomes, etc.)
"""

import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Gauge, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse

from adlink.common.config import get_settings
from adlink.common.logger import get_logger

logger = get_logger(__name__)

# =============================================================================
# Prometheus Metrics Definitions
# =============================================================================

APP_INFO = Info("adlink_app", "AdLink application information")
APP_INFO.info({
    "version": get_settings().app_version,
    "name": "adlink",
    "description": "Short links with an ad interstitial",
})

# HTTP request metrics
HTTP_REQUEST_TOTAL = Counter(
    "adlink_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "adlink_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "adlink_http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method", "endpoint"],
)

# Gateway metrics
GATEWAY_VISITS_TOTAL = Counter(
    "adlink_gateway_visits_total",
    "Gateway page loads by outcome",
    ["outcome"],
)

GATEWAY_VISITS_OPEN = Gauge(
    "adlink_gateway_visits_open",
    "Visits currently held in the registry",
)

AD_IMPRESSIONS_TOTAL = Counter(
    "adlink_ad_impressions_total",
    "Total ad impressions recorded",
)

CONTENT_CLICKS_TOTAL = Counter(
    "adlink_content_clicks_total",
    "Total continue clicks recorded",
)

AD_CLICKTHROUGHS_TOTAL = Counter(
    "adlink_ad_clickthroughs_total",
    "Clicks on the ad body (not persisted)",
)

EVENT_WRITE_FAILURES_TOTAL = Counter(
    "adlink_event_write_failures_total",
    "Impression or click writes that failed",
    ["event_type"],
)

AD_SELECTION_LATENCY = Histogram(
    "adlink_ad_selection_latency_seconds",
    "Ad selection latency",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
)

# Cache metrics
CACHE_HIT_TOTAL = Counter(
    "adlink_cache_hit_total",
    "Total cache hits",
    ["cache_type"],
)

CACHE_MISS_TOTAL = Counter(
    "adlink_cache_miss_total",
    "Total cache misses",
    ["cache_type"],
)

# Consistency metrics
COUNTER_DISCREPANCIES = Gauge(
    "adlink_counter_discrepancies",
    "Counter mismatches found by the last consistency check",
)

CONSISTENCY_CHECK_DURATION = Histogram(
    "adlink_consistency_check_duration_seconds",
    "Consistency check duration",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)


# =============================================================================
# Metrics Middleware
# =============================================================================

class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware that collects Prometheus metrics for all HTTP requests.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request and record metrics."""
        method = request.method
        endpoint = self._get_endpoint(request)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()

        start_time = time.perf_counter()
        status_code = 500  # Default to error

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as e:
            logger.error("Request error", error=str(e))
            raise
        finally:
            duration = time.perf_counter() - start_time

            HTTP_REQUEST_TOTAL.labels(
                method=method,
                endpoint=endpoint,
                status=str(status_code),
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=method,
                endpoint=endpoint,
            ).observe(duration)

            HTTP_REQUESTS_IN_PROGRESS.labels(
                method=method,
                endpoint=endpoint,
            ).dec()

    def _get_endpoint(self, request: Request) -> str:
        """Get endpoint path, collapsing ids and short codes."""
        parts = request.url.path.split("/")
        normalized = []
        for i, part in enumerate(parts):
            if part.isdigit():
                normalized.append("{id}")
            elif i > 0 and parts[i - 1] == "g" and part:
                # /g/{short_code} would otherwise create one series per link
                normalized.append("{short_code}")
            elif i > 0 and parts[i - 1] == "visits" and part:
                normalized.append("{visit_id}")
            else:
                normalized.append(part)

        return "/".join(normalized)


# =============================================================================
# Metrics Endpoint
# =============================================================================

async def metrics_endpoint() -> StarletteResponse:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    return StarletteResponse(
        content=generate_latest(),
        media_type="text/plain; charset=utf-8",
    )


# =============================================================================
# Helper Functions for Recording Business Metrics
# =============================================================================

def record_gateway_visit(outcome: str) -> None:
    """Record a gateway page load: ready_ad, ready_no_ad, not_found, error."""
    GATEWAY_VISITS_TOTAL.labels(outcome=outcome).inc()


def set_open_visits(count: int) -> None:
    GATEWAY_VISITS_OPEN.set(count)


def record_impression() -> None:
    AD_IMPRESSIONS_TOTAL.inc()


def record_content_click() -> None:
    CONTENT_CLICKS_TOTAL.inc()


def record_ad_clickthrough() -> None:
    AD_CLICKTHROUGHS_TOTAL.inc()


def record_event_write_failure(event_type: str) -> None:
    """Record a failed impression / click write."""
    EVENT_WRITE_FAILURES_TOTAL.labels(event_type=event_type).inc()


def record_selection_latency(duration: float) -> None:
    AD_SELECTION_LATENCY.observe(duration)


def record_cache_hit(cache_type: str) -> None:
    """Record a cache hit."""
    CACHE_HIT_TOTAL.labels(cache_type=cache_type).inc()


def record_cache_miss(cache_type: str) -> None:
    """Record a cache miss."""
    CACHE_MISS_TOTAL.labels(cache_type=cache_type).inc()


def record_consistency_check(discrepancies: int, duration: float) -> None:
    """Record the outcome of a counter consistency check."""
    COUNTER_DISCREPANCIES.set(discrepancies)
    CONSISTENCY_CHECK_DURATION.observe(duration)
