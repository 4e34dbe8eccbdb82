"""
Middleware for the AdLink server.
"""

from adlink.server.middleware.metrics import (
    MetricsMiddleware,
    metrics_endpoint,
    record_ad_clickthrough,
    record_cache_hit,
    record_cache_miss,
    record_consistency_check,
    record_content_click,
    record_event_write_failure,
    record_gateway_visit,
    record_impression,
    record_selection_latency,
    set_open_visits,
)

__all__ = [
    "MetricsMiddleware",
    "metrics_endpoint",
    "record_gateway_visit",
    "set_open_visits",
    "record_impression",
    "record_content_click",
    "record_ad_clickthrough",
    "record_event_write_failure",
    "record_selection_latency",
    "record_cache_hit",
    "record_cache_miss",
    "record_consistency_check",
]
