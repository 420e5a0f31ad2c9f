"""Prometheus metrics for HTTP traffic and authentication flows."""

import os

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    multiprocess,
)

# Create a custom registry for our metrics
REGISTRY = CollectorRegistry()

# Check if running in multiprocess mode (e.g., with gunicorn)
if "prometheus_multiproc_dir" in os.environ:
    multiprocess.MultiProcessCollector(REGISTRY)


# ============================================
# Application Info
# ============================================
APP_INFO = Info(
    "backstage_app",
    "Application information",
    registry=REGISTRY,
)


# ============================================
# HTTP Request Metrics
# ============================================
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently in progress",
    ["method"],
    registry=REGISTRY,
)


# ============================================
# Authentication Metrics
# ============================================
AUTH_SIGNUPS_TOTAL = Counter(
    "auth_signups_total",
    "Accounts created",
    ["role"],
    registry=REGISTRY,
)

AUTH_SIGNIN_TOTAL = Counter(
    "auth_signin_total",
    "Signin attempts by outcome",
    ["outcome"],
    registry=REGISTRY,
)

AUTH_OTP_ISSUED_TOTAL = Counter(
    "auth_otp_issued_total",
    "Password recovery codes issued",
    registry=REGISTRY,
)

AUTH_OTP_VERIFICATIONS_TOTAL = Counter(
    "auth_otp_verifications_total",
    "Password recovery code verifications by outcome",
    ["outcome"],
    registry=REGISTRY,
)

AUTH_OTP_DELIVERY_TOTAL = Counter(
    "auth_otp_delivery_total",
    "Password recovery code deliveries by channel and outcome",
    ["channel", "outcome"],
    registry=REGISTRY,
)

AUTH_PASSWORD_RESETS_TOTAL = Counter(
    "auth_password_resets_total",
    "Completed password resets",
    registry=REGISTRY,
)


def set_app_info(version: str, environment: str) -> None:
    """Set application info metric."""
    APP_INFO.info({"version": version, "environment": environment})


def get_metrics() -> bytes:
    """Render all metrics in Prometheus exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content type for the metrics endpoint."""
    return CONTENT_TYPE_LATEST
