"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from formsdesk.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "formsdesk_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "formsdesk_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

# Error metrics
http_errors_total = Counter(
    "formsdesk_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Auth metrics
authentication_failures_total = Counter(
    "formsdesk_authentication_failures_total",
    "Total rejected authentication attempts",
    ["reason"]  # missing_token, invalid_token, session_not_live, invalid_subject
)

logins_total = Counter(
    "formsdesk_logins_total",
    "Total login attempts",
    ["outcome"]  # success, invalid_credentials
)

# Intake metrics
submissions_total = Counter(
    "formsdesk_submissions_total",
    "Total accepted form submissions",
    ["form_type"]
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()

        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code

            duration = time.time() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            # Login runs a password hash; only flag the rest
            if duration > 1.0 and not endpoint.endswith("/login"):
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={"request_id": request_id}
                )

            if status >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=status
                ).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception as e:
            http_errors_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()

            logger.error(
                f"Request failed: {method} {endpoint}: {e}",
                extra={"request_id": request_id},
                exc_info=True
            )
            raise


def record_auth_failure(reason: str):
    """Record a rejected authentication attempt"""
    authentication_failures_total.labels(reason=reason).inc()


def record_login(outcome: str):
    """Record a login attempt outcome"""
    logins_total.labels(outcome=outcome).inc()


def record_submission_metric(form_type: str):
    """Record an accepted form submission"""
    submissions_total.labels(form_type=form_type).inc()
