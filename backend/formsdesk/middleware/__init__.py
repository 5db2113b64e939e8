"""Middleware modules for production-ready features"""
from formsdesk.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_login,
    record_submission_metric,
)
from formsdesk.middleware.rate_limit import get_rate_limit, limiter

__all__ = [
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_login",
    "record_submission_metric",
    "limiter",
    "get_rate_limit"
]
