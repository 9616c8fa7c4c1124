"""Integration check helpers."""

from .checks import (
    IntegrationCheckResult,
    check_credentials,
    check_model,
    run_all_checks,
)

__all__ = [
    "IntegrationCheckResult",
    "check_credentials",
    "check_model",
    "run_all_checks",
]
