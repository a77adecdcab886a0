"""
Telemetry Module
================

Observability for the NEXO API. Logging uses the standard library with
bracketed component tags ([AGENT], [TOOLS], [HISTORY], ...); error tracking
goes to Sentry when SENTRY_DSN is set.
"""

from nexo.telemetry.sentry import capture_exception, init_sentry, set_user_context

__all__ = [
    "init_sentry",
    "set_user_context",
    "capture_exception",
]
