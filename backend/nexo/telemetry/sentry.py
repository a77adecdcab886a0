"""
Sentry Error Tracking
=====================

Centralized error tracking for the NEXO API using Sentry.

Related files:
- nexo/main.py: Initializes Sentry in create_app()
- nexo/main.py: Unexpected errors are captured from the exception handlers

Environment Variables:
- SENTRY_DSN: Sentry project DSN (tracking is disabled when unset)
- ENVIRONMENT: Environment name (production, staging, development)
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from nexo.deps import Settings, get_settings

logger = logging.getLogger(__name__)


def init_sentry(settings: Optional[Settings] = None) -> bool:
    """
    Initialize Sentry SDK for FastAPI.

    Returns:
        True if Sentry was initialized, False when no DSN is configured
        or initialization failed.
    """
    settings = settings or get_settings()
    if not settings.SENTRY_DSN:
        return False

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                LoggingIntegration(
                    level=logging.INFO,        # Capture INFO+ as breadcrumbs
                    event_level=logging.ERROR,  # Send ERROR+ as events
                ),
            ],
            traces_sample_rate=0.1,
            # Questions may mention client names; keep PII off
            send_default_pii=False,
            release=os.environ.get("RELEASE_VERSION"),
        )
        logger.info(f"[SENTRY] Initialized for {settings.ENVIRONMENT} environment")
        return True
    except Exception as e:
        logger.error(f"[SENTRY] Failed to initialize: {e}")
        return False


def set_user_context(user_id: str, email: Optional[str] = None) -> None:
    """Attach the caller to subsequent Sentry events."""
    if not sentry_sdk.is_initialized():
        return
    sentry_sdk.set_user({"id": user_id, "email": email})


def capture_exception(exception: Exception, extra: Optional[dict] = None) -> None:
    """
    Report a handled exception.

    Example:
        except Exception as e:
            capture_exception(e, extra={"path": request.url.path})
            return error_response(...)
    """
    if not sentry_sdk.is_initialized():
        return

    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (extra or {}).items():
                scope.set_extra(key, value)
            sentry_sdk.capture_exception(exception)
    except Exception as e:
        logger.error(f"[SENTRY] Failed to capture exception: {e}")
