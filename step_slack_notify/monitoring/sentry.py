"""
Sentry Setup and Context Management

Initializes Sentry SDK and provides context enrichment helpers. All helpers
are no-ops until init_sentry() has succeeded.
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from ..config import BuildEnvironment, MonitoringConfig

logger = logging.getLogger(__name__)

# Track initialization state
_sentry_initialized = False


def init_sentry(
    config: MonitoringConfig,
    build: Optional[BuildEnvironment] = None,
) -> bool:
    """
    Initialize Sentry SDK.

    Args:
        config: MonitoringConfig with DSN
        build: Build metadata used to tag events

    Returns:
        True if initialized successfully
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    if not config.sentry_enabled:
        logger.debug("Sentry not configured, skipping initialization")
        return False

    try:
        logging_integration = LoggingIntegration(
            level=logging.INFO,  # Capture INFO and above as breadcrumbs
            event_level=logging.ERROR,  # Send ERROR and above as events
        )

        sentry_sdk.init(
            dsn=config.sentry_dsn,
            environment=config.sentry_environment,
            integrations=[logging_integration],
            send_default_pii=False,
            attach_stacktrace=True,
        )

        if build is not None:
            sentry_sdk.set_tag("pipeline", build.pipeline_name)
            sentry_sdk.set_tag("branch", build.branch)
            sentry_sdk.set_tag("build_number", build.build_number)
            sentry_sdk.set_context("build", {
                "organization": build.organization_slug,
                "build_url": build.build_url,
                "job_id": build.job_id,
                "exit_status": build.exit_status,
            })

        _sentry_initialized = True
        logger.debug("Sentry initialized successfully")
        return True

    except Exception as e:
        logger.error("Failed to initialize Sentry: %s", e)
        return False


def add_breadcrumb(
    message: str,
    category: str = "notify",
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb to the current Sentry scope.

    Args:
        message: Breadcrumb message
        category: Category (notify, slack, config)
        level: Level (debug, info, warning, error)
        data: Additional data
    """
    if not _sentry_initialized:
        return

    try:
        sentry_sdk.add_breadcrumb(
            message=message,
            category=category,
            level=level,
            data=data,
        )
    except Exception as e:
        logger.debug("Failed to add breadcrumb: %s", e)


def capture_exception(
    exception: BaseException,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Capture an exception and send to Sentry.

    Args:
        exception: The exception to capture
        tags: Additional tags

    Returns:
        Sentry event ID if captured, None otherwise
    """
    if not _sentry_initialized:
        return None

    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (tags or {}).items():
                scope.set_tag(key, value)

            return sentry_sdk.capture_exception(exception)

    except Exception as e:
        logger.debug("Failed to capture exception: %s", e)
        return None
