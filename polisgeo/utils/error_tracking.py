"""Error tracking and monitoring setup."""
import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from polisgeo.core.config import ENVIRONMENT, RELEASE, SENTRY_DSN

_initialized = False


def filter_sensitive_data(event, hint):
    """Filter sensitive data from Sentry events."""
    # The Nominatim User-Agent usually carries contact details
    if event.get('request'):
        if 'headers' in event.get('request', {}):
            sensitive_headers = ['authorization', 'user-agent', 'cookie', 'set-cookie']
            event['request']['headers'] = {
                k: '***REDACTED***' if k.lower() in sensitive_headers else v
                for k, v in event['request']['headers'].items()
            }

    if 'environment' in event:
        env = event['environment']
        if isinstance(env, dict):
            sensitive_env_vars = ['DSN', 'SECRET', 'PASSWORD', 'TOKEN', 'USER_AGENT']
            for key in list(env.keys()):
                if any(sensitive in key.upper() for sensitive in sensitive_env_vars):
                    env[key] = '***REDACTED***'

    return event


def setup_error_tracking(
    dsn: Optional[str] = None,
    environment: Optional[str] = None,
    release: Optional[str] = None,
    traces_sample_rate: float = 0.0
) -> bool:
    """
    Setup Sentry error tracking.

    Args:
        dsn: Sentry DSN (if None, falls back to SENTRY_DSN from config)
        environment: Environment name (development, staging, production)
        release: Release version
        traces_sample_rate: Percentage of transactions to trace (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False otherwise
    """
    global _initialized

    dsn = dsn or SENTRY_DSN
    if not dsn:
        logging.getLogger(__name__).info("Sentry DSN not provided. Error tracking disabled.")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment or ENVIRONMENT,
        release=release or RELEASE,
        integrations=[LoggingIntegration(level=logging.INFO, event_level=None)],
        traces_sample_rate=traces_sample_rate,
        before_send=filter_sensitive_data,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    _initialized = True
    return True


def capture_exception(error: Exception, context: Optional[dict] = None) -> bool:
    """Capture exception and send to Sentry if error tracking is set up."""
    if not _initialized:
        return False

    with sentry_sdk.new_scope() as scope:
        if context:
            for key, value in context.items():
                scope.set_context(key, {"value": str(value)})
        sentry_sdk.capture_exception(error)
    return True
