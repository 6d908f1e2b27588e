"""Observability configuration using Logfire.

Logfire provides structured logging and tracing for the reply engine:
- Spans around every remote reply API call
- Events for cache reconciliation (stale pages dropped, votes rolled back)
- httpx instrumentation for outbound request latency

Usage:
    import logfire

    logfire.info("Reply created", reply_id=node.id, depth=node.depth)

    with logfire.span("pagination.load_children", parent_id=parent_id):
        ...
"""

import logfire

from debate.config import Settings


def configure_logfire(settings: Settings) -> None:
    """Configure Logfire for observability.

    Token Configuration:
    - Set OBSERVABILITY__LOGFIRE_TOKEN environment variable to enable cloud sending
    - If token is present, logs will be sent to Logfire cloud by default
    - Can be explicitly controlled with OBSERVABILITY__SEND_TO_LOGFIRE

    Args:
        settings: Application settings
    """
    # Priority: explicit setting > token presence > default (False)
    if settings.observability.send_to_logfire is not None:
        send_to_logfire = settings.observability.send_to_logfire
    elif settings.observability.logfire_token:
        send_to_logfire = True
    else:
        send_to_logfire = False

    config_kwargs = {
        "service_name": "debate-replies",
        "service_version": "1.0.0",
        "environment": settings.environment,
        "send_to_logfire": send_to_logfire,
        "console": logfire.ConsoleOptions(
            colors="auto",
            span_style="show-parents",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    }

    if settings.observability.logfire_token:
        config_kwargs["token"] = settings.observability.logfire_token

    logfire.configure(**config_kwargs)

    logfire.info(
        "Observability configured",
        environment=settings.environment,
        debug=settings.debug,
        send_to_logfire=send_to_logfire,
        has_token=bool(settings.observability.logfire_token),
    )


def instrument_httpx() -> None:
    """Instrument httpx client with Logfire.

    Traces every outbound reply API request, its latency and failures.
    """
    logfire.instrument_httpx()
    logfire.info("httpx instrumented")
