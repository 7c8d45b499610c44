"""structlog setup for the dashboard process.

One stdlib handler renders everything: structlog events from our modules and
plain logging records from uvicorn and httpx go through the same
ProcessorFormatter, so a poll cycle and the requests it issues read as one
stream. JSON in production, ConsoleRenderer when debug is on.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

SERVICE_NAME = "cicd-dashboard"

# Loggers that would otherwise print a line per request at INFO.
# Each poll issues 1 + N Build API requests.
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def add_correlation_id(logger, method, event_dict):
    """Attach the current request's X-Request-ID, if there is one.

    Background refresh cycles run outside any request and carry no ID.
    """
    request_id = correlation_id.get(None)
    if request_id:
        event_dict["correlation_id"] = request_id
    return event_dict


def add_service(logger, method, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Route structlog and stdlib logging through one formatter.

    Must run before any module calls structlog.get_logger(): loggers are
    cached on first use and keep whatever chain was active then.

    Args:
        log_level: Root level name, e.g. "INFO"
        json_logs: JSONRenderer when True, ConsoleRenderer otherwise
    """
    pre_chain = _pre_chain()
    render_chain = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_logs:
        render_chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer prints exc_info itself
        render_chain.append(structlog.dev.ConsoleRenderer())

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": pre_chain,
                "processors": render_chain,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    })

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
