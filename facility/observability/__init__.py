"""
Observability module: structured logging and request IDs.

Usage:
    from facility.observability import configure_logging, get_logger, RequestContext

    configure_logging()
    logger = get_logger(__name__)

    with RequestContext() as ctx:
        logger.info("Loading occupancy")  # log line carries ctx.request_id
"""

from .context import RequestContext, generate_request_id, get_request_id
from .logging import HumanFormatter, JSONFormatter, configure_logging, get_logger
from .middleware import CorrelationIdMiddleware

__all__ = [
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "RequestContext",
    "get_request_id",
    "generate_request_id",
    "CorrelationIdMiddleware",
]
