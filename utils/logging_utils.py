import logging
import structlog
from structlog.stdlib import add_log_level, add_logger_name


def setup_logging(level: int = logging.INFO, colors: bool = True) -> None:
    """Configure structlog and standard logging with the given level.

    Log output goes to stderr so map renderings on stdout stay clean.
    """
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_logger_name,
            add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def level_from_args(log_level: str, verbose: bool = False) -> int:
    """Translate ``--log-level`` / ``-v`` command-line values into a logging level."""
    if verbose:
        return logging.DEBUG
    return getattr(logging, log_level.upper(), logging.INFO)
