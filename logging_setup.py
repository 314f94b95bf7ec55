import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with a single stderr handler.

    Call this once at startup, before the first log line. Repeated calls
    replace the handler instead of stacking duplicates.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    # SQL statements are only wanted when SQL_ECHO is on, and the engine handles that
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.captureWarnings(True)
