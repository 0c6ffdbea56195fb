# shared/log_config.py
import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
    # Keep SQL statements out of the application log unless SQL_ECHO is set
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
