import logging
import logging.handlers
import os
from pathlib import Path


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
HANDLER_NAME = "hours-proxy"


def setup_logging(app_name: str = "hours-proxy") -> None:
    """Configure application logging

    Args:
        app_name: Name to use for log files

    """
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    if any(getattr(handler, "name", None) == HANDLER_NAME for handler in root_logger.handlers):
        return
    root_logger.setLevel(logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.set_name(HANDLER_NAME)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / f"{app_name}.log",
        maxBytes=10_000_000,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    error_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / f"{app_name}-error.log",
        maxBytes=10_000_000,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root_logger.addHandler(error_handler)

    # httpx logs every request at INFO; the proxy already logs what it forwards
    logging.getLogger("httpx").setLevel(logging.WARNING)
