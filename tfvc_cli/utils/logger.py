import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

logger = logging.getLogger("tfvc-cli")

def setup_logging(debug: bool = False, log_file: Optional[Path] = None):
    """Setup logging configuration."""
    if os.environ.get("TFVC_DEBUG") == "1":
        debug = True
    level = logging.DEBUG if debug else logging.INFO

    # Reset handlers
    logger.handlers = []
    logger.setLevel(logging.DEBUG if log_file else level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.is_dir():
            log_path = log_path / "tfvc-cli.log"

        # rotate at midnight, keep 7 days
        file_handler = TimedRotatingFileHandler(
            log_path, when="midnight", interval=1, backupCount=7, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG) # Always log debug to file
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

def get_logger():
    return logger
