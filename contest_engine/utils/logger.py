"""
Logger factory: console output plus a daily file under Config.LOG_DIR.
"""

import logging
import sys
from datetime import date
from pathlib import Path

from contest_engine.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _log_file() -> Path:
    log_dir = Path(Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"contest_engine_{date.today():%Y%m%d}.log"


def setup_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching handlers on first use only."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    
    level = logging.DEBUG if Config.DEBUG else logging.INFO
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    
    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(_log_file(), encoding='utf-8')):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
