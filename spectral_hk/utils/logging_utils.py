"""
Logging utilities for spectral hash key runs.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime, timedelta
from typing import Optional, Dict


def setup_logger(name: str = None, log_dir: Optional[Path] = None,
                 level: str = 'INFO', console: bool = True,
                 file: bool = True) -> logging.Logger:
    """
    Setup logger with console and file handlers.

    Console output goes to stderr so that keys written to stdout stay
    clean for piping.

    Args:
        name: Logger name
        log_dir: Directory for log files
        level: Logging level
        console: Whether to log to console
        file: Whether to log to file

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers properly (avoid handler leaks)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file and log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        log_file = log_dir / f"{name or 'spectral_hk'}_{timestamp}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")

    # Prevent double logging when this function is called multiple times
    logger.propagate = False

    return logger


class ProgressLogger:
    """
    Logger for tracking batch progress with ETA estimation.
    """

    def __init__(self, total_steps: int, log_interval: int = 1000,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize progress logger.

        Args:
            total_steps: Total number of identifiers
            log_interval: Logging interval
            logger: Logger to write to (defaults to this module's)
        """
        self.total_steps = total_steps
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.current_step = 0
        self.start_time = datetime.now()
        self.counts: Dict[str, int] = {'ok': 0, 'empty': 0, 'failed': 0}

    def update(self, status: str = 'ok'):
        """
        Record one processed identifier.

        Args:
            status: 'ok', 'empty' or 'failed'
        """
        self.current_step += 1
        self.counts[status] = self.counts.get(status, 0) + 1
        if self.current_step % self.log_interval == 0:
            self._log_progress()

    def eta(self) -> Optional[datetime]:
        if self.current_step == 0:
            return None
        elapsed = (datetime.now() - self.start_time).total_seconds()
        remaining = self.total_steps - self.current_step
        return datetime.now() + timedelta(seconds=elapsed / self.current_step * remaining)

    def _log_progress(self):
        """Log current progress with ETA."""
        progress = self.current_step / max(self.total_steps, 1) * 100
        eta = self.eta()
        eta_str = eta.strftime('%Y-%m-%d %H:%M:%S') if eta is not None else 'Unknown'

        log_msg = f"Processed {self.current_step}/{self.total_steps} ({progress:.1f}%)"
        log_msg += f" | ETA: {eta_str}"
        log_msg += " | " + ", ".join(f"{k}: {v}" for k, v in self.counts.items())
        self.logger.info(log_msg)

    def finish(self):
        """Log completion message."""
        total_time = (datetime.now() - self.start_time).total_seconds()
        hours = int(total_time // 3600)
        minutes = int((total_time % 3600) // 60)
        seconds = int(total_time % 60)

        self.logger.info(f"Processed {self.current_step} identifiers in {hours}h {minutes}m {seconds}s "
                         f"({self.counts['ok']} ok, {self.counts['empty']} empty, "
                         f"{self.counts['failed']} failed)")
