import os
import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

PACKAGE_LOGGER = "remote_views"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LogConfig:
    """Attaches console and optional rotating file output to the package logger."""

    def __init__(
        self,
        log_level: str = 'INFO',
        log_file: Optional[str] = None,
        json_logging: bool = False,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        logger_name: str = PACKAGE_LOGGER
    ):
        """
        Initialize the logging configuration.

        Args:
            log_level: Level name applied to the logger and its handlers
            log_file: Rotating log file, console only when omitted
            json_logging: Emit one JSON object per record
            max_bytes: Size at which the log file rotates
            backup_count: Rotated files kept next to the log file
            logger_name: Logger receiving the handlers
        """
        self.log_level = getattr(logging, log_level.upper())
        self.log_file = log_file
        self.json_logging = json_logging
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.logger_name = logger_name

    @classmethod
    def from_configuration(cls, config) -> 'LogConfig':
        """Build a log config from the logging fields of an EngineConfiguration."""
        return cls(
            log_level=config.log_level,
            log_file=config.log_file,
            json_logging=config.json_logging,
            max_bytes=config.log_max_bytes,
            backup_count=config.log_backup_count
        )

    def _handlers(self) -> List[logging.Handler]:
        formatter = JsonFormatter() if self.json_logging else logging.Formatter(LOG_FORMAT)
        handlers: List[logging.Handler] = [logging.StreamHandler()]

        if self.log_file:
            log_dir = os.path.dirname(self.log_file)
            if log_dir:
                Path(log_dir).mkdir(parents=True, exist_ok=True)
            handlers.append(logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=self.max_bytes,
                backupCount=self.backup_count,
                encoding='utf-8'
            ))

        for handler in handlers:
            handler.setFormatter(formatter)
            handler.setLevel(self.log_level)
        return handlers

    def configure(self) -> logging.Logger:
        """Replace the handlers of the target logger and return it."""
        target = logging.getLogger(self.logger_name)
        target.setLevel(self.log_level)

        for handler in target.handlers[:]:
            target.removeHandler(handler)
            handler.close()

        for handler in self._handlers():
            target.addHandler(handler)
        return target


class JsonFormatter(logging.Formatter):
    """One JSON object per record, timestamped when the record was created."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}:{record.lineno}"
        }
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        return json.dumps(log_data)
