import logging
from concurrent_log_handler import ConcurrentRotatingFileHandler
from pathlib import Path
from typing import Optional

from app.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that drown out XP/streak messages at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


class LogConfig:
    """Logging for every "app.*" module: one shared rotating file plus the console"""

    def __init__(self, log_file: str = "bookstreak.log"):
        self.log_file = log_file
        self.logger = None

    def setup_logging(self, log_level: str = "INFO", log_dir: Optional[Path] = None):
        log_dir = Path(log_dir or settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger("app")
        self.logger.setLevel(getattr(logging, log_level.upper()))

        # Lifespan runs again on every TestClient / reload
        self.logger.handlers.clear()

        # 10MB per file, 10 gzipped backups, file lock shared by uvicorn workers
        file_handler = ConcurrentRotatingFileHandler(
            filename=log_dir / self.log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
            use_gzip=True
        )
        console_handler = logging.StreamHandler()

        formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        for handler in (file_handler, console_handler):
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        return self.logger


log_config = LogConfig()
