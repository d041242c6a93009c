import logging
import sys


class LoggerConfig:
    """Configuration for logger singleton"""

    def __init__(self):
        self.logger = logging.getLogger("school_portal")
        if not self.logger.handlers:
            self._setup_logging()

    def _setup_logging(self):
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        )

        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        self.logger.addHandler(console)
        self.logger.setLevel(logging.INFO)

    def get_logger(self, name: str | None = None) -> logging.Logger:
        if name:
            return self.logger.getChild(name)
        return self.logger


logger_config = LoggerConfig()
logger = logger_config.get_logger()


def get_logger(name: str) -> logging.Logger:
    return logger_config.get_logger(name)
