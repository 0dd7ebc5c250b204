import logging
import sys

import structlog
import yaml

DEFAULT_CONFIG_PATH = "./config.yaml"

logger = structlog.get_logger(__name__)


class Utils:
    def load_config(self, config_path: str = DEFAULT_CONFIG_PATH) -> dict:
        # Loads the config.yaml file and returns the config as a dictionary
        try:
            with open(config_path, 'r') as file:
                config = yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Could not load config", config_path=str(config_path), error=str(e))
            raise
        return config


def configure_logging(level: str = "INFO") -> None:
    """Route structlog through the stdlib logging module as JSON lines."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, str(level).upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
