import logging.config
import sys

SEPARATOR = "=" * 80


def setup_logging(log_level: str = "INFO"):
    log_level = log_level.upper()

    LOGGING_CONFIG = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": f"\n{SEPARATOR}\n%(asctime)s | %(levelname)-8s | %(name)s\n"
                f"%(pathname)s:%(lineno)d\n%(message)s\n{SEPARATOR}",
            },
            "simple": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
            },
        },
        "handlers": {
            "console": {
                "formatter": "simple",
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
            },
            "error_console": {
                "formatter": "detailed",
                "class": "logging.StreamHandler",
                "stream": sys.stderr,
                "level": "WARNING",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "error_console"],
                "level": log_level,
            },
            "uvicorn.access": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": False,
            },
            "loyaltyapi": {
                "handlers": ["console", "error_console"],
                "level": log_level,
                "propagate": False,
            },
            # 정산 실패 원인 추적용 - 운영에서는 WARNING 이상만
            "sqlalchemy.engine": {
                "level": "WARNING",
            },
        },
    }
    logging.config.dictConfig(LOGGING_CONFIG)
