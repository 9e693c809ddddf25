import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
from pythonjsonlogger import jsonlogger

from utils.logger import RequestIDFilter


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that adds the standard fields every entry should carry.
    """
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)

        log_record['timestamp'] = record.created
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno
        log_record['request_id'] = getattr(record, "request_id", "-")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs"):
    """
    Configure application-wide logging.

    Console output is human readable and honours `log_level`. When `log_dir`
    is set, everything also goes to app.log and errors to error.log, both as
    JSON lines. Passing log_dir=None keeps logging on the console only.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    request_filter = RequestIDFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    handlers = [console_handler]

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        json_formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(logger)s %(message)s')
        handlers.append(_rotating_handler(log_path / "app.log", logging.DEBUG, json_formatter))
        handlers.append(_rotating_handler(log_path / "error.log", logging.ERROR, json_formatter))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    for handler in handlers:
        handler.addFilter(request_filter)
        root_logger.addHandler(handler)

    for noisy in ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy.engine",
                  "passlib.handlers.argon2", "passlib.registry"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    root_logger.info(
        "Logging configured",
        extra={"log_level": log_level, "log_dir": log_dir}
    )
