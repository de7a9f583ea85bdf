import logging
import sys
import time

from fastapi import Request

LOG_FORMAT = '[%(asctime)s] %(levelname)s in %(name)s: %(message)s'

access_logger = logging.getLogger('articles_api.access')


def configure_logging(log_level: str = 'INFO') -> logging.Logger:
    """Attach a stdout handler to the package logger once."""
    logger = logging.getLogger('articles_api')
    logger.setLevel(log_level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


async def log_requests(request: Request, call_next):
    """One line per request: method, path, status and duration."""
    start_time = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start_time) * 1000
    access_logger.info(
        f"{request.method} {request.url.path} {response.status_code} - {duration_ms:.1f} ms"
    )
    return response
