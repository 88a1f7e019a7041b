"""
Middleware around the lookup handler.

    base.py      Middleware contract and MiddlewarePipeline
    logging.py   LoggingMiddleware (access log)
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
