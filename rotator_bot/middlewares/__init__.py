from .structlog_middleware import StructLoggingMiddleware

__all__ = ["StructLoggingMiddleware"]
