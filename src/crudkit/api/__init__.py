from .error_handlers import register_exception_handlers
from .middleware import RequestIDMiddleware

__all__ = ["register_exception_handlers", "RequestIDMiddleware"]
