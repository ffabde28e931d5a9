# src/crudkit/core/logging/
# ├─ __init__.py            # public API
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ context.py             # build_logging_context(exc, extra_contexts, include_trace)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # RequestIdFilter (+ contextvar helpers), RedactFilter
# └─ handlers.py            # console / rotating file handler factories


from .builder import setup_logging, make_dict_config
from .context import build_logging_context
from .filters import set_request_id, get_request_id, reset_request_id, RequestIdFilter, RedactFilter

__all__ = [
    "setup_logging",
    "make_dict_config",
    "build_logging_context",
    "set_request_id",
    "get_request_id",
    "reset_request_id",
    "RequestIdFilter",
    "RedactFilter",
]
