from .settings import Settings, get_settings
from .messages import MessageTemplates

__all__ = ["Settings", "get_settings", "MessageTemplates"]
