from .logging import build_log_context, get_current_context, log_event, redact, set_current_context, set_min_level

__all__ = [
    "build_log_context",
    "get_current_context",
    "log_event",
    "redact",
    "set_current_context",
    "set_min_level",
]
