from webhttp.core.context import ContextError, WebHttpContext

__all__ = ["ContextError", "WebHttpContext"]
