from .midwares import ClientContext
from .midwares import ClientRequestInterceptor
from .midwares import InterceptorPipeline
from .midwares import PreparedRequest
from .errors import TransportRequestError
from .errors import TransportResponseError
from .errors import normalize_error

__all__ = [
    "ClientContext",
    "ClientRequestInterceptor",
    "InterceptorPipeline",
    "PreparedRequest",
    "TransportRequestError",
    "TransportResponseError",
    "normalize_error",
]
