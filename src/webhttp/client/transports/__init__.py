from .base import ClientTransport
from .rest import RestTransport

__all__ = [
    'ClientTransport',
    'RestTransport',
]
