from .local import LocalStore
from .session import StoreSession

__all__ = ["LocalStore", "StoreSession"]
