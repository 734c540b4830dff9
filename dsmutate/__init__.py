from .batch import build_batch
from .config import StoreConfig
from .keys import Key
from .mutation import Mutation, new_delete, new_insert, new_update, new_upsert
from .store import LocalStore
from .transforms import (
    PropertyTransform,
    append_missing_elements,
    increment,
    maximum,
    minimum,
    remove_all_from_array,
    set_to_server_time,
)

__all__ = [
    "Key",
    "Mutation",
    "new_insert",
    "new_upsert",
    "new_update",
    "new_delete",
    "build_batch",
    "PropertyTransform",
    "set_to_server_time",
    "increment",
    "maximum",
    "minimum",
    "append_missing_elements",
    "remove_all_from_array",
    "LocalStore",
    "StoreConfig",
]
