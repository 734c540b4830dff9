"""Entity keys."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Key:
    """
    Identifies an entity in the store.

    A key is complete when it has either a ``name`` or a non-zero ``id``.
    Parents form the ancestor path and must share the key's namespace.
    """

    kind: str
    name: Optional[str] = None
    id: int = 0
    parent: Optional["Key"] = None
    namespace: str = ""

    def incomplete(self) -> bool:
        return not self.name and self.id == 0

    def valid(self) -> bool:
        k: Optional[Key] = self
        while k is not None:
            if not k.kind:
                return False
            if k.name and k.id != 0:
                return False
            if k.id < 0:
                return False
            if k.parent is not None:
                if k.parent.incomplete():
                    return False
                if k.parent.namespace != k.namespace:
                    return False
            k = k.parent
        return True

    def path(self) -> list["Key"]:
        """Return the ancestor path, root first."""
        chain = []
        k: Optional[Key] = self
        while k is not None:
            chain.append(k)
            k = k.parent
        return list(reversed(chain))

    def canonical_string(self) -> str:
        """
        Return a string that is identical for equal keys.

        Used to deduplicate keys within a batch and as the stored row key.
        Kinds, names and namespaces are JSON-quoted and ids are bare, so a
        name such as "12" never collides with id 12.
        """
        parts = []
        for k in self.path():
            ident = json.dumps(k.name) if k.name else str(k.id)
            parts.append(f"/{json.dumps(k.kind)},{ident}")
        path = "".join(parts)
        if self.namespace:
            return f"{json.dumps(self.namespace)}:{path}"
        return path

    def with_id(self, id: int) -> "Key":
        return Key(self.kind, id=id, parent=self.parent, namespace=self.namespace)

    def to_wire(self) -> dict[str, Any]:
        path = []
        for k in self.path():
            elem: dict[str, Any] = {"kind": k.kind}
            if k.name:
                elem["name"] = k.name
            elif k.id:
                elem["id"] = str(k.id)
            path.append(elem)
        return {"partition_id": {"namespace_id": self.namespace}, "path": path}

    def __str__(self) -> str:
        return self.canonical_string()


def key_is_valid(key: Optional[Key]) -> bool:
    return key is not None and key.valid()
