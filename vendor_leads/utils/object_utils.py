from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Optional


def get_nested_property(obj: Any, path: Optional[str]) -> Any:
    """Return the value at a dot-separated ``path`` inside ``obj``.

    Mappings are traversed by key and lists by integer index
    (``"applicants.0.id"``). A missing segment or a non-container
    intermediate yields ``None`` rather than raising.
    """
    if not obj or not path:
        return None

    current = obj
    for key in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not key.isdigit() or int(key) >= len(current):
                return None
            current = current[int(key)]
        else:
            return None

        if current is None:
            return None

    return current
