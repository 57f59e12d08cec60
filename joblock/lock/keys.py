"""
Lock key derivation.

Maps a job identity (job type name plus argument sequence) to the string
key that names its mutual-exclusion domain. Derivation is pure and never
consults the store.
"""

import json
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from joblock.constants import LOCK_KEY_PREFIX, LOCK_KEY_SEPARATOR

# Type alias for key derivation functions
KeyDeriverFn = Callable[[str, Sequence[Any]], str]

# Values JSON has no native form for are wrapped in a single-key object
# whose key is one of these tags
_TAGS = frozenset(
    {"__bytes__", "__date__", "__datetime__", "__decimal__", "__dict__",
     "__enum__", "__set__", "__time__", "__uuid__"}
)


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _sorted_canonical(values: Any) -> list[Any]:
    return sorted((_canonical(v) for v in values), key=_dumps)


def _canonical(value: Any) -> Any:
    """Convert a value to a JSON-native form that is stable across processes."""
    if isinstance(value, Enum):
        return {"__enum__": [type(value).__qualname__, _canonical(value.value)]}
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        if all(isinstance(k, str) for k in value) and not (
            len(value) == 1 and next(iter(value)) in _TAGS
        ):
            return {k: _canonical(v) for k, v in value.items()}
        pairs = [[_canonical(k), _canonical(v)] for k, v in value.items()]
        return {"__dict__": sorted(pairs, key=lambda pair: _dumps(pair[0]))}
    if isinstance(value, (set, frozenset)):
        return {"__set__": _sorted_canonical(value)}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if isinstance(value, Decimal):
        return {"__decimal__": str(value)}
    if isinstance(value, UUID):
        return {"__uuid__": str(value)}
    # datetime is a date subclass
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    if isinstance(value, date):
        return {"__date__": value.isoformat()}
    if isinstance(value, time):
        return {"__time__": value.isoformat()}
    if isinstance(value, (bytes, bytearray)):
        return {"__bytes__": bytes(value).hex()}
    raise TypeError(
        f"Cannot derive a lock key from argument of type {type(value).__name__}; "
        "register a key override for this job type"
    )


def render_args(args: Sequence[Any]) -> str:
    """
    Render an argument sequence to a canonical string.

    The rendering is identical in every process for equal arguments:
    order-sensitive for sequences, insensitive to mapping insertion order
    and set iteration order, and type-preserving (``1``, ``"1"`` and
    ``{1: ...}`` versus ``{"1": ...}`` all differ). Plain JSON values
    render as JSON; sets, mappings with non-string keys, ``Decimal``,
    ``UUID``, dates, bytes and enums render as tagged objects such as
    ``{"__set__":[1,2]}``.

    Args:
        args: The job arguments.

    Returns:
        The canonical rendering, e.g. ``[1,"a"]``.

    Raises:
        TypeError: If an argument has no canonical form. Arbitrary objects
            are rejected rather than rendered with ``repr()``, which may
            include memory addresses or hash-order dependent output.
    """
    return _dumps(_canonical(list(args)))


def default_lock_key(job_type: str, args: Sequence[Any]) -> str:
    """
    Derive the default lock key for a job.

    Args:
        job_type: Stable job type name.
        args: The job arguments.

    Returns:
        ``"locked:" + job_type + "-" + render_args(args)``.
    """
    return f"{LOCK_KEY_PREFIX}{job_type}{LOCK_KEY_SEPARATOR}{render_args(args)}"


def constant_key(key: str) -> KeyDeriverFn:
    """
    Build a deriver that ignores the arguments.

    Every job of the overridden type then contends for one lock.

    Example:
        deriver.register("update_network_graph", constant_key("network-graph"))
    """
    if not key:
        raise ValueError("Lock key must not be empty")

    def derive(job_type: str, args: Sequence[Any]) -> str:
        return key

    return derive


class LockKeyDeriver:
    """
    Lock key derivation with per-job-type overrides.

    Job types without an override use the default derivation. An override
    may collapse the key space (a constant key) or widen it (extra context
    not present in the arguments).
    """

    def __init__(self, default: KeyDeriverFn = default_lock_key):
        self._default = default
        self._overrides: dict[str, KeyDeriverFn] = {}

    def register(self, job_type: str, deriver: KeyDeriverFn) -> None:
        """Install a key override for a job type."""
        self._overrides[job_type] = deriver

    def unregister(self, job_type: str) -> None:
        """Remove the key override for a job type, if any."""
        self._overrides.pop(job_type, None)

    def has_override(self, job_type: str) -> bool:
        return job_type in self._overrides

    def derive(self, job_type: str, args: Sequence[Any]) -> str:
        """
        Derive the lock key for a job.

        Args:
            job_type: Stable job type name.
            args: The job arguments.

        Returns:
            The lock key.

        Raises:
            ValueError: If the deriver produced an empty key.
        """
        deriver = self._overrides.get(job_type, self._default)
        key = deriver(job_type, args)
        if not key:
            raise ValueError(f"Empty lock key derived for job type: {job_type}")
        return key

    __call__ = derive
