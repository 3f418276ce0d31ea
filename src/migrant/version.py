"""Migration version identifiers.

A version wraps a single integer. Two sentinels, ``MigrationVersion.MIN`` and
``MigrationVersion.MAX``, sort before and after every real version so that
range queries can be left open on either side.
"""

from __future__ import annotations

from functools import total_ordering

# Sort rank of the sentinels relative to real versions
_RANK_MIN = -1
_RANK_REAL = 0
_RANK_MAX = 1


@total_ordering
class MigrationVersion:
    """Totally ordered, immutable migration version.

    Attributes:
        value: Underlying integer, or None for the sentinels.
    """

    __slots__ = ("_rank", "_value")

    MIN: MigrationVersion
    MAX: MigrationVersion

    def __init__(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Migration version must be an int, got {type(value).__name__}")
        object.__setattr__(self, "_rank", _RANK_REAL)
        object.__setattr__(self, "_value", value)

    @classmethod
    def _sentinel(cls, rank: int) -> MigrationVersion:
        version = object.__new__(cls)
        object.__setattr__(version, "_rank", rank)
        object.__setattr__(version, "_value", None)
        return version

    @classmethod
    def of(cls, value: int | MigrationVersion) -> MigrationVersion:
        """Coerce an int (or an existing version) to a MigrationVersion."""
        if isinstance(value, MigrationVersion):
            return value
        return cls(value)

    @property
    def value(self) -> int | None:
        return self._value

    @property
    def is_sentinel(self) -> bool:
        return self._rank != _RANK_REAL

    def _key(self) -> tuple[int, int]:
        return (self._rank, self._value if self._value is not None else 0)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("MigrationVersion is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MigrationVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MigrationVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __int__(self) -> int:
        if self._value is None:
            raise ValueError(f"Sentinel version {self} has no integer value")
        return self._value

    def __str__(self) -> str:
        if self._rank == _RANK_MIN:
            return "MIN"
        if self._rank == _RANK_MAX:
            return "MAX"
        return str(self._value)

    def __repr__(self) -> str:
        if self.is_sentinel:
            return f"MigrationVersion.{self}"
        return f"MigrationVersion({self._value})"

    def __reduce__(self):
        if self._rank == _RANK_MIN:
            return (_sentinel_min, ())
        if self._rank == _RANK_MAX:
            return (_sentinel_max, ())
        return (MigrationVersion, (self._value,))


MigrationVersion.MIN = MigrationVersion._sentinel(_RANK_MIN)
MigrationVersion.MAX = MigrationVersion._sentinel(_RANK_MAX)


def _sentinel_min() -> MigrationVersion:
    return MigrationVersion.MIN


def _sentinel_max() -> MigrationVersion:
    return MigrationVersion.MAX
