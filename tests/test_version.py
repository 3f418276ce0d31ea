"""Tests for migration version ordering and sentinels."""

import copy

import pytest

from migrant.version import MigrationVersion


class TestOrdering:
    """Tests for comparisons between versions."""

    def test_equality_by_value(self) -> None:
        """Two versions with the same value are equal and hash alike."""
        assert MigrationVersion(5) == MigrationVersion(5)
        assert hash(MigrationVersion(5)) == hash(MigrationVersion(5))
        assert MigrationVersion(5) != MigrationVersion(6)

    def test_total_order(self) -> None:
        """Versions order by value."""
        assert MigrationVersion(1) < MigrationVersion(2)
        assert MigrationVersion(3) > MigrationVersion(2)
        assert MigrationVersion(2) <= MigrationVersion(2)
        assert MigrationVersion(2) >= MigrationVersion(2)

    def test_sorting(self) -> None:
        """Sorting a mixed list puts sentinels at the ends."""
        versions = [
            MigrationVersion(30),
            MigrationVersion.MAX,
            MigrationVersion(-4),
            MigrationVersion.MIN,
            MigrationVersion(10),
        ]
        assert sorted(versions) == [
            MigrationVersion.MIN,
            MigrationVersion(-4),
            MigrationVersion(10),
            MigrationVersion(30),
            MigrationVersion.MAX,
        ]

    @pytest.mark.parametrize("value", [-(2**70), -1, 0, 1, 2**63 - 1, 2**70])
    def test_sentinels_bound_every_real_version(self, value: int) -> None:
        """MIN is below and MAX above any constructed version."""
        version = MigrationVersion(value)
        assert MigrationVersion.MIN < version < MigrationVersion.MAX
        assert MigrationVersion.MIN <= version <= MigrationVersion.MAX

    def test_sentinels_equal_themselves(self) -> None:
        """Sentinels compare equal only to themselves."""
        assert MigrationVersion.MIN == MigrationVersion.MIN
        assert MigrationVersion.MAX == MigrationVersion.MAX
        assert MigrationVersion.MIN < MigrationVersion.MAX
        assert MigrationVersion.MIN != MigrationVersion(0)

    def test_not_equal_to_plain_int(self) -> None:
        """Versions do not silently compare equal to ints."""
        assert MigrationVersion(1) != 1

    def test_ordering_against_int_raises(self) -> None:
        """Ordering a version against an int is a type error."""
        with pytest.raises(TypeError):
            MigrationVersion(1) < 2  # noqa: B015


class TestConstruction:
    """Tests for building and converting versions."""

    def test_rejects_non_int(self) -> None:
        """Only ints are accepted."""
        with pytest.raises(TypeError):
            MigrationVersion("3")
        with pytest.raises(TypeError):
            MigrationVersion(1.5)

    def test_rejects_bool(self) -> None:
        """Booleans are not versions."""
        with pytest.raises(TypeError):
            MigrationVersion(True)

    def test_of_coerces_int(self) -> None:
        """MigrationVersion.of wraps ints and passes versions through."""
        version = MigrationVersion(7)
        assert MigrationVersion.of(7) == version
        assert MigrationVersion.of(version) is version

    def test_int_conversion(self) -> None:
        """int() returns the scalar for real versions only."""
        assert int(MigrationVersion(42)) == 42
        with pytest.raises(ValueError):
            int(MigrationVersion.MAX)

    def test_str_and_repr(self) -> None:
        """Display forms."""
        assert str(MigrationVersion(42)) == "42"
        assert str(MigrationVersion.MIN) == "MIN"
        assert str(MigrationVersion.MAX) == "MAX"
        assert repr(MigrationVersion(42)) == "MigrationVersion(42)"
        assert repr(MigrationVersion.MAX) == "MigrationVersion.MAX"

    def test_is_sentinel(self) -> None:
        """Only MIN and MAX are sentinels."""
        assert MigrationVersion.MIN.is_sentinel
        assert MigrationVersion.MAX.is_sentinel
        assert not MigrationVersion(0).is_sentinel
        assert MigrationVersion.MIN.value is None

    def test_immutable(self) -> None:
        """Attributes cannot be reassigned."""
        version = MigrationVersion(1)
        with pytest.raises(AttributeError):
            version._value = 2
        assert version == MigrationVersion(1)

    def test_copy_preserves_identity_of_sentinels(self) -> None:
        """Copying keeps sentinels singletons and real versions equal."""
        assert copy.deepcopy(MigrationVersion.MAX) is MigrationVersion.MAX
        assert copy.copy(MigrationVersion.MIN) is MigrationVersion.MIN
        assert copy.deepcopy(MigrationVersion(9)) == MigrationVersion(9)
