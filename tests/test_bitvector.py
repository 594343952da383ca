"""Tests for the 64 slot node bit-set."""
import pickle

import numpy as np
import pytest

from missioncontrol.cluster import NodeBitVector

SAMPLES = [
    NodeBitVector(0),
    NodeBitVector(1),
    NodeBitVector(0x8000000000000000),
    NodeBitVector(0x00FF00FF00FF00FF),
    NodeBitVector.ONES,
]


class TestConstruction:
    """Tests for building node sets."""

    def test_from_raw_bits(self):
        vector = NodeBitVector(0b1011)
        assert vector.bits == 0b1011
        assert vector.indices() == [0, 1, 3]

    def test_bits_must_fit_in_64(self):
        with pytest.raises(ValueError):
            NodeBitVector(1 << 64)
        with pytest.raises(ValueError):
            NodeBitVector(-1)

    @pytest.mark.parametrize("index", [0, 1, 31, 32, 63])
    def test_from_index(self, index):
        """Test only the requested bit is set."""
        vector = NodeBitVector.from_index(index)
        assert vector[index]
        assert all(not vector[i] for i in range(64) if i != index)

    @pytest.mark.parametrize("index", [-1, 64, 100])
    def test_index_out_of_range(self, index):
        with pytest.raises(IndexError):
            NodeBitVector.from_index(index)
        with pytest.raises(IndexError):
            NodeBitVector.EMPTY[index]

    def test_index_must_be_integer(self):
        with pytest.raises(TypeError):
            NodeBitVector.from_index(1.0)
        with pytest.raises(TypeError):
            NodeBitVector.from_index(True)

    def test_numpy_integer_index(self):
        assert NodeBitVector.from_index(np.int64(5)) == NodeBitVector(1 << 5)

    def test_from_indices(self):
        assert NodeBitVector.from_indices([0, 5, 5, 63]).indices() == [0, 5, 63]

    def test_array_round_trip(self):
        vector = NodeBitVector.from_indices([0, 7, 8, 40, 63])
        mask = vector.to_array()
        assert mask.shape == (64,)
        assert mask.dtype == bool
        assert list(np.flatnonzero(mask)) == [0, 7, 8, 40, 63]
        assert NodeBitVector.from_array(mask) == vector

    def test_from_array_wrong_shape(self):
        with pytest.raises(ValueError):
            NodeBitVector.from_array(np.zeros(32, dtype=bool))


class TestOperations:
    """Tests for bit-set algebra."""

    @pytest.mark.parametrize("vector", SAMPLES)
    def test_mask_with_all_ones_is_identity(self, vector):
        assert vector.mask_bits(NodeBitVector.ONES) == vector

    @pytest.mark.parametrize("vector", SAMPLES)
    def test_mask_with_empty_is_empty(self, vector):
        assert vector.mask_bits(NodeBitVector.EMPTY) == NodeBitVector.EMPTY

    def test_empty_has_no_members(self):
        assert not NodeBitVector.EMPTY.any()
        assert not NodeBitVector.EMPTY
        assert NodeBitVector.EMPTY.count() == 0

    @pytest.mark.parametrize("vector", SAMPLES)
    @pytest.mark.parametrize("index", [0, 13, 63])
    def test_set_then_unset_restores(self, vector, index):
        """Test set_bit followed by unset_bit restores a vector without the bit."""
        base = vector.unset_bit(index)
        assert base.set_bit(index).unset_bit(index) == base

    def test_operations_return_new_values(self):
        vector = NodeBitVector.from_index(3)
        updated = vector.set_bit(4)
        assert vector.indices() == [3]
        assert updated.indices() == [3, 4]

    def test_immutable(self):
        vector = NodeBitVector(1)
        with pytest.raises(AttributeError):
            vector._bits = 2

    def test_quorum(self):
        selected = NodeBitVector.from_indices([0, 1, 5])
        healthy = NodeBitVector.from_indices([1, 5, 9])
        assert selected.mask_bits(healthy).indices() == [1, 5]
        assert (selected & healthy) == selected.mask_bits(healthy)
        assert (selected | healthy).indices() == [0, 1, 5, 9]

    def test_count_and_iteration(self):
        vector = NodeBitVector.from_indices([2, 4, 60])
        assert vector.count() == 3
        assert len(vector) == 3
        assert list(vector) == [2, 4, 60]
        assert NodeBitVector.ONES.count() == 64


class TestEquality:
    """Tests for value equality."""

    @pytest.mark.parametrize("vector", SAMPLES)
    def test_reflexive(self, vector):
        assert vector == vector

    def test_matches_bit_pattern_equality(self):
        for a in SAMPLES:
            for b in SAMPLES:
                assert (a == NodeBitVector(b.bits)) == (a.bits == b.bits)
                assert (a == b) == (b == a)

    def test_transitive(self):
        a = NodeBitVector.from_indices([1, 2])
        b = NodeBitVector.from_index(1).set_bit(2)
        c = NodeBitVector(0b110)
        assert a == b and b == c and a == c

    def test_hash_consistent_with_equality(self):
        assert len({NodeBitVector(5), NodeBitVector.from_indices([0, 2])}) == 1

    def test_other_types_are_not_equal(self):
        assert NodeBitVector(1) != 1

    def test_pickle(self):
        vector = NodeBitVector.from_indices([3, 33])
        assert pickle.loads(pickle.dumps(vector)) == vector

    def test_repr(self):
        assert repr(NodeBitVector(0xFF)) == "NodeBitVector(0x00000000000000ff)"
