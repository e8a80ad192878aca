from gameon.utils.bitmask import (
    bits_from_indices, indices_from_bits, set_bit, clear_bit, set_all_bits,
)


class TestBitmask:

    def test_indices_round_trip(self):
        indices = [0, 5, 11, 23]
        assert indices_from_bits(bits_from_indices(indices)) == indices

    def test_indices_from_bits_is_ascending(self):
        assert indices_from_bits(bits_from_indices([23, 1, 7])) == [1, 7, 23]
        assert indices_from_bits(0) == []

    def test_set_and_clear(self):
        mask = set_bit(3)
        assert mask == 8
        assert set_bit(0, mask) == 9
        assert clear_bit(3, mask) == 0
        assert clear_bit(4, mask) == mask

    def test_set_all_bits(self):
        assert set_all_bits(0, 3) == 0b1111
        assert set_all_bits(2, 3) == 0b1100
        assert set_all_bits(5, 4) == 0
