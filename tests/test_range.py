import pytest

from zk_ecdsa import ConstraintSystem, MainGate, MockProver, RangeChip, SynthesisError


@pytest.fixture
def setup():
    cs = ConstraintSystem()
    main_gate_config = MainGate.configure(cs)
    range_chip = RangeChip(RangeChip.configure(cs, main_gate_config, [1, 16], 17))
    range_chip.load_limb_range_table(cs)
    range_chip.load_overflow_range_tables(cs)
    return cs, range_chip, cs.assign_region("range")


def test_configure_keeps_real_overflows():
    cs = ConstraintSystem()
    config = RangeChip.configure(cs, MainGate.configure(cs), [0, 1, 17, 16, 1, 20], 17)
    assert config.overflow_bit_lengths == (1, 16)
    assert config.bit_len_lookup == 17


def test_full_limb_takes_one_row(setup):
    cs, range_chip, region = setup
    value = (1 << 68) - 1
    assert range_chip.assign(region, value, 68).value == value
    assert region.offset == 1
    assert len(cs.lookups) == 4
    assert MockProver.run(cs).verify() == []


def test_overflow_chunk_spills_to_next_row(setup):
    cs, range_chip, region = setup
    value = (1 << 85) + 12345
    assert range_chip.assign(region, value, 86).value == value
    assert region.offset == 2
    assert [bit_len for _, bit_len in cs.lookups] == [17] * 5 + [1]
    assert MockProver.run(cs).verify() == []


def test_out_of_range(setup):
    _, range_chip, region = setup
    with pytest.raises(SynthesisError):
        range_chip.assign(region, 1 << 52, 52)
    with pytest.raises(SynthesisError):
        range_chip.assign(region, -1, 52)
    with pytest.raises(ValueError):
        range_chip.assign(region, 0, 0)


def test_unconfigured_overflow(setup):
    _, range_chip, region = setup
    with pytest.raises(SynthesisError):
        range_chip.assign(region, 5, 20)


def test_prover_catches_oversized_chunk(setup):
    cs, range_chip, region = setup
    range_chip.assign(region, 3, 34)
    region.columns["a"][0] = 1 << 17
    kinds = {failure.kind for failure in MockProver.run(cs).verify()}
    assert kinds == {"gate", "lookup"}
