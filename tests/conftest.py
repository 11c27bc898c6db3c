import random

import pytest

from zk_ecdsa import ConstraintSystem, EccConfig, GeneralEccChip, MainGate, RangeChip


def configure(curve, bit_len_limb=68):
    """A constraint system with the main gate and loaded range tables for `curve`."""
    cs = ConstraintSystem()
    rns_base, rns_scalar = GeneralEccChip.rns(curve, bit_len_limb, cs.native_modulus)
    main_gate_config = MainGate.configure(cs)
    range_config = RangeChip.configure(
        cs,
        main_gate_config,
        rns_base.overflow_lengths() + rns_scalar.overflow_lengths(),
        rns_base.bit_len_lookup,
    )
    range_chip = RangeChip(range_config)
    range_chip.load_limb_range_table(cs)
    range_chip.load_overflow_range_tables(cs)
    return cs, EccConfig(range_config, main_gate_config)


@pytest.fixture
def rng():
    return random.Random(0xEC)


@pytest.fixture
def configured():
    return configure
