"""
A complete circuit around the ECDSA chip: one aux region, one region that
assigns the signature and verifies it, then the range tables.
"""

from __future__ import annotations

from typing import List

from .constraint_system import ConstraintSystem, MockProver, VerifyFailure
from .curves import Curve, Point
from .ecc import GeneralEccChip
from .ecdsa import AssignedEcdsaSig, AssignedPublicKey, EcdsaChip, EcdsaConfig, EcdsaSig
from .fields import native_modulus
from .main_gate import MainGate
from .range_chip import RangeChip
from .rns import BIT_LEN_LIMB, Integer


class EcdsaVerifyCircuit:
    def __init__(
        self,
        curve: Curve,
        aux_generator: Point,
        window_size: int = 2,
        bit_len_limb: int = BIT_LEN_LIMB,
    ):
        self.curve = curve
        self.aux_generator = aux_generator
        self.window_size = window_size
        self.bit_len_limb = bit_len_limb
        self.rns_base, self.rns_scalar = GeneralEccChip.rns(curve, bit_len_limb, native_modulus)

    def signature(self, r: int, s: int) -> EcdsaSig:
        return EcdsaSig(self.rns_scalar.new(r), self.rns_scalar.new(s))

    def msg_hash(self, h: int) -> Integer:
        return self.rns_scalar.new(h)

    def configure(self, cs: ConstraintSystem) -> EcdsaConfig:
        main_gate_config = MainGate.configure(cs)
        overflow_bit_lengths = self.rns_base.overflow_lengths() + self.rns_scalar.overflow_lengths()
        range_config = RangeChip.configure(
            cs, main_gate_config, overflow_bit_lengths, self.rns_base.bit_len_lookup
        )
        return EcdsaConfig(range_config, main_gate_config)

    def synthesize(
        self,
        cs: ConstraintSystem,
        config: EcdsaConfig,
        sig: EcdsaSig,
        public_key: Point,
        msg_hash: Integer,
    ) -> None:
        ecc_chip = GeneralEccChip(
            config.ecc_chip_config(), self.curve, self.bit_len_limb, cs.native_modulus
        )

        region = cs.assign_region("assign aux values")
        ecc_chip.assign_aux_generator(region, self.aux_generator)
        ecc_chip.assign_aux(region, self.window_size, 2)

        ecdsa_chip = EcdsaChip(ecc_chip, self.window_size)
        scalar_chip = ecdsa_chip.scalar_field_chip()

        region = cs.assign_region("region 0")
        r = scalar_chip.assign_integer(region, sig.r)
        s = scalar_chip.assign_integer(region, sig.s)
        pk = AssignedPublicKey(ecc_chip.assign_point(region, public_key))
        msg = scalar_chip.assign_integer(region, msg_hash)
        ecdsa_chip.verify(region, AssignedEcdsaSig(r, s), pk, msg)

        range_chip = RangeChip(config.range_config)
        range_chip.load_limb_range_table(cs)
        range_chip.load_overflow_range_tables(cs)

    def build(self, sig: EcdsaSig, public_key: Point, msg_hash: Integer) -> ConstraintSystem:
        cs = ConstraintSystem(native_modulus)
        config = self.configure(cs)
        self.synthesize(cs, config, sig, public_key, msg_hash)
        return cs

    def prove(
        self, sig: EcdsaSig, public_key: Point, msg_hash: Integer, verbose=False
    ) -> List[VerifyFailure]:
        cs = self.build(sig, public_key, msg_hash)
        if verbose:
            print(self.curve, "rows:", cs.rows, "window size:", self.window_size)
        return MockProver.run(cs).verify(verbose=verbose)
