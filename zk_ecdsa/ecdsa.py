from __future__ import annotations

from dataclasses import dataclass

from .constraint_system import Region
from .ecc import AssignedPoint, EccConfig, GeneralEccChip
from .integer import AssignedInteger, IntegerChip, IntegerConfig
from .main_gate import MainGateConfig
from .range_chip import RangeConfig
from .rns import Integer


@dataclass(frozen=True)
class EcdsaConfig:
    range_config: RangeConfig
    main_gate_config: MainGateConfig

    def ecc_chip_config(self) -> EccConfig:
        return EccConfig(self.range_config, self.main_gate_config)

    def integer_chip_config(self) -> IntegerConfig:
        return IntegerConfig(self.range_config, self.main_gate_config)


@dataclass
class EcdsaSig:
    r: Integer
    s: Integer


@dataclass
class AssignedEcdsaSig:
    r: AssignedInteger
    s: AssignedInteger


@dataclass
class AssignedPublicKey:
    point: AssignedPoint


class EcdsaChip:
    """ECDSA verification over a general elliptic-curve chip.

    `Q = u1*G + u2*pk` is a single batched multiplication with
    `window_size`; the caller must have assigned the auxiliary generator and
    the aux for that window size with two pairs before calling `verify`.
    """

    def __init__(self, ecc_chip: GeneralEccChip, window_size: int = 2):
        self._ecc_chip = ecc_chip
        self.window_size = window_size

    def ecc_chip(self) -> GeneralEccChip:
        return self._ecc_chip

    def scalar_field_chip(self) -> IntegerChip:
        return self._ecc_chip.scalar_field_chip()

    def base_field_chip(self) -> IntegerChip:
        return self._ecc_chip.base_field_chip()

    def verify(
        self,
        region: Region,
        sig: AssignedEcdsaSig,
        pk: AssignedPublicKey,
        msg_hash: AssignedInteger,
    ) -> None:
        ecc_chip = self._ecc_chip
        scalar_chip = self.scalar_field_chip()
        base_chip = self.base_field_chip()

        # 1. check 0 < r, s < n
        # since `assert_not_zero` already includes an in-field check we can
        # just call `assert_not_zero`
        scalar_chip.assert_not_zero(region, sig.r)
        scalar_chip.assert_not_zero(region, sig.s)

        # 2. w = s^(-1) (mod n)
        s_inv = scalar_chip.invert(region, sig.s)

        # 3. u1 = m' * w (mod n)
        u1 = scalar_chip.mul(region, msg_hash, s_inv)

        # 4. u2 = r * w (mod n)
        u2 = scalar_chip.mul(region, sig.r, s_inv)

        # 5. compute Q = u1*G + u2*pk
        # one shared doubling chain; either scalar may be zero, only Q itself
        # must not be the point at infinity
        generator = ecc_chip.assign_constant_point(region, ecc_chip.curve.generator)
        q = ecc_chip.mul_batch(
            region, [(generator, u1), (pk.point, u2)], self.window_size
        )

        # 6. reduce q_x into the base field, then into the scalar field
        # both fields use the same limb width
        q_x = q.get_x()
        q_x_reduced_in_q = base_chip.reduce(region, q_x)
        q_x_reduced_in_r = scalar_chip.reduce(region, q_x_reduced_in_q)

        # 7. check if Q.x == r (mod n)
        scalar_chip.assert_strict_equal(region, q_x_reduced_in_r, sig.r)
