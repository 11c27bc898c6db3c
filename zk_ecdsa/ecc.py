"""
General elliptic-curve chip.

Points are pairs of base-field integers; scalars are scalar-field integers.
Additions are incomplete, so scalar multiplication starts every window table
from an auxiliary generator and subtracts its accumulated multiple at the
end, which keeps intermediate sums away from the point at infinity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .constraint_system import AssignedValue, Region
from .curves import Curve, Point
from .errors import SynthesisError
from .fields import native_modulus
from .integer import AssignedInteger, IntegerChip, IntegerConfig
from .main_gate import MainGate, MainGateConfig
from .range_chip import RangeConfig
from .rns import BIT_LEN_LIMB, Rns


@dataclass(frozen=True)
class EccConfig:
    range_config: RangeConfig
    main_gate_config: MainGateConfig

    def integer_chip_config(self) -> IntegerConfig:
        return IntegerConfig(self.range_config, self.main_gate_config)


class AssignedPoint:
    def __init__(self, x: AssignedInteger, y: AssignedInteger):
        self.x = x
        self.y = y

    def get_x(self) -> AssignedInteger:
        return self.x

    def get_y(self) -> AssignedInteger:
        return self.y

    def point(self) -> Point:
        return Point(self.x.value(), self.y.value())

    def __repr__(self) -> str:
        x, y = self.point()
        return f"AssignedPoint({x:#x}, {y:#x})"


@dataclass
class MulAux:
    to_add: List[AssignedPoint]
    to_sub: AssignedPoint


class GeneralEccChip:
    def __init__(
        self,
        config: EccConfig,
        curve: Curve,
        bit_len_limb: int = BIT_LEN_LIMB,
        native: int = native_modulus,
    ):
        rns_base, rns_scalar = self.rns(curve, bit_len_limb, native)
        self.config = config
        self.curve = curve
        self.main_gate = MainGate(config.main_gate_config)
        self._base_chip = IntegerChip(config.integer_chip_config(), rns_base)
        self._scalar_chip = IntegerChip(config.integer_chip_config(), rns_scalar)
        self.aux_generator: Optional[Point] = None
        self._assigned_aux_generator: Optional[AssignedPoint] = None
        self._aux: Dict[Tuple[int, int], MulAux] = {}

    @staticmethod
    def rns(
        curve: Curve, bit_len_limb: int = BIT_LEN_LIMB, native: int = native_modulus
    ) -> Tuple[Rns, Rns]:
        return (
            Rns(curve.base_modulus, native, bit_len_limb),
            Rns(curve.scalar_modulus, native, bit_len_limb),
        )

    def rns_base(self) -> Rns:
        return self._base_chip.rns

    def rns_scalar(self) -> Rns:
        return self._scalar_chip.rns

    def base_field_chip(self) -> IntegerChip:
        return self._base_chip

    def scalar_field_chip(self) -> IntegerChip:
        return self._scalar_chip

    # assignment

    def assign_point(self, region: Region, point: Optional[Point]) -> AssignedPoint:
        if point is None:
            raise SynthesisError("cannot assign the point at infinity")
        if not self.curve.is_on_curve(point):
            raise SynthesisError(f"{point} is not on {self.curve.name}")
        base = self._base_chip
        x = base.assign_integer(region, base.rns.new(point.x))
        y = base.assign_integer(region, base.rns.new(point.y))
        self._assert_on_curve(region, x, y)
        return AssignedPoint(x, y)

    def assign_constant_point(self, region: Region, point: Optional[Point]) -> AssignedPoint:
        if not self.curve.is_on_curve(point):
            raise SynthesisError(f"{point} is not on {self.curve.name}")
        base = self._base_chip
        return AssignedPoint(
            base.assign_constant(region, point.x), base.assign_constant(region, point.y)
        )

    def _assert_on_curve(self, region: Region, x: AssignedInteger, y: AssignedInteger) -> None:
        base = self._base_chip
        x_square = base.square(region, x)
        linears = [(-self.curve.a_signed, x)] if self.curve.a else []
        base.assert_relation(
            region,
            products=[(1, y, y), (-1, x_square, x)],
            linears=linears,
            constant=-self.curve.b,
        )

    def assign_aux_generator(self, region: Region, point: Point) -> None:
        self._assigned_aux_generator = self.assign_constant_point(region, point)
        self.aux_generator = point
        self._aux.clear()

    def assign_aux(self, region: Region, window_size: int, number_of_pairs: int) -> None:
        """Assigns the table offsets and the final correction for `mul_batch`.

        Pair `j` starts its table from `(j + 1) * aux`, so no two tables share
        a first entry.
        """
        if self._assigned_aux_generator is None:
            raise SynthesisError("aux generator is not assigned")
        if window_size < 1 or number_of_pairs < 1:
            raise ValueError("Window size and number of pairs must be positive.")

        curve = self.curve
        aux = self.aux_generator
        number_of_windows = -(-self.rns_scalar().wrong_modulus.bit_length() // window_size)
        to_add = [self._assigned_aux_generator] + [
            self.assign_constant_point(region, curve.multiply(aux, j + 1))
            for j in range(1, number_of_pairs)
        ]
        factor = number_of_pairs * (number_of_pairs + 1) // 2
        factor *= sum(1 << (window_size * i) for i in range(number_of_windows))
        to_sub = self.assign_constant_point(region, curve.neg(curve.multiply(aux, factor)))
        self._aux[(window_size, number_of_pairs)] = MulAux(to_add, to_sub)

    def _get_mul_aux(self, window_size: int, number_of_pairs: int) -> MulAux:
        try:
            return self._aux[(window_size, number_of_pairs)]
        except KeyError:
            raise SynthesisError(
                f"aux for window size {window_size} and {number_of_pairs} pairs is not assigned"
            ) from None

    # group law

    def _complete(
        self, region: Region, lam: AssignedInteger, a: AssignedPoint, other_x: AssignedInteger
    ) -> AssignedPoint:
        # x3 = lam^2 - x1 - x2, y3 = lam * (x1 - x3) - y1
        base = self._base_chip
        lam_value, x1, y1 = lam.value(), a.x.value(), a.y.value()
        x3 = base.assign_witness(region, lam_value * lam_value - x1 - other_x.value())
        base.assert_relation(
            region,
            products=[(1, lam, lam)],
            linears=[(-1, a.x), (-1, other_x), (-1, x3)],
        )
        y3 = base.assign_witness(region, lam_value * (x1 - x3.value()) - y1)
        base.assert_relation(
            region,
            products=[(1, lam, a.x), (-1, lam, x3)],
            linears=[(-1, a.y), (-1, y3)],
        )
        return AssignedPoint(x3, y3)

    def add(self, region: Region, a: AssignedPoint, b: AssignedPoint) -> AssignedPoint:
        base = self._base_chip
        p = self.curve.base_modulus
        (x1, y1), (x2, y2) = a.point(), b.point()
        if (x1 - x2) % p == 0:
            raise SynthesisError("incomplete addition of points sharing an x coordinate")
        lam = base.assign_witness(region, (y2 - y1) * pow(x2 - x1, -1, p))
        base.assert_relation(
            region,
            products=[(1, lam, b.x), (-1, lam, a.x)],
            linears=[(-1, b.y), (1, a.y)],
        )
        return self._complete(region, lam, a, b.x)

    def double(self, region: Region, a: AssignedPoint) -> AssignedPoint:
        base = self._base_chip
        p = self.curve.base_modulus
        x, y = a.point()
        if y % p == 0:
            raise SynthesisError("cannot double a point of order two")
        lam = base.assign_witness(region, (3 * x * x + self.curve.a) * pow(2 * y, -1, p))
        base.assert_relation(
            region,
            products=[(2, lam, a.y), (-3, a.x, a.x)],
            constant=-self.curve.a_signed,
        )
        return self._complete(region, lam, a, a.x)

    def double_n(self, region: Region, a: AssignedPoint, n: int) -> AssignedPoint:
        for _ in range(n):
            a = self.double(region, a)
        return a

    # selection

    def select(
        self, region: Region, cond: AssignedValue, a: AssignedPoint, b: AssignedPoint
    ) -> AssignedPoint:
        base = self._base_chip
        return AssignedPoint(
            base.select(region, a.x, b.x, cond), base.select(region, a.y, b.y, cond)
        )

    def select_multi(
        self, region: Region, selector: Sequence[AssignedValue], table: Sequence[AssignedPoint]
    ) -> AssignedPoint:
        """Picks `table[sum(bit << i)]` for little-endian selector bits."""
        if len(table) != 1 << len(selector):
            raise ValueError("Table size must match the number of selector bits.")
        entries = list(table)
        for bit in selector:
            entries = [
                self.select(region, bit, entries[k + 1], entries[k])
                for k in range(0, len(entries), 2)
            ]
        return entries[0]

    def _make_incremental_table(
        self, region: Region, to_add: AssignedPoint, point: AssignedPoint, window_size: int
    ) -> List[AssignedPoint]:
        table = [to_add]
        for _ in range((1 << window_size) - 1):
            table.append(self.add(region, table[-1], point))
        return table

    # scalar multiplication

    def mul(
        self,
        region: Region,
        point: AssignedPoint,
        scalar: AssignedInteger,
        window_size: int,
    ) -> AssignedPoint:
        """`scalar * point`; a zero scalar has no affine result and is rejected."""
        return self.mul_batch(region, [(point, scalar)], window_size)

    def mul_batch(
        self,
        region: Region,
        pairs: Sequence[Tuple[AssignedPoint, AssignedInteger]],
        window_size: int,
    ) -> AssignedPoint:
        """Computes sum(scalar * point) with one shared doubling chain."""
        if window_size < 1:
            raise ValueError("Window size must be at least 1.")
        aux = self._get_mul_aux(window_size, len(pairs))

        decomposed = []
        for (point, scalar), to_add in zip(pairs, aux.to_add):
            bits = self._scalar_chip.decompose(region, scalar)
            padding = -len(bits) % window_size
            if padding:
                zero = self.main_gate.assign_constant(region, 0)
                bits += [zero] * padding
            windows = [bits[i : i + window_size] for i in range(0, len(bits), window_size)]
            table = self._make_incremental_table(region, to_add, point, window_size)
            # most significant window first
            decomposed.append((windows[::-1], table))

        acc = None
        for i in range(len(decomposed[0][0])):
            if acc is not None:
                acc = self.double_n(region, acc, window_size)
            for windows, table in decomposed:
                selected = self.select_multi(region, windows[i], table)
                acc = selected if acc is None else self.add(region, acc, selected)
        return self.add(region, acc, aux.to_sub)
