"""
Non-native integer chip.

An integer of the emulated field lives in `number_of_limbs` range-checked
cells. Modular relations

    sum(c * a * b) + sum(c * a) + constant == 0  (mod m)

are proved by witnessing a quotient `q` and checking the integer identity
`... - q * m == 0` column by column, each limb column passing a signed,
range-checked carry to the next one. Limb columns stay far below the native
modulus, so every row equation holds over the integers.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .constraint_system import AssignedValue, Region
from .errors import NonInvertibleError, SynthesisError, ZeroValueError
from .main_gate import MainGate, MainGateConfig, Product, Term, evaluate
from .range_chip import RangeChip, RangeConfig
from .rns import Integer, Rns, compose, decompose, to_limbs

MAX_COEFF_BITS = 32


@dataclass(frozen=True)
class IntegerConfig:
    range_config: RangeConfig
    main_gate_config: MainGateConfig


class AssignedInteger:
    def __init__(self, rns: Rns, limbs: Sequence[AssignedValue], max_vals: Sequence[int]):
        self.rns = rns
        self.limbs = list(limbs)
        self.max_vals = list(max_vals)

    def value(self) -> int:
        return compose((limb.value for limb in self.limbs), self.rns.bit_len_limb)

    def max_value(self) -> int:
        return compose(self.max_vals, self.rns.bit_len_limb)

    def integer(self) -> Integer:
        return Integer(self.rns, [limb.value for limb in self.limbs])

    def __repr__(self) -> str:
        return f"AssignedInteger({self.value():#x})"


class IntegerChip:
    def __init__(self, config: IntegerConfig, rns: Rns):
        if config.range_config.bit_len_lookup != rns.bit_len_lookup:
            raise ValueError("Range table width does not match the limb width.")
        self.config = config
        self.rns = rns
        self.main_gate = MainGate(config.main_gate_config)
        self.range_chip = RangeChip(config.range_config)

    # assignment

    def _assign_limbs(self, region: Region, limbs, bit_lengths) -> AssignedInteger:
        assigned = [
            self.range_chip.assign(region, limb, bits)
            for limb, bits in zip(limbs, bit_lengths)
        ]
        return AssignedInteger(self.rns, assigned, [(1 << bits) - 1 for bits in bit_lengths])

    def assign_integer(self, region: Region, integer: Integer) -> AssignedInteger:
        if len(integer.limbs) != self.rns.number_of_limbs:
            raise SynthesisError(
                f"expected {self.rns.number_of_limbs} limbs, got {len(integer.limbs)}"
            )
        return self._assign_limbs(region, integer.limbs, self.rns.limb_bit_lengths)

    def assign_witness(self, region: Region, value: int) -> AssignedInteger:
        return self.assign_integer(region, self.rns.new(value % self.rns.wrong_modulus))

    def assign_constant(self, region: Region, value: int) -> AssignedInteger:
        limbs = self.rns.new(value).limbs
        assigned = [self.main_gate.assign_constant(region, limb) for limb in limbs]
        return AssignedInteger(self.rns, assigned, limbs)

    # relations

    def _columns(self, products, linears, constant):
        bit_len = self.rns.bit_len_limb
        columns = defaultdict(list)
        constants = defaultdict(int)
        bounds = defaultdict(int)
        for coeff, a, b in products:
            _check_coeff(coeff)
            for i, (x, x_max) in enumerate(zip(a.limbs, a.max_vals)):
                for j, (y, y_max) in enumerate(zip(b.limbs, b.max_vals)):
                    columns[i + j].append(Product(x, y, coeff))
                    bounds[i + j] += abs(coeff) * x_max * y_max
        for coeff, a in linears:
            _check_coeff(coeff)
            if a.rns.bit_len_limb != bit_len:
                raise SynthesisError(
                    f"cannot relate {a.rns.bit_len_limb}-bit limbs to {bit_len}-bit limbs"
                )
            for i, (x, x_max) in enumerate(zip(a.limbs, a.max_vals)):
                columns[i].append(Term(x, coeff))
                bounds[i] += abs(coeff) * x_max
        for k, limb in enumerate(to_limbs(constant, bit_len)):
            constants[k] = limb
            bounds[k] += abs(limb)
        return columns, constants, bounds

    def _assert_carry_chain(self, region: Region, columns, constants, bounds) -> None:
        base = self.rns.left_shifter
        length = max(list(columns) + list(constants)) + 1

        carry_bound = max_carry = 0
        for k in range(length - 1):
            carry_bound = (bounds[k] + carry_bound) // base + 1
            max_carry = max(max_carry, carry_bound)
        lookup = self.range_chip.bit_len_lookup
        width = -(-(max_carry.bit_length() + 1) // lookup) * lookup
        offset = 1 << (width - 1)

        carry = 0
        previous = None
        for k in range(length):
            terms = list(columns[k])
            constant = constants[k]
            exact = constant + carry + sum(evaluate(term) for term in terms)
            if previous is not None:
                terms.append(Term(previous, 1))
                constant -= offset
            if k == length - 1:
                if exact:
                    raise SynthesisError("limb carries do not cancel")
                self.main_gate.combine(region, terms, constant)
                return
            if exact % base:
                raise SynthesisError(f"limb column {k} is not divisible by the limb base")
            carry = exact // base
            # carries are signed, the range check sees them shifted by `offset`
            previous = self.range_chip.assign(region, carry + offset, width)
            terms.append(Term(previous, -base))
            self.main_gate.combine(region, terms, constant + base * offset)

    def assert_relation(
        self,
        region: Region,
        products: Sequence[Tuple[int, AssignedInteger, AssignedInteger]] = (),
        linears: Sequence[Tuple[int, AssignedInteger]] = (),
        constant: int = 0,
    ) -> AssignedInteger:
        """Prove sum(c * a * b) + sum(c * a) + constant == 0 (mod m).

        Coefficients must be small signed integers; the constant may be any
        integer. Returns the assigned quotient.
        """
        rns = self.rns
        modulus = rns.wrong_modulus

        value = constant
        positive, negative = max(constant, 0), max(-constant, 0)
        for coeff, a, b in products:
            value += coeff * a.value() * b.value()
            bound = abs(coeff) * a.max_value() * b.max_value()
            if coeff > 0:
                positive += bound
            else:
                negative += bound
        for coeff, a in linears:
            value += coeff * a.value()
            bound = abs(coeff) * a.max_value()
            if coeff > 0:
                positive += bound
            else:
                negative += bound

        # shift by a multiple of m so that the quotient is never negative
        shift = (negative // modulus + 1) * modulus
        if (value + shift) % modulus:
            raise SynthesisError(f"relation does not hold modulo {modulus:#x}")
        quotient = (value + shift) // modulus
        max_quotient = (positive + shift) // modulus
        number_of_limbs = max(1, -(-max_quotient.bit_length() // rns.bit_len_limb))
        q = self._assign_limbs(
            region,
            decompose(quotient, number_of_limbs, rns.bit_len_limb),
            [rns.bit_len_limb] * number_of_limbs,
        )

        columns, constants, bounds = self._columns(products, linears, constant + shift)
        for i, (q_limb, q_max) in enumerate(zip(q.limbs, q.max_vals)):
            for j, m_limb in enumerate(rns.wrong_modulus_decomposed):
                if m_limb:
                    columns[i + j].append(Term(q_limb, -m_limb))
                    bounds[i + j] += q_max * m_limb
        self._assert_carry_chain(region, columns, constants, bounds)
        return q

    # arithmetic

    def mul(self, region: Region, a: AssignedInteger, b: AssignedInteger) -> AssignedInteger:
        modulus = self.rns.wrong_modulus
        result = self.assign_witness(region, a.value() * b.value() % modulus)
        self.assert_relation(region, products=[(1, a, b)], linears=[(-1, result)])
        return result

    def square(self, region: Region, a: AssignedInteger) -> AssignedInteger:
        return self.mul(region, a, a)

    def div(self, region: Region, a: AssignedInteger, b: AssignedInteger) -> AssignedInteger:
        modulus = self.rns.wrong_modulus
        denominator = b.value() % modulus
        if denominator == 0:
            raise NonInvertibleError("division by an integer that is zero in the field")
        result = self.assign_witness(region, a.value() * pow(denominator, -1, modulus))
        self.assert_relation(region, products=[(1, result, b)], linears=[(-1, a)])
        return result

    def invert(self, region: Region, a: AssignedInteger) -> AssignedInteger:
        modulus = self.rns.wrong_modulus
        value = a.value() % modulus
        if value == 0:
            raise NonInvertibleError("cannot invert an integer that is zero in the field")
        inverse = self.assign_witness(region, pow(value, -1, modulus))
        self.assert_relation(region, products=[(1, a, inverse)], constant=-1)
        return inverse

    def add(self, region: Region, a: AssignedInteger, b: AssignedInteger) -> AssignedInteger:
        result = self.assign_witness(region, a.value() + b.value())
        self.assert_relation(region, linears=[(1, a), (1, b), (-1, result)])
        return result

    def sub(self, region: Region, a: AssignedInteger, b: AssignedInteger) -> AssignedInteger:
        result = self.assign_witness(region, a.value() - b.value())
        self.assert_relation(region, linears=[(1, a), (-1, b), (-1, result)])
        return result

    def reduce(self, region: Region, a: AssignedInteger) -> AssignedInteger:
        """Reduces `a` into this chip's field.

        `a` may belong to another field as long as its limbs have the same
        width; the identity a = q * m + r is then proved on the foreign limbs.
        """
        if not a.rns.compatible_with(self.rns):
            raise SynthesisError(f"cannot reduce an integer of {a.rns} with {self.rns}")
        result = self.assign_witness(region, a.value())
        self.assert_relation(region, linears=[(1, a), (-1, result)])
        return result

    # assertions

    def assert_in_field(self, region: Region, a: AssignedInteger) -> None:
        rns = self.rns
        modulus = rns.wrong_modulus
        value = a.value()
        if value >= modulus:
            raise SynthesisError(f"{value:#x} is not reduced modulo {modulus:#x}")
        # a + d == m - 1 with d range checked
        difference = self._assign_limbs(
            region,
            decompose(modulus - 1 - value, rns.number_of_limbs, rns.bit_len_limb),
            rns.limb_bit_lengths,
        )
        columns, constants, bounds = self._columns(
            (), [(1, a), (1, difference)], -(modulus - 1)
        )
        self._assert_carry_chain(region, columns, constants, bounds)

    def assert_not_zero(self, region: Region, a: AssignedInteger) -> None:
        """Asserts 0 < a < m."""
        if a.value() == 0:
            raise ZeroValueError("integer is zero")
        self.assert_in_field(region, a)
        # limbs are small, so their sum vanishes only if every limb does
        limb_sum = sum(limb.value for limb in a.limbs)
        assigned = self.main_gate.combine(
            region, [Term(limb, 1) for limb in a.limbs] + [Term(limb_sum, -1)]
        )
        self.main_gate.assert_not_zero(region, assigned[-1])

    def assert_strict_equal(
        self, region: Region, a: AssignedInteger, b: AssignedInteger
    ) -> None:
        if len(a.limbs) != len(b.limbs):
            raise SynthesisError("integers have different limb counts")
        if [limb.value for limb in a.limbs] != [limb.value for limb in b.limbs]:
            raise SynthesisError(f"{a!r} and {b!r} are not strictly equal")
        for x, y in zip(a.limbs, b.limbs):
            self.main_gate.assert_equal(region, x, y)

    # selection and bits

    def select(
        self,
        region: Region,
        a: AssignedInteger,
        b: AssignedInteger,
        cond: AssignedValue,
    ) -> AssignedInteger:
        limbs = [self.main_gate.select(region, cond, x, y) for x, y in zip(a.limbs, b.limbs)]
        max_vals = [max(x, y) for x, y in zip(a.max_vals, b.max_vals)]
        return AssignedInteger(self.rns, limbs, max_vals)

    def decompose(self, region: Region, a: AssignedInteger) -> List[AssignedValue]:
        """Little-endian bits of `a`, `bit_length(m)` of them."""
        if len(a.limbs) != self.rns.number_of_limbs:
            raise SynthesisError("cannot decompose an integer of another shape")
        bits = []
        for limb, bit_len in zip(a.limbs, self.rns.limb_bit_lengths):
            if limb.value >> bit_len:
                raise SynthesisError(f"limb does not fit in {bit_len} bits")
            limb_bits = [
                self.main_gate.assign_bit(region, (limb.value >> i) & 1)
                for i in range(bit_len)
            ]
            self.main_gate.combine(
                region,
                [Term(bit, 1 << i) for i, bit in enumerate(limb_bits)] + [Term(limb, -1)],
            )
            bits.extend(limb_bits)
        return bits


def _check_coeff(coeff: int) -> None:
    if abs(coeff).bit_length() > MAX_COEFF_BITS:
        raise ValueError(f"Coefficient {coeff} is too large for a limb relation.")
