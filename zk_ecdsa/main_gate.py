"""
Five-column generic arithmetic gate.

Every row enforces

    s_a*a + s_b*b + s_c*c + s_d*d + s_e*e
        + s_mul_ab*a*b + s_mul_cd*c*d + s_e_next*e[next] + s_constant = 0

`combine` packs an arbitrary sum of linear terms and products into chained
rows, carrying the running sum through the `e` column.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from .constraint_system import AssignedValue, ConstraintSystem, Region
from .errors import SynthesisError, ZeroValueError

ADVICE_COLUMNS = ("a", "b", "c", "d", "e")
FIXED_COLUMNS = (
    "s_a",
    "s_b",
    "s_c",
    "s_d",
    "s_e",
    "s_mul_ab",
    "s_mul_cd",
    "s_e_next",
    "s_constant",
)
_PAIRS = (("a", "b", "s_mul_ab"), ("c", "d", "s_mul_cd"))

Operand = Union[AssignedValue, int]


@dataclass
class Term:
    value: Operand
    coeff: int = 1


@dataclass
class Product:
    x: Operand
    y: Operand
    coeff: int = 1


@dataclass(frozen=True)
class MainGateConfig:
    advice: Tuple[str, ...] = ADVICE_COLUMNS
    fixed: Tuple[str, ...] = FIXED_COLUMNS


def main_gate_evaluations(columns, next_row):
    a, b, c, d, e = (columns[name] for name in ADVICE_COLUMNS)
    term = columns["s_a"] * a + columns["s_b"] * b
    term += columns["s_c"] * c + columns["s_d"] * d + columns["s_e"] * e
    term += columns["s_mul_ab"] * a * b
    term += columns["s_mul_cd"] * c * d
    term += columns["s_e_next"] * next_row("e")
    term += columns["s_constant"]
    return term


def _value(operand: Operand) -> int:
    return operand.value if isinstance(operand, AssignedValue) else operand


def evaluate(term: Union[Term, Product]) -> int:
    if isinstance(term, Product):
        return term.coeff * _value(term.x) * _value(term.y)
    return term.coeff * _value(term.value)


class MainGate:
    def __init__(self, config: MainGateConfig):
        self.config = config

    @staticmethod
    def configure(cs: ConstraintSystem) -> MainGateConfig:
        config = MainGateConfig()
        for column in config.advice:
            cs.advice_column(column)
        for column in config.fixed:
            cs.fixed_column(column)
        cs.create_gate("main_gate", main_gate_evaluations)
        return config

    @staticmethod
    def _place(region: Region, column: str, operand: Operand) -> AssignedValue:
        if isinstance(operand, AssignedValue):
            cell = region.assign_advice(column, operand.value)
            region.constrain_equal(operand, cell)
            return cell
        return region.assign_advice(column, operand)

    def combine(
        self,
        region: Region,
        terms: Sequence[Union[Term, Product]],
        constant: int = 0,
    ) -> List:
        """Assert that the terms plus the constant sum to zero.

        Returns the cells the terms were placed in, in the order given: a
        cell for a `Term`, an (x, y) pair of cells for a `Product`. Integer
        operands are assigned as fresh witnesses.
        """
        products = [(i, t) for i, t in enumerate(terms) if isinstance(t, Product)]
        linears = [(i, t) for i, t in enumerate(terms) if isinstance(t, Term)]
        slots = [[item] for item in products]
        slots += [linears[i : i + 2] for i in range(0, len(linears), 2)]
        rows = [slots[i : i + 2] for i in range(0, len(slots), 2)] or [[]]

        modulus = region.modulus
        assigned = [None] * len(terms)
        acc = 0
        for index, row in enumerate(rows):
            row_sum = 0
            for (left, right, mul_selector), slot in zip(_PAIRS, row):
                first_index, first = slot[0]
                if isinstance(first, Product):
                    x = self._place(region, left, first.x)
                    y = self._place(region, right, first.y)
                    region.assign_fixed(mul_selector, first.coeff)
                    row_sum += first.coeff * x.value * y.value
                    assigned[first_index] = (x, y)
                    continue
                for column, (term_index, term) in zip((left, right), slot):
                    cell = self._place(region, column, term.value)
                    region.assign_fixed("s_" + column, term.coeff)
                    row_sum += term.coeff * cell.value
                    assigned[term_index] = cell

            if index > 0:
                region.assign_advice("e", acc)
                region.assign_fixed("s_e", 1)
            if index == len(rows) - 1:
                region.assign_fixed("s_constant", constant)
                if (acc + row_sum + constant) % modulus:
                    raise SynthesisError(
                        f"combination does not vanish at row {region.offset} of '{region.name}'"
                    )
            else:
                region.assign_fixed("s_e_next", -1)
                acc = (acc + row_sum) % modulus
            region.next()
        return assigned

    def assign_value(self, region: Region, value: int) -> AssignedValue:
        cell = region.assign_advice("a", value)
        region.next()
        return cell

    def assign_constant(self, region: Region, value: int) -> AssignedValue:
        return self.combine(region, [Term(value, 1)], -value)[0]

    def assign_bit(self, region: Region, bit: int) -> AssignedValue:
        if bit not in (0, 1):
            raise SynthesisError(f"{bit} is not a bit")
        # a*b - a = 0 with b a copy of a
        a = region.assign_advice("a", bit)
        b = region.assign_advice("b", bit)
        region.constrain_equal(a, b)
        region.assign_fixed("s_mul_ab", 1)
        region.assign_fixed("s_a", -1)
        region.next()
        return a

    def assert_equal(self, region: Region, x: AssignedValue, y: AssignedValue) -> None:
        self.combine(region, [Term(x, 1), Term(y, -1)])

    def assert_not_zero(self, region: Region, x: AssignedValue) -> None:
        if x.value == 0:
            raise ZeroValueError(f"{x} is zero")
        inverse = pow(x.value, -1, region.modulus)
        self.combine(region, [Product(x, inverse, 1)], -1)

    def select(
        self, region: Region, cond: AssignedValue, a: AssignedValue, b: AssignedValue
    ) -> AssignedValue:
        """Returns `a` when `cond` is one and `b` when it is zero."""
        out = a.value if cond.value else b.value
        assigned = self.combine(
            region,
            [Product(cond, a, 1), Product(cond, b, -1), Term(b, 1), Term(out, -1)],
        )
        return assigned[3]
