"""
Witness regions, copy constraints, lookups and a mock prover.

A `Region` is the row cursor of a synthesis pass: chips write into the row at
`region.offset` and call `region.next()` once the row is complete, so offsets
only ever grow.  Gates are registered by the chips that own them
(`MainGate.configure`) and re-evaluated on every row by `MockProver`.
"""

from __future__ import annotations

from collections import namedtuple
from typing import Callable, Dict, List

import numpy as np

from .errors import SynthesisError
from .fields import native_modulus, prime_field

Cell = namedtuple("Cell", ["region", "column", "row"])
VerifyFailure = namedtuple("VerifyFailure", ["kind", "region", "row", "detail"])


class AssignedValue:
    __slots__ = ("cell", "value")

    def __init__(self, cell: Cell, value: int):
        self.cell = cell
        self.value = value

    def __repr__(self) -> str:
        return f"AssignedValue({self.cell.column}[{self.cell.row}]={self.value})"


class Region:
    def __init__(self, cs: "ConstraintSystem", index: int, name: str):
        self.cs = cs
        self.index = index
        self.name = name
        self.modulus = cs.native_modulus
        self.columns: Dict[str, List[int]] = {column: [0] for column in cs.columns}
        self.offset = 0

    @property
    def rows(self) -> int:
        return self.offset + 1

    def assign_advice(self, column: str, value: int) -> AssignedValue:
        if self.cs.columns.get(column) != "advice":
            raise ValueError(f"'{column}' is not an advice column.")
        value %= self.modulus
        self.columns[column][self.offset] = value
        return AssignedValue(Cell(self.index, column, self.offset), value)

    def assign_fixed(self, column: str, value: int) -> None:
        if self.cs.columns.get(column) != "fixed":
            raise ValueError(f"'{column}' is not a fixed column.")
        self.columns[column][self.offset] = value % self.modulus

    def constrain_equal(self, left: AssignedValue, right: AssignedValue) -> None:
        if left.value != right.value:
            raise SynthesisError(
                f"copy constraint between {left.cell} and {right.cell} is violated"
            )
        self.cs.copies.append((left.cell, right.cell))

    def lookup(self, assigned: AssignedValue, bit_len: int) -> None:
        self.cs.lookups.append((assigned.cell, bit_len))

    def next(self) -> int:
        self.offset += 1
        for values in self.columns.values():
            values.append(0)
        return self.offset


class ConstraintSystem:
    def __init__(self, native_modulus: int = native_modulus):
        self.native_modulus = native_modulus
        self.columns: Dict[str, str] = {}
        self.gates: Dict[str, Callable] = {}
        self.regions: List[Region] = []
        self.copies = []
        self.lookups = []
        self.tables = set()

    def advice_column(self, name: str) -> str:
        self.columns[name] = "advice"
        return name

    def fixed_column(self, name: str) -> str:
        self.columns[name] = "fixed"
        return name

    def create_gate(self, name: str, polynomial: Callable) -> None:
        self.gates[name] = polynomial

    def load_table(self, bit_len: int) -> None:
        self.tables.add(bit_len)

    def assign_region(self, name: str) -> Region:
        if not self.columns:
            raise ValueError("Configure the gates before assigning regions.")
        region = Region(self, len(self.regions), name)
        self.regions.append(region)
        return region

    def value(self, cell: Cell) -> int:
        return self.regions[cell.region].columns[cell.column][cell.row]

    @property
    def rows(self) -> int:
        return sum(region.rows for region in self.regions)


class MockProver:
    """Re-checks every gate, copy constraint and lookup of a synthesized circuit."""

    def __init__(self, cs: ConstraintSystem):
        self.cs = cs
        self.field = prime_field(cs.native_modulus)

    @classmethod
    def run(cls, cs: ConstraintSystem) -> "MockProver":
        return cls(cs)

    def verify(self, verbose=False) -> List[VerifyFailure]:
        failures = []
        for region in self.cs.regions:
            failures.extend(self._check_gates(region))
        failures.extend(self._check_copies())
        failures.extend(self._check_lookups())

        if verbose:
            print(
                f"checked {self.cs.rows} rows, {len(self.cs.copies)} copies, "
                f"{len(self.cs.lookups)} lookups"
            )
            for failure in failures:
                print("-", failure)
        return failures

    def _check_gates(self, region: Region) -> List[VerifyFailure]:
        FP = self.field
        columns = {name: FP(values) for name, values in region.columns.items()}

        def next_row(name):
            return FP(region.columns[name][1:] + [0])

        failures = []
        for name, polynomial in self.cs.gates.items():
            residual = polynomial(columns, next_row)
            for row in np.flatnonzero(residual.view(np.ndarray)):
                failures.append(
                    VerifyFailure("gate", region.name, int(row), f"{name} does not vanish")
                )
        return failures

    def _check_copies(self) -> List[VerifyFailure]:
        failures = []
        for left, right in self.cs.copies:
            if self.cs.value(left) != self.cs.value(right):
                failures.append(
                    VerifyFailure(
                        "copy",
                        self.cs.regions[left.region].name,
                        left.row,
                        f"{left.column} != {right}",
                    )
                )
        return failures

    def _check_lookups(self) -> List[VerifyFailure]:
        failures = []
        for cell, bit_len in self.cs.lookups:
            region = self.cs.regions[cell.region].name
            if bit_len not in self.cs.tables:
                failures.append(
                    VerifyFailure("lookup", region, cell.row, f"table of {bit_len} bits not loaded")
                )
            elif self.cs.value(cell) >> bit_len:
                failures.append(
                    VerifyFailure("lookup", region, cell.row, f"{cell.column} exceeds {bit_len} bits")
                )
        return failures
