from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from .constraint_system import AssignedValue, ConstraintSystem, Region
from .errors import SynthesisError
from .main_gate import ADVICE_COLUMNS, MainGateConfig

NUMBER_OF_LOOKUP_LIMBS = 4


@dataclass(frozen=True)
class RangeConfig:
    main_gate_config: MainGateConfig
    bit_len_lookup: int
    overflow_bit_lengths: Tuple[int, ...]


class RangeChip:
    """Range checks by decomposition into lookup-sized chunks.

    A value of `n` bits is split into `n // bit_len_lookup` full chunks and one
    overflow chunk of `n % bit_len_lookup` bits. Four chunks go in a row, and
    rows are chained from the least significant end through the `e` column.
    """

    def __init__(self, config: RangeConfig):
        self.config = config
        self.bit_len_lookup = config.bit_len_lookup

    @staticmethod
    def configure(
        cs: ConstraintSystem,
        main_gate_config: MainGateConfig,
        overflow_bit_lengths: Iterable[int],
        bit_len_lookup: int,
    ) -> RangeConfig:
        if bit_len_lookup <= 0:
            raise ValueError("Lookup width must be positive.")
        overflow = tuple(
            sorted({bits for bits in overflow_bit_lengths if 0 < bits < bit_len_lookup})
        )
        return RangeConfig(main_gate_config, bit_len_lookup, overflow)

    def load_limb_range_table(self, cs: ConstraintSystem) -> None:
        cs.load_table(self.bit_len_lookup)

    def load_overflow_range_tables(self, cs: ConstraintSystem) -> None:
        for bit_len in self.config.overflow_bit_lengths:
            cs.load_table(bit_len)

    def _chunk_widths(self, bit_len: int):
        lookup = self.bit_len_lookup
        widths = [lookup] * (bit_len // lookup)
        overflow = bit_len % lookup
        if overflow:
            if overflow not in self.config.overflow_bit_lengths:
                raise SynthesisError(f"no overflow table for {overflow} bits is configured")
            widths.append(overflow)
        return widths

    def assign(self, region: Region, value: int, bit_len: int) -> AssignedValue:
        if bit_len <= 0:
            raise ValueError("Bit length must be positive.")
        if not 0 <= value < 1 << bit_len:
            raise SynthesisError(f"value does not fit in {bit_len} bits")

        widths = self._chunk_widths(bit_len)
        chunks = []
        rest = value
        for width in widths:
            chunks.append((rest & ((1 << width) - 1), width))
            rest >>= width

        rows = [
            chunks[i : i + NUMBER_OF_LOOKUP_LIMBS]
            for i in range(0, len(chunks), NUMBER_OF_LOOKUP_LIMBS)
        ]
        remaining = value
        first = None
        for index, row in enumerate(rows):
            shift = 0
            for column, (chunk, width) in zip(ADVICE_COLUMNS, row):
                cell = region.assign_advice(column, chunk)
                region.assign_fixed("s_" + column, 1 << shift)
                region.lookup(cell, width)
                shift += width

            composed = region.assign_advice("e", remaining)
            region.assign_fixed("s_e", -1)
            if index < len(rows) - 1:
                region.assign_fixed("s_e_next", 1 << shift)
            remaining >>= shift
            if first is None:
                first = composed
            region.next()
        return first
