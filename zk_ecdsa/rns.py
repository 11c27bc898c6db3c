"""Residue number system parameters for emulating a foreign prime field."""

from __future__ import annotations

from typing import List

from .range_chip import NUMBER_OF_LOOKUP_LIMBS

BIT_LEN_LIMB = 68


def decompose(value: int, number_of_limbs: int, bit_len: int) -> List[int]:
    mask = (1 << bit_len) - 1
    return [(value >> (bit_len * i)) & mask for i in range(number_of_limbs)]


def compose(limbs, bit_len: int) -> int:
    value = 0
    for limb in reversed(list(limbs)):
        value = (value << bit_len) + limb
    return value


def to_limbs(value: int, bit_len: int) -> List[int]:
    """Decomposes a value of any size; the sign is carried by every limb."""
    sign = -1 if value < 0 else 1
    value = abs(value)
    limbs = []
    while True:
        limbs.append(sign * (value & ((1 << bit_len) - 1)))
        value >>= bit_len
        if not value:
            return limbs


class Integer:
    def __init__(self, rns: "Rns", limbs):
        self.rns = rns
        self.limbs = list(limbs)

    def value(self) -> int:
        return compose(self.limbs, self.rns.bit_len_limb)

    def __repr__(self) -> str:
        return f"Integer({self.value():#x})"


class Rns:
    def __init__(self, wrong_modulus: int, native_modulus: int, bit_len_limb: int = BIT_LEN_LIMB):
        if bit_len_limb % NUMBER_OF_LOOKUP_LIMBS:
            raise ValueError(
                f"Limb width must be a multiple of {NUMBER_OF_LOOKUP_LIMBS}."
            )
        # carries of a limb product column must not wrap around the native field
        if 2 * bit_len_limb + 24 >= native_modulus.bit_length():
            raise ValueError("Limbs are too wide for the native field.")

        self.wrong_modulus = wrong_modulus
        self.native_modulus = native_modulus
        self.bit_len_limb = bit_len_limb
        self.bit_len_lookup = bit_len_limb // NUMBER_OF_LOOKUP_LIMBS
        self.left_shifter = 1 << bit_len_limb

        bit_len = wrong_modulus.bit_length()
        self.number_of_limbs = -(-bit_len // bit_len_limb)
        self.max_most_significant_limb_bits = bit_len - (self.number_of_limbs - 1) * bit_len_limb
        self.wrong_modulus_decomposed = decompose(
            wrong_modulus, self.number_of_limbs, bit_len_limb
        )

    @property
    def limb_bit_lengths(self) -> List[int]:
        return [self.bit_len_limb] * (self.number_of_limbs - 1) + [
            self.max_most_significant_limb_bits
        ]

    def overflow_lengths(self) -> List[int]:
        return sorted(
            {
                bits % self.bit_len_lookup
                for bits in self.limb_bit_lengths
                if bits % self.bit_len_lookup
            }
        )

    def new(self, value: int) -> Integer:
        if value < 0 or value >> (self.number_of_limbs * self.bit_len_limb):
            raise ValueError(f"{value:#x} does not fit in {self.number_of_limbs} limbs.")
        return Integer(self, decompose(value, self.number_of_limbs, self.bit_len_limb))

    def compatible_with(self, other: "Rns") -> bool:
        return (
            self.bit_len_limb == other.bit_len_limb
            and self.native_modulus == other.native_modulus
        )

    def __repr__(self) -> str:
        return (
            f"Rns(wrong_modulus={self.wrong_modulus:#x}, limbs={self.number_of_limbs}"
            f"x{self.bit_len_limb})"
        )
