from functools import lru_cache

from galois import GF
from py_ecc.optimized_bn128 import curve_order

# p = 21888242871839275222246405745257275088548364400416034343698204186575808495617
native_modulus = curve_order

# Multiplicative generators of the prime fields we emulate, so that GF() does
# not have to factor p - 1 to find one.
_GENERATORS = {
    # bn254 scalar / base
    curve_order: 5,
    0x30644E72E131A029B85045B68181585D97816A916871CA8D3C208C16D87CFD47: 3,
    # secp256k1 base / scalar
    0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F: 3,
    0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141: 7,
    # secp256r1 base / scalar
    0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF: 6,
    0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551: 7,
}


@lru_cache(maxsize=None)
def prime_field(modulus: int):
    generator = _GENERATORS.get(modulus)
    if generator is None:
        return GF(modulus)
    return GF(modulus, primitive_element=generator, verify=False)


FP = prime_field(native_modulus)
