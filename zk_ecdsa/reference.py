"""
Off-circuit ECDSA, used to produce witnesses and to cross-check the circuit.
"""

from __future__ import annotations

import random
from typing import Optional, Tuple

from .curves import Curve, Point
from .fields import prime_field


def generate_keypair(curve: Curve, rng=random) -> Tuple[int, Point]:
    private_key = rng.randrange(1, curve.scalar_modulus)
    return private_key, curve.multiply(curve.generator, private_key)


def sign(
    curve: Curve, private_key: int, msg_hash: int, nonce: Optional[int] = None, rng=random
) -> Tuple[int, int]:
    n = curve.scalar_modulus
    Fn = prime_field(n)
    while True:
        k = nonce if nonce is not None else rng.randrange(1, n)
        R = curve.multiply(curve.generator, k)
        if R is not None and R.x % n:
            r = R.x % n
            s = (Fn(msg_hash % n) + Fn(r) * Fn(private_key % n)) / Fn(k % n)
            if s != 0:
                return r, int(s)
        if nonce is not None:
            raise ValueError("Nonce gives a degenerate signature.")


def verification_trace(
    curve: Curve, public_key: Point, msg_hash: int, signature: Tuple[int, int]
):
    """Returns (w, u1, u2, Q) as computed by a verifier."""
    n = curve.scalar_modulus
    Fn = prime_field(n)
    r, s = signature
    if not (0 < r < n and 0 < s < n):
        raise ValueError("Signature components must be in [1, n).")
    w = Fn(1) / Fn(s)
    u1 = Fn(msg_hash % n) * w
    u2 = Fn(r) * w
    q = curve.add(
        curve.multiply(curve.generator, int(u1)), curve.multiply(public_key, int(u2))
    )
    return int(w), int(u1), int(u2), q


def verify(
    curve: Curve, public_key: Point, msg_hash: int, signature: Tuple[int, int]
) -> bool:
    try:
        _, _, _, q = verification_trace(curve, public_key, msg_hash, signature)
    except ValueError:
        return False
    return q is not None and q.x % curve.scalar_modulus == signature[0]
