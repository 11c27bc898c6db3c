"""
Off-circuit short Weierstrass curves, y^2 = x^3 + a*x + b.

`Curve` does affine arithmetic over a `galois` prime field; secp256k1 and
bn254 G1 delegate to `py_ecc`. The point at infinity is `None`.
"""

from __future__ import annotations

import random
from collections import namedtuple
from typing import Optional

from py_ecc import bn128
from py_ecc.secp256k1 import secp256k1

from .fields import prime_field

Point = namedtuple("Point", ["x", "y"])


def _fq_int(value):
    return int(getattr(value, "n", value))


class Curve:
    def __init__(self, name, base_modulus, scalar_modulus, a, b, generator):
        self.name = name
        self.base_modulus = base_modulus
        self.scalar_modulus = scalar_modulus
        self.a = a % base_modulus
        self.b = b % base_modulus
        self.generator = Point(*generator)
        self.field = prime_field(base_modulus)

    @property
    def a_signed(self) -> int:
        if self.a > self.base_modulus // 2:
            return self.a - self.base_modulus
        return self.a

    def is_on_curve(self, point: Optional[Point]) -> bool:
        if point is None:
            return False
        p = self.base_modulus
        x, y = point
        if not (0 <= x < p and 0 <= y < p):
            return False
        return (y * y - x * x * x - self.a * x - self.b) % p == 0

    def neg(self, point: Optional[Point]) -> Optional[Point]:
        if point is None:
            return None
        return Point(point.x, (-point.y) % self.base_modulus)

    def add(self, point_a: Optional[Point], point_b: Optional[Point]) -> Optional[Point]:
        if point_a is None:
            return point_b
        if point_b is None:
            return point_a

        F = self.field
        x1, y1 = F(point_a.x), F(point_a.y)
        x2, y2 = F(point_b.x), F(point_b.y)
        if x1 == x2:
            if y1 + y2 == 0:
                return None
            lam = (F(3) * x1 * x1 + F(self.a)) / (F(2) * y1)
        else:
            lam = (y2 - y1) / (x2 - x1)
        x3 = lam * lam - x1 - x2
        y3 = lam * (x1 - x3) - y1
        return Point(int(x3), int(y3))

    def double(self, point: Optional[Point]) -> Optional[Point]:
        return self.add(point, point)

    def multiply(self, point: Optional[Point], scalar: int) -> Optional[Point]:
        result = None
        addend = point
        k = scalar % self.scalar_modulus
        while k:
            if k & 1:
                result = self.add(result, addend)
            addend = self.double(addend)
            k >>= 1
        return result

    def random_point(self, rng=random) -> Point:
        return self.multiply(self.generator, rng.randrange(1, self.scalar_modulus))

    def __repr__(self) -> str:
        return f"Curve({self.name})"


class Secp256k1(Curve):
    def __init__(self):
        super().__init__(
            "secp256k1", secp256k1.P, secp256k1.N, 0, 7, secp256k1.G
        )

    def add(self, point_a, point_b):
        if point_a is None:
            return point_b
        if point_b is None:
            return point_a
        x, y = secp256k1.add(tuple(point_a), tuple(point_b))
        # py_ecc encodes infinity as (0, 0), which is not on the curve
        if x == 0 and y == 0:
            return None
        return Point(x, y)

    def multiply(self, point, scalar):
        k = scalar % self.scalar_modulus
        if point is None or k == 0:
            return None
        x, y = secp256k1.multiply(tuple(point), k)
        return Point(x, y)


class Bn254(Curve):
    def __init__(self):
        super().__init__(
            "bn254",
            bn128.field_modulus,
            bn128.curve_order,
            0,
            3,
            (_fq_int(bn128.G1[0]), _fq_int(bn128.G1[1])),
        )

    @staticmethod
    def _to_py_ecc(point):
        if point is None:
            return None
        return (bn128.FQ(point.x), bn128.FQ(point.y))

    @staticmethod
    def _from_py_ecc(point):
        if point is None:
            return None
        return Point(_fq_int(point[0]), _fq_int(point[1]))

    def add(self, point_a, point_b):
        return self._from_py_ecc(bn128.add(self._to_py_ecc(point_a), self._to_py_ecc(point_b)))

    def multiply(self, point, scalar):
        k = scalar % self.scalar_modulus
        if point is None or k == 0:
            return None
        return self._from_py_ecc(bn128.multiply(self._to_py_ecc(point), k))


SECP256K1 = Secp256k1()
BN254 = Bn254()
P256 = Curve(
    "secp256r1",
    0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF,
    0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551,
    -3,
    0x5AC635D8AA3A93E7B3EBBD55769886BC651D06B0CC53B0F63BCE3C3E27D2604B,
    (
        0x6B17D1F2E12C4247F8BCE6E563A440F277037D812DEB33A0F4A13945D898C296,
        0x4FE342E2FE1A7F9B8EE7EB4A7C0F9E162BCE33576B315ECECBB6406837BF51F5,
    ),
)
