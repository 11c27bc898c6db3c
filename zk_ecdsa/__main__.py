import random
import sys

from . import reference
from .circuit import EcdsaVerifyCircuit
from .curves import SECP256K1

curve = SECP256K1
rng = random.Random(int(sys.argv[1]) if len(sys.argv) > 1 else None)

private_key, public_key = reference.generate_keypair(curve, rng)
msg_hash = rng.randrange(curve.scalar_modulus)
r, s = reference.sign(curve, private_key, msg_hash, rng=rng)
print("reference verify:", reference.verify(curve, public_key, msg_hash, (r, s)))

circuit = EcdsaVerifyCircuit(curve, curve.random_point(rng))
failures = circuit.prove(circuit.signature(r, s), public_key, circuit.msg_hash(msg_hash), verbose=True)
print("circuit verify:", not failures)
