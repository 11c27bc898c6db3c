import random
from collections import defaultdict

import pytest
from py_ecc.secp256k1 import secp256k1

from zk_ecdsa import (
    P256,
    SECP256K1,
    ConstraintSystem,
    EcdsaChip,
    EcdsaConfig,
    EcdsaVerifyCircuit,
    GeneralEccChip,
    IntegerChip,
    MainGate,
    MockProver,
    Point,
    RangeChip,
    SynthesisError,
    ZeroValueError,
)
from zk_ecdsa import reference
from zk_ecdsa.rns import Integer

CURVE = SECP256K1
N = CURVE.scalar_modulus


def shape(cs):
    return [region.rows for region in cs.regions], len(cs.copies), len(cs.lookups)


@pytest.fixture(scope="module")
def witness():
    rng = random.Random(2024)
    private_key, public_key = reference.generate_keypair(CURVE, rng)
    msg_hash = rng.randrange(N)
    signature = reference.sign(CURVE, private_key, msg_hash, rng=rng)
    circuit = EcdsaVerifyCircuit(CURVE, CURVE.random_point(rng))
    return circuit, signature, public_key, msg_hash


@pytest.fixture(scope="module")
def synthesized(witness):
    """A valid circuit, with the values of the chip calls made while building it."""
    circuit, (r, s), public_key, msg_hash = witness
    records = defaultdict(list)

    def spy(cls, name):
        method = getattr(cls, name)

        def wrapper(self, *args, **kwargs):
            result = method(self, *args, **kwargs)
            records[f"{cls.__name__}.{name}"].append((self, result))
            return result

        return wrapper

    with pytest.MonkeyPatch.context() as mp:
        for cls, name in (
            (IntegerChip, "invert"),
            (IntegerChip, "mul"),
            (GeneralEccChip, "mul_batch"),
            (GeneralEccChip, "add"),
        ):
            mp.setattr(cls, name, spy(cls, name))
        cs = circuit.build(circuit.signature(r, s), public_key, circuit.msg_hash(msg_hash))
    return cs, records


def test_config_derivation():
    cs = ConstraintSystem()
    main_gate_config = MainGate.configure(cs)
    range_config = RangeChip.configure(cs, main_gate_config, [1], 17)
    config = EcdsaConfig(range_config, main_gate_config)
    assert config.ecc_chip_config().range_config is range_config
    assert config.integer_chip_config().main_gate_config is main_gate_config


def test_valid_signature_is_accepted(synthesized):
    cs, _ = synthesized
    assert [region.name for region in cs.regions] == ["assign aux values", "region 0"]
    assert MockProver.run(cs).verify() == []


def test_circuit_values_match_reference(witness, synthesized):
    circuit, signature, public_key, msg_hash = witness
    _, records = synthesized
    w, u1, u2, q = reference.verification_trace(CURVE, public_key, msg_hash, signature)

    scalar_calls = [
        result.value()
        for chip, result in records["IntegerChip.mul"]
        if chip.rns.wrong_modulus == N
    ]
    assert [result.value() for _, result in records["IntegerChip.invert"]] == [w]
    assert scalar_calls == [u1, u2]
    assert [result.point() for _, result in records["GeneralEccChip.mul_batch"]] == [q]
    assert q == CURVE.add(CURVE.multiply(CURVE.generator, u1), CURVE.multiply(public_key, u2))
    assert records["GeneralEccChip.add"][-1][1].point() == q


def test_zero_components_are_rejected(witness):
    circuit, (r, s), public_key, msg_hash = witness
    with pytest.raises(ZeroValueError):
        circuit.build(circuit.signature(0, s), public_key, circuit.msg_hash(msg_hash))
    with pytest.raises(ZeroValueError):
        circuit.build(circuit.signature(r, 0), public_key, circuit.msg_hash(msg_hash))


def _flip(integer: Integer) -> Integer:
    return Integer(integer.rns, [integer.limbs[0] ^ 1] + integer.limbs[1:])


@pytest.mark.parametrize("target", ["r", "s", "public_key", "msg_hash"])
def test_tampered_input_fails_final_equality(witness, target):
    circuit, (r, s), public_key, msg_hash = witness
    sig = circuit.signature(r, s)
    h = circuit.msg_hash(msg_hash)
    if target == "r":
        sig.r = _flip(sig.r)
    elif target == "s":
        sig.s = _flip(sig.s)
    elif target == "msg_hash":
        h = _flip(h)
    else:
        # a valid point, but not the signer's key
        public_key = CURVE.add(public_key, CURVE.generator)

    with pytest.raises(SynthesisError, match="not strictly equal"):
        circuit.build(sig, public_key, h)


def test_public_key_off_the_curve(witness):
    circuit, (r, s), public_key, msg_hash = witness
    with pytest.raises(SynthesisError, match="is not on secp256k1"):
        circuit.build(
            circuit.signature(r, s),
            Point(public_key.x ^ 1, public_key.y),
            circuit.msg_hash(msg_hash),
        )


@pytest.mark.parametrize("msg_hash", [0, N], ids=["zero", "order"])
def test_hash_that_is_zero_mod_n(msg_hash):
    rng = random.Random(31)
    private_key, public_key = reference.generate_keypair(CURVE, rng)
    r, s = reference.sign(CURVE, private_key, msg_hash, rng=rng)
    assert reference.verify(CURVE, public_key, msg_hash, (r, s))

    circuit = EcdsaVerifyCircuit(CURVE, CURVE.random_point(rng))
    failures = circuit.prove(circuit.signature(r, s), public_key, circuit.msg_hash(msg_hash))
    assert failures == []


def test_seven_times_generator(synthesized):
    rng = random.Random(7)
    public_key = CURVE.multiply(CURVE.generator, 7)
    r, s = reference.sign(CURVE, 7, 123, rng=rng)
    assert reference.verify(CURVE, public_key, 123, (r, s))

    circuit = EcdsaVerifyCircuit(CURVE, CURVE.random_point(rng))
    cs = circuit.build(circuit.signature(r, s), public_key, circuit.msg_hash(123))
    assert MockProver.run(cs).verify() == []
    # the layout does not depend on the witness
    assert shape(cs) == shape(synthesized[0])

    with pytest.raises(SynthesisError):
        circuit.build(circuit.signature(r, s + 1), public_key, circuit.msg_hash(123))
    with pytest.raises(ZeroValueError):
        circuit.build(circuit.signature(0, s), public_key, circuit.msg_hash(123))


def test_prover_catches_tampering_after_synthesis(witness):
    circuit, (r, s), public_key, msg_hash = witness
    cs = circuit.build(circuit.signature(r, s), public_key, circuit.msg_hash(msg_hash))
    # first limb of r in the main region
    region = cs.regions[1]
    region.columns["a"][0] = (region.columns["a"][0] + 1) % cs.native_modulus
    failures = MockProver.run(cs).verify()
    assert failures
    assert {failure.region for failure in failures} == {"region 0"}


def test_other_curve_and_window(rng):
    private_key, public_key = reference.generate_keypair(P256, rng)
    msg_hash = rng.randrange(P256.scalar_modulus)
    r, s = reference.sign(P256, private_key, msg_hash, rng=rng)

    circuit = EcdsaVerifyCircuit(P256, P256.random_point(rng), window_size=3)
    failures = circuit.prove(circuit.signature(r, s), public_key, circuit.msg_hash(msg_hash))
    assert failures == []


def test_chip_accessors(configured):
    cs, config = configured(CURVE)
    ecc_chip = GeneralEccChip(config, CURVE)
    chip = EcdsaChip(ecc_chip)
    assert chip.window_size == 2
    assert chip.ecc_chip() is ecc_chip
    assert chip.scalar_field_chip().rns.wrong_modulus == N
    assert chip.base_field_chip().rns.wrong_modulus == CURVE.base_modulus


def test_reference_accepts_py_ecc_signatures():
    private_key = (123456789).to_bytes(32, "big")
    msg = bytes(range(32))
    _, r, s = secp256k1.ecdsa_raw_sign(msg, private_key)
    public_key = Point(*secp256k1.privtopub(private_key))
    h = int.from_bytes(msg, "big")

    assert reference.verify(CURVE, public_key, h, (r, s))
    assert not reference.verify(CURVE, public_key, h + 1, (r, s))
    assert not reference.verify(CURVE, public_key, h, (0, s))


def test_reference_sign_with_fixed_nonce():
    r, s = reference.sign(CURVE, 7, 123, nonce=5)
    assert r == CURVE.multiply(CURVE.generator, 5).x % N
    assert s == (123 + r * 7) * pow(5, -1, N) % N
