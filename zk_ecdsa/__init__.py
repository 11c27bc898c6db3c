from .circuit import EcdsaVerifyCircuit
from .constraint_system import ConstraintSystem, MockProver, Region, VerifyFailure
from .curves import BN254, P256, SECP256K1, Curve, Point
from .ecc import AssignedPoint, EccConfig, GeneralEccChip
from .ecdsa import AssignedEcdsaSig, AssignedPublicKey, EcdsaChip, EcdsaConfig, EcdsaSig
from .errors import NonInvertibleError, SynthesisError, ZeroValueError
from .fields import FP, native_modulus, prime_field
from .integer import AssignedInteger, IntegerChip, IntegerConfig
from .main_gate import MainGate, MainGateConfig
from .range_chip import RangeChip, RangeConfig
from .rns import BIT_LEN_LIMB, Integer, Rns
