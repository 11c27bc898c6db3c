class SynthesisError(ValueError):
    """A chip could not produce a witness that satisfies its constraints."""


class ZeroValueError(SynthesisError):
    pass


class NonInvertibleError(SynthesisError):
    pass
