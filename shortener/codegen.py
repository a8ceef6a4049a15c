"""Random short-code generation on top of nanoid.

Each code is ``length`` symbols drawn uniformly from the alphabet by
``nanoid.method``, which masks random bytes and rejects out-of-range values
so every symbol is equally likely. The alphabet and the random-bytes source
are constructor arguments so tests can pin both; production reads
``os.urandom`` through nanoid's default algorithm.
"""

import random

from nanoid.algorithm import algorithm_generate
from nanoid.method import method

__all__ = ["BASE62_ALPHABET", "CodeGenerator"]

BASE62_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


class CodeGenerator:
    def __init__(self, alphabet: str = BASE62_ALPHABET, rng: random.Random | None = None):
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        self.alphabet = alphabet
        self._random_bytes = rng.randbytes if rng is not None else algorithm_generate

    def generate(self, length: int) -> str:
        if not isinstance(length, int) or length <= 0:
            raise ValueError(f"length must be a positive integer, got {length!r}")
        return method(self._random_bytes, self.alphabet, length)
