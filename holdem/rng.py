"""Reproduction of the C library's additive-feedback rand() generator."""

from __future__ import annotations

from collections import deque

_MASK32 = 0xFFFFFFFF
_MODULUS = 2147483647
_STATE_WORDS = 34
_DISCARD = 310
RAND_MAX = 2147483647


def _to_int32(value: int) -> int:
    value &= _MASK32
    return value - (1 << 32) if value & 0x80000000 else value


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


class CRandom:
    """Deterministic generator giving the same sequence as srand()/rand()."""

    def __init__(self, seed: int = 1) -> None:
        self._state: deque[int] = deque(maxlen=_STATE_WORDS)
        self.seed(seed)

    def seed(self, seed: int) -> None:
        """Reset the generator as srand(seed) would."""
        start = seed & _MASK32
        if start == 0:
            start = 1
        words = [_to_int32(start)]
        for _ in range(1, 31):
            prev = words[-1]
            hi = _trunc_div(prev, 127773)
            lo = prev - hi * 127773
            word = 16807 * lo - 2836 * hi
            if word < 0:
                word += _MODULUS
            words.append(word)
        words.extend(words[:3])
        self._state = deque((w & _MASK32 for w in words), maxlen=_STATE_WORDS)
        for _ in range(_DISCARD):
            self._step()

    def _step(self) -> int:
        value = (self._state[-31] + self._state[-3]) & _MASK32
        self._state.append(value)
        return value

    def rand(self) -> int:
        """Return the next value in the range 0..RAND_MAX."""
        return self._step() >> 1