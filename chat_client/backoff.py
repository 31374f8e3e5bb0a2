# chat_client/backoff.py
import random


class ExponentialBackoff:
    """
    Capped exponential backoff with full jitter.

    ``delay(n)`` is uniform in ``[0, min(cap, base * 2**n)]`` for the n-th
    consecutive failure (0-based).
    """

    def __init__(self, base=0.5, cap=30.0, rng=None):
        if base <= 0 or cap <= 0:
            raise ValueError('base and cap must be positive')
        self.base = base
        self.cap = cap
        self.rng = rng or random.Random()

    def ceiling(self, attempt):
        # exponent capped to keep the float finite
        return min(self.cap, self.base * (2 ** min(attempt, 32)))

    def delay(self, attempt):
        return self.rng.uniform(0, self.ceiling(attempt))
