"""Example sequences built on LazySequence: primes, Fibonacci numbers, and an Euler sum."""

import operator

from lazy import LazySequence


def is_even(n) -> bool:
    return n % 2 == 0


def primes() -> LazySequence:
    """Sieve of Eratosthenes over naturals(2), one filter per prime found."""

    def sieve(candidates):
        prime = candidates.head
        rest = candidates.tail.filter(lambda n: n % prime != 0)
        return LazySequence.cons(prime, LazySequence.from_deferred(lambda: sieve(rest)), unbounded=True)

    return LazySequence.from_deferred(lambda: sieve(LazySequence.naturals(2)), unbounded=True)


def fibonacci(first: int = 1, second: int = 1) -> LazySequence:
    """first, second, first + second, ... built from cons and deferred tails."""

    def step(a, b):
        return LazySequence.cons(a, LazySequence.from_deferred(lambda: step(b, a + b)), unbounded=True)

    return LazySequence.from_deferred(lambda: step(first, second), unbounded=True)


def even_fibonacci_sum(limit: int = 4_000_000) -> int:
    """Sum of the even Fibonacci numbers strictly below `limit` (Project Euler #2)."""
    return (
        fibonacci()
        .take_while(lambda n: n < limit)
        .filter(is_even)
        .reduce(operator.add, 0)
    )
