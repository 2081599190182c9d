import operator

from lazy import InfiniteSequenceError, LazySequence
from sequences import even_fibonacci_sum, fibonacci, is_even, primes


def expensive_square(x):
    print(f"  computing f({x}) ...")
    return x * x


def main():
    print("\n--- Demo: laziness (no work until iterated) ---")
    pipeline = (
        LazySequence.naturals(1)
        .map(expensive_square)
        .filter(is_even)
        .drop(1)
        .take(3)
    )
    print("Constructed pipeline over naturals(1). No output yet (nothing computed).")
    print(f"Result: {pipeline.to_list()}\n")

    print("--- Demo: self-referential sequences ---")
    print(f"First 10 primes: {primes().take(10).to_list()}")
    print(f"First 10 Fibonacci numbers: {fibonacci().take(10).to_list()}")
    print(f"Even Fibonacci numbers below 4,000,000 sum to {even_fibonacci_sum()}\n")

    print("--- Demo: cons and zip ---")
    print(f"cons(1, [2, 3, 4, 5]) -> {LazySequence.cons(1, [2, 3, 4, 5]).to_list()}")
    pairs = LazySequence.zip(LazySequence.naturals(), ["a", "b", "c"])
    print(f"zip(naturals(), ['a', 'b', 'c']) -> {pairs.to_list()} (unbounded={pairs.unbounded})")
    sums = LazySequence.zip_with(operator.add, fibonacci(), fibonacci().tail)
    print(f"fib + shifted fib -> {sums.take(8).to_list()}\n")

    print("--- Demo: unbounded guard ---")
    try:
        LazySequence.naturals().reduce(operator.add)
    except InfiniteSequenceError as e:
        print(f"naturals().reduce(add) refused: {e}")
    print(f"naturals().take(5).reduce(add) = {LazySequence.naturals().take(5).reduce(operator.add)}")


if __name__ == "__main__":
    main()
