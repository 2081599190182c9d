"""
Lazy, restartable, possibly unbounded sequences.

A LazySequence wraps a zero-argument producer. Every traversal invokes the
producer again, so each cursor starts from scratch and nothing computed by an
earlier traversal is remembered. Transformations return new sequences wrapping
the original; no element is computed until a consumer advances a cursor.
"""

import inspect
import logging
import math
import sys
from collections.abc import Sequence as OrderedCollection
from numbers import Real
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Reported by `length` for sequences flagged as unbounded
UNBOUNDED_LENGTH = math.inf

_MISSING = object()


class TypeArgumentError(TypeError):
    """Raised when an argument must be callable or sequence-like and is not."""
    pass


class RangeError(ValueError):
    """Raised when a numeric argument is outside its documented domain."""
    pass


class InfiniteSequenceError(Exception):
    """Raised when an eager operation is invoked on an unbounded sequence."""
    pass


class EmptySequenceError(LookupError):
    """Raised when an operation needs at least one element and finds none."""
    pass


# --------- argument helpers ----------
def _require_callable(fn, operation: str):
    if not callable(fn):
        raise TypeArgumentError(f"{operation} requires a callable, got {type(fn).__name__}")


def _positional_arity(fn) -> int:
    """How many required positional arguments `fn` takes (sys.maxsize for *args)."""
    if inspect.isclass(fn):
        return 1
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 1
    count = 0
    for param in signature.parameters.values():
        if param.kind == param.VAR_POSITIONAL:
            return sys.maxsize
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD) and param.default is param.empty:
            count += 1
    return count


def _index_aware(fn, base: int) -> Callable:
    """
    Adapt `fn` so it can always be called with `base` arguments plus an index.

    The index is forwarded only when `fn` requires more than `base` positional
    arguments, so `lambda x: ...` and `lambda x, i: ...` both work with map,
    and a defaulted parameter such as `lambda x, scale=2: ...` keeps its default.
    """
    if _positional_arity(fn) > base:
        return fn
    return lambda *args: fn(*args[:base])


def _iterate(value) -> Iterator:
    try:
        return iter(value)
    except TypeError:
        raise TypeArgumentError(f"producer returned a non-iterable {type(value).__name__}") from None


def _is_restartable(value) -> bool:
    return isinstance(value, (LazySequence, OrderedCollection))


def as_sequence(value: "SequenceInput", operation: str = "sequence") -> "LazySequence":
    """Accept a LazySequence as-is and wrap ordered built-in collections."""
    if isinstance(value, LazySequence):
        return value
    if isinstance(value, OrderedCollection):
        return FiniteList(value)
    raise TypeArgumentError(
        f"{operation} requires a LazySequence or an ordered collection, got {type(value).__name__}"
    )


class _Deferred:
    """Resolve-once cell: a pending thunk until first use, then its realized source."""

    __slots__ = ("_thunk", "_source")

    def __init__(self, thunk: Callable[[], Iterable]):
        self._thunk = thunk
        self._source = _MISSING

    def resolve(self):
        if self._source is not _MISSING:
            return self._source
        value = self._thunk()
        if _is_restartable(value):
            # one-shot iterators are not kept; the thunk runs again per cursor
            self._source = value
            self._thunk = None
            logger.debug(f"Deferred sequence realized as {type(value).__name__}")
        return value


def _unfold(seq: "LazySequence") -> Iterator:
    """
    Walk cons cells and deferred links in a loop rather than nesting generators.

    A chain such as ``cons(a, from_deferred(lambda: cons(b, ...)))`` is followed
    link by link at constant stack depth; any other sequence ends the walk and
    is delegated to.
    """
    while True:
        if seq._cons is not None:
            first, seq = seq._cons
            yield first
        elif seq._deferred is not None:
            value = seq._deferred.resolve()
            if not isinstance(value, LazySequence):
                yield from _iterate(value)
                return
            seq = value
        else:
            yield from seq
            return


class LazySequence(Generic[T]):
    """
    A chainable, lazy sequence. Each call to iter() invokes the producer for a
    fresh cursor; combinators wrap this sequence without evaluating it.

    `unbounded` is static metadata: it marks sequences known never to end so
    that eager operations can refuse them before consuming anything.
    """

    def __init__(self, producer: Callable[[], Iterable[T]], unbounded: bool = False):
        _require_callable(producer, "LazySequence")
        self._producer = producer
        self._unbounded = bool(unbounded)
        # set on cons and deferred sequences so _unfold can walk them iteratively
        self._cons = None
        self._deferred = None

    @property
    def unbounded(self) -> bool:
        return self._unbounded

    # --------- construction ----------
    @classmethod
    def from_producer(cls, producer: Callable[[], Iterable[T]], unbounded: bool = False) -> "LazySequence[T]":
        """Build a sequence from a callable returning an iterator or an iterable."""
        _require_callable(producer, "from_producer")

        def produce():
            yield from _iterate(producer())

        return cls(produce, unbounded)

    @classmethod
    def from_deferred(cls, thunk: Callable[[], Iterable[T]], unbounded: bool = False) -> "LazySequence[T]":
        """
        Like from_producer, but meant for self-referential definitions.

        `thunk` is stored unevaluated and only called when a cursor is first
        advanced, so a definition such as ``cons(a, from_deferred(lambda: f(b)))``
        unfolds one level per element demanded instead of recursing at
        construction time.
        """
        _require_callable(thunk, "from_deferred")
        seq = cls(lambda: _unfold(seq), unbounded)
        seq._deferred = _Deferred(thunk)
        return seq

    # --------- chainable operators (lazy) ----------
    def map(self, fn: Callable[..., Any]) -> "LazySequence":
        _require_callable(fn, "map")
        call = _index_aware(fn, 1)
        origin = self

        def produce():
            for index, item in enumerate(origin):
                yield call(item, index)

        return self._derive(produce, self._unbounded)

    def filter(self, pred: Callable[..., Any]) -> "LazySequence[T]":
        _require_callable(pred, "filter")
        call = _index_aware(pred, 1)
        origin = self

        def produce():
            for index, item in enumerate(origin):
                if call(item, index):
                    yield item

        return self._derive(produce, self._unbounded)

    def take(self, n) -> "LazySequence[T]":
        origin = self

        def produce():
            if n <= 0:
                return
            taken = 0
            for item in origin:
                yield item
                taken += 1
                if taken >= n:
                    return

        return self._derive(produce, False)

    def drop(self, n) -> "LazySequence[T]":
        origin = self

        def produce():
            skipped = 0
            for item in origin:
                if skipped < n:
                    skipped += 1
                    continue
                yield item

        return self._derive(produce, self._unbounded)

    def take_while(self, pred: Callable[[T], Any]) -> "LazySequence[T]":
        _require_callable(pred, "take_while")
        origin = self

        def produce():
            for item in origin:
                if not pred(item):
                    return
                yield item

        # NB: reported as bounded even if `pred` never returns False
        return self._derive(produce, False)

    def drop_while(self, pred: Callable[[T], Any]) -> "LazySequence[T]":
        _require_callable(pred, "drop_while")
        origin = self

        def produce():
            dropping = True
            for item in origin:
                if dropping and pred(item):
                    continue
                dropping = False
                yield item

        return self._derive(produce, self._unbounded)

    # --------- forcing evaluation ----------
    @property
    def head(self) -> T:
        for item in self.take(1):
            return item
        raise EmptySequenceError("head of an empty sequence")

    @property
    def tail(self) -> "LazySequence[T]":
        return self.drop(1)

    @property
    def length(self):
        """
        Number of elements, or UNBOUNDED_LENGTH for unbounded sequences.

        NB: walks the whole sequence, O(n) rather than O(1).
        """
        if self._unbounded:
            return UNBOUNDED_LENGTH
        count = 0
        for _ in self:
            count += 1
        return count

    def for_each(self, fn: Callable[..., Any]) -> None:
        _require_callable(fn, "for_each")
        self._require_bounded("for_each")
        call = _index_aware(fn, 1)
        for index, item in enumerate(self):
            call(item, index)

    def reduce(self, fn: Callable[..., Any], initial: Any = _MISSING) -> Any:
        """
        Fold `fn(accumulator, element[, index])` from left to right.

        Without `initial` the first element seeds the accumulator and folding
        starts at index 1; an empty sequence then raises EmptySequenceError.
        """
        _require_callable(fn, "reduce")
        self._require_bounded("reduce")
        call = _index_aware(fn, 2)
        cursor = iter(self)
        if initial is _MISSING:
            try:
                accumulator = next(cursor)
            except StopIteration:
                raise EmptySequenceError("reduce of an empty sequence with no initial value") from None
            start = 1
        else:
            accumulator = initial
            start = 0
        for index, item in enumerate(cursor, start):
            accumulator = call(accumulator, item, index)
        return accumulator

    def to_list(self) -> list:
        self._require_bounded("to_list")
        return list(self)

    # --------- combination helpers ----------
    @staticmethod
    def cons(first: T, rest: "SequenceInput", unbounded: Optional[bool] = None) -> "LazySequence[T]":
        """Prepend `first` to `rest` (a LazySequence or an ordered collection)."""
        rest_seq = as_sequence(rest, "cons")
        if unbounded is None:
            unbounded = rest_seq.unbounded

        seq = LazySequence(lambda: _unfold(seq), unbounded)
        seq._cons = (first, rest_seq)
        return seq

    @staticmethod
    def naturals(start=0) -> "LazySequence":
        """start, start + 1, start + 2, ... without end."""
        if isinstance(start, bool) or not isinstance(start, Real):
            raise TypeArgumentError(f"naturals requires a number, got {type(start).__name__}")
        if start < 0:
            raise RangeError(f"naturals requires a non-negative start, got {start}")

        def produce():
            value = start
            while True:
                yield value
                value += 1

        return LazySequence(produce, True)

    @staticmethod
    def zip(first: "SequenceInput", second: "SequenceInput") -> "LazySequence[tuple]":
        """Pair elements positionally, stopping at the shorter side."""
        left = as_sequence(first, "zip")
        right = as_sequence(second, "zip")

        def produce():
            left_cursor = iter(left)
            right_cursor = iter(right)
            while True:
                try:
                    a = next(left_cursor)
                    b = next(right_cursor)
                except StopIteration:
                    return
                yield (a, b)

        return LazySequence(produce, left.unbounded and right.unbounded)

    @staticmethod
    def zip_with(fn: Callable[[Any, Any], Any], first: "SequenceInput", second: "SequenceInput") -> "LazySequence":
        _require_callable(fn, "zip_with")
        return LazySequence.zip(first, second).map(lambda pair: fn(*pair))

    # --------- iterator protocol ----------
    def __iter__(self) -> Iterator[T]:
        return _iterate(self._producer())

    def __repr__(self):
        return f"{type(self).__name__}(unbounded={self._unbounded})"

    # --------- helpers ----------
    def _derive(self, producer, unbounded) -> "LazySequence":
        return LazySequence(producer, unbounded)

    def _require_bounded(self, operation: str):
        if self._unbounded:
            logger.debug(f"Refusing {operation} on an unbounded sequence")
            raise InfiniteSequenceError(
                f"{operation} on an unbounded sequence; bound it with take() or take_while() first"
            )


class FiniteList(LazySequence[T]):
    """Adapter presenting an ordered built-in collection as a bounded sequence."""

    def __init__(self, items: OrderedCollection):
        if not isinstance(items, OrderedCollection):
            raise TypeArgumentError(f"FiniteList requires an ordered collection, got {type(items).__name__}")
        self._items = items
        super().__init__(lambda: iter(self._items), unbounded=False)

    def __repr__(self):
        return f"FiniteList({self._items!r})"


SequenceInput = Union[LazySequence, OrderedCollection]

from_producer = LazySequence.from_producer
from_deferred = LazySequence.from_deferred
cons = LazySequence.cons
naturals = LazySequence.naturals
zip_with = LazySequence.zip_with
