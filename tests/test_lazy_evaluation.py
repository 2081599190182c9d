import pytest
from lazy import LazySequence


def counting_naturals(pulls):
    """Unbounded 0, 1, 2, ... that appends to `pulls` for every element produced."""
    def produce():
        n = 0
        while True:
            pulls.append(n)
            yield n
            n += 1
    return LazySequence(produce, unbounded=True)


class TestLazyEvaluation:
    """Test that nothing is computed until a cursor is advanced"""

    def test_chain_construction_computes_nothing(self, counter):
        """Test that combinators over naturals do not call callbacks"""
        chain = (
            LazySequence.naturals(0)
            .map(counter)
            .filter(lambda x: x % 2 == 0)
            .drop(3)
            .take_while(lambda x: x < 100)
            .drop_while(lambda x: x < 10)
            .take(5)
        )
        assert counter.calls == 0, "Operations should not execute during definition"
        assert chain.unbounded is False

    def test_creating_a_cursor_consumes_nothing(self):
        """Test that iter() alone does not pull elements"""
        pulls = []
        cursor = iter(counting_naturals(pulls).map(lambda x: x * 2))
        assert pulls == [], f"iter() should not consume, pulled {pulls}"

        assert next(cursor) == 0
        assert pulls == [0], f"One advance should pull one element, pulled {pulls}"

    def test_take_pulls_exactly_n_elements(self):
        """Test that take stops without pulling an extra element"""
        pulls = []
        result = counting_naturals(pulls).take(3).to_list()
        assert result == [0, 1, 2]
        assert pulls == [0, 1, 2], f"Expected exactly 3 pulls, got {pulls}"

    def test_only_needed_work_is_done(self, counter):
        """Test that map runs only for elements reaching the consumer"""
        counter.fn = lambda x: x * x
        result = LazySequence.naturals(0).map(counter).take(4).to_list()
        assert result == [0, 1, 4, 9]
        assert counter.calls == 4, f"Expected 4 calls, got {counter.calls}"

    def test_head_on_unbounded_sequence(self):
        """Test that head forces a single element, even when unbounded"""
        pulls = []
        assert counting_naturals(pulls).drop(5).head == 5
        assert pulls == [0, 1, 2, 3, 4, 5], f"Unexpected pulls: {pulls}"

    def test_tail_is_lazy(self):
        """Test that tail does not force anything"""
        pulls = []
        tail = counting_naturals(pulls).tail
        assert pulls == []
        assert tail.unbounded is True
        assert tail.head == 1

    def test_from_producer_defers_call(self):
        """Test that the producer runs on first advance, not on construction or iter()"""
        calls = []

        def producer():
            calls.append("called")
            return [1, 2, 3]

        seq = LazySequence.from_producer(producer)
        cursor = iter(seq)
        assert calls == [], "Producer should not run before the first advance"
        assert next(cursor) == 1
        assert calls == ["called"]

    def test_from_deferred_defers_thunk(self):
        """Test that a deferred thunk is not invoked before a cursor is advanced"""
        calls = []

        def thunk():
            calls.append("called")
            return LazySequence.naturals(7)

        seq = LazySequence.from_deferred(thunk, unbounded=True)
        seq.map(lambda x: x + 1).filter(lambda x: x > 0)
        assert calls == []

        assert seq.take(2).to_list() == [7, 8]
        assert calls == ["called"]


class TestDeterminism:
    """Test that repeated traversals agree"""

    def test_two_traversals_match(self):
        """Test that the same chain yields identical output twice"""
        chain = LazySequence.naturals(3).map(lambda x: x * 3).filter(lambda x: x % 2 == 1).take(6)
        assert chain.to_list() == chain.to_list() == [9, 15, 21, 27, 33, 39]

    def test_interleaved_cursors_are_independent(self):
        """Test that two cursors over one sequence keep their own positions"""
        seq = LazySequence.naturals(0).map(lambda x, i: (x, i))
        first, second = iter(seq), iter(seq)

        assert next(first) == (0, 0)
        assert next(first) == (1, 1)
        assert next(second) == (0, 0), "Index must be per-cursor"
        assert next(first) == (2, 2)
        assert next(second) == (1, 1)

    def test_exhaustion_does_not_affect_new_cursors(self):
        """Test that a finished traversal does not leak into the next one"""
        seq = LazySequence.cons(0, [1, 2])
        assert list(seq) == [0, 1, 2]
        assert list(seq) == [0, 1, 2]

    def test_producer_returning_generator_restarts(self):
        """Test that a generator-returning producer restarts for each cursor"""
        def gen():
            yield from (10, 20, 30)

        seq = LazySequence.from_producer(gen)
        assert seq.to_list() == [10, 20, 30]
        assert seq.to_list() == [10, 20, 30]

    def test_deferred_one_shot_iterator_restarts(self):
        """Test that a thunk returning a one-shot iterator is re-invoked per cursor"""
        calls = []

        def thunk():
            calls.append(1)
            return iter([1, 2])

        seq = LazySequence.from_deferred(thunk)
        assert seq.to_list() == [1, 2]
        assert seq.to_list() == [1, 2]
        assert len(calls) == 2

    def test_deferred_sequence_realized_once(self):
        """Test that a thunk returning a sequence is resolved only once"""
        calls = []

        def thunk():
            calls.append(1)
            return LazySequence.cons(1, [2, 3])

        seq = LazySequence.from_deferred(thunk)
        assert seq.to_list() == [1, 2, 3]
        assert seq.to_list() == [1, 2, 3]
        assert len(calls) == 1, "Restartable results should be kept by the cell"
