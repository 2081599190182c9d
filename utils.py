"""
Utility functions for the lazy sequence service.

This module provides the named callbacks that declarative pipelines refer to,
the pipeline builder itself, and helpers for measuring and tracking the
performance of forcing operations.
"""

import gc
import logging
import math
import operator
import threading
import time
import tracemalloc
from typing import Any, Callable, Dict, List, Optional, Tuple

from lazy import LazySequence, TypeArgumentError, as_sequence
from sequences import is_even

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# Callbacks that pipeline operations may reference by name. Parametrised
# entries take the operation's `value` and return the actual callback.
NAMED_FUNCTIONS: Dict[str, Callable[[Any], Callable]] = {
    "identity": lambda _: (lambda x: x),
    "square": lambda _: (lambda x: x * x),
    "double": lambda _: (lambda x: x * 2),
    "negate": lambda _: (lambda x: -x),
    "add": lambda v: (lambda x: x + v),
    "multiply": lambda v: (lambda x: x * v),
    "index": lambda _: (lambda x, i: i),
}

NAMED_PREDICATES: Dict[str, Callable[[Any], Callable]] = {
    "even": lambda _: is_even,
    "odd": lambda _: (lambda x: not is_even(x)),
    "less_than": lambda v: (lambda x: x < v),
    "greater_than": lambda v: (lambda x: x > v),
    "divisible_by": lambda v: (lambda x: x % v == 0),
}

PARAMETRISED = {"add", "multiply", "less_than", "greater_than", "divisible_by"}


class PullBudgetExceeded(Exception):
    """Raised when a pipeline draws more elements from its source than allowed."""
    pass


class PipelineEvaluationError(Exception):
    """Raised when a callback fails while a pipeline is being forced."""
    pass


def resolve_callback(name: str, value: Any = None, predicate: bool = False) -> Callable:
    """Look up a named function or predicate and bind its parameter."""
    registry = NAMED_PREDICATES if predicate else NAMED_FUNCTIONS
    kind = "predicate" if predicate else "function"
    if name not in registry:
        raise KeyError(f"Unknown {kind}: {name}")
    if name in PARAMETRISED and value is None:
        raise ValueError(f"{kind} '{name}' requires a value")
    return registry[name](value)


def build_source(kind: str, start: int = 0, items: Optional[List[Any]] = None) -> LazySequence:
    """Create the origin of a pipeline: naturals from `start`, or literal items."""
    if kind == "naturals":
        return LazySequence.naturals(start)
    if kind == "items":
        return as_sequence(list(items or []), "items")
    raise ValueError(f"Unknown source: {kind}")


def with_pull_budget(seq: LazySequence, budget: int) -> LazySequence:
    """
    Wrap a pipeline source so no cursor draws more than `budget` elements.

    Bounds the work of chains that are flagged bounded but never finish, such
    as take_while with an always-true predicate or a filter that never matches.
    """
    def produce():
        pulled = 0
        for item in seq:
            pulled += 1
            if pulled > budget:
                raise PullBudgetExceeded(f"pipeline drew more than {budget} elements from its source")
            yield item

    return LazySequence(produce, seq.unbounded)


def apply_operations(seq: LazySequence, operations: List[Dict[str, Any]]) -> LazySequence:
    """Chain operations onto `seq` without evaluating anything."""
    for op in operations:
        op_type = op.get("type")

        if op_type == "map":
            seq = seq.map(resolve_callback(op.get("function"), op.get("value")))

        elif op_type == "filter":
            seq = seq.filter(resolve_callback(op.get("function"), op.get("value"), predicate=True))

        elif op_type == "take":
            seq = seq.take(op.get("count", 10))

        elif op_type == "drop":
            seq = seq.drop(op.get("count", 0))

        elif op_type == "take_while":
            seq = seq.take_while(resolve_callback(op.get("function"), op.get("value"), predicate=True))

        elif op_type == "drop_while":
            seq = seq.drop_while(resolve_callback(op.get("function"), op.get("value"), predicate=True))

        else:
            raise ValueError(f"Unknown op: {op_type}")

    return seq


def run_terminal(seq: LazySequence, terminal: str) -> Any:
    """Force `seq` with the named terminal operation; callback failures become PipelineEvaluationError."""
    try:
        return _force(seq, terminal)
    except TypeArgumentError:
        raise
    except (TypeError, ArithmeticError) as e:
        raise PipelineEvaluationError(f"{type(e).__name__}: {e}") from e


def _force(seq: LazySequence, terminal: str) -> Any:
    if terminal == "to_list":
        return seq.to_list()
    if terminal == "length":
        length = seq.length
        return None if math.isinf(length) else length
    if terminal == "head":
        return seq.head
    if terminal == "sum":
        return seq.reduce(operator.add, 0)
    raise ValueError(f"Unknown terminal: {terminal}")


def measure_performance(operation_name: str, func, *args, **kwargs) -> Tuple[Any, Dict[str, Any]]:
    """Measure a call with memory tracking; returns (result, performance info)"""

    # Start memory tracking
    tracemalloc.start()
    gc.collect()

    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        current, peak = tracemalloc.get_traced_memory()
        memory_mb = peak / 1024 / 1024

        performance_info = {
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": memory_mb,
            "success": True,
            "result_size": len(result) if hasattr(result, "__len__") else None,
            "timestamp": time.time()
        }
        _record(performance_info)
        return result, performance_info

    except Exception as e:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        current, peak = tracemalloc.get_traced_memory()
        memory_mb = peak / 1024 / 1024

        performance_info = {
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": memory_mb,
            "success": False,
            "error": str(e),
            "timestamp": time.time()
        }
        _record(performance_info)
        logger.warning(f"{operation_name} failed after {execution_time_ms:.2f}ms: {e}")
        raise

    finally:
        tracemalloc.stop()


class PerformanceTracker:
    """Thread-safe store of measured operations, recorded from executor threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._operations: List[Dict[str, Any]] = []

    def record(self, performance_info: Dict[str, Any]):
        with self._lock:
            self._operations.append(performance_info)

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            operations = list(self._operations)

        count = len(operations)
        total_time_ms = sum(op["execution_time_ms"] for op in operations)
        total_memory_mb = sum(op["memory_usage_mb"] for op in operations)
        slowest = max(operations, key=lambda op: op["execution_time_ms"], default=None)
        return {
            "total_operations": count,
            "failed_operations": sum(1 for op in operations if not op["success"]),
            "total_time_ms": total_time_ms,
            "total_memory_mb": total_memory_mb,
            "avg_time_ms": total_time_ms / count if count else 0.0,
            "avg_memory_mb": total_memory_mb / count if count else 0.0,
            "slowest_operation": slowest["operation"] if slowest else None
        }

    def clear(self):
        with self._lock:
            self._operations = []


performance_tracker = PerformanceTracker()


def _record(performance_info: Dict[str, Any]):
    performance_tracker.record(performance_info)


def get_performance_summary() -> Dict[str, Any]:
    """Totals and averages over every measured operation"""
    return performance_tracker.summary()


def clear_performance_metrics():
    """Clear all performance metrics"""
    performance_tracker.clear()
