"""FastAPI app exposing lazy sequences: named sequences, an Euler sum, and declarative pipelines."""

import asyncio
import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from lazy import EmptySequenceError, InfiniteSequenceError, LazySequence, RangeError, TypeArgumentError
from models import (
    ErrorResponse, HealthResponse, OperationType, PerformanceInfo, PerformanceResponse,
    PipelineRequest, PipelineResponse, SequenceResponse, ServiceSettings, StatusResponse, SumResponse
)
from sequences import even_fibonacci_sum, fibonacci, primes
from utils import (
    PipelineEvaluationError, PullBudgetExceeded, apply_operations, build_source, clear_performance_metrics,
    get_performance_summary, measure_performance, run_terminal, with_pull_budget
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Lazy Sequence Service",
    description="Unbounded lazy sequences with chainable map/filter/take/drop and guarded reductions",
    version="1.0.0"
)


def _check_count(count: int, limit: int):
    if count > limit:
        raise HTTPException(status_code=400, detail=f"count {count} exceeds the configured limit of {limit}")


async def _run_blocking(func, *args):
    """Run a forcing call in the default executor so it does not stall the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


async def _prefix_response(name: str, seq: LazySequence, count: int) -> SequenceResponse:
    values, info = await _run_blocking(measure_performance, f"{name}_take_{count}", seq.take(count).to_list)
    return SequenceResponse(
        name=name,
        values=values,
        count=len(values),
        performance=PerformanceInfo(**info),
        timestamp=datetime.now()
    )


@app.get("/", response_model=StatusResponse)
async def root():
    """Basic service banner."""
    return StatusResponse(
        ok=True,
        message="Lazy Sequence Service operational - Features: lazy combinators, unbounded guards, deferred recursion",
        timestamp=datetime.now()
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Return effective settings + metrics summary."""
    return HealthResponse(
        healthy=True,
        settings=ServiceSettings.from_env(),
        performance_metrics=get_performance_summary(),
        timestamp=datetime.now()
    )


@app.get("/sequences/naturals", response_model=SequenceResponse)
async def get_naturals(
    start: int = Query(0, ge=0, description="First natural number"),
    count: int = Query(10, ge=0, description="Number of elements to return")
):
    """First `count` naturals from `start`."""
    _check_count(count, ServiceSettings.from_env().max_take)
    return await _prefix_response("naturals", LazySequence.naturals(start), count)


@app.get("/sequences/primes", response_model=SequenceResponse)
async def get_primes(count: int = Query(10, ge=0, description="Number of primes to return")):
    """First `count` primes from the deferred sieve."""
    _check_count(count, ServiceSettings.from_env().max_recursive_take)
    return await _prefix_response("primes", primes(), count)


@app.get("/sequences/fibonacci", response_model=SequenceResponse)
async def get_fibonacci(count: int = Query(10, ge=0, description="Number of Fibonacci numbers to return")):
    """First `count` Fibonacci numbers."""
    _check_count(count, ServiceSettings.from_env().max_recursive_take)
    return await _prefix_response("fibonacci", fibonacci(), count)


@app.get("/euler/even-fibonacci-sum", response_model=SumResponse)
async def get_even_fibonacci_sum(
    limit: int = Query(4_000_000, gt=0, le=10**18, description="Exclusive upper bound on Fibonacci terms")
):
    """Sum of even Fibonacci numbers below `limit`."""
    total, info = await _run_blocking(measure_performance, f"even_fibonacci_sum_{limit}", even_fibonacci_sum, limit)
    return SumResponse(
        limit=limit,
        total=total,
        performance=PerformanceInfo(**info),
        timestamp=datetime.now()
    )


@app.post("/pipeline", response_model=PipelineResponse)
async def run_pipeline(request: PipelineRequest) -> PipelineResponse:
    """Build a lazy chain from the request and force it with the requested terminal."""
    settings = ServiceSettings.from_env()
    for op in request.operations:
        if op.type == OperationType.TAKE:
            _check_count(op.count, settings.max_take)
        elif op.type == OperationType.DROP:
            _check_count(op.count, settings.max_drop)

    operations = [op.model_dump(mode="json") for op in request.operations]
    try:
        seq = build_source(request.source.kind.value, request.source.start, request.source.items)
        seq = with_pull_budget(seq, settings.max_pull)
        seq = apply_operations(seq, operations)
    except (KeyError, ValueError) as e:
        # KeyError's str() carries quotes
        detail = e.args[0] if isinstance(e, KeyError) else str(e)
        raise HTTPException(status_code=400, detail=detail)

    logger.info(f"Running pipeline with {len(operations)} operations, terminal={request.terminal.value}")
    result, info = await _run_blocking(
        measure_performance, f"pipeline_{request.terminal.value}", run_terminal, seq, request.terminal.value
    )

    return PipelineResponse(
        ok=True,
        result=result,
        terminal=request.terminal,
        unbounded=seq.unbounded,
        operations_applied=[op["type"] for op in operations],
        performance=PerformanceInfo(**info),
        timestamp=datetime.now()
    )


@app.get("/metrics", response_model=PerformanceResponse)
async def get_metrics() -> PerformanceResponse:
    """Return aggregated performance metrics."""
    return PerformanceResponse(ok=True, metrics=get_performance_summary(), timestamp=datetime.now())


@app.delete("/metrics", response_model=StatusResponse)
async def clear_metrics() -> StatusResponse:
    """Reset in-memory performance counters."""
    clear_performance_metrics()
    return StatusResponse(ok=True, message="All performance metrics cleared", timestamp=datetime.now())


# Exception handlers for proper error responses
def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=str(exc),
            error_type=type(exc).__name__,
            timestamp=datetime.now()
        ).model_dump(mode="json")
    )


@app.exception_handler(InfiniteSequenceError)
async def infinite_sequence_handler(request: Request, exc: InfiniteSequenceError):
    return _error_response(400, exc)


@app.exception_handler(EmptySequenceError)
async def empty_sequence_handler(request: Request, exc: EmptySequenceError):
    return _error_response(422, exc)


@app.exception_handler(TypeArgumentError)
async def type_argument_handler(request: Request, exc: TypeArgumentError):
    return _error_response(400, exc)


@app.exception_handler(RangeError)
async def range_handler(request: Request, exc: RangeError):
    return _error_response(400, exc)


@app.exception_handler(PullBudgetExceeded)
async def pull_budget_handler(request: Request, exc: PullBudgetExceeded):
    return _error_response(400, exc)


@app.exception_handler(PipelineEvaluationError)
async def pipeline_evaluation_handler(request: Request, exc: PipelineEvaluationError):
    return _error_response(400, exc)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
