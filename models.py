"""Models for the lazy sequence API: requests, responses and service settings."""

import os
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_MAX_TAKE = 1000
DEFAULT_MAX_RECURSIVE_TAKE = 100
DEFAULT_MAX_PULL = 100_000
DEFAULT_MAX_DROP = 10_000


class SourceKind(str, Enum):
    """Where a pipeline's elements come from"""
    NATURALS = "naturals"
    ITEMS = "items"


class OperationType(str, Enum):
    """Lazy combinators available to declarative pipelines"""
    MAP = "map"
    FILTER = "filter"
    TAKE = "take"
    DROP = "drop"
    TAKE_WHILE = "take_while"
    DROP_WHILE = "drop_while"


class TerminalType(str, Enum):
    """Operation used to force a pipeline"""
    TO_LIST = "to_list"
    LENGTH = "length"
    HEAD = "head"
    SUM = "sum"


class ServiceSettings(BaseModel):
    """Limits read from the environment (LAZY_MAX_TAKE, LAZY_MAX_RECURSIVE_TAKE, LAZY_MAX_DROP, LAZY_MAX_PULL)."""
    max_take: int = Field(
        DEFAULT_MAX_TAKE,
        gt=0,
        description="Largest count accepted by flat endpoints and pipeline take operations"
    )
    max_recursive_take: int = Field(
        DEFAULT_MAX_RECURSIVE_TAKE,
        gt=0,
        description="Largest count accepted by the self-referential primes/fibonacci endpoints"
    )
    max_drop: int = Field(
        DEFAULT_MAX_DROP,
        ge=0,
        description="Largest count accepted by pipeline drop operations"
    )
    max_pull: int = Field(
        DEFAULT_MAX_PULL,
        gt=0,
        description="Most elements one pipeline may draw from its source before it is aborted"
    )

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        return cls(
            max_take=os.environ.get("LAZY_MAX_TAKE", DEFAULT_MAX_TAKE),
            max_recursive_take=os.environ.get("LAZY_MAX_RECURSIVE_TAKE", DEFAULT_MAX_RECURSIVE_TAKE),
            max_drop=os.environ.get("LAZY_MAX_DROP", DEFAULT_MAX_DROP),
            max_pull=os.environ.get("LAZY_MAX_PULL", DEFAULT_MAX_PULL),
        )


class SourceSpec(BaseModel):
    """Pipeline origin: naturals from `start`, or a literal list of items."""
    kind: SourceKind = Field(SourceKind.NATURALS, description="Source type")
    start: int = Field(0, ge=0, description="First natural number (naturals only)")
    items: Optional[List[Any]] = Field(None, description="Literal elements (items only)")

    @model_validator(mode='after')
    def validate_items(self):
        """Items sources must carry a list."""
        if self.kind == SourceKind.ITEMS and self.items is None:
            raise ValueError("items source requires an items list")
        return self


class OperationSpec(BaseModel):
    """One combinator in a declarative pipeline."""
    type: OperationType = Field(..., description="Combinator to apply")
    function: Optional[str] = Field(
        None,
        description="Named function (map) or predicate (filter, take_while, drop_while)",
        examples=["square"]
    )
    value: Optional[Union[int, float]] = Field(None, description="Parameter for parametrised callbacks")
    count: Optional[int] = Field(None, description="Element count (take, drop)")

    @field_validator('function')
    @classmethod
    def validate_function(cls, v):
        """Strip and reject blank callback names."""
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("function name cannot be empty")
        return v

    @model_validator(mode='after')
    def validate_arguments(self):
        """take/drop need a count; everything else needs a callback name; divisors are non-zero."""
        if self.type in (OperationType.TAKE, OperationType.DROP):
            if self.count is None:
                raise ValueError(f"{self.type.value} requires count")
        elif not self.function:
            raise ValueError(f"{self.type.value} requires function")
        elif self.function == "divisible_by" and self.value == 0:
            raise ValueError("divisible_by requires a non-zero value")
        return self


class PipelineRequest(BaseModel):
    """Declarative lazy pipeline: source, chained operations, one terminal."""
    source: SourceSpec = Field(default_factory=SourceSpec)
    operations: List[OperationSpec] = Field(default_factory=list)
    terminal: TerminalType = Field(TerminalType.TO_LIST, description="Forcing operation")


class PerformanceInfo(BaseModel):
    """Timing and memory for one forcing operation"""
    operation: str
    execution_time_ms: float
    memory_usage_mb: float


class PipelineResponse(BaseModel):
    """Result of forcing a pipeline"""
    ok: bool = Field(True, description="Whether the pipeline ran")
    result: Any = Field(None, description="Terminal result")
    terminal: TerminalType
    unbounded: bool = Field(..., description="Unbounded flag of the final sequence")
    operations_applied: List[str] = Field(default_factory=list)
    performance: PerformanceInfo
    timestamp: datetime


class SequenceResponse(BaseModel):
    """A finite prefix of a named sequence"""
    name: str
    values: List[int]
    count: int
    performance: PerformanceInfo
    timestamp: datetime


class SumResponse(BaseModel):
    """Even Fibonacci sum below a limit"""
    limit: int
    total: int
    performance: PerformanceInfo
    timestamp: datetime


class StatusResponse(BaseModel):
    """Generic status message"""
    ok: bool
    message: str
    timestamp: datetime


class HealthResponse(BaseModel):
    """Service health plus effective settings"""
    healthy: bool
    settings: ServiceSettings
    performance_metrics: Dict[str, Any]
    timestamp: datetime


class PerformanceResponse(BaseModel):
    """Aggregated performance metrics"""
    ok: bool
    metrics: Dict[str, Any]
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Error payload returned by exception handlers"""
    error: str
    error_type: str
    timestamp: datetime
