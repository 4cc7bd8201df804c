"""
Result envelope shared by the fitter and the model comparison code.

Every computation returns its numbers in a domain payload (GLMParams,
LRTParams) wrapped in a Result, which adds how the numbers were produced:
method metadata, per-section timing, the backend and any non-fatal
warnings. User-facing solution classes read from it and never mutate it.
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable envelope around a parameter payload.

    Attributes:
        params: Payload computed by a backend (GLMParams, LRTParams)
        info: Method metadata, e.g. {'method': 'irls_qr', 'rank': 2}
        timing: Seconds per Timer section, or None if not measured
        backend_name: Backend that produced the payload ('cpu_irls', 'cpu')
        warnings: Non-fatal conditions, in the order they were raised
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
