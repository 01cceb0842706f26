"""
Result envelope shared by the pymlm entry points.

A Result pairs a domain payload (for mlm(): MLMParams, the table and
p-value precisions) with what was learned while computing it: metadata
such as the SS type and distance, per-stage timing, the code path, and
any non-fatal warnings. Payload types stay free to define their own
fields.
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result of one analysis.

    Attributes:
        params: Payload (table rows, precisions, eigenvalues, ...)
        info: Metadata; for mlm(): 'ss_type', 'distance', 'response',
            'codings', and the 'fit' and 'model_matrix' objects
        timing: Seconds per stage plus 'total_seconds', or None
        backend_name: Code path, e.g. 'cpu_davies'
        warnings: Messages of the warnings issued during the analysis

    Examples:
        >>> Result(
        ...     params=MLMParams(...),
        ...     info={'ss_type': 'II', 'distance': 'euclidean'},
        ...     timing={'total_seconds': 0.01, 'projection': 0.004},
        ...     backend_name='cpu_davies',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """True if any recorded warning contains substring."""
        return any(substring in w for w in self.warnings)
