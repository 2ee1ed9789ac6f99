"""
Numeric backend contract.

The engine depends on exactly two operations of the numeric indicator
library:

- ``lookback(function, params)``: preceding bars a function needs before
  its first valid output. Pure function of the parameters.
- ``compute(function, inputs, params, start, end)``: values for the index
  range [start, end], reported as a RangeOutput whose ``begin`` is the first
  index a value could be produced for and ``count`` the number of values.

TalibBackend is the production implementation; tests substitute their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np


@dataclass(frozen=True)
class RangeOutput:
    """Result of a ranged computation."""

    outputs: Tuple[np.ndarray, ...]  # One array per output, ``count`` values each
    begin: int  # Index of the first produced value
    count: int  # Number of produced values (0 = none)

    @classmethod
    def empty(cls, n_outputs: int) -> "RangeOutput":
        return cls(
            outputs=tuple(np.empty(0, dtype=np.float64) for _ in range(n_outputs)),
            begin=0,
            count=0,
        )


@runtime_checkable
class NumericBackend(Protocol):
    """Protocol for numeric indicator libraries."""

    def lookback(self, function: str, params: Mapping[str, Any]) -> int:
        """
        Minimum preceding bars required by ``function`` for ``params``.

        Returns a negative number for invalid parameters.
        """
        ...

    def compute(
        self,
        function: str,
        inputs: Sequence[np.ndarray],
        params: Mapping[str, Any],
        start: int,
        end: int,
    ) -> RangeOutput:
        """
        Compute ``function`` over the index range [start, end].

        Raises:
            ComputationError: If the library rejects the input.
        """
        ...
