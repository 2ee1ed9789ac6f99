"""
TA-Lib numeric backend.

Lookbacks and output metadata come from ``talib.abstract.Function`` handles;
values come from the ``talib`` function API (``talib.SMA(close, timeperiod=p)``).

Ranged computation reproduces TA-Lib's start-index semantics: for a range
[start, end] only the input window [first - lookback, end] is handed to the
library, where first = max(start, lookback). A value at index i therefore
depends on exactly the bars TA-Lib itself would read for that index, which
makes evaluation at an offset identical to evaluation on a truncated series.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import numpy as np
import talib
from talib import abstract

from ..exceptions import ComputationError
from .backend import RangeOutput


class TalibBackend:
    """
    NumericBackend backed by TA-Lib.

    Each instance owns its own cache of abstract function handles; handles
    are stateful, so instances must not be shared across threads.
    """

    def __init__(self) -> None:
        self._handles: Dict[str, Any] = {}
        self._defaults: Dict[str, Dict[str, Any]] = {}

    def _handle(self, function: str) -> Any:
        handle = self._handles.get(function)
        if handle is None:
            try:
                handle = abstract.Function(function)
            except Exception as e:
                raise ComputationError(f"Unknown TA-Lib function {function}: {e}") from e
            self._handles[function] = handle
            self._defaults[function] = dict(handle.parameters)
        return handle

    def output_names(self, function: str) -> List[str]:
        """Output names in TA-Lib order."""
        return list(self._handle(function).output_names)

    def lookback(self, function: str, params: Mapping[str, Any]) -> int:
        handle = self._handle(function)
        unknown = set(params) - set(self._defaults[function])
        if unknown:
            raise ComputationError(f"Unknown parameters for {function}: {sorted(unknown)}")
        try:
            # Reset to defaults so parameters from an earlier call never leak
            handle.set_parameters({**self._defaults[function], **params})
            return int(handle.lookback)
        except Exception as e:
            raise ComputationError(f"Invalid parameters for {function} {dict(params)}: {e}") from e

    def compute(
        self,
        function: str,
        inputs: Sequence[np.ndarray],
        params: Mapping[str, Any],
        start: int,
        end: int,
    ) -> RangeOutput:
        n_outputs = len(self.output_names(function))
        lookback = self.lookback(function, params)
        if lookback < 0:
            raise ComputationError(f"Invalid parameters for {function}: {dict(params)}")

        size = len(inputs[0]) if inputs else 0
        if end >= size:
            raise ComputationError(f"{function}: end index {end} beyond input length {size}")

        first = max(start, lookback)
        if end < first:
            return RangeOutput.empty(n_outputs)

        window = [
            np.ascontiguousarray(values[first - lookback:end + 1], dtype=np.float64)
            for values in inputs
        ]
        try:
            raw = getattr(talib, function)(*window, **params)
        except Exception as e:
            raise ComputationError(f"TA-Lib {function} failed: {e}") from e

        arrays = raw if isinstance(raw, (tuple, list)) else (raw,)
        outputs = tuple(np.asarray(values[lookback:], dtype=np.float64) for values in arrays)
        return RangeOutput(outputs=outputs, begin=first, count=end - first + 1)
