"""
IndicatorGateway - Uniform indicator evaluation at a historical offset.

Contract:
    evaluate(indicator_id, columns, params, offset=0) -> Outputs

- end_index = last_index - offset
- The backend computes the single-index range (end_index, end_index).
- If it produced no value, the requested index precedes the indicator's
  warm-up and the evaluation is not ready. The caller learns the exact
  lookback (backend lookback + offset), so a buffer of
  ``lookback + 1`` bars is the minimum that succeeds.
- Otherwise the value(s) at that index are returned.

``evaluate`` raises InsufficientData when not ready; ``try_evaluate``
returns ``Ok(value)`` or ``Err(NotReady)`` instead. Malformed input always
raises ComputationError, never conflated with warm-up.

``evaluate_series`` computes the whole range (0, last_index) in one backend
call and returns input-length arrays, NaN before the first valid index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from ...utils.result import Err, Ok, Result
from ..bars.bar_buffer import BarBuffer
from ..exceptions import ComputationError, InsufficientData
from .backend import NumericBackend, RangeOutput
from .catalog import IndicatorCatalog, IndicatorSpec, OutputKind

Outputs = Union[float, bool, Tuple[float, ...]]
Series = Union[np.ndarray, Tuple[np.ndarray, ...]]

# BarBuffer, {column: values}, a tuple of arrays (positional), or one array
Columns = Union[BarBuffer, Mapping[str, Any], Tuple[Any, ...], Any]


@dataclass(frozen=True)
class NotReady:
    """Evaluation requested before enough history exists."""

    indicator: str
    lookback: int  # Backend lookback + offset
    offset: int = 0

    @property
    def required_bars(self) -> int:
        return self.lookback + 1

    def to_exception(self) -> InsufficientData:
        return InsufficientData(self.indicator, self.lookback, self.offset)


class IndicatorGateway:
    """
    Evaluates catalog indicators against bar columns.

    One gateway owns one backend handle. Engines create their own gateway
    (or receive one) rather than sharing a process-wide instance.

    Example:
        ta = IndicatorGateway()
        ta.evaluate("sma", buffer, {"timeperiod": 20})
        ta.evaluate("bbands", buffer, {"timeperiod": 20}, offset=1)  # (upper, middle, lower)
        ta.evaluate("max", buffer.high, {"timeperiod": 50})
    """

    def __init__(
        self,
        backend: Optional[NumericBackend] = None,
        catalog: Optional[IndicatorCatalog] = None,
    ) -> None:
        if backend is None:
            from .talib_backend import TalibBackend

            backend = TalibBackend()
        self._backend = backend
        self._catalog = catalog if catalog is not None else IndicatorCatalog.default()

    @property
    def backend(self) -> NumericBackend:
        return self._backend

    @property
    def catalog(self) -> IndicatorCatalog:
        return self._catalog

    def lookback(
        self,
        indicator_id: str,
        params: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
    ) -> int:
        """Backend lookback for ``params`` plus ``offset``."""
        spec = self._catalog.get(indicator_id)
        return self._lookback(spec, spec.merge_params(params)) + offset

    def evaluate(
        self,
        indicator_id: str,
        columns: Columns,
        params: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
    ) -> Outputs:
        """
        Evaluate an indicator at ``offset`` bars back from the latest.

        Raises:
            InsufficientData: Not enough history for the requested index.
            ComputationError: Malformed input or parameters.
            ConfigurationError: Unknown indicator id.
        """
        return self.try_evaluate(indicator_id, columns, params, offset).unwrap()

    def try_evaluate(
        self,
        indicator_id: str,
        columns: Columns,
        params: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
    ) -> Result[Outputs, NotReady]:
        """Like ``evaluate`` but reports warm-up as ``Err(NotReady)``."""
        if offset < 0:
            raise ComputationError(f"Offset must be >= 0, got {offset}")

        spec = self._catalog.get(indicator_id)
        merged = spec.merge_params(params)
        inputs = self._resolve_inputs(spec, columns)
        lookback = self._lookback(spec, merged)

        end_index = len(inputs[0]) - 1 - offset
        if end_index < 0:
            return Err(NotReady(spec.name, lookback + offset, offset))

        produced = self._backend.compute(spec.function, inputs, merged, end_index, end_index)
        last = produced.count - 1
        if last < 0:
            return Err(NotReady(spec.name, lookback + offset, offset))

        self._check_outputs(spec, produced)
        values = tuple(float(output[last]) for output in produced.outputs)
        return Ok(self._shape(spec, values))

    def evaluate_named(
        self,
        indicator_id: str,
        columns: Columns,
        params: Optional[Mapping[str, Any]] = None,
        offset: int = 0,
    ) -> Dict[str, Outputs]:
        """``evaluate`` keyed by output name, e.g. {"upperband": ..., ...}."""
        spec = self._catalog.get(indicator_id)
        value = self.evaluate(indicator_id, columns, params, offset)
        if spec.kind is OutputKind.MULTI:
            return dict(zip(spec.outputs, value))  # type: ignore[arg-type]
        return {spec.outputs[0]: value}

    def evaluate_series(
        self,
        indicator_id: str,
        columns: Columns,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Series:
        """
        Evaluate an indicator at every index of the input.

        Arrays have the input's length and line up with it the way TA-Lib's
        function API does: NaN before the first index with enough history
        (False for patterns). Multi-output indicators return a tuple.

        Example:
            sma = ta.evaluate_series("sma", buffer, {"timeperiod": 20})
            upper, middle, lower = ta.evaluate_series("bbands", closes)

        Raises:
            InsufficientData: Input shorter than ``lookback + 1`` bars.
            ComputationError: Malformed input or parameters.
            ConfigurationError: Unknown indicator id.
        """
        return self.try_evaluate_series(indicator_id, columns, params).unwrap()

    def try_evaluate_series(
        self,
        indicator_id: str,
        columns: Columns,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Result[Series, NotReady]:
        """Like ``evaluate_series`` but reports warm-up as ``Err(NotReady)``."""
        spec = self._catalog.get(indicator_id)
        merged = spec.merge_params(params)
        inputs = self._resolve_inputs(spec, columns)
        lookback = self._lookback(spec, merged)

        size = len(inputs[0])
        if size == 0:
            return Err(NotReady(spec.name, lookback))

        produced = self._backend.compute(spec.function, inputs, merged, 0, size - 1)
        if produced.count == 0:
            return Err(NotReady(spec.name, lookback))
        self._check_outputs(spec, produced)

        stop = produced.begin + produced.count
        series = []
        for output in produced.outputs:
            full = np.full(size, np.nan, dtype=np.float64)
            full[produced.begin:stop] = output[:produced.count]
            series.append(full)

        if spec.kind is OutputKind.PATTERN:
            return Ok(np.nan_to_num(series[0], nan=0.0) != 0.0)
        if spec.kind is OutputKind.MULTI:
            return Ok(tuple(series))
        return Ok(series[0])

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _lookback(self, spec: IndicatorSpec, params: Mapping[str, Any]) -> int:
        lookback = self._backend.lookback(spec.function, params)
        if lookback < 0:
            raise ComputationError(f"Invalid parameters for {spec.name}: {dict(params)}")
        return lookback

    @staticmethod
    def _check_outputs(spec: IndicatorSpec, produced: RangeOutput) -> None:
        if len(produced.outputs) != len(spec.outputs):
            raise ComputationError(
                f"{spec.name}: backend returned {len(produced.outputs)} outputs, "
                f"expected {len(spec.outputs)}"
            )

    @staticmethod
    def _shape(spec: IndicatorSpec, values: Tuple[float, ...]) -> Outputs:
        if spec.kind is OutputKind.PATTERN:
            return values[0] != 0.0
        if spec.kind is OutputKind.MULTI:
            return values
        return values[0]

    @staticmethod
    def _resolve_inputs(spec: IndicatorSpec, columns: Columns) -> List[np.ndarray]:
        try:
            if isinstance(columns, BarBuffer):
                arrays = [columns.column(name) for name in spec.inputs]
            elif isinstance(columns, Mapping):
                missing = [name for name in spec.inputs if name not in columns]
                if missing:
                    raise ComputationError(f"{spec.name} requires columns {list(spec.inputs)}, missing: {missing}")
                arrays = [np.asarray(columns[name], dtype=np.float64) for name in spec.inputs]
            elif isinstance(columns, tuple):
                arrays = [np.asarray(values, dtype=np.float64) for values in columns]
            else:
                arrays = [np.asarray(columns, dtype=np.float64)]
        except (TypeError, ValueError) as e:
            raise ComputationError(f"{spec.name}: cannot convert input to float64: {e}") from e

        if len(arrays) != len(spec.inputs):
            raise ComputationError(
                f"{spec.name} takes {len(spec.inputs)} inputs {list(spec.inputs)}, got {len(arrays)}"
            )
        if any(values.ndim != 1 for values in arrays):
            raise ComputationError(f"{spec.name}: inputs must be one-dimensional")
        lengths = {len(values) for values in arrays}
        if len(lengths) > 1:
            raise ComputationError(f"{spec.name}: input lengths differ {sorted(lengths)}")
        return arrays
