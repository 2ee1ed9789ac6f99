"""
Indicator Catalog - Table-driven indicator bindings.

Every indicator shares one evaluation contract and differs only in which
bar columns it reads, its parameters, and its output arity. Instead of one
wrapper per indicator, each binding is a row in a table:

    name -> {backend function, input columns, default params, outputs, kind}

Output order follows TA-Lib's documented order (e.g. bbands returns
upperband, middleband, lowerband). Pattern indicators report a single
nonzero/zero flag that the gateway maps to a bool.

Index-valued functions (MAXINDEX, MININDEX) are deliberately absent: the
backend slices its input window, so window-relative indices would be
meaningless to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..exceptions import ConfigurationError


class OutputKind(Enum):
    """Shape of an indicator's evaluated value."""

    VALUE = "value"  # Single float
    MULTI = "multi"  # Tuple of floats in ``outputs`` order
    PATTERN = "pattern"  # Bool, nonzero → True


@dataclass(frozen=True)
class IndicatorSpec:
    """One catalog row."""

    name: str
    function: str
    inputs: Tuple[str, ...]
    defaults: Dict[str, Any] = field(default_factory=dict)
    outputs: Tuple[str, ...] = ("real",)
    kind: OutputKind = OutputKind.VALUE

    def merge_params(self, params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Defaults overridden by ``params``."""
        return {**self.defaults, **(params or {})}


_CLOSE = ("close",)
_HL = ("high", "low")
_HLC = ("high", "low", "close")
_HLCV = ("high", "low", "close", "volume")
_OHLC = ("open", "high", "low", "close")

# (name, function, inputs, defaults, outputs)
_TABLE: List[Tuple[str, str, Tuple[str, ...], Dict[str, Any], Tuple[str, ...]]] = [
    # Overlap studies
    ("sma", "SMA", _CLOSE, {"timeperiod": 30}, ("real",)),
    ("ema", "EMA", _CLOSE, {"timeperiod": 30}, ("real",)),
    ("wma", "WMA", _CLOSE, {"timeperiod": 30}, ("real",)),
    ("dema", "DEMA", _CLOSE, {"timeperiod": 30}, ("real",)),
    ("tema", "TEMA", _CLOSE, {"timeperiod": 30}, ("real",)),
    ("kama", "KAMA", _CLOSE, {"timeperiod": 30}, ("real",)),
    (
        "bbands", "BBANDS", _CLOSE,
        {"timeperiod": 5, "nbdevup": 2.0, "nbdevdn": 2.0, "matype": 0},
        ("upperband", "middleband", "lowerband"),
    ),
    ("sar", "SAR", _HL, {"acceleration": 0.02, "maximum": 0.2}, ("real",)),
    # Momentum
    ("rsi", "RSI", _CLOSE, {"timeperiod": 14}, ("real",)),
    ("mom", "MOM", _CLOSE, {"timeperiod": 10}, ("real",)),
    ("roc", "ROC", _CLOSE, {"timeperiod": 10}, ("real",)),
    ("cci", "CCI", _HLC, {"timeperiod": 14}, ("real",)),
    ("willr", "WILLR", _HLC, {"timeperiod": 14}, ("real",)),
    ("adx", "ADX", _HLC, {"timeperiod": 14}, ("real",)),
    ("mfi", "MFI", _HLCV, {"timeperiod": 14}, ("real",)),
    (
        "macd", "MACD", _CLOSE,
        {"fastperiod": 12, "slowperiod": 26, "signalperiod": 9},
        ("macd", "macdsignal", "macdhist"),
    ),
    (
        "stoch", "STOCH", _HLC,
        {"fastk_period": 5, "slowk_period": 3, "slowk_matype": 0,
         "slowd_period": 3, "slowd_matype": 0},
        ("slowk", "slowd"),
    ),
    ("aroon", "AROON", _HL, {"timeperiod": 14}, ("aroondown", "aroonup")),
    # Volatility
    ("atr", "ATR", _HLC, {"timeperiod": 14}, ("real",)),
    ("natr", "NATR", _HLC, {"timeperiod": 14}, ("real",)),
    ("stddev", "STDDEV", _CLOSE, {"timeperiod": 5, "nbdev": 1.0}, ("real",)),
    # Volume
    ("obv", "OBV", ("close", "volume"), {}, ("real",)),
    ("ad", "AD", _HLCV, {}, ("real",)),
    # Rolling extremes
    ("max", "MAX", _CLOSE, {"timeperiod": 30}, ("real",)),
    ("min", "MIN", _CLOSE, {"timeperiod": 30}, ("real",)),
]

# Candlestick patterns: name -> default params
_PATTERNS: Dict[str, Dict[str, Any]] = {
    "CDL2CROWS": {},
    "CDL3BLACKCROWS": {},
    "CDL3INSIDE": {},
    "CDL3LINESTRIKE": {},
    "CDL3OUTSIDE": {},
    "CDL3WHITESOLDIERS": {},
    "CDLABANDONEDBABY": {"penetration": 0.3},
    "CDLDARKCLOUDCOVER": {"penetration": 0.5},
    "CDLDOJI": {},
    "CDLDOJISTAR": {},
    "CDLDRAGONFLYDOJI": {},
    "CDLENGULFING": {},
    "CDLEVENINGDOJISTAR": {"penetration": 0.3},
    "CDLEVENINGSTAR": {"penetration": 0.3},
    "CDLGRAVESTONEDOJI": {},
    "CDLHAMMER": {},
    "CDLHANGINGMAN": {},
    "CDLHARAMI": {},
    "CDLHARAMICROSS": {},
    "CDLINVERTEDHAMMER": {},
    "CDLMARUBOZU": {},
    "CDLMORNINGDOJISTAR": {"penetration": 0.3},
    "CDLMORNINGSTAR": {"penetration": 0.3},
    "CDLPIERCING": {},
    "CDLSHOOTINGSTAR": {},
    "CDLSPINNINGTOP": {},
}


def _build_specs() -> List[IndicatorSpec]:
    specs = [
        IndicatorSpec(
            name=name,
            function=function,
            inputs=inputs,
            defaults=defaults,
            outputs=outputs,
            kind=OutputKind.MULTI if len(outputs) > 1 else OutputKind.VALUE,
        )
        for name, function, inputs, defaults, outputs in _TABLE
    ]
    specs.extend(
        IndicatorSpec(
            name=function.lower(),
            function=function,
            inputs=_OHLC,
            defaults=defaults,
            outputs=("integer",),
            kind=OutputKind.PATTERN,
        )
        for function, defaults in _PATTERNS.items()
    )
    return specs


@dataclass
class IndicatorCatalog:
    """
    Registry of indicator specs keyed by name.

    Example:
        catalog = IndicatorCatalog.default()
        spec = catalog.get("bbands")
        spec.outputs  # ("upperband", "middleband", "lowerband")
    """

    _by_name: Dict[str, IndicatorSpec] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "IndicatorCatalog":
        """Catalog holding the built-in table."""
        catalog = cls()
        catalog.register_all(_build_specs())
        return catalog

    def register(self, spec: IndicatorSpec) -> None:
        """Add or replace a binding."""
        self._by_name[spec.name] = spec

    def register_all(self, specs: Iterable[IndicatorSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def get(self, name: str) -> IndicatorSpec:
        """
        Raises:
            ConfigurationError: If no indicator is registered under ``name``.
        """
        spec = self._by_name.get(name)
        if spec is None:
            raise ConfigurationError(f"Unknown indicator: {name}")
        return spec

    def names(self) -> List[str]:
        return sorted(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)
