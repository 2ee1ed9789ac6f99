"""
Indicator evaluation.

- NumericBackend / RangeOutput: the numeric library contract
- IndicatorCatalog: table-driven indicator bindings
- IndicatorGateway: evaluate(indicator, columns, params, offset)
- record_high / record_low / vwap: composite helpers
- IndicatorStream: self-sizing single-asset indicator feed

TalibBackend is imported from ``.talib_backend`` on demand so the rest of
the package works with any backend.
"""

from .backend import NumericBackend, RangeOutput
from .catalog import IndicatorCatalog, IndicatorSpec, OutputKind
from .gateway import IndicatorGateway, NotReady, Outputs, Series
from .helpers import record_high, record_low, vwap
from .stream import IndicatorStream

__all__ = [
    "IndicatorCatalog",
    "IndicatorGateway",
    "IndicatorSpec",
    "IndicatorStream",
    "NotReady",
    "NumericBackend",
    "OutputKind",
    "Outputs",
    "RangeOutput",
    "Series",
    "record_high",
    "record_low",
    "vwap",
]
