"""Unit tests for the Ok/Err result type."""

import pytest

from src.domain.exceptions import InsufficientData
from src.domain.indicators import NotReady
from src.utils import Err, Ok


class TestResult:
    """Ok and Err behaviour."""

    def test_ok(self) -> None:
        result = Ok(2.0)
        assert result.is_ok() and not result.is_err()
        assert result.error is None
        assert result.map(lambda v: v * 2).unwrap() == 4.0

    def test_err_unwrap_raises_domain_exception(self) -> None:
        result = Err(NotReady("rsi", 14))
        assert result.value is None
        assert result.map(lambda v: v * 2) is result
        assert result.unwrap_or(-1.0) == -1.0
        with pytest.raises(InsufficientData) as exc_info:
            result.unwrap()
        assert exc_info.value.required_bars == 15

    def test_err_unwrap_plain_error(self) -> None:
        with pytest.raises(ValueError, match="unwrap"):
            Err("boom").unwrap()

    def test_pattern_matching(self) -> None:
        match Err(NotReady("sma", 2)):
            case Ok(value):
                pytest.fail(f"unexpected value {value}")
            case Err(not_ready):
                assert not_ready.lookback == 2
