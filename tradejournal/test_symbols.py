import datetime

import pytest

from tradejournal.symbols import (
    OptionContract,
    is_occ,
    occ_symbol,
    parse_occ,
    root_from_occ,
)


def test_occ_symbol():
    assert (
        occ_symbol("aapl", datetime.date(2025, 1, 17), "put", 145)
        == "AAPL  250117P00145000"
    )
    assert (
        occ_symbol("SPY", datetime.date(2024, 12, 20), "C", 472.5)
        == "SPY   241220C00472500"
    )


def test_occ_symbol_bad_type():
    with pytest.raises(ValueError, match="Unknown option type"):
        occ_symbol("SPY", datetime.date(2024, 12, 20), "straddle", 400)


def test_root_from_occ():
    assert root_from_occ("AAPL  250117P00145000") == "AAPL"
    assert root_from_occ("AAPL250117P00145000") == "AAPL"
    assert root_from_occ("AAPL") == "AAPL"


def test_is_occ():
    assert is_occ("AAPL  250117P00145000")
    assert not is_occ("AAPL")
    assert not is_occ("AAPL  250117X00145000")


def test_parse_occ():
    got = parse_occ("SPY   241220C00472500")
    assert got == OptionContract(
        root="SPY",
        expiration=datetime.date(2024, 12, 20),
        option_type="call",
        strike=472.5,
    )

    assert got.symbol == "SPY   241220C00472500"

    with pytest.raises(ValueError, match="Not an OCC"):
        parse_occ("SPY")
