"""OCC option symbol helpers.

OCC symbols are a (padded) root followed by a fixed-length 15 byte contract description:

    AAPL  250117P00145000
    ^^^^^^ root, space padded to 6
          ^^^^^^ expiration as YYMMDD
                ^ P or C
                 ^^^^^^^^ strike * 1000, zero filled to 8 digits

Trades of option legs use the full OCC symbol as their `underlying` so each contract
gets priced on its own.
"""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass

import arrow  # type: ignore

OCC_PATTERN = re.compile(r"^([A-Z0-9.]{1,6}) *(\d{6})([CP])(\d{8})$")

OPT_TYPES = {"call": "C", "put": "P", "C": "C", "P": "P"}
OPT_NAMES = {"C": "call", "P": "put"}


@dataclass(slots=True, frozen=True)
class OptionContract:
    root: str
    expiration: datetime.date
    option_type: str
    strike: float

    @property
    def symbol(self) -> str:
        return occ_symbol(self.root, self.expiration, self.option_type, self.strike)


def occ_symbol(
    root: str, expiration: datetime.date, option_type: str, strike: float
) -> str:
    """Build a space-padded OCC symbol (max contract price is $99999.999)."""
    kind = OPT_TYPES.get(option_type.lower()) or OPT_TYPES.get(option_type.upper())
    if not kind:
        raise ValueError(f"Unknown option type: {option_type}")

    when = expiration.strftime("%y%m%d")
    fmtPrice = f"{round(float(strike) * 1000):08d}"
    return f"{root.upper():<6}{when}{kind}{fmtPrice}"


def is_occ(symbol: str) -> bool:
    return bool(OCC_PATTERN.match(symbol.upper()))


def root_from_occ(symbol: str) -> str:
    """Return the root of an OCC symbol, or the symbol itself if it isn't one."""
    if not is_occ(symbol):
        return symbol

    return symbol[:-15].strip()


def parse_occ(symbol: str) -> OptionContract:
    if not (found := OCC_PATTERN.match(symbol.upper())):
        raise ValueError(f"Not an OCC option symbol: {symbol}")

    root, when, kind, price = found.groups()
    return OptionContract(
        root=root,
        expiration=arrow.get(when, "YYMMDD").date(),
        option_type=OPT_NAMES[kind],
        strike=int(price) / 1000,
    )
