"""
Tax Code Parser - Turn an HMRC tax-code string into a ``TaxCode``.

Pure functions with no I/O.  Flat rates for BR/D0/D1 (and the Scottish
D2/D3) come from the tax-year table passed in.

Recognised shapes (case-insensitive, whitespace ignored):

    [S|C] digits [L|M|N|T] [W1|M1|X]      1257L, S1257L, C1257L W1
    [S|C] K digits [W1|M1|X]              K475, SK100 M1
    [S|C] special [W1|M1|X]               BR, D0, D1, NT, 0T, SD2, SD3, CBR

``S`` selects Scottish bands, ``C`` Welsh (rest-of-UK rates).  A
``W1``/``M1``/``X`` suffix marks an emergency, non-cumulative code.

Anything else raises ``InvalidTaxCodeError``; there is no best-effort
fallback.

Usage:
    from payroll_engines.tax_code import TaxCodeParser

    parser = TaxCodeParser(config)
    code = parser.parse("1257L")
    code.allowance      # 1257000
    code.is_cumulative  # True
"""

from __future__ import annotations

import functools
import re
from typing import NamedTuple

from payroll_config import get_tax_year_config
from payroll_config.schema import TaxYearConfig
from payroll_kernel.domain.enums import SpecialTaxCode, TaxRegion
from payroll_kernel.domain.tax_code import (
    FlatRate,
    NoAllowance,
    NoTax,
    StandardAllowance,
    TaxCode,
)
from payroll_kernel.exceptions import InvalidTaxCodeError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.tax_code")

# One code number is a tenth of the allowance in pounds: 1257 -> £12,570.
PENCE_PER_CODE_UNIT = 1000

_EMERGENCY_SUFFIX = re.compile(r"(W1|M1|X)$")
_STANDARD = re.compile(r"^(\d{1,5})([LMNT])$")
_K_CODE = re.compile(r"^K(\d{1,5})$")
_REGION_PREFIXES = {"S": TaxRegion.SCOTLAND, "C": TaxRegion.WALES}
_SCOTTISH_ONLY = frozenset({SpecialTaxCode.D2, SpecialTaxCode.D3})
_SPECIAL_VALUES = frozenset(code.value for code in SpecialTaxCode)


class _Tokens(NamedTuple):
    region: TaxRegion
    is_emergency: bool
    special: SpecialTaxCode | None
    allowance: int


def normalize_tax_code(raw: str) -> str:
    """Uppercase, trim, and collapse inner whitespace to single spaces."""
    return " ".join(raw.upper().split())


@functools.lru_cache(maxsize=1024)
def _tokenize(normalized: str) -> _Tokens:
    code = normalized.replace(" ", "")
    if not code:
        raise InvalidTaxCodeError(normalized, "empty tax code")

    is_emergency = False
    match = _EMERGENCY_SUFFIX.search(code)
    if match and match.start() > 0:
        is_emergency = True
        code = code[: match.start()]

    region = TaxRegion.REST_OF_UK
    body = code
    if code[0] in _REGION_PREFIXES and len(code) > 1:
        candidate = code[1:]
        # S/C is a region marker only when the remainder is itself a code.
        if _is_special(candidate) or _K_CODE.match(candidate) or _STANDARD.match(candidate):
            region = _REGION_PREFIXES[code[0]]
            body = candidate

    if _is_special(body):
        special = SpecialTaxCode(body)
        if special in _SCOTTISH_ONLY and region is not TaxRegion.SCOTLAND:
            raise InvalidTaxCodeError(normalized, f"{body} is only valid with the S prefix")
        return _Tokens(region, is_emergency, special, 0)

    k_match = _K_CODE.match(body)
    if k_match:
        return _Tokens(region, is_emergency, None, -int(k_match.group(1)) * PENCE_PER_CODE_UNIT)

    standard_match = _STANDARD.match(body)
    if standard_match:
        return _Tokens(
            region, is_emergency, None, int(standard_match.group(1)) * PENCE_PER_CODE_UNIT
        )

    raise InvalidTaxCodeError(normalized, "does not match any known tax code format")


def _is_special(body: str) -> bool:
    return body in _SPECIAL_VALUES


class TaxCodeParser:
    """
    Parse tax codes against one tax year's flat-rate table.

    Pure - no I/O after construction.  Tokenizing is cached per string;
    the cache holds immutable values only.
    """

    def __init__(self, config: TaxYearConfig | None = None):
        self._config = config or get_tax_year_config()

    def parse(self, raw: str | TaxCode) -> TaxCode:
        """
        Parse a raw tax code.

        Raises:
            InvalidTaxCodeError: If the string matches no recognised shape.
        """
        if isinstance(raw, TaxCode):
            return raw
        if not isinstance(raw, str):
            raise InvalidTaxCodeError(repr(raw), "tax code must be a string")

        normalized = normalize_tax_code(raw)
        try:
            tokens = _tokenize(normalized)
        except InvalidTaxCodeError as e:
            logger.warning(
                "tax_code_rejected",
                extra={"raw_code": normalized, "reason": e.reason},
            )
            raise

        if tokens.special is None:
            treatment = StandardAllowance(allowance=tokens.allowance)
        elif tokens.special is SpecialTaxCode.NT:
            treatment = NoTax()
        elif tokens.special is SpecialTaxCode.ZERO_T:
            treatment = NoAllowance()
        else:
            rate = self._config.income_tax.flat_rate(tokens.region, tokens.special)
            if rate is None:
                raise InvalidTaxCodeError(
                    normalized,
                    f"no {tokens.special.value} rate for {tokens.region.band_region.value}",
                )
            treatment = FlatRate(code=tokens.special, rate=rate)

        return TaxCode(
            raw_code=normalized,
            treatment=treatment,
            region=tokens.region,
            is_emergency=tokens.is_emergency,
        )


def parse_tax_code(raw: str, config: TaxYearConfig | None = None) -> TaxCode:
    """Convenience wrapper around ``TaxCodeParser(config).parse(raw)``."""
    return TaxCodeParser(config).parse(raw)
