"""
Tests for the tax code parser.

Covers:
- Standard L/M/N/T codes and K codes
- Special codes (BR, D0, D1, NT, 0T, Scottish D2/D3)
- Region prefixes and emergency suffixes
- Normalisation and rejection of malformed codes
"""

from decimal import Decimal

import pytest

from payroll_engines.tax_code import normalize_tax_code, parse_tax_code
from payroll_kernel.domain.enums import SpecialTaxCode, TaxRegion
from payroll_kernel.domain.tax_code import FlatRate, NoAllowance, NoTax, StandardAllowance
from payroll_kernel.exceptions import InvalidTaxCodeError


class TestStandardCodes:
    """Codes that carry a personal allowance."""

    def test_1257l(self, parser):
        code = parser.parse("1257L")
        assert isinstance(code.treatment, StandardAllowance)
        assert code.allowance == 1257000
        assert code.region is TaxRegion.REST_OF_UK
        assert code.is_cumulative
        assert not code.is_k_code

    @pytest.mark.parametrize("suffix", ["L", "M", "N", "T"])
    def test_allowance_suffixes(self, parser, suffix):
        assert parser.parse(f"1100{suffix}").allowance == 1100000

    def test_k_code_is_negative_allowance(self, parser):
        code = parser.parse("K475")
        assert code.allowance == -475000
        assert code.is_k_code

    def test_lowercase_normalised(self, parser):
        code = parser.parse("1257l")
        assert code.raw_code == "1257L"
        assert str(code) == "1257L"


class TestSpecialCodes:
    """BR, D0, D1, NT and 0T."""

    @pytest.mark.parametrize(
        "raw,rate",
        [("BR", "0.20"), ("D0", "0.40"), ("D1", "0.45")],
    )
    def test_flat_rate_codes(self, parser, raw, rate):
        code = parser.parse(raw)
        assert isinstance(code.treatment, FlatRate)
        assert code.treatment.rate == Decimal(rate)
        assert code.special_code == raw
        assert code.allowance == 0

    def test_nt(self, parser):
        code = parser.parse("NT")
        assert isinstance(code.treatment, NoTax)
        assert code.special_code == "NT"

    def test_0t(self, parser):
        code = parser.parse("0T")
        assert isinstance(code.treatment, NoAllowance)
        assert code.special_code == SpecialTaxCode.ZERO_T.value
        assert code.allowance == 0

    def test_d2_requires_scottish_prefix(self, parser):
        with pytest.raises(InvalidTaxCodeError, match="S prefix"):
            parser.parse("D2")

    def test_scottish_d3(self, parser):
        code = parser.parse("SD3")
        assert code.is_scottish
        assert code.treatment.rate == Decimal("0.48")

    def test_scottish_d0_uses_scottish_rate(self, parser):
        assert parser.parse("SD0").treatment.rate == Decimal("0.21")

    def test_welsh_br_uses_rest_of_uk_rate(self, parser):
        code = parser.parse("CBR")
        assert code.is_welsh
        assert code.treatment.rate == Decimal("0.20")


class TestRegionsAndSuffixes:
    """S/C prefixes and W1/M1/X emergency markers."""

    def test_scottish_prefix(self, parser):
        code = parser.parse("S1257L")
        assert code.region is TaxRegion.SCOTLAND
        assert code.allowance == 1257000

    def test_welsh_prefix(self, parser):
        code = parser.parse("C1257L")
        assert code.region is TaxRegion.WALES
        assert code.is_welsh

    def test_scottish_k_code(self, parser):
        code = parser.parse("SK100")
        assert code.is_scottish
        assert code.allowance == -100000

    @pytest.mark.parametrize("raw", ["1257L W1", "1257LM1", "1257L X", "1257l w1"])
    def test_emergency_suffix(self, parser, raw):
        code = parser.parse(raw)
        assert code.is_emergency
        assert not code.is_cumulative
        assert code.allowance == 1257000

    def test_emergency_scottish(self, parser):
        code = parser.parse("S1257L M1")
        assert code.is_scottish
        assert code.is_emergency

    def test_raw_code_keeps_suffix(self, parser):
        assert parser.parse("1257l  w1").raw_code == "1257L W1"


class TestMalformedCodes:
    """Anything unrecognised raises InvalidTaxCodeError."""

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "L", "1257", "1257Q", "XYZ", "K", "KK10", "123456L", "W1", "S", "BR1"],
    )
    def test_rejected(self, parser, raw):
        with pytest.raises(InvalidTaxCodeError) as exc_info:
            parser.parse(raw)
        assert exc_info.value.code == "INVALID_TAX_CODE"

    def test_non_string_rejected(self, parser):
        with pytest.raises(InvalidTaxCodeError):
            parser.parse(1257)

    def test_rejection_is_logged(self, parser, captured_logs):
        with pytest.raises(InvalidTaxCodeError):
            parser.parse("NOPE")
        rejected = [r for r in captured_logs() if r["message"] == "tax_code_rejected"]
        assert rejected[0]["raw_code"] == "NOPE"


class TestHelpers:
    def test_normalize_tax_code(self):
        assert normalize_tax_code("  1257l   w1 ") == "1257L W1"

    def test_parse_tax_code_convenience(self, tax_year_config):
        assert parse_tax_code("1257L", tax_year_config).allowance == 1257000

    def test_parsed_code_passes_through(self, parser):
        code = parser.parse("1257L")
        assert parser.parse(code) is code
