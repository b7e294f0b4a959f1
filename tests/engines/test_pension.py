"""Tests for workplace pension contributions."""

import pytest

from payroll_engines.pension import PensionResult, qualifying_earnings


class TestPensionContributions:
    """Employee, employer and relief-at-source amounts."""

    def test_opt_out_is_all_zero(self, pension):
        result = pension.calculate_pension_contributions(300000, False, 500)
        assert result == PensionResult()

    def test_standard_contributions(self, pension):
        result = pension.calculate_pension_contributions(300000, True, 500)

        assert result.employee_contribution == 15000
        # employer default of 300 bp comes from the tax-year table
        assert result.employer_contribution == 9000
        assert result.tax_relief == 3750
        assert result.employee_net_deduction == 11250
        assert result.qualifying_earnings == 300000

    def test_employer_rate_override(self, pension):
        result = pension.calculate_pension_contributions(300000, True, 500, employer_rate_bp=800)
        assert result.employer_contribution == 24000

    def test_no_relief_at_source(self, pension):
        result = pension.calculate_pension_contributions(
            300000, True, 500, relief_at_source=False
        )
        assert result.tax_relief == 0
        assert result.employee_net_deduction == 15000

    def test_opted_in_with_zero_employee_rate(self, pension):
        result = pension.calculate_pension_contributions(300000, True, 0)
        assert result.employee_contribution == 0
        assert result.employer_contribution == 9000

    def test_rounding_half_up(self, pension):
        # 12345 x 5% = 617.25 -> 617; relief 154.25 -> 154
        result = pension.calculate_pension_contributions(12345, True, 500)
        assert result.employee_contribution == 617
        assert result.tax_relief == 154

    def test_qualifying_earnings_band(self, pension):
        result = pension.calculate_pension_contributions(
            300000, True, 500, qualifying_lower=52000, qualifying_upper=419000
        )
        assert result.qualifying_earnings == 248000
        assert result.employee_contribution == 12400

    @pytest.mark.parametrize("rate", [-1, 10001])
    def test_rate_out_of_range(self, pension, rate):
        with pytest.raises(ValueError):
            pension.calculate_pension_contributions(300000, True, rate)

    def test_breakdown(self, pension):
        breakdown = pension.calculate_pension_contributions(300000, True, 500).to_breakdown()
        assert breakdown.employee_gross_contribution == 15000
        assert breakdown.employee_net_deduction == 11250
        assert breakdown.employer_contribution == 9000


class TestQualifyingEarnings:
    def test_no_limits(self):
        assert qualifying_earnings(300000) == 300000

    def test_below_lower_limit(self):
        assert qualifying_earnings(40000, 52000, 419000) == 0

    def test_capped_at_upper_limit(self):
        assert qualifying_earnings(1000000, 52000, 419000) == 367000
