"""Tests for payroll_config.schema."""

from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from payroll_config.schema import (
    DEFAULT_TAX_BRACKETS,
    AttendancePolicy,
    FallbackAttendance,
    PayrollEngineConfig,
    TaxBracket,
)
from payroll_kernel.exceptions import PayrollConfigError


class TestDefaults:
    """The defaults reproduce the reference payroll policy."""

    def test_with_defaults(self):
        config = PayrollEngineConfig.with_defaults()
        assert config.fallback_basic_salary == Decimal("30000")
        assert config.standard_working_days == Decimal("26")
        assert config.default_pf_percentage == Decimal("12")
        assert config.default_esi_percentage == Decimal("0.75")
        assert config.esi_gross_threshold == Decimal("21000")
        assert config.default_overtime_rate == Decimal("200")
        assert config.attendance_policy == AttendancePolicy.REQUIRE
        assert config.tax_brackets == DEFAULT_TAX_BRACKETS

    def test_fallback_attendance(self):
        fb = PayrollEngineConfig().fallback_attendance
        assert (fb.total_working_days, fb.present_days, fb.absent_days) == (26, 23, 2)
        assert (fb.leave_days, fb.overtime_hours) == (1, 8)

    def test_default_table_has_open_top_band(self):
        assert DEFAULT_TAX_BRACKETS[-1].upper_limit is None
        assert DEFAULT_TAX_BRACKETS[-1].rate == Decimal("0.30")

    def test_is_frozen(self):
        config = PayrollEngineConfig()
        with pytest.raises(AttributeError):
            config.standard_working_days = Decimal("22")


class TestValidation:
    """``__post_init__`` rejects inconsistent policy."""

    def test_rejects_zero_working_days(self):
        with pytest.raises(PayrollConfigError) as exc_info:
            PayrollEngineConfig(standard_working_days=Decimal("0"))
        assert exc_info.value.field_name == "standard_working_days"

    def test_rejects_negative_fallback_salary(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig(fallback_basic_salary=Decimal("-1"))

    def test_rejects_percentage_over_100(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig(default_pf_percentage=Decimal("101"))

    def test_rejects_descending_brackets(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig(tax_brackets=(
                TaxBracket(Decimal("600000"), Decimal("0")),
                TaxBracket(Decimal("300000"), Decimal("0.05")),
                TaxBracket(None, Decimal("0.1")),
            ))

    def test_rejects_open_band_before_last(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig(tax_brackets=(
                TaxBracket(None, Decimal("0")),
                TaxBracket(Decimal("300000"), Decimal("0.05")),
            ))

    def test_rejects_empty_brackets(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig(tax_brackets=())

    def test_bracket_rate_bounds(self):
        with pytest.raises(PayrollConfigError):
            TaxBracket(Decimal("100"), Decimal("1.5"))

    def test_validates_year_tables(self):
        with pytest.raises(PayrollConfigError) as exc_info:
            PayrollEngineConfig(tax_brackets_by_year={2026: ()})
        assert "2026" in exc_info.value.field_name

    @given(days=st.decimals(min_value=Decimal("1"), max_value=Decimal("31"), places=1))
    @settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_any_positive_working_days_accepted(self, days):
        assert PayrollEngineConfig(standard_working_days=days).standard_working_days == days


class TestFromDict:
    """``from_dict`` parses YAML-shaped data."""

    def test_scalar_fields(self):
        config = PayrollEngineConfig.from_dict({
            "standard_working_days": 22,
            "default_pf_percentage": "10",
            "esi_gross_threshold": 25000,
            "attendance_policy": "zero",
            "placeholder_min_present_days": 18,
        })
        assert config.standard_working_days == Decimal("22")
        assert config.default_pf_percentage == Decimal("10")
        assert config.esi_gross_threshold == Decimal("25000")
        assert config.attendance_policy == AttendancePolicy.ZERO
        assert config.placeholder_min_present_days == 18

    def test_floats_become_exact_decimals(self):
        config = PayrollEngineConfig.from_dict({"default_esi_percentage": 0.75})
        assert config.default_esi_percentage == Decimal("0.75")

    def test_brackets_and_year_tables(self):
        config = PayrollEngineConfig.from_dict({
            "tax_brackets": [
                {"upper_limit": 250000, "rate": 0},
                {"rate": 0.1},
            ],
            "tax_brackets_by_year": {
                "2026": [{"upper_limit": 400000, "rate": 0}, {"rate": 0.05}],
            },
        })
        assert config.tax_brackets == (
            TaxBracket(Decimal("250000"), Decimal("0")),
            TaxBracket(None, Decimal("0.1")),
        )
        assert config.brackets_for(2026)[0].upper_limit == Decimal("400000")
        assert config.brackets_for(2025) == config.tax_brackets

    def test_fallback_attendance_section(self):
        config = PayrollEngineConfig.from_dict({
            "fallback_attendance": {"total_working_days": 22, "present_days": 20},
        })
        assert config.fallback_attendance == FallbackAttendance(
            total_working_days=Decimal("22"), present_days=Decimal("20"),
        )

    def test_unknown_key_rejected(self):
        with pytest.raises(PayrollConfigError) as exc_info:
            PayrollEngineConfig.from_dict({"overtime_multiplier": 2})
        assert exc_info.value.field_name == "overtime_multiplier"

    def test_unknown_policy_rejected(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig.from_dict({"attendance_policy": "random"})

    def test_malformed_bracket_rejected(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig.from_dict({"tax_brackets": [{"upper_limit": 1}]})

    @pytest.mark.parametrize("key, value", [
        ("default_pf_percentage", "twelve"),
        ("standard_working_days", "NaN"),
        ("esi_gross_threshold", [21000]),
        ("fallback_basic_salary", True),
        ("placeholder_min_present_days", "twenty"),
        ("placeholder_max_leave_days", 2.5),
    ])
    def test_unparseable_value_rejected(self, key, value):
        with pytest.raises(PayrollConfigError) as exc_info:
            PayrollEngineConfig.from_dict({key: value})
        assert exc_info.value.field_name == key

    def test_unparseable_bracket_rate_rejected(self):
        with pytest.raises(PayrollConfigError) as exc_info:
            PayrollEngineConfig.from_dict({"tax_brackets": [{"rate": "five percent"}]})
        assert exc_info.value.field_name == "tax_brackets"

    def test_bad_fallback_attendance_rejected(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig.from_dict({"fallback_attendance": {"present": 20}})
        with pytest.raises(PayrollConfigError) as exc_info:
            PayrollEngineConfig.from_dict({"fallback_attendance": {"present_days": "x"}})
        assert exc_info.value.field_name == "fallback_attendance.present_days"

    def test_bad_year_key_rejected(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig.from_dict({"tax_brackets_by_year": {"next": [{"rate": 0}]}})


class TestPlaceholderBounds:
    """Placeholder draw limits must describe a possible month."""

    @pytest.mark.parametrize("key", [
        "placeholder_min_present_days",
        "placeholder_max_absent_days",
        "placeholder_max_leave_days",
        "placeholder_max_overtime_hours",
    ])
    def test_negative_rejected(self, key):
        with pytest.raises(PayrollConfigError) as exc_info:
            PayrollEngineConfig(**{key: -1})
        assert exc_info.value.field_name == key

    def test_min_present_beyond_a_month_rejected(self):
        with pytest.raises(PayrollConfigError):
            PayrollEngineConfig(placeholder_min_present_days=32)

    def test_string_counts_accepted(self):
        config = PayrollEngineConfig.from_dict({"placeholder_max_overtime_hours": "12"})
        assert config.placeholder_max_overtime_hours == 12
