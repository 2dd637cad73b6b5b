"""Tests for the exception hierarchy."""

import pytest

from dataknobs_rules import ConfigurationError, RulesError, ValidationError, ValidationException


class TestRulesError:
    """Test the base RulesError class."""

    def test_basic_exception(self):
        error = RulesError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.context == {}
        assert error.details == {}

    def test_details_takes_precedence(self):
        error = RulesError("Error", context={"key": "context"}, details={"key": "details"})
        assert error.context == {"key": "details"}

    def test_catchable_as_base(self):
        with pytest.raises(RulesError):
            raise ConfigurationError("bad config")


class TestValidationException:
    """Test ValidationException messages."""

    def test_empty_errors(self):
        error = ValidationException([])
        assert str(error) == "Validation Failed"
        assert error.context == {"error_count": 0}

    def test_first_rule_message(self):
        errors = [
            ValidationError(property="age", failed_rules={"Min": ["age must be at least 18"]}),
            ValidationError(property="name", failed_rules={"IsString": ["name must be a string"]}),
        ]
        error = ValidationException(errors)
        assert str(error) == "Validation Failed: age must be at least 18 (and 1 more errors)"
        assert error.errors is errors

    def test_children_only(self):
        errors = [ValidationError(property="address", children=[ValidationError(property="city")])]
        assert str(ValidationException(errors)) == "Validation Failed: Unknown error (and 0 more errors)"
