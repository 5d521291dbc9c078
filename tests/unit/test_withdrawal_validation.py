"""
Unit tests for withdrawal validation logic.

Tests cover:
- Minimum withdrawal amount validation
- Daily cap and balance checks on the freshly read record
- Bank details parsing and fallback to saved details
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from happyinvest.config.settings import settings
from happyinvest.services.withdrawal import (
    BankDetails,
    WithdrawalValidator,
    parse_bank_details,
)
from happyinvest.utils.exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidRequestError,
    RateLimitedError,
)

TODAY = date(2026, 3, 2)


@pytest.fixture
def validator():
    """Validator with a minimum of 100."""
    return WithdrawalValidator(min_amount=Decimal("100"))


@pytest.fixture
def mock_user(sample_bank_details):
    """User with 500 spendable and saved bank details."""
    user = MagicMock()
    user.spendable_balance = Decimal("500")
    user.last_withdrawal_date = None
    user.bank_details = sample_bank_details
    return user


class TestWithdrawalAmount:
    """Test withdrawal amount validation."""

    def test_above_minimum(self, validator):
        """Test amount above minimum is accepted."""
        assert validator.validate_amount("250.50") == Decimal("250.50")

    def test_exactly_at_minimum(self, validator):
        """Test amount exactly at minimum is accepted."""
        assert validator.validate_amount(100) == Decimal("100")

    def test_below_minimum(self, validator):
        """Test amount below minimum is rejected."""
        with pytest.raises(InvalidAmountError):
            validator.validate_amount("99.99")

    def test_zero_amount(self, validator):
        """Test zero is rejected."""
        with pytest.raises(InvalidAmountError):
            validator.validate_amount(0)

    def test_negative_amount(self, validator):
        """Test negative amounts are rejected."""
        with pytest.raises(InvalidAmountError):
            validator.validate_amount("-10")

    def test_non_numeric_amount(self, validator):
        """Test garbage input is rejected."""
        with pytest.raises(InvalidAmountError):
            validator.validate_amount("ten")

    def test_non_finite_amount(self, validator):
        """Test NaN and infinity are rejected."""
        with pytest.raises(InvalidAmountError):
            validator.validate_amount("NaN")
        with pytest.raises(InvalidAmountError):
            validator.validate_amount("Infinity")


class TestWithdrawalReservation:
    """Test daily cap and balance checks."""

    def test_sufficient_balance(self, validator, mock_user):
        """Test reservation within balance passes."""
        validator.check_reservation(mock_user, Decimal("500"), TODAY)

    def test_insufficient_balance(self, validator, mock_user):
        """Test reservation above balance fails."""
        with pytest.raises(InsufficientBalanceError):
            validator.check_reservation(mock_user, Decimal("500.01"), TODAY)

    def test_second_withdrawal_same_day(self, validator, mock_user):
        """Test the daily cap."""
        mock_user.last_withdrawal_date = TODAY
        with pytest.raises(RateLimitedError):
            validator.check_reservation(mock_user, Decimal("100"), TODAY)

    def test_withdrawal_next_day(self, validator, mock_user):
        """Test the cap resets on the next business day."""
        mock_user.last_withdrawal_date = date(2026, 3, 1)
        validator.check_reservation(mock_user, Decimal("100"), TODAY)

    def test_emergency_stop(self, validator):
        """Test withdrawals refused while stopped."""
        with patch.object(settings, "emergency_stop_withdrawals", True):
            with pytest.raises(InvalidRequestError):
                validator.ensure_enabled()


class TestBankDetails:
    """Test bank details parsing."""

    def test_normalizes_ifsc(self, sample_bank_details):
        """Test IFSC codes are upper-cased."""
        details = parse_bank_details(sample_bank_details)
        assert details.ifsc_code == "SBIN0001234"

    def test_rejects_non_digit_account(self, sample_bank_details):
        """Test account numbers must be digits."""
        sample_bank_details["account_number"] = "12AB5678"
        with pytest.raises(InvalidRequestError):
            parse_bank_details(sample_bank_details)

    def test_rejects_missing_holder(self, sample_bank_details):
        """Test account holder is required."""
        del sample_bank_details["account_holder"]
        with pytest.raises(InvalidRequestError):
            parse_bank_details(sample_bank_details)

    def test_model_passthrough(self, sample_bank_details):
        """Test an already validated model is returned as is."""
        details = BankDetails.model_validate(sample_bank_details)
        assert parse_bank_details(details) is details

    def test_inline_details_win(self, validator, mock_user):
        """Test inline details override the saved ones."""
        inline = {
            "account_holder": "Ravi Kumar",
            "account_number": "9876543210",
            "ifsc_code": "HDFC0000001",
        }
        resolved = validator.resolve_bank_details(mock_user, inline)
        assert resolved["account_holder"] == "Ravi Kumar"

    def test_falls_back_to_saved(self, validator, mock_user):
        """Test saved details are used when none are given."""
        resolved = validator.resolve_bank_details(mock_user, None)
        assert resolved["account_number"] == "123456789012"

    def test_no_details_at_all(self, validator, mock_user):
        """Test a user without any bank details is refused."""
        mock_user.bank_details = None
        with pytest.raises(InvalidRequestError):
            validator.resolve_bank_details(mock_user, None)
