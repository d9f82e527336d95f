"""Tests for auth validators."""

import pytest

from edulearn.auth.validators import (
    INSTITUTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    normalize_email,
    validate_email,
    validate_institution,
    validate_name,
    validate_password,
)


class TestValidateEmail:
    """Tests for email validation."""

    @pytest.mark.parametrize(
        "email,expected",
        [
            ("ana@college.edu", "ana@college.edu"),
            ("  Ana.Silva@College.EDU ", "ana.silva@college.edu"),
            ("first+tag@sub.school.org", "first+tag@sub.school.org"),
        ],
    )
    def test_valid_email_is_normalized(self, email: str, expected: str) -> None:
        result = validate_email(email)
        assert result.valid is True
        assert result.formatted == expected

    @pytest.mark.parametrize(
        "email",
        ["", "plainaddress", "missing@tld", "@nouser.com", "two@@signs.com", "a b@c.com"],
    )
    def test_invalid_email(self, email: str) -> None:
        result = validate_email(email)
        assert result.valid is False
        assert result.message == "Invalid email address"
        assert result.formatted is None

    def test_normalize_email(self) -> None:
        assert normalize_email("  MIXED@Case.Org ") == "mixed@case.org"


class TestValidateName:
    """Tests for display name validation."""

    def test_valid_name_is_trimmed(self) -> None:
        result = validate_name("  Ana Silva  ")
        assert result.valid is True
        assert result.formatted == "Ana Silva"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name(self, name: str) -> None:
        result = validate_name(name)
        assert result.valid is False
        assert result.message == "Name is required"

    @pytest.mark.parametrize("name", ["A", "x" * (NAME_MAX_LENGTH + 1)])
    def test_name_length(self, name: str) -> None:
        result = validate_name(name)
        assert result.valid is False
        assert result.message == "Name must be between 2 and 100 characters"

    def test_name_boundaries(self) -> None:
        assert validate_name("Al").valid
        assert validate_name("x" * NAME_MAX_LENGTH).valid


class TestValidateInstitution:
    """Tests for institution validation."""

    def test_valid_institution(self) -> None:
        result = validate_institution(" State College ")
        assert result.valid is True
        assert result.formatted == "State College"

    @pytest.mark.parametrize("institution", ["AB", "x" * (INSTITUTION_MAX_LENGTH + 1)])
    def test_institution_length(self, institution: str) -> None:
        result = validate_institution(institution)
        assert result.valid is False
        assert result.message == "Institution must be between 3 and 150 characters"

    def test_blank_institution(self) -> None:
        assert validate_institution("").message == "Institution is required"


class TestValidatePassword:
    """Tests for password validation."""

    @pytest.mark.parametrize(
        "password",
        [
            "Abcdef12",
            "StrongPass1",
            "MyP@ssw0rd!",
            "Test12345a",
        ],
    )
    def test_valid_password(self, password: str) -> None:
        result = validate_password(password)
        assert result.valid is True
        assert result.message is None

    @pytest.mark.parametrize(
        "password,expected_message",
        [
            ("short", "Password must be at least 8 characters"),
            ("Abc12", "Password must be at least 8 characters"),
            ("a" * (PASSWORD_MIN_LENGTH - 1), "Password must be at least 8 characters"),
            ("lowercase1", "Password must contain an uppercase letter"),
            ("UPPERCASE1", "Password must contain a lowercase letter"),
            ("NoNumbersHere", "Password must contain a number"),
        ],
    )
    def test_invalid_password(self, password: str, expected_message: str) -> None:
        result = validate_password(password)
        assert result.valid is False
        assert result.message == expected_message
