"""Unit tests for the account DTO validation rules."""

import pytest
from pydantic import ValidationError

from modules.accounts.dtos import (
    ForgotPasswordDTO,
    LoginDTO,
    RegisterUserDTO,
    ResetPasswordDTO,
)
from modules.core.validation import first_error_message

pytestmark = pytest.mark.unit


class TestForgotPasswordDTO:
    def test_normalizes_email(self):
        assert ForgotPasswordDTO(email="  Jane@Example.COM ").email == "jane@example.com"

    def test_blank_email_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ForgotPasswordDTO(email="   ")
        assert first_error_message(exc_info.value) == "Email is required"


class TestResetPasswordDTO:
    def test_short_password_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ResetPasswordDTO(token="abc", password="12345")
        assert (
            first_error_message(exc_info.value)
            == "Password must be at least 6 characters long"
        )

    def test_password_is_not_stripped(self):
        dto = ResetPasswordDTO(token="abc", password=" secret ")
        assert dto.password == " secret "


class TestRegisterUserDTO:
    def test_valid(self):
        dto = RegisterUserDTO(name="Jane Doe", email="Jane@Example.com", password="secret1")
        assert dto.email == "jane@example.com"
        assert dto.phone == ""

    @pytest.mark.parametrize("email", ["jane", "jane@localhost", "@example.com"])
    def test_invalid_email(self, email):
        with pytest.raises(ValidationError) as exc_info:
            RegisterUserDTO(name="Jane", email=email, password="secret1")
        assert first_error_message(exc_info.value) == "Invalid email address"


class TestLoginDTO:
    def test_missing_password(self):
        with pytest.raises(ValidationError) as exc_info:
            LoginDTO(email="jane@example.com", password="")
        assert first_error_message(exc_info.value) == "Email and password are required"

    def test_dto_is_frozen(self):
        dto = LoginDTO(email="jane@example.com", password="secret1")
        with pytest.raises(ValidationError):
            dto.email = "other@example.com"
