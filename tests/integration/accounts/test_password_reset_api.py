"""Integration tests for the forgot/reset password endpoints."""

from datetime import timedelta

import pytest
from django.core import mail
from django.utils import timezone

from modules.accounts.constants import GENERIC_RESET_MESSAGE
from modules.accounts.models import PasswordReset

pytestmark = pytest.mark.integration


class TestForgotPassword:
    def test_known_email(self, api_client, customer_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(
                "/api/auth/forgot-password", {"email": "customer@example.com"}, format="json"
            )

        assert response.status_code == 200
        assert response.json() == {"message": GENERIC_RESET_MESSAGE}
        assert PasswordReset.objects.filter(user=customer_user).count() == 1
        assert len(mail.outbox) == 1

    def test_unknown_email_same_answer(self, api_client):
        response = api_client.post(
            "/api/auth/forgot-password", {"email": "ghost@example.com"}, format="json"
        )
        assert response.status_code == 200
        assert response.json() == {"message": GENERIC_RESET_MESSAGE}
        assert PasswordReset.objects.count() == 0

    def test_email_required(self, api_client):
        response = api_client.post("/api/auth/forgot-password", {}, format="json")
        assert response.status_code == 400
        assert response.json() == {"error": "Email is required"}


class TestResetPassword:
    @pytest.fixture()
    def reset(self, customer_user):
        return PasswordReset.objects.create(
            user=customer_user,
            token="d" * 64,
            expires_at=timezone.now() + timedelta(hours=1),
        )

    def test_reset_then_login(self, api_client, reset):
        response = api_client.post(
            "/api/auth/reset-password",
            {"token": reset.token, "password": "brandnew"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Password has been reset successfully"}

        login = api_client.post(
            "/api/auth/login",
            {"email": "customer@example.com", "password": "brandnew"},
            format="json",
        )
        assert login.status_code == 200

    def test_used_token(self, api_client, reset):
        reset.used = True
        reset.save()
        response = api_client.post(
            "/api/auth/reset-password",
            {"token": reset.token, "password": "brandnew"},
            format="json",
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Reset token has already been used"}

    def test_expired_token(self, api_client, reset):
        reset.expires_at = timezone.now() - timedelta(minutes=1)
        reset.save()
        response = api_client.post(
            "/api/auth/reset-password",
            {"token": reset.token, "password": "brandnew"},
            format="json",
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Reset token has expired"}
        assert not PasswordReset.objects.filter(id=reset.id).exists()

    def test_short_password(self, api_client, reset):
        response = api_client.post(
            "/api/auth/reset-password",
            {"token": reset.token, "password": "123"},
            format="json",
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Password must be at least 6 characters long"}

    def test_missing_token(self, api_client):
        response = api_client.post(
            "/api/auth/reset-password", {"password": "brandnew"}, format="json"
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Token and password are required"}
