"""Account URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.accounts import views

urlpatterns = [
    path("auth/forgot-password", views.ForgotPasswordView.as_view(), name="forgot-password"),
    path("auth/reset-password", views.ResetPasswordView.as_view(), name="reset-password"),
    path("auth/login", views.LoginView.as_view(), name="login"),
    path("auth/logout", views.LogoutView.as_view(), name="logout"),
    path("auth/register", views.RegisterView.as_view(), name="register"),
    path("auth/me", views.MeView.as_view(), name="me"),
    path(
        "admin/delivery-personnel",
        views.DeliveryPersonnelView.as_view(),
        name="delivery-personnel",
    ),
]
