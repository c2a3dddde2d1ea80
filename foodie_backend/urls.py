# foodie_backend/urls.py
from __future__ import annotations

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView

urlpatterns = [
    path("admin/", admin.site.urls),

    # API Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    # Token endpoints + address book
    path("api/", include(("accounts.urls", "accounts"), namespace="accounts")),
    # Cart, checkout, order history
    path("api/", include("orders.api_urls")),
    # Payment-link deep-link return
    path("api/payments/", include(("payments.urls", "payments"), namespace="payments")),
]
