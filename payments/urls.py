# payments/urls.py
from __future__ import annotations

from django.urls import path

from . import views

app_name = "payments"

urlpatterns = [
    # Deep-link return from the external payment page
    path("return/", views.PaymentReturnView.as_view(), name="payment-return"),
]
