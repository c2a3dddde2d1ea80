# accounts/urls.py
from django.urls import include, path
from rest_framework.routers import SimpleRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import AddressViewSet

app_name = "accounts"

router = SimpleRouter()
router.register(r"addresses", AddressViewSet, basename="address")

urlpatterns = [
    # Auth itself is delegated; these only mint tokens for the mobile client
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("", include(router.urls)),
]
