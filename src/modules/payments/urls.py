"""Payment URL configuration: list, retrieve, create and void."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.payments.views import PaymentViewSet

router = DefaultRouter(trailing_slash=True)
router.register("payments", PaymentViewSet, basename="payment")

urlpatterns = router.urls
