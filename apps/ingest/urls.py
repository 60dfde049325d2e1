"""URL routing for the processed message history."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ProcessedMessageViewSet

router = DefaultRouter()
router.register(r"messages", ProcessedMessageViewSet, basename="processed-message")

urlpatterns = [
    path("", include(router.urls)),
]
