"""URL configuration for BayLedger project.

The `urlpatterns` list routes URLs to views. It includes the Django admin,
the operator API routers of each app and the OpenAPI schema.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView  # type: ignore

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/reservations/', include('apps.reservations.urls')),
    path('api/v1/ingest/', include('apps.ingest.urls')),
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
]
