"""
URL configuration for the fleet_mgmt project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.1/topics/http/urls/
"""
from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include


def healthz(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path('admin/', admin.site.urls),
    # JSON API over the fleet collections
    path('api/', include('fleet.api_urls')),
    # Make 'fleet.urls' handle the root URL:
    path('', include('fleet.urls')),
    path("healthz/", healthz),
]
