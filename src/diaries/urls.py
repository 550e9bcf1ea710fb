"""Routing for diaries and their collaboration sub-resources."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import DiaryViewSet

router = DefaultRouter()
router.register(r"diaries", DiaryViewSet, basename="diary")

urlpatterns = [
    path("", include(router.urls)),
]
