from django.urls import include, path

urlpatterns = [
    path("api/settlements/", include(("settlements.urls", "settlements"), namespace="settlements")),
]
