from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    # JSON endpoints used by the dashboard screens
    path("api/", include("erp_core.urls")),
]
