"""URL routing for QP Repository.

Admin, the browsable-API login, and the REST API with its schema/docs.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.http import HttpResponseRedirect
from django.urls import include, path


def _index(request):
    return HttpResponseRedirect("/docs/")


urlpatterns = [
    path("", _index, name="index"),
    path("admin/", admin.site.urls),
    path("api-auth/", include("rest_framework.urls")),
    # API schema, docs and v1 endpoints
    path("", include("api.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
