from django.urls import path, include
from django.contrib import admin
from django.conf import settings
from django.conf.urls.static import static
from django.views.generic import RedirectView
from django.http import HttpResponse

from portal import admin_views

urlpatterns = [
    path('', RedirectView.as_view(url='/admin/', permanent=False), name='db-dashboard'),
    path('favicon.ico', lambda request: HttpResponse(status=204), name='favicon'),
    path('admin/dashboard-data/', admin_views.admin_counts, name='admin-dashboard-data'),
    path('admin/', admin.site.urls),
    path('api/accounts/', include('accounts.urls')),
    path('api/academics/', include('academics.urls')),
    path('api/calendar/', include('academic_calendar.api_urls')),
    path('api/certificates/', include('certificates.urls')),
    path('api/requests/', include('bonafide.urls')),
]

# Uploaded template files are served by Django only in development.
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
