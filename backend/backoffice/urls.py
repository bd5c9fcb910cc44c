from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def healthz(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path('admin/', admin.site.urls),
    path('healthz', healthz, name='healthz'),
    path('api/', include('accounts.urls')),
    path('api/', include('customers.urls')),
    path('api/', include('quotes.urls')),
    path('api/', include('invoices.urls')),
    path('api/reports/', include('reports.urls')),
]
