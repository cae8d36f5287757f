"""URL configuration for Reserva.

Routes the Django admin, the versioned REST API of each app and the
OpenAPI schema with its Swagger UI.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    # Application URLs
    path('api/v1/auth/', include(('apps.users.auth_urls', 'auth'), namespace='auth')),
    path('api/v1/users/', include('apps.users.urls')),
    path('api/v1/properties/', include('apps.properties.urls')),
    path('api/v1/reservations/', include('apps.reservations.urls')),
    # API schema and docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
