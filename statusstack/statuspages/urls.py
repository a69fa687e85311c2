from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import ComponentGroupViewSet, ComponentViewSet, IncidentViewSet, SubscriberViewSet

router = SimpleRouter()
router.register(r'components', ComponentViewSet, basename='components')
router.register(r'component-groups', ComponentGroupViewSet, basename='component-groups')
router.register(r'incidents', IncidentViewSet, basename='incidents')
router.register(r'subscribers', SubscriberViewSet, basename='subscribers')

urlpatterns = [
    path('', include(router.urls)),
]
