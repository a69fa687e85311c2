from django.urls import path
from .views import SubscribeConfirmView, SubscribeView, SummaryView, UnsubscribeView

urlpatterns = [
    path('summary/', SummaryView.as_view(), name='public-summary'),
    path('subscribe/', SubscribeView.as_view(), name='public-subscribe'),
    path('subscribe/confirm/', SubscribeConfirmView.as_view(), name='public-subscribe-confirm'),
    path('unsubscribe/', UnsubscribeView.as_view(), name='public-unsubscribe'),
]
