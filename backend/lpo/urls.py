from django.urls import path

from .views import (
    BatchLookupView, CancelTruckView, CheckDuplicateView, DeliveryOrderJourneyView,
    FindAtCheckpointView, LPODocumentCreateView, TruckJourneyView,
)

urlpatterns = [
    path('trucks/<str:truck_no>/journey', TruckJourneyView.as_view(), name='truck-journey'),
    path('delivery-orders/<str:do_no>/journey', DeliveryOrderJourneyView.as_view(), name='do-journey'),
    path('lpo/check-duplicate', CheckDuplicateView.as_view(), name='lpo-check-duplicate'),
    path('lpo/find-at-checkpoint', FindAtCheckpointView.as_view(), name='lpo-find-at-checkpoint'),
    path('lpo/lines', BatchLookupView.as_view(), name='lpo-batch-lookup'),
    path('lpo/documents', LPODocumentCreateView.as_view(), name='lpo-document-create'),
    path('lpo/documents/<int:id>/cancel-truck', CancelTruckView.as_view(), name='lpo-cancel-truck'),
]
