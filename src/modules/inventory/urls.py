from django.urls import path

from modules.inventory.views import AvailabilityView

urlpatterns = [
    path(
        "inventory/availability/",
        AvailabilityView.as_view(),
        name="inventory-availability",
    ),
]
