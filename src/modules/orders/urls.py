"""Order URL configuration.

``SimpleRouter`` generates the CRUD routes plus the extra actions
(``open/``, ``has-open/``, ``reconcile/``, ``{pk}/submit/`` ...).
"""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.orders.views import OrderViewSet

router = SimpleRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = router.urls
