"""FastAPI routers package."""

from .booking import router as booking_router
from .customer import router as customer_router
from .departure import router as departure_router
from .health import router as health_router
from .metrics import router as metrics_router
from .package import router as package_router
from .payment import router as payment_router
from .rooming import router as rooming_router

__all__ = [
    "booking_router",
    "customer_router",
    "departure_router",
    "health_router",
    "metrics_router",
    "package_router",
    "payment_router",
    "rooming_router",
]
