"""Service layer package."""

from .booking_orchestrator import BookingOrchestrator, OrchestrationResult, PaymentOutcome
from .capacity_ledger import CapacityLedger
from .commission_calculator import CommissionCalculator
from .customer_service import CustomerService
from .departure_service import DepartureService
from .idempotency_service import IdempotencyService
from .invoice_generator import InvoiceGenerator
from .loyalty_awarder import LoyaltyAwarder
from .package_service import PackageService
from .payment_aggregator import PaymentAggregator, PaymentSummary
from .pricing import PricingService
from .room_allocator import RoomAllocator
from .roster_assigner import RosterAssigner

__all__ = [
    "BookingOrchestrator",
    "CapacityLedger",
    "CommissionCalculator",
    "CustomerService",
    "DepartureService",
    "IdempotencyService",
    "InvoiceGenerator",
    "LoyaltyAwarder",
    "OrchestrationResult",
    "PackageService",
    "PaymentAggregator",
    "PaymentOutcome",
    "PaymentSummary",
    "PricingService",
    "RoomAllocator",
    "RosterAssigner",
]
