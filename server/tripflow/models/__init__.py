"""Models module exporting all database models."""

from .booking import Booking, BookingStatus, PaymentStatus, RoomType
from .departure import Departure, DepartureStatus
from .idempotency import IdempotencyRecord
from .invoice import Invoice
from .ledger import CommissionRecord, CommissionStatus, LoyaltyAward, LoyaltyKind
from .package import TravelPackage
from .party import Agent, Customer, CustomerTier, Salesperson
from .payment import Payment, PaymentMethod, PaymentRecordStatus
from .roster import RoomAssignment, Roster, RosterEntry, RosterStatus
from .voucher import Voucher, VoucherKind

__all__ = [
    # Catalog
    "TravelPackage",
    "Departure",
    "DepartureStatus",
    "Voucher",
    "VoucherKind",

    # Parties
    "Customer",
    "CustomerTier",
    "Agent",
    "Salesperson",

    # Booking lifecycle
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "RoomType",
    "Payment",
    "PaymentMethod",
    "PaymentRecordStatus",
    "Invoice",
    "Roster",
    "RosterEntry",
    "RosterStatus",
    "RoomAssignment",
    "CommissionRecord",
    "CommissionStatus",
    "LoyaltyAward",
    "LoyaltyKind",

    # Idempotency
    "IdempotencyRecord",
]
