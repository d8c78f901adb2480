"""
Business services of the reservation core
"""

from .inventory_service import InventoryService
from .availability_service import AvailabilityService
from .reservation_service import ReservationService
from .block_booking_service import BlockBookingService
from .reconciliation_service import ReconciliationService
from .report_service import ReportService

__all__ = [
    "InventoryService",
    "AvailabilityService",
    "ReservationService",
    "BlockBookingService",
    "ReconciliationService",
    "ReportService",
]
