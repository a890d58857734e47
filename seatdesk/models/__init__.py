from seatdesk.models.admin import Admin
from seatdesk.models.plan import SubscriptionPlan
from seatdesk.models.seat import Seat, SeatSlot
