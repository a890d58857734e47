from seatdesk.schemas.common import ErrorResponse
from seatdesk.schemas.admin import Admin, Token, TokenPayload
from seatdesk.schemas.plan import Plan, PlanCreate, PlanUpdate
from seatdesk.schemas.seat import (
    OccupantIn, SeatAllocateRequest, SeatRegister,
    ReassignOccupant, ChangePlan, ToggleActive, SetFeePaid, ClearOccupant, SeatUpdate,
    SubscriberUpdate, SubscriberRemoved,
    SeatSlot, OccupantSummary, SeatInfo, SeatDeleteResponse, SeatRegisterResponse,
    AvailableSeatsResponse, DefaultSeatsResponse, AuditRecord, AuditReport,
)
from seatdesk.schemas.dashboard import (
    SectionStats, SeatDetail, SeatSnapshot,
    ExpiryForecastEntry, ExpiryForecast, ExpiryBreakdown, DashboardSummary,
)
