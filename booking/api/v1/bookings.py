from fastapi import APIRouter, Depends

from booking.api.v1.presenters import client_in, step_out
from booking.api.v1.schemas import (
    AdvanceRequestSchema,
    PaymentOptionSchema,
    SelectServiceSchema,
    SelectSlotSchema,
    StepResponseSchema,
    SubmitClientSchema,
)
from booking.application.ports.session_store import SessionStorePort
from booking.application.use_cases.booking import BookingWorkflow, StepResult
from booking.domain.entities.payment import MethodDetails
from booking.wiring.dependencies import get_sessions, get_workflow

router = APIRouter()


def _respond(result: StepResult, workflow: BookingWorkflow, sessions: SessionStorePort) -> StepResponseSchema:
    sessions.put(result.updated_state)
    return step_out(result, workflow.can_advance(result.updated_state))


@router.post("/bookings", response_model=StepResponseSchema, status_code=201)
def start_booking(
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    return _respond(workflow.start(), workflow, sessions)


@router.get("/bookings/{session_id}", response_model=StepResponseSchema)
def get_booking(
    session_id: str,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    state = sessions.get(session_id)
    return step_out(StepResult(action="current", updated_state=state), workflow.can_advance(state))


@router.post("/bookings/{session_id}/service", response_model=StepResponseSchema)
def select_service(
    session_id: str,
    req: SelectServiceSchema,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    result = workflow.select_service(sessions.get(session_id), req.service_id)
    return _respond(result, workflow, sessions)


@router.post("/bookings/{session_id}/slot", response_model=StepResponseSchema)
def select_slot(
    session_id: str,
    req: SelectSlotSchema,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    result = workflow.select_slot(sessions.get(session_id), req.date, req.start_time)
    return _respond(result, workflow, sessions)


@router.post("/bookings/{session_id}/client", response_model=StepResponseSchema)
def submit_client(
    session_id: str,
    req: SubmitClientSchema,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    result = workflow.submit_client(sessions.get(session_id), client_in(req.client), req.consent_accepted)
    return _respond(result, workflow, sessions)


@router.post("/bookings/{session_id}/payment-option", response_model=StepResponseSchema)
def choose_payment_option(
    session_id: str,
    req: PaymentOptionSchema,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    result = workflow.choose_payment_option(sessions.get(session_id), req.option)
    return _respond(result, workflow, sessions)


@router.post("/bookings/{session_id}/advance", response_model=StepResponseSchema)
def advance(
    session_id: str,
    req: AdvanceRequestSchema | None = None,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    state = sessions.get(session_id)
    details = None
    if req is not None:
        receipt = state.selections.client.email if state.selections.client else None
        details = MethodDetails(method=req.method, payload=req.payment_details, receipt_email=receipt)
    return _respond(workflow.advance(state, details), workflow, sessions)


@router.post("/bookings/{session_id}/back", response_model=StepResponseSchema)
def back(
    session_id: str,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    return _respond(workflow.back(sessions.get(session_id)), workflow, sessions)


@router.delete("/bookings/{session_id}", response_model=StepResponseSchema)
def abandon(
    session_id: str,
    workflow: BookingWorkflow = Depends(get_workflow),
    sessions: SessionStorePort = Depends(get_sessions),
):
    result = workflow.abandon(sessions.get(session_id))
    sessions.delete(session_id)
    return step_out(result, False)
