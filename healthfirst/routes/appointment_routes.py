from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from healthfirst.auth.dependencies import get_current_account, get_current_patient
from healthfirst.models.patient import Patient
from healthfirst.models.provider import Provider
from healthfirst.routes.common import ensure_database_ready, get_db, unwrap
from healthfirst.schemas.appointment import (
    AppointmentBookingRequest,
    AppointmentBookingResponse,
    AppointmentListRequest,
    AppointmentListResponse,
    AppointmentSummary,
    CancelAppointmentRequest,
)
from healthfirst.services import booking_service

router = APIRouter(tags=['appointments'])


@router.post('', response_model=AppointmentBookingResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: AppointmentBookingRequest,
    current_patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db),
):
    if data.patient_id != current_patient.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Patients can only book appointments for themselves.',
        )

    ensure_database_ready()

    return unwrap(booking_service.book_slot(db, data))


@router.post('/{slot_id}/cancel', response_model=AppointmentSummary)
def cancel_appointment(
    slot_id: str,
    data: CancelAppointmentRequest,
    current_account: Provider | Patient = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    is_provider = isinstance(current_account, Provider)

    ensure_database_ready()

    return unwrap(
        booking_service.cancel_booking(
            db,
            slot_id,
            patient_id=None if is_provider else current_account.id,
            provider_id=current_account.id if is_provider else None,
            reason=data.reason,
        )
    )


@router.get('', response_model=AppointmentListResponse)
def list_appointments(
    filter_type: str = Query(default='all'),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    page: int = Query(default=1),
    page_size: int = Query(default=20),
    sort_by: str = Query(default='startTime'),
    ascending: bool = Query(default=True),
    current_account: Provider | Patient = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    is_provider = isinstance(current_account, Provider)
    try:
        request = AppointmentListRequest(
            patient_id=None if is_provider else current_account.id,
            provider_id=current_account.id if is_provider else None,
            filter_type=filter_type,
            start_date=start_date,
            end_date=end_date,
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            ascending=ascending,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc

    ensure_database_ready()

    return unwrap(booking_service.list_appointments(db, request))
