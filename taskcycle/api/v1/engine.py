"""Endpoints that run the engine: generation, rollover, carryover, expiry.

All of them are safe to call repeatedly; a repeated call creates nothing new.
"""
from fastapi import APIRouter, Depends, Body
from sqlalchemy.orm import Session
from typing import Optional

from taskcycle.db import get_db
from taskcycle.services import (
    GenerationService,
    RolloverService,
    ShoppingCarryoverService,
    ExpiryService,
    MaintenanceService,
)
from taskcycle.schemas import (
    GenerateRequest,
    GenerationResultOut,
    RolloverCandidatesOut,
    RolloverRequest,
    RolloverResultOut,
    CarryoverResultOut,
    ExpiryResultOut,
    MaintenanceResultOut,
    MetadataOut,
)
from taskcycle.exceptions import ValidationError
from taskcycle.api.v1.auth import get_current_user_id


router = APIRouter()


def get_generation_service(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)) -> GenerationService:
    return GenerationService(db, user_id)


def get_rollover_service(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)) -> RolloverService:
    return RolloverService(db, user_id)


def get_shopping_service(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)) -> ShoppingCarryoverService:
    return ShoppingCarryoverService(db, user_id)


def get_expiry_service(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)) -> ExpiryService:
    return ExpiryService(db, user_id)


def get_maintenance_service(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)) -> MaintenanceService:
    return MaintenanceService(db, user_id)


@router.post("/generate", response_model=GenerationResultOut)
def generate(
    payload: Optional[GenerateRequest] = Body(None),
    generation_service: GenerationService = Depends(get_generation_service)
):
    """Generate occurrences.

    With from_date and to_date, covers exactly that range. Otherwise catches
    up from the last run through today plus lookahead_days.
    """
    payload = payload or GenerateRequest()
    if (payload.from_date is None) != (payload.to_date is None):
        raise ValidationError("from_date and to_date must be given together")
    if payload.from_date is not None:
        return generation_service.generate(payload.from_date, payload.to_date)
    return generation_service.generate_missing(lookahead_days=payload.lookahead_days)


@router.get("/rollover", response_model=RolloverCandidatesOut)
def rollover_candidates(
    rollover_service: RolloverService = Depends(get_rollover_service)
):
    """Unfinished work from earlier days that could be carried to today."""
    return rollover_service.candidates()


@router.post("/rollover", response_model=RolloverResultOut)
def rollover(
    payload: Optional[RolloverRequest] = Body(None),
    rollover_service: RolloverService = Depends(get_rollover_service)
):
    """Carry unfinished work to today; task_ids / template_ids narrow the selection."""
    payload = payload or RolloverRequest()
    return rollover_service.rollover(
        task_ids=payload.task_ids,
        template_ids=payload.template_ids,
        include_single=payload.include_single,
        include_recurring=payload.include_recurring,
        mode=payload.mode,
        resolve_missed=payload.resolve_missed,
    )


@router.post("/shopping/carryover", response_model=CarryoverResultOut)
def shopping_carryover(
    shopping_service: ShoppingCarryoverService = Depends(get_shopping_service)
):
    return shopping_service.process_completed()


@router.post("/expire", response_model=ExpiryResultOut)
def expire(
    expiry_service: ExpiryService = Depends(get_expiry_service)
):
    return expiry_service.collect_expired()


@router.post("/maintenance", response_model=MaintenanceResultOut)
def maintenance(
    auto_rollover: Optional[bool] = None,
    maintenance_service: MaintenanceService = Depends(get_maintenance_service)
):
    """The daily run: generate, shopping carryover, optional rollover, expiry."""
    return maintenance_service.run(auto_rollover=auto_rollover)


@router.get("/metadata", response_model=MetadataOut)
def metadata(
    generation_service: GenerationService = Depends(get_generation_service)
):
    state = generation_service.store.load_state()
    return MetadataOut(
        last_task_generation=state.last_task_generation,
        last_shopping_processed=state.last_shopping_processed,
    )
