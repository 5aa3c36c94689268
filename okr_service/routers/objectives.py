"""Objective router - API endpoints for OKR objective management."""
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from okr_service.database import get_database
from okr_service.models.bulk import BulkCreateRequest, BulkOperationRequest, BulkOperationResult
from okr_service.models.errors import ErrorCode, RuleViolationError
from okr_service.models.objective import (
    DuplicateCheck,
    Granularity,
    Objective,
    ObjectiveCreate,
    ObjectiveProgress,
    ObjectiveStatus,
    ObjectiveUpdate,
)
from okr_service.models.user import CallerScope
from okr_service.models.validation import ValidationResult
from okr_service.routers.auth import get_current_scope
from okr_service.services.objective_service import ObjectiveService
from okr_service.services.sync import OptimisticSynchronizer, get_synchronizer
from okr_service.utils.progress import calculate_progress


router = APIRouter(prefix="/objectives", tags=["objectives"])


class ObjectiveCreated(BaseModel):
    """Created objective plus non-blocking warnings."""

    objective: Objective
    warnings: list[str] = []


class ObjectivesCreated(BaseModel):
    """Bulk creation response model."""

    objectives: list[Objective]
    warnings: list[str] = []


class DuplicateCheckRequest(BaseModel):
    """Duplicate title check request model."""

    brand_id: str
    title: str
    threshold: Optional[float] = None


def _raise_rule_violation(e: RuleViolationError) -> NoReturn:
    """Translate a rule violation into an HTTP error."""
    if ErrorCode.TENANT_SCOPE_VIOLATION.value in e.codes:
        status_code = status.HTTP_403_FORBIDDEN
    elif ErrorCode.ILLEGAL_TRANSITION.value in e.codes:
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = 422
    raise HTTPException(status_code=status_code, detail=e.to_detail())


def get_objective_service(
    db=Depends(get_database),
    synchronizer: OptimisticSynchronizer = Depends(get_synchronizer),
) -> ObjectiveService:
    """Dependency to build the objective service for a request."""
    return ObjectiveService(db, synchronizer)


@router.post("", response_model=ObjectiveCreated, status_code=status.HTTP_201_CREATED)
async def create_objective(
    objective: ObjectiveCreate,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Create a new objective.

    - Requires authentication; created in the caller's tenant
    - Returns 422 with every failed rule if validation fails
    - Starts in active status
    """
    try:
        created, warnings = await service.create_objective(scope, objective)
    except RuleViolationError as e:
        _raise_rule_violation(e)
    return ObjectiveCreated(objective=created, warnings=warnings)


@router.post("/bulk-create", response_model=ObjectivesCreated, status_code=status.HTTP_201_CREATED)
async def create_objectives(
    request: BulkCreateRequest,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Create up to 50 objectives of one brand at once.

    - Nothing is created if any objective is invalid
    """
    try:
        created, warnings = await service.create_objectives(scope, request.objectives)
    except RuleViolationError as e:
        _raise_rule_violation(e)
    return ObjectivesCreated(objectives=created, warnings=warnings)


@router.post("/validate", response_model=ValidationResult)
async def validate_objective(
    objective: ObjectiveCreate,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """Validate an objective without creating it."""
    return await service.validate_candidate(scope, objective)


@router.post("/duplicates/check", response_model=DuplicateCheck)
async def check_duplicate(
    request: DuplicateCheckRequest,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """Check whether a title is too similar to an active objective."""
    return await service.check_duplicate_title(
        scope,
        request.brand_id,
        request.title,
        threshold=request.threshold,
    )


@router.post("/bulk", response_model=BulkOperationResult)
async def bulk_operation(
    request: BulkOperationRequest,
    brand_id: str = Query(..., description="Brand the objectives belong to"),
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Apply archive, activate, pause, delete or update_priority to many objectives.

    - At most 50 objectives per request
    - Delete archives; nothing is physically removed
    - Returns 409 if any objective cannot make the status change
    """
    try:
        return await service.bulk_operation(scope, brand_id, request)
    except RuleViolationError as e:
        _raise_rule_violation(e)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("", response_model=list[Objective])
async def list_objectives(
    brand_id: str = Query(..., description="Brand to list objectives for"),
    status_filter: Optional[ObjectiveStatus] = Query(None, alias="status", description="Filter by status"),
    granularity: Optional[Granularity] = Query(None, description="Filter by granularity"),
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    List objectives of a brand in the caller's tenant.

    - Excludes archived objectives unless filtered by status
    """
    return await service.list_objectives(
        scope,
        brand_id,
        status=status_filter,
        granularity=granularity,
    )


@router.get("/{objective_id}", response_model=Objective)
async def get_objective(
    objective_id: str,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Get a single objective.

    - Returns 404 if not found, 403 if it belongs to another tenant
    """
    try:
        return await service.get_objective(scope, objective_id)
    except RuleViolationError as e:
        _raise_rule_violation(e)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{objective_id}/progress", response_model=ObjectiveProgress)
async def get_objective_progress(
    objective_id: str,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """Progress percentage and health of an objective."""
    try:
        objective = await service.get_objective(scope, objective_id)
    except RuleViolationError as e:
        _raise_rule_violation(e)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return calculate_progress(objective.current_value, objective.target_value, objective.status)


@router.patch("/{objective_id}", response_model=Objective)
async def update_objective(
    objective_id: str,
    objective_update: ObjectiveUpdate,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Update an objective.

    - Status changes must follow the lifecycle (409 otherwise)
    - Changed fields are re-validated (422 on failure)
    """
    try:
        return await service.update_objective(scope, objective_id, objective_update)
    except RuleViolationError as e:
        _raise_rule_violation(e)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{objective_id}")
async def delete_objective(
    objective_id: str,
    scope: CallerScope = Depends(get_current_scope),
    service: ObjectiveService = Depends(get_objective_service),
):
    """
    Delete an objective.

    - Archives the objective, doesn't remove it from the database
    """
    try:
        return await service.archive_objective(scope, objective_id)
    except RuleViolationError as e:
        _raise_rule_violation(e)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
