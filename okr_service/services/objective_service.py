"""Objective service - business logic for OKR objective management."""
import logging
from datetime import datetime
from typing import Optional, Union

from bson import ObjectId

from okr_service.config import settings
from okr_service.models.bulk import BulkOperationRequest, BulkOperationResult, BulkPlan
from okr_service.models.errors import (
    ErrorCode,
    IllegalTransitionError,
    RuleViolationError,
    ValidationIssue,
    check_tenant_scope,
)
from okr_service.models.objective import (
    DuplicateCheck,
    Granularity,
    Objective,
    ObjectiveCandidate,
    ObjectiveCreate,
    ObjectiveStatus,
    ObjectiveUpdate,
    Priority,
)
from okr_service.models.reference import ValidationContext
from okr_service.models.user import CallerScope
from okr_service.models.validation import ValidationResult
from okr_service.services.bulk_coordinator import plan_bulk_operation
from okr_service.services.cache import cache_key
from okr_service.services.duplicate_detector import check_duplicate
from okr_service.services.lifecycle import is_status_change, transition
from okr_service.services.objective_store import MongoObjectiveStore, to_object_ids
from okr_service.services.objective_validator import validate, validate_bulk_objectives
from okr_service.services.reference_service import ReferenceService
from okr_service.services.sync import ObjectiveChange, OptimisticSynchronizer, get_synchronizer


logger = logging.getLogger(__name__)

NOT_FOUND = "Objective not found"


class ObjectiveService:
    """Service for handling objective operations."""

    def __init__(self, db, synchronizer: Optional[OptimisticSynchronizer] = None):
        """Initialize service with database connection."""
        self.db = db
        self.objectives = db["objectives"]
        self.references = ReferenceService(db)
        self.store = MongoObjectiveStore(self.objectives)
        self.synchronizer = synchronizer or get_synchronizer()

    def _doc_to_objective(self, doc: dict) -> Objective:
        """Convert database document to Objective model."""
        status = doc.get("status", ObjectiveStatus.ACTIVE.value)
        return Objective(
            _id=str(doc["_id"]),
            tenant_id=doc["tenant_id"],
            brand_id=doc["brand_id"],
            title=doc["title"],
            description=doc.get("description"),
            target_value=doc["target_value"],
            current_value=doc.get("current_value", 0),
            target_date_id=doc["target_date_id"],
            granularity=doc["granularity"],
            metric_type_id=doc["metric_type_id"],
            platform_id=doc.get("platform_id"),
            priority=doc.get("priority", Priority.MEDIUM.value),
            category=doc.get("category"),
            master_template_id=doc.get("master_template_id"),
            status=status,
            is_active=status != ObjectiveStatus.ARCHIVED.value,
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    def _to_candidate(self, tenant_id: str, data: ObjectiveCreate) -> ObjectiveCandidate:
        return ObjectiveCandidate(tenant_id=tenant_id, **data.model_dump())

    def _merged_candidate(self, current: Objective, field_updates: dict) -> ObjectiveCandidate:
        """Candidate as the objective would look after the field updates."""
        return ObjectiveCandidate(**{
            **current.model_dump(include=set(ObjectiveCandidate.model_fields)),
            **field_updates,
        })

    def _edit_checks(self, field_updates: dict) -> dict:
        """Which context-dependent rules an edit of these fields must re-run."""
        return {
            "check_duplicates": "title" in field_updates,
            "check_dates": (
                "target_date_id" in field_updates
                or settings.revalidate_target_date_on_edit
            ),
            "check_platforms": "platform_id" in field_updates,
        }

    async def _load_context(
        self,
        tenant_id: str,
        brand_id: str,
        candidates: list[ObjectiveCandidate],
        exclude_id: Optional[str] = None,
        check_duplicates: bool = True,
        check_dates: bool = True,
        check_platforms: bool = True,
    ) -> ValidationContext:
        """Resolve everything the validator needs for the given candidates."""
        context = ValidationContext(duplicate_threshold=settings.duplicate_threshold)

        if check_duplicates:
            context.existing_objectives = await self.references.get_active_objectives(
                tenant_id, brand_id, exclude_id=exclude_id,
            )
        if check_dates:
            context.dates = await self.references.get_dates(
                c.target_date_id for c in candidates
            )
        if check_platforms:
            context.platforms = await self.references.get_platforms(
                c.platform_id for c in candidates
            )
            context.metric_types = await self.references.get_metric_types(
                c.metric_type_id for c in candidates
            )

        return context

    async def _get_scoped_doc(self, scope: CallerScope, objective_id: str) -> dict:
        """
        Fetch an objective document and enforce tenant isolation.

        Raises:
            ValueError: If objective not found
            RuleViolationError: If objective belongs to another tenant
        """
        if not ObjectId.is_valid(objective_id):
            raise ValueError(NOT_FOUND)

        doc = await self.objectives.find_one({"_id": ObjectId(objective_id)})
        if not doc:
            raise ValueError(NOT_FOUND)

        violation = check_tenant_scope(scope.tenant_id, doc.get("tenant_id", ""))
        if violation:
            logger.info(
                "Tenant %s denied access to objective %s",
                scope.tenant_id,
                objective_id,
            )
            raise RuleViolationError([violation])

        return doc

    def _new_document(self, candidate: ObjectiveCandidate, now: datetime) -> dict:
        return {
            "tenant_id": candidate.tenant_id,
            "brand_id": candidate.brand_id,
            "title": candidate.title,
            "description": candidate.description,
            "target_value": candidate.target_value,
            "current_value": candidate.current_value,
            "target_date_id": candidate.target_date_id,
            "granularity": candidate.granularity,
            "metric_type_id": candidate.metric_type_id,
            "platform_id": candidate.platform_id,
            "priority": candidate.priority if candidate.priority is not None else Priority.MEDIUM.value,
            "category": candidate.category,
            "master_template_id": candidate.master_template_id,
            "status": ObjectiveStatus.ACTIVE.value,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }

    async def validate_candidate(
        self,
        scope: CallerScope,
        data: ObjectiveCreate,
    ) -> ValidationResult:
        """
        Dry-run validation of an objective with full store context.

        Args:
            scope: Caller scope
            data: Objective data

        Returns:
            ValidationResult (nothing is written)
        """
        candidate = self._to_candidate(scope.tenant_id, data)
        context = await self._load_context(scope.tenant_id, data.brand_id, [candidate])
        return validate(candidate, context, high_target_warning=settings.high_target_warning)

    async def create_objective(
        self,
        scope: CallerScope,
        data: ObjectiveCreate,
    ) -> tuple[Objective, list[str]]:
        """
        Create a new objective.

        Args:
            scope: Caller scope (the objective is created in its tenant)
            data: Objective creation data

        Returns:
            Created objective and any validation warnings

        Raises:
            RuleViolationError: If any business rule fails
        """
        candidate = self._to_candidate(scope.tenant_id, data)
        context = await self._load_context(scope.tenant_id, data.brand_id, [candidate])
        result = validate(candidate, context, high_target_warning=settings.high_target_warning)

        if not result.valid:
            logger.info("Rejected objective for brand %s: %s", data.brand_id, result.codes)
            raise RuleViolationError(result.errors)

        objective_doc = self._new_document(candidate, datetime.utcnow())
        insert = await self.objectives.insert_one(objective_doc)
        objective_doc["_id"] = insert.inserted_id

        await self.synchronizer.invalidate_scope(scope.tenant_id, data.brand_id)

        return self._doc_to_objective(objective_doc), result.warnings

    async def create_objectives(
        self,
        scope: CallerScope,
        items: list[ObjectiveCreate],
    ) -> tuple[list[Objective], list[str]]:
        """
        Create a batch of objectives for one brand.

        Returns:
            Created objectives and the batch warnings

        Raises:
            RuleViolationError: If the batch or any objective is invalid
        """
        brand_ids = {item.brand_id for item in items}
        if len(brand_ids) > 1:
            raise RuleViolationError([ValidationIssue(
                field="objectives",
                message="All objectives in a batch must belong to the same brand",
                code=ErrorCode.INVALID_REFERENCE,
            )])

        candidates = [self._to_candidate(scope.tenant_id, item) for item in items]
        context = None
        if candidates:
            context = await self._load_context(scope.tenant_id, items[0].brand_id, candidates)

        result = validate_bulk_objectives(
            candidates, context, high_target_warning=settings.high_target_warning,
        )
        if not result.valid:
            logger.info("Rejected bulk creation of %d objective(s): %s", len(items), result.codes)
            raise RuleViolationError(result.errors)

        now = datetime.utcnow()
        docs = [self._new_document(candidate, now) for candidate in candidates]
        insert = await self.objectives.insert_many(docs)
        for doc, inserted_id in zip(docs, insert.inserted_ids):
            doc["_id"] = inserted_id

        await self.synchronizer.invalidate_scope(scope.tenant_id, items[0].brand_id)

        return [self._doc_to_objective(doc) for doc in docs], result.warnings

    async def list_objectives(
        self,
        scope: CallerScope,
        brand_id: str,
        status: Optional[Union[ObjectiveStatus, str]] = None,
        granularity: Optional[Union[Granularity, str]] = None,
    ) -> list[Objective]:
        """
        List objectives of a brand with optional filtering.

        Archived objectives are excluded unless asked for by status. Results
        are served from the query cache and refetched when invalidated.

        Args:
            scope: Caller scope
            brand_id: Brand ID
            status: Optional status filter
            granularity: Optional granularity filter

        Returns:
            List of objectives
        """
        status = ObjectiveStatus(status).value if status else None
        granularity = Granularity(granularity).value if granularity else None
        key = cache_key(scope.tenant_id, brand_id, status=status, granularity=granularity)

        async def fetch() -> list[dict]:
            query = {
                "tenant_id": scope.tenant_id,
                "brand_id": brand_id,
            }

            if status:
                query["status"] = status
            else:
                query["is_active"] = True
            if granularity:
                query["granularity"] = granularity

            cursor = self.objectives.find(query)
            docs = await cursor.to_list(length=None)
            return [self._doc_to_objective(doc).model_dump(mode="json") for doc in docs]

        items = await self.synchronizer.load(key, fetch)
        return [Objective.model_validate(item) for item in items]

    async def get_objective(
        self,
        scope: CallerScope,
        objective_id: str,
    ) -> Objective:
        """
        Get a single objective by id.

        Raises:
            ValueError: If objective not found
            RuleViolationError: If objective belongs to another tenant
        """
        doc = await self._get_scoped_doc(scope, objective_id)
        return self._doc_to_objective(doc)

    async def update_objective(
        self,
        scope: CallerScope,
        objective_id: str,
        objective_update: ObjectiveUpdate,
    ) -> Objective:
        """
        Update an objective.

        Status changes must follow the lifecycle graph. Changed fields are
        re-validated against the merged objective; the future target date
        rule only applies when the target date itself changes (or when
        configured to always re-check).

        Args:
            scope: Caller scope
            objective_id: Objective ID
            objective_update: Update data

        Returns:
            Updated objective

        Raises:
            ValueError: If objective not found
            RuleViolationError: If the update breaks a rule
            ExternalCommitError: If the store rejected the change
        """
        existing = await self._get_scoped_doc(scope, objective_id)
        current = self._doc_to_objective(existing)

        updates = objective_update.model_dump(exclude_none=True)
        if not updates:
            return current

        requested_status = updates.pop("status", None)
        if is_status_change(current.status, requested_status):
            outcome = transition(current.status, requested_status)
            if isinstance(outcome, IllegalTransitionError):
                logger.info("Rejected %s for objective %s", outcome.message, objective_id)
                raise RuleViolationError([outcome])
            updates["status"] = ObjectiveStatus(requested_status).value

        field_updates = {k: v for k, v in updates.items() if k != "status"}
        if field_updates:
            candidate = self._merged_candidate(current, field_updates)
            checks = self._edit_checks(field_updates)
            context = await self._load_context(
                scope.tenant_id,
                current.brand_id,
                [candidate],
                exclude_id=objective_id,
                **checks,
            )
            result = validate(candidate, context, check_target_date=checks["check_dates"])
            if not result.valid:
                logger.info("Rejected update of objective %s: %s", objective_id, result.codes)
                raise RuleViolationError(result.errors)

        if not updates:
            return current

        change = ObjectiveChange(
            tenant_id=scope.tenant_id,
            brand_id=current.brand_id,
            objective_ids=[objective_id],
            updates=updates,
        )
        await self.synchronizer.mutate(
            self.synchronizer.keys_for_scope(scope.tenant_id, current.brand_id),
            change,
            self.store,
        )

        updated_doc = await self.objectives.find_one({"_id": ObjectId(objective_id)})
        return self._doc_to_objective(updated_doc)

    async def archive_objective(
        self,
        scope: CallerScope,
        objective_id: str,
    ) -> dict:
        """
        Delete an objective by archiving it. Nothing is physically removed.

        Returns:
            Dictionary with archived_count

        Raises:
            ValueError: If objective not found
            RuleViolationError: If objective belongs to another tenant
        """
        existing = await self._get_scoped_doc(scope, objective_id)
        if existing.get("status") == ObjectiveStatus.ARCHIVED.value:
            return {"archived_count": 0}

        await self.update_objective(
            scope,
            objective_id,
            ObjectiveUpdate(status=ObjectiveStatus.ARCHIVED),
        )
        return {"archived_count": 1}

    async def bulk_operation(
        self,
        scope: CallerScope,
        brand_id: str,
        request: BulkOperationRequest,
    ) -> BulkOperationResult:
        """
        Apply one operation to a bounded selection of objectives.

        The whole batch is rejected if any target would make an illegal
        status transition.

        Args:
            scope: Caller scope
            brand_id: Brand the targets belong to
            request: Bulk operation request

        Returns:
            BulkOperationResult

        Raises:
            RuleViolationError: If the plan or any transition is rejected
            ValueError: If a target is not found within the scope
            ExternalCommitError: If the store rejected the change
        """
        extras = request.data.model_dump(exclude_none=True) if request.data else None
        plan = plan_bulk_operation(request.objective_ids, request.operation, extras)
        if not isinstance(plan, BulkPlan):
            logger.info("Rejected bulk %s: %s", request.operation.value, plan.message)
            raise RuleViolationError([plan])

        cursor = self.objectives.find({
            "_id": {"$in": to_object_ids(plan.objective_ids)},
            "tenant_id": scope.tenant_id,
            "brand_id": brand_id,
        })
        docs = await cursor.to_list(length=None)

        found = {str(doc["_id"]): doc for doc in docs}
        missing = [i for i in plan.objective_ids if i not in found]
        if missing:
            raise ValueError(f"{NOT_FOUND}: {', '.join(missing)}")

        requested_status = plan.updates.get("status")
        illegal = []
        for doc in found.values():
            current_status = doc.get("status", ObjectiveStatus.ACTIVE.value)
            if is_status_change(current_status, requested_status):
                outcome = transition(current_status, requested_status)
                if isinstance(outcome, IllegalTransitionError):
                    illegal.append(outcome)
        if illegal:
            logger.info("Rejected bulk %s: %d illegal transition(s)", plan.operation.value, len(illegal))
            raise RuleViolationError(illegal)

        field_updates = {k: v for k, v in plan.updates.items() if k != "status"}
        if field_updates:
            await self._validate_bulk_fields(
                scope, brand_id, [found[i] for i in plan.objective_ids], field_updates,
            )

        change = ObjectiveChange(
            tenant_id=scope.tenant_id,
            brand_id=brand_id,
            objective_ids=plan.objective_ids,
            updates=plan.updates,
        )
        result = await self.synchronizer.mutate(
            self.synchronizer.keys_for_scope(scope.tenant_id, brand_id),
            change,
            self.store,
        )

        return BulkOperationResult(
            operation=plan.operation,
            requested_count=len(plan.objective_ids),
            modified_count=result.store_result.get("modified_count", 0),
            updates=plan.updates,
        )

    async def _validate_bulk_fields(
        self,
        scope: CallerScope,
        brand_id: str,
        docs: list[dict],
        field_updates: dict,
    ) -> None:
        """
        Validate every bulk target as it would look after the field updates.

        Raises:
            RuleViolationError: With each failure prefixed by its target index
        """
        candidates = [
            self._merged_candidate(self._doc_to_objective(doc), field_updates)
            for doc in docs
        ]
        checks = self._edit_checks(field_updates)
        context = await self._load_context(scope.tenant_id, brand_id, candidates, **checks)

        errors = []
        for index, candidate in enumerate(candidates):
            result = validate(candidate, context, check_target_date=checks["check_dates"])
            errors.extend(
                issue.model_copy(update={"field": f"objectives[{index}].{issue.field}"})
                for issue in result.errors
            )

        if errors:
            logger.info("Rejected bulk field update of %d objective(s)", len(docs))
            raise RuleViolationError(errors)

    async def check_duplicate_title(
        self,
        scope: CallerScope,
        brand_id: str,
        title: str,
        threshold: Optional[float] = None,
    ) -> DuplicateCheck:
        """Check a title against the active objectives of a brand."""
        existing = await self.references.get_active_objectives(scope.tenant_id, brand_id)
        return check_duplicate(
            title,
            existing,
            threshold=settings.duplicate_threshold if threshold is None else threshold,
        )
