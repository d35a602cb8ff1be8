"""Assignment rule endpoints — list, create, update, toggle, delete."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.manage_rules import ManageRulesUseCase, RuleNotFoundError
from app.domain.entities.assignment_rule import AssignmentRule
from app.domain.value_objects.enums import FallbackAction
from app.domain.value_objects.scores import ScoreWeights
from app.infrastructure.api.dependencies import get_manage_rules_uc

router = APIRouter(prefix="/assignment-rules", tags=["assignment-rules"])

# ── Request schemas ─────────────────────────────────────────────────


class RuleWeights(BaseModel):
    availability: float = Field(default=30, ge=0)
    specialization: float = Field(default=25, ge=0)
    proximity: float = Field(default=20, ge=0)
    workload: float = Field(default=15, ge=0)
    performance: float = Field(default=10, ge=0)

    @model_validator(mode="after")
    def _not_all_zero(self) -> RuleWeights:
        if not any(self.model_dump().values()):
            raise ValueError("At least one weight must be greater than zero")
        return self


class RuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    is_active: bool = True
    priority: int = 0
    weights: RuleWeights = Field(default_factory=RuleWeights)
    max_distance_km: float | None = Field(default=None, gt=0)
    require_specialization_match: bool = False
    respect_max_concurrent_orders: bool = True
    allowed_locations: list[int] = Field(default_factory=list)
    allowed_service_categories: list[int] = Field(default_factory=list)
    priority_levels: list[str] = Field(default_factory=list)
    fallback_action: FallbackAction = FallbackAction.QUEUE
    fallback_user_id: int | None = None


# PATCH fields that may be omitted but never cleared with null
NON_NULLABLE_FIELDS = frozenset({
    "name",
    "is_active",
    "priority",
    "weights",
    "require_specialization_match",
    "respect_max_concurrent_orders",
    "fallback_action",
})


class RuleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    is_active: bool | None = None
    priority: int | None = None
    weights: RuleWeights | None = None
    max_distance_km: float | None = Field(default=None, gt=0)
    require_specialization_match: bool | None = None
    respect_max_concurrent_orders: bool | None = None
    allowed_locations: list[int] | None = None
    allowed_service_categories: list[int] | None = None
    priority_levels: list[str] | None = None
    fallback_action: FallbackAction | None = None
    fallback_user_id: int | None = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> RuleUpdate:
        nulls = sorted(
            name for name in self.model_fields_set & NON_NULLABLE_FIELDS
            if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class RuleToggle(BaseModel):
    is_active: bool


# ── Endpoints ───────────────────────────────────────────────────────


@router.get("")
async def list_rules(uc: ManageRulesUseCase = Depends(get_manage_rules_uc)):
    """All rules, highest priority first."""
    rules = await uc.list_rules()
    return {"total": len(rules), "rules": [_rule_to_dict(r) for r in rules]}


@router.get("/{rule_id}")
async def get_rule(rule_id: int, uc: ManageRulesUseCase = Depends(get_manage_rules_uc)):
    try:
        return _rule_to_dict(await uc.get_rule(rule_id))
    except RuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", status_code=201)
async def create_rule(
    body: RuleCreate,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
    session: AsyncSession = Depends(get_session),
):
    data = body.model_dump(exclude={"weights"})
    rule = AssignmentRule(id=None, weights=ScoreWeights(**body.weights.model_dump()), **data)
    try:
        saved = await uc.create_rule(rule)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await session.commit()
    return _rule_to_dict(saved)


@router.patch("/{rule_id}")
async def update_rule(
    rule_id: int,
    body: RuleUpdate,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
    session: AsyncSession = Depends(get_session),
):
    changes = body.model_dump(exclude_unset=True)
    try:
        if "weights" in changes:
            current = await uc.get_rule(rule_id)
            merged = {**current.weights.as_dict(), **changes["weights"]}
            changes["weights"] = ScoreWeights(**merged)
        for list_field in ("allowed_locations", "allowed_service_categories", "priority_levels"):
            if list_field in changes and changes[list_field] is None:
                changes[list_field] = []
        saved = await uc.update_rule(rule_id, **changes)
    except RuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await session.commit()
    return _rule_to_dict(saved)


@router.post("/{rule_id}/toggle")
async def toggle_rule(
    rule_id: int,
    body: RuleToggle,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
    session: AsyncSession = Depends(get_session),
):
    try:
        saved = await uc.set_active(rule_id, body.is_active)
    except RuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    await session.commit()
    return _rule_to_dict(saved)


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: int,
    uc: ManageRulesUseCase = Depends(get_manage_rules_uc),
    session: AsyncSession = Depends(get_session),
):
    try:
        await uc.delete_rule(rule_id)
    except RuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    await session.commit()


def _rule_to_dict(r: AssignmentRule) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "is_active": r.is_active,
        "priority": r.priority,
        "weights": r.weights.as_dict(),
        "max_distance_km": r.max_distance_km,
        "require_specialization_match": r.require_specialization_match,
        "respect_max_concurrent_orders": r.respect_max_concurrent_orders,
        "allowed_locations": r.allowed_locations,
        "allowed_service_categories": r.allowed_service_categories,
        "priority_levels": r.priority_levels,
        "fallback_action": r.fallback_action.value,
        "fallback_user_id": r.fallback_user_id,
        "execution_count": r.execution_count,
        "last_executed_at": r.last_executed_at.isoformat() if r.last_executed_at else None,
    }
