"""FastAPI dependencies shared by the movement routes."""

from fastapi import Depends

from config import MovementPolicy, get_movement_policy
from movements.pipeline import MovementPipeline
from movements.quota import QuotaEnforcer
from movements.services import MovementCrudService, MovementStatsService


def get_policy() -> MovementPolicy:
    return get_movement_policy()


def get_movement_pipeline(
    policy: MovementPolicy = Depends(get_policy),
) -> MovementPipeline:
    return MovementPipeline(policy)


def get_quota_enforcer(policy: MovementPolicy = Depends(get_policy)) -> QuotaEnforcer:
    return QuotaEnforcer(policy)


def get_crud_service(policy: MovementPolicy = Depends(get_policy)) -> MovementCrudService:
    return MovementCrudService(policy)


def get_stats_service(
    policy: MovementPolicy = Depends(get_policy),
) -> MovementStatsService:
    return MovementStatsService(policy)
