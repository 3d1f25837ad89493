from __future__ import annotations

from fastapi import APIRouter, Depends

from ..repositories import TaskRepository, get_repository
from ..schemas import SchemaOut

router = APIRouter(
    prefix="/api/schema",
    tags=["schema"],
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=SchemaOut,
    summary="Get Schema",
    description="Describe the database properties so clients can render task forms.",
    responses={
        200: {"description": "Schema retrieved successfully"},
        503: {"description": "The database schema could not be fetched"},
    },
)
def get_schema(repo: TaskRepository = Depends(get_repository)) -> SchemaOut:
    return SchemaOut(**repo.describe_schema())
