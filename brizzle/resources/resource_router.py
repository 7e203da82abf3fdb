from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_context import AuthContext, get_principal, require_teacher
from brizzle.database import get_db
from brizzle.resources import resource_service as service
from brizzle.resources.schemas import ResourceCreate, ResourceUpdate

router = APIRouter(prefix="/resources", tags=["Resources"])


@router.post("", status_code=201)
async def create_resource(
    data: ResourceCreate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.create_resource(db, teacher, {**data.model_dump(), "content": data.content})


@router.get("")
async def list_resources(
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Resources created by the current teacher, newest first
    """
    return await service.list_resources(db, teacher)


@router.get("/{resource_id}")
async def get_resource(
    resource_id: str,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_resource(db, teacher, resource_id)


@router.put("/{resource_id}")
async def update_resource(
    resource_id: str,
    data: ResourceUpdate,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.update_resource(db, teacher, resource_id, {**data.model_dump(), "content": data.content})


@router.delete("/{resource_id}")
async def delete_resource(
    resource_id: str,
    teacher: AuthContext = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    await service.delete_resource(db, teacher, resource_id)
    return {"success": True}


@router.get("/{resource_id}/view")
async def view_resource(
    resource_id: str,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Read-only view for the owner or a student with the resource assigned
    """
    return await service.view_resource(db, principal, resource_id)
