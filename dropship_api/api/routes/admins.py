"""Admin account routes."""

from fastapi import APIRouter, status

from dropship_api.core.rbac import RequireStaff, RequireSuperadmin
from dropship_api.db.mongo import ReadyStore
from dropship_api.schemas.admin import AdminCreate, AdminEnvelope, AdminList, AdminResponse
from dropship_api.services import admin_service

router = APIRouter()


@router.post("", response_model=AdminEnvelope, status_code=status.HTTP_201_CREATED)
async def create_admin(payload: AdminCreate, current_user: RequireSuperadmin, store: ReadyStore):
    """Provision an admin (or superadmin) account. Superadmin only."""
    admin = await admin_service.provision_admin(store, payload, current_user)
    return AdminEnvelope(admin=AdminResponse.from_document(admin))


@router.get("", response_model=AdminList)
async def get_admins(current_user: RequireStaff, store: ReadyStore):
    """List admin profiles, newest first."""
    admins = await admin_service.list_admins(store.admins)
    return AdminList(admins=[AdminResponse.from_document(a) for a in admins])
