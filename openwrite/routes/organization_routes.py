"""Organizations (workspaces) and their members."""

import logging
import time
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request, status

from openwrite.database import Database, get_database_instance
from openwrite.schemas.enums import MemberRole
from openwrite.schemas.organization import AddMemberRequest
from openwrite.security.session import (SESSION_ORGANIZATION_KEY, resolve_active_organization,
                                        verify_session)
from openwrite.utils.serialization import serialize_rows
from openwrite.utils.text import slugify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["organizations"])

MANAGER_ROLES = (MemberRole.OWNER.value, MemberRole.ADMIN.value)


def _unique_slug(db: Database, name: str) -> str:
    base = f"{slugify(name)}-{int(time.time() * 1000)}"
    slug, suffix = base, 1
    while db.facade.organization_slug_exists(slug):
        suffix += 1
        slug = f"{base}-{suffix}"
    return slug


def _require_manager(db: Database, user: Dict, organization_id: str) -> Dict:
    """Membership of the caller; 404 for outsiders, 403 for plain members."""
    membership = db.facade.get_membership(user["id"], organization_id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    if membership["role"] not in MANAGER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only owners and admins can manage members"
        )
    return membership


@router.post("/organization/create-personal", status_code=status.HTTP_201_CREATED)
async def create_personal_organization(
    request: Request,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    """Create the caller's first workspace and make it active."""
    if db.facade.get_memberships_for_user(user["id"]):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already has an organization"
        )

    name = f"{user['name']}'s Workspace"
    organization = db.facade.create_organization(name, _unique_slug(db, user["name"]), user["id"])
    request.session[SESSION_ORGANIZATION_KEY] = organization["id"]
    return {"success": True, "id": organization["id"], "organization": organization}


@router.get("/organizations")
async def list_organizations(
    request: Request,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    active = resolve_active_organization(request, user["id"], db)
    memberships = db.facade.get_memberships_for_user(user["id"])
    return {
        "organizations": serialize_rows(memberships),
        "activeOrganizationId": active["id"] if active else None
    }


@router.post("/organizations/{organization_id}/activate")
async def activate_organization(
    organization_id: str,
    request: Request,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    if db.facade.get_membership(user["id"], organization_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    request.session[SESSION_ORGANIZATION_KEY] = organization_id
    return {"success": True, "activeOrganizationId": organization_id}


@router.get("/organizations/{organization_id}/members")
async def list_members(
    organization_id: str,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    if db.facade.get_membership(user["id"], organization_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return {"members": serialize_rows(db.facade.list_members(organization_id))}


@router.post("/organizations/{organization_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    organization_id: str,
    payload: AddMemberRequest,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    """Add an existing user to the organization by email."""
    membership = _require_manager(db, user, organization_id)
    if payload.role == MemberRole.OWNER.value and membership["role"] != MemberRole.OWNER.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only owners can add owners")

    invitee = db.facade.get_user_by_email(payload.email)
    if invitee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if db.facade.get_membership(invitee["id"], organization_id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a member")

    member_id = db.facade.add_member(organization_id, invitee["id"], payload.role)
    logger.info(f"Added user {invitee['id']} to organization {organization_id} as {payload.role}")
    return {"success": True, "id": member_id}


@router.delete("/organizations/{organization_id}/members/{member_id}")
async def remove_member(
    organization_id: str,
    member_id: str,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    membership = _require_manager(db, user, organization_id)

    member = db.facade.get_member(organization_id, member_id)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    if member["role"] == MemberRole.OWNER.value and membership["role"] != MemberRole.OWNER.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only owners can remove owners")
    if member["role"] == MemberRole.OWNER.value and db.facade.count_owners(organization_id) <= 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove the last owner of an organization"
        )

    db.facade.delete_member(organization_id, member_id)
    return {"success": True}
