"""Project CRUD, scoped to the caller's active organization."""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from openwrite.database import Database, get_database_instance
from openwrite.schemas.project import ProjectCreate, ProjectUpdate
from openwrite.security.session import (get_active_organization, require_active_organization,
                                        verify_project_access, verify_session)
from openwrite.utils.serialization import serialize_row, serialize_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _require_owner(project: Dict, user: Dict):
    if project["owner_id"] != user["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the project owner can modify this project"
        )


@router.get("")
async def list_projects(
    organization: Optional[Dict] = Depends(get_active_organization),
    db: Database = Depends(get_database_instance)
):
    if organization is None:
        return {"projects": [], "needsOrganization": True}
    return {"projects": serialize_rows(db.facade.list_projects(organization["id"]))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    user: Dict = Depends(verify_session),
    organization: Dict = Depends(require_active_organization),
    db: Database = Depends(get_database_instance)
):
    project_id = db.facade.create_project(user["id"], organization["id"], payload.model_dump())
    return {"success": True, "id": project_id}


@router.get("/{project_id}")
async def get_project(project: Dict = Depends(verify_project_access)):
    return {"project": serialize_row(project)}


@router.put("/{project_id}")
async def update_project(
    payload: ProjectUpdate,
    project: Dict = Depends(verify_project_access),
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    _require_owner(project, user)
    db.facade.update_project(project["id"], payload.model_dump(exclude_unset=True))
    return {"success": True}


@router.delete("/{project_id}")
async def delete_project(
    project: Dict = Depends(verify_project_access),
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    _require_owner(project, user)
    db.facade.delete_project(project["id"])
    logger.info(f"User {user['id']} deleted project {project['id']}")
    return {"success": True}
