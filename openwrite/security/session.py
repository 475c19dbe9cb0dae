"""Session-backed request dependencies: current user, active organization, project scope."""

import logging
from typing import Dict, Optional

from fastapi import Depends, HTTPException, Request, status

from openwrite.database import Database, get_database_instance

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_ORGANIZATION_KEY = "active_organization_id"


def start_session(request: Request, user_id: str):
    request.session.clear()
    request.session[SESSION_USER_KEY] = user_id


def get_optional_user(request: Request, db: Database = Depends(get_database_instance)) -> Optional[Dict]:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    user = db.facade.get_user_by_id(user_id)
    if user is None:
        # The user was deleted while the cookie was still valid
        request.session.clear()
    return user


def verify_session(user: Optional[Dict] = Depends(get_optional_user)) -> Dict:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return user


def resolve_active_organization(request: Request, user_id: str, db: Database) -> Optional[Dict]:
    """
    The organization whose projects the caller works in.

    The organization stored in the session wins while the user is still a
    member of it; otherwise the user's oldest membership is used.
    """
    memberships = db.facade.get_memberships_for_user(user_id)
    if not memberships:
        return None

    chosen_id = request.session.get(SESSION_ORGANIZATION_KEY)
    for membership in memberships:
        if membership["id"] == chosen_id:
            return membership

    if chosen_id:
        logger.debug(f"User {user_id} is no longer a member of {chosen_id}, falling back")
    request.session[SESSION_ORGANIZATION_KEY] = memberships[0]["id"]
    return memberships[0]


def get_active_organization(
    request: Request,
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
) -> Optional[Dict]:
    return resolve_active_organization(request, user["id"], db)


def require_active_organization(organization: Optional[Dict] = Depends(get_active_organization)) -> Dict:
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active organization. Create a workspace first."
        )
    return organization


def verify_project_access(
    project_id: str,
    organization: Dict = Depends(require_active_organization),
    db: Database = Depends(get_database_instance)
) -> Dict:
    """Load a project of the active organization or fail with 404."""
    project = db.facade.get_project(project_id, organization_id=organization["id"])
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found"
        )
    return project
