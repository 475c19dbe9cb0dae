import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from openwrite.database import Database, get_database_instance
from openwrite.schemas.writing_session import WritingSessionEnd, WritingSessionStart
from openwrite.security.session import verify_project_access, verify_session
from openwrite.utils.serialization import serialize_row, serialize_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}/writing-sessions", tags=["writing-sessions"])


@router.get("")
async def list_writing_sessions(
    project: Dict = Depends(verify_project_access),
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    """The caller's sessions on this project, most recent first."""
    sessions = db.facade.list_writing_sessions(project["id"], user["id"])
    return {"sessions": serialize_rows(sessions)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def start_writing_session(
    payload: WritingSessionStart,
    project: Dict = Depends(verify_project_access),
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    session_id = db.facade.create_writing_session(project["id"], user["id"], payload.model_dump())
    return {"success": True, "id": session_id}


@router.put("/{session_id}")
async def end_writing_session(
    session_id: str,
    payload: WritingSessionEnd,
    project: Dict = Depends(verify_project_access),
    user: Dict = Depends(verify_session),
    db: Database = Depends(get_database_instance)
):
    """Close a session and credit the words written to the project."""
    session = db.facade.end_writing_session(
        project["id"], user["id"], session_id, payload.words_written, payload.time_spent)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Writing session not found")
    logger.info(f"User {user['id']} wrote {payload.words_written} words in project {project['id']}")
    return {"success": True, "session": serialize_row(session)}
