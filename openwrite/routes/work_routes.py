"""Works of a project and the chapters of each work."""

import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from openwrite.database import Database, get_database_instance
from openwrite.schemas.project import ChapterCreate, ChapterUpdate, WorkCreate, WorkUpdate
from openwrite.security.session import verify_project_access
from openwrite.utils.serialization import serialize_row, serialize_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}/works", tags=["works"])


def get_work_or_404(
    work_id: str,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
) -> Dict:
    work = db.facade.get_work(project["id"], work_id)
    if work is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Work not found")
    return work


# Works

@router.get("")
async def list_works(
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    return {"works": serialize_rows(db.facade.list_works(project["id"]))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_work(
    payload: WorkCreate,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    work_id = db.facade.create_work(project["id"], payload.model_dump())
    return {"success": True, "id": work_id}


@router.get("/{work_id}")
async def get_work(work: Dict = Depends(get_work_or_404)):
    return {"work": serialize_row(work)}


@router.put("/{work_id}")
async def update_work(
    payload: WorkUpdate,
    work: Dict = Depends(get_work_or_404),
    db: Database = Depends(get_database_instance)
):
    db.facade.update_work(work["project_id"], work["id"], payload.model_dump(exclude_unset=True))
    return {"success": True}


@router.delete("/{work_id}")
async def delete_work(
    work: Dict = Depends(get_work_or_404),
    db: Database = Depends(get_database_instance)
):
    db.facade.delete_work(work["project_id"], work["id"])
    return {"success": True}


# Chapters

@router.get("/{work_id}/chapters")
async def list_chapters(
    work: Dict = Depends(get_work_or_404),
    db: Database = Depends(get_database_instance)
):
    return {"chapters": serialize_rows(db.facade.list_chapters(work["id"]))}


@router.post("/{work_id}/chapters", status_code=status.HTTP_201_CREATED)
async def create_chapter(
    payload: ChapterCreate,
    work: Dict = Depends(get_work_or_404),
    db: Database = Depends(get_database_instance)
):
    chapter_id = db.facade.create_chapter(work["id"], payload.model_dump())
    return {"success": True, "id": chapter_id}


@router.get("/{work_id}/chapters/{chapter_id}")
async def get_chapter(
    chapter_id: str,
    work: Dict = Depends(get_work_or_404),
    db: Database = Depends(get_database_instance)
):
    chapter = db.facade.get_chapter(work["id"], chapter_id)
    if chapter is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chapter not found")
    return {"chapter": serialize_row(chapter)}


@router.put("/{work_id}/chapters/{chapter_id}")
async def update_chapter(
    chapter_id: str,
    payload: ChapterUpdate,
    work: Dict = Depends(get_work_or_404),
    db: Database = Depends(get_database_instance)
):
    if not db.facade.update_chapter(work["id"], chapter_id, payload.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chapter not found")
    return {"success": True}


@router.delete("/{work_id}/chapters/{chapter_id}")
async def delete_chapter(
    chapter_id: str,
    work: Dict = Depends(get_work_or_404),
    db: Database = Depends(get_database_instance)
):
    if not db.facade.delete_chapter(work["id"], chapter_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chapter not found")
    return {"success": True}
