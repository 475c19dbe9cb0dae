"""
Codex routes: characters, locations, lore and plot points of a project.

The four resources share one shape, so their routes are generated from
CODEX_RESOURCES. Entries are owned by the project, or by one of its works
when the body carries ``workId``.
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from openwrite.database import Database, get_database_instance
from openwrite.schemas.codex import (CharacterCreate, CharacterUpdate, LocationCreate, LocationUpdate,
                                     LoreCreate, LoreUpdate, PlotPointCreate, PlotPointUpdate)
from openwrite.security.session import verify_project_access
from openwrite.utils.serialization import serialize_row, serialize_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}", tags=["codex"])

# kind, url segment, list key, item key, create body, update body
CODEX_RESOURCES = (
    ("character", "characters", "characters", "character", CharacterCreate, CharacterUpdate),
    ("location", "locations", "locations", "location", LocationCreate, LocationUpdate),
    ("lore", "lore", "lore", "lore", LoreCreate, LoreUpdate),
    ("plot_point", "plot-points", "plotPoints", "plotPoint", PlotPointCreate, PlotPointUpdate),
)


def _register_codex_routes(kind, segment, list_key, item_key, create_model, update_model):
    label = kind.replace("_", " ")
    not_found = f"{label.capitalize()} not found"

    @router.get(f"/{segment}", name=f"list_{kind}")
    async def list_entries(
        work_id: Optional[str] = Query(None, alias="workId"),
        project: Dict = Depends(verify_project_access),
        db: Database = Depends(get_database_instance)
    ):
        entries = db.facade.list_codex_entries(kind, project["id"], work_id=work_id)
        return {list_key: serialize_rows(entries)}

    @router.post(f"/{segment}", name=f"create_{kind}", status_code=status.HTTP_201_CREATED)
    async def create_entry(
        payload: create_model,
        project: Dict = Depends(verify_project_access),
        db: Database = Depends(get_database_instance)
    ):
        entry_id = db.facade.create_codex_entry(kind, project["id"], payload.model_dump())
        logger.debug(f"Created {label} {entry_id} in project {project['id']}")
        return {"success": True, "id": entry_id}

    @router.get(f"/{segment}/{{entry_id}}", name=f"get_{kind}")
    async def get_entry(
        entry_id: str,
        project: Dict = Depends(verify_project_access),
        db: Database = Depends(get_database_instance)
    ):
        entry = db.facade.get_codex_entry(kind, project["id"], entry_id)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        return {item_key: serialize_row(entry)}

    @router.put(f"/{segment}/{{entry_id}}", name=f"update_{kind}")
    async def update_entry(
        entry_id: str,
        payload: update_model,
        project: Dict = Depends(verify_project_access),
        db: Database = Depends(get_database_instance)
    ):
        if db.facade.get_codex_entry(kind, project["id"], entry_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        db.facade.update_codex_entry(kind, project["id"], entry_id, payload.model_dump(exclude_unset=True))
        return {"success": True}

    @router.delete(f"/{segment}/{{entry_id}}", name=f"delete_{kind}")
    async def delete_entry(
        entry_id: str,
        project: Dict = Depends(verify_project_access),
        db: Database = Depends(get_database_instance)
    ):
        if not db.facade.delete_codex_entry(kind, project["id"], entry_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        return {"success": True}


for resource in CODEX_RESOURCES:
    _register_codex_routes(*resource)
