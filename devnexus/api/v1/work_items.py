"""Work item routes. Mutations require Admin or Developer and broadcast a work item update."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from devnexus.api.v1.auth import get_current_user, require_roles
from devnexus.core.database import get_db
from devnexus.core.roles import CONTRIBUTOR_ROLES
from devnexus.schemas.auth import CurrentUser
from devnexus.schemas.common import ApiResponse
from devnexus.schemas.devops import WorkItemCreate, WorkItemOut, WorkItemUpdate
from devnexus.schemas.notifications import WorkItemUpdateType
from devnexus.services import devops
from devnexus.services.hub import get_dispatcher
from devnexus.services.notifications import NotificationDispatcher

router = APIRouter()

require_contributor = require_roles(*CONTRIBUTOR_ROLES)


@router.get(
    "",
    response_model=ApiResponse[list[WorkItemOut]],
    dependencies=[Depends(get_current_user)],
)
def list_work_items(
    db: Annotated[Session, Depends(get_db)],
    project_id: Annotated[str | None, Query()] = None,
    type: Annotated[str | None, Query()] = None,
) -> ApiResponse[list[WorkItemOut]]:
    items = devops.list_work_items(db, project_id, type)
    return ApiResponse.ok(
        [WorkItemOut.model_validate(w) for w in items], "Work items retrieved successfully"
    )


@router.get(
    "/{work_item_id}",
    response_model=ApiResponse[WorkItemOut],
    dependencies=[Depends(get_current_user)],
)
def get_work_item(
    work_item_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[WorkItemOut]:
    item = devops.get_work_item(db, work_item_id)
    return ApiResponse.ok(WorkItemOut.model_validate(item), "Work item retrieved successfully")


def _create(db: Session, body: WorkItemCreate) -> WorkItemOut:
    return WorkItemOut.model_validate(devops.create_work_item(db, body))


def _update(db: Session, work_item_id: str, body: WorkItemUpdate) -> tuple[WorkItemOut, str]:
    item, previous_state = devops.update_work_item(db, work_item_id, body)
    return WorkItemOut.model_validate(item), previous_state


@router.post("", response_model=ApiResponse[WorkItemOut], status_code=201)
async def create_work_item(
    body: WorkItemCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_contributor)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[WorkItemOut]:
    item = await run_in_threadpool(_create, db, body)
    await dispatcher.send_work_item_status_update(
        item.id,
        item.title,
        WorkItemUpdateType.CREATED,
        user_id=current_user.id,
        user_name=current_user.username,
    )
    return ApiResponse.ok(item, "Work item created successfully")


@router.put("/{work_item_id}", response_model=ApiResponse[WorkItemOut])
async def update_work_item(
    work_item_id: str,
    body: WorkItemUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_contributor)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[WorkItemOut]:
    """Apply the fields present in the body. A state change is reported as StatusChanged."""
    item, previous_state = await run_in_threadpool(_update, db, work_item_id, body)
    if item.state != previous_state:
        await dispatcher.send_work_item_status_update(
            item.id,
            item.title,
            WorkItemUpdateType.STATUS_CHANGED,
            old_value=previous_state,
            new_value=item.state,
            user_id=current_user.id,
            user_name=current_user.username,
        )
    else:
        await dispatcher.send_work_item_status_update(
            item.id,
            item.title,
            WorkItemUpdateType.UPDATED,
            user_id=current_user.id,
            user_name=current_user.username,
        )
    return ApiResponse.ok(item, "Work item updated successfully")


@router.delete("/{work_item_id}", response_model=ApiResponse[bool])
async def delete_work_item(
    work_item_id: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_contributor)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
) -> ApiResponse[bool]:
    title = await run_in_threadpool(devops.delete_work_item, db, work_item_id)
    await dispatcher.send_work_item_status_update(
        work_item_id,
        title,
        WorkItemUpdateType.DELETED,
        user_id=current_user.id,
        user_name=current_user.username,
    )
    return ApiResponse.ok(True, "Work item deleted successfully")
