"""Pipeline and pipeline-run routes. Triggering a run notifies the pipeline's subscribers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from devnexus.api.v1.auth import get_current_user, require_roles
from devnexus.core.database import get_db
from devnexus.core.roles import CONTRIBUTOR_ROLES
from devnexus.schemas.auth import CurrentUser
from devnexus.schemas.common import ApiResponse
from devnexus.schemas.devops import PipelineOut, PipelineRunOut, TriggerPipelineRequest
from devnexus.services import devops
from devnexus.services.hub import get_dispatcher
from devnexus.services.notifications import NotificationDispatcher

router = APIRouter()


@router.get(
    "",
    response_model=ApiResponse[list[PipelineOut]],
    dependencies=[Depends(get_current_user)],
)
def list_pipelines(
    db: Annotated[Session, Depends(get_db)],
    project_id: Annotated[str | None, Query()] = None,
) -> ApiResponse[list[PipelineOut]]:
    pipelines = devops.list_pipelines(db, project_id)
    return ApiResponse.ok(
        [PipelineOut.model_validate(p) for p in pipelines], "Pipelines retrieved successfully"
    )


@router.get(
    "/{pipeline_id}",
    response_model=ApiResponse[PipelineOut],
    dependencies=[Depends(get_current_user)],
)
def get_pipeline(
    pipeline_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[PipelineOut]:
    pipeline = devops.get_pipeline(db, pipeline_id)
    return ApiResponse.ok(PipelineOut.model_validate(pipeline), "Pipeline retrieved successfully")


@router.get(
    "/{pipeline_id}/runs",
    response_model=ApiResponse[list[PipelineRunOut]],
    dependencies=[Depends(get_current_user)],
)
def list_pipeline_runs(
    pipeline_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[list[PipelineRunOut]]:
    runs = devops.list_pipeline_runs(db, pipeline_id)
    return ApiResponse.ok(
        [PipelineRunOut.model_validate(r) for r in runs], "Pipeline runs retrieved successfully"
    )


@router.get(
    "/{pipeline_id}/runs/{run_id}",
    response_model=ApiResponse[PipelineRunOut],
    dependencies=[Depends(get_current_user)],
)
def get_pipeline_run(
    pipeline_id: str,
    run_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[PipelineRunOut]:
    run = devops.get_pipeline_run(db, pipeline_id, run_id)
    return ApiResponse.ok(PipelineRunOut.model_validate(run), "Pipeline run retrieved successfully")


def _trigger(
    db: Session,
    pipeline_id: str,
    parameters: dict[str, str],
    triggered_by: str,
) -> tuple[PipelineRunOut, str]:
    run = devops.trigger_pipeline_run(db, pipeline_id, parameters, triggered_by)
    return PipelineRunOut.model_validate(run), run.pipeline.name


@router.post("/{pipeline_id}/runs", response_model=ApiResponse[PipelineRunOut])
async def trigger_pipeline(
    pipeline_id: str,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_roles(*CONTRIBUTOR_ROLES))],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_dispatcher)],
    body: TriggerPipelineRequest | None = None,
) -> ApiResponse[PipelineRunOut]:
    """
    Start a run (Admin or Developer). Subscribers of the pipeline get one
    ReceivePipelineUpdate carrying the run status; delivery failure does not fail the request.
    """
    parameters = body.parameters if body is not None else {}
    run, pipeline_name = await run_in_threadpool(
        _trigger, db, pipeline_id, parameters, current_user.username
    )
    await dispatcher.send_pipeline_status_update(
        pipeline_id,
        status=run.status,
        result=run.result,
        build_number=run.name,
        pipeline_name=pipeline_name,
        user_id=current_user.id,
        user_name=current_user.username,
    )
    return ApiResponse.ok(run, "Pipeline triggered successfully")
