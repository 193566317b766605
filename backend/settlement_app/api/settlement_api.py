from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from settlement_app.core.errors import SettlementError
from settlement_app.core.orchestrator import SubmissionOrchestrator
from settlement_app.schemas.settlement_contract import (
    DEFAULT_CONTENT_TYPE,
    Attachment,
    ErrorResponse,
    SettlementCreatedResponse,
    SettlementFields,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settlement", tags=["Settlement"])


def get_orchestrator(request: Request) -> SubmissionOrchestrator:
    return request.app.state.orchestrator


async def _read_attachments(uploads: List[UploadFile]) -> List[Attachment]:
    attachments = []
    for up in uploads:
        content = await up.read()
        attachments.append(Attachment(
            filename=up.filename or "attachment",
            content_type=up.content_type or DEFAULT_CONTENT_TYPE,
            content=content,
        ))
        await up.close()
    return attachments


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=SettlementCreatedResponse,
    responses={500: {"model": ErrorResponse}},
)
async def add_settlement(
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
):
    """
    Store the settlement, mail the confirmation, answer 201.
    Folder resolution, Drive upload and the ledger row run after the response.
    """
    try:
        form = await request.form()
        uploads = [f for f in form.getlist("files") if isinstance(f, UploadFile)]
        attachments = await _read_attachments(uploads)
    except Exception as e:
        logger.error("multipart parse failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(message="Error uploading file", error=str(e)).model_dump(),
        )

    fields = SettlementFields.from_form({k: v for k, v in form.items() if not isinstance(v, UploadFile)})

    try:
        record = await orchestrator.submit(fields, attachments)
    except SettlementError as e:
        logger.error("settlement rejected (%s): %s", e.error_class.value, e.reason)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(message="Error processing settlement data", error=e.reason).model_dump(),
        )

    background_tasks.add_task(orchestrator.process_background, record, attachments)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=SettlementCreatedResponse(
            message="Settlement data saved and email sent.",
            data=record.model_dump(by_alias=True),
        ).model_dump(),
        background=background_tasks,
    )
