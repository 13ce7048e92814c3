"""Script registry endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Response, status

from script_registry.interfaces.http.deps import get_preview_service, get_script_service
from script_registry.modules.scripts import (
    UNSET,
    ScriptCreateInput,
    ScriptDeleteError,
    ScriptExecutionError,
    ScriptListQuery,
    ScriptNotFoundError,
    ScriptPage,
    ScriptPreviewService,
    ScriptService,
    ScriptUpdateInput,
    ScriptValidationError,
)
from script_registry.modules.scripts.exceptions import REQUIRED_MESSAGE
from script_registry.schemas import (
    PaginationMeta,
    ScriptCreate,
    ScriptListResponse,
    ScriptPreviewResponse,
    ScriptResponse,
    ScriptUpdate,
    ScriptVersionListResponse,
    ScriptVersionResponse,
)

router = APIRouter()


def _to_list_response(page: ScriptPage) -> ScriptListResponse:
    return ScriptListResponse(
        data=[ScriptResponse.model_validate(script) for script in page.scripts],
        meta=PaginationMeta(
            total=page.total,
            count=page.count,
            per_page=page.per_page,
            current_page=page.current_page,
            last_page=page.last_page,
            from_=page.first_item,
            to=page.last_item,
            filter=page.filter,
            sort_by=page.sort_by,
            sort_order=page.sort_order,
        ),
    )


@router.get("", response_model=ScriptListResponse, summary="List scripts")
async def list_scripts(
    page: int = 1,
    per_page: int = 0,
    order_by: Optional[str] = None,
    order_direction: str = "ASC",
    filter: str = "",
    service: ScriptService = Depends(get_script_service),
):
    result = await service.list_scripts(
        ScriptListQuery(
            page=page,
            per_page=per_page,
            filter=filter,
            order_by=order_by,
            order_direction=order_direction,
        )
    )
    return _to_list_response(result)


@router.post(
    "",
    response_model=ScriptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a script",
)
async def create_script(payload: ScriptCreate, service: ScriptService = Depends(get_script_service)):
    script = await service.create_script(
        ScriptCreateInput(
            title=payload.title,
            language=payload.language,
            code=payload.code,
            description=payload.description,
            key=payload.key,
        )
    )
    return ScriptResponse.model_validate(script)


@router.post("/preview", response_model=ScriptPreviewResponse, summary="Run script code once")
@router.post("/preview/", response_model=ScriptPreviewResponse, include_in_schema=False)
async def preview_script(
    code: Optional[str] = Query(None),
    language: Optional[str] = Query(None),
    data: Optional[str] = Query(None),
    config: Optional[str] = Query(None),
    form_code: Optional[str] = Form(None, alias="code"),
    form_language: Optional[str] = Form(None, alias="language"),
    form_data: Optional[str] = Form(None, alias="data"),
    form_config: Optional[str] = Form(None, alias="config"),
    service: ScriptPreviewService = Depends(get_preview_service),
):
    # query string wins, form body fills the gaps
    code = code if code is not None else form_code
    language = language if language is not None else form_language
    data = data if data is not None else form_data
    config = config if config is not None else form_config

    errors = {
        field: [REQUIRED_MESSAGE.format(field=field)]
        for field, value in (("code", code), ("language", language))
        if not value or not value.strip()
    }
    if errors:
        raise ScriptValidationError(errors)

    try:
        output = await service.preview(code=code, language=language, data=data, config=config)
    except ScriptExecutionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return ScriptPreviewResponse(output=output)


@router.get("/{script_id}", response_model=ScriptResponse, summary="Get a script")
async def get_script(script_id: int, service: ScriptService = Depends(get_script_service)):
    try:
        script = await service.get_script(script_id)
    except ScriptNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found.") from exc
    return ScriptResponse.model_validate(script)


@router.get(
    "/{script_id}/versions",
    response_model=ScriptVersionListResponse,
    summary="List the version history of a script",
)
async def list_script_versions(script_id: int, service: ScriptService = Depends(get_script_service)):
    try:
        versions = await service.list_versions(script_id)
    except ScriptNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found.") from exc
    return ScriptVersionListResponse(
        data=[ScriptVersionResponse.model_validate(version) for version in versions]
    )


@router.put(
    "/{script_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Update a script by appending a new version",
)
async def update_script(
    script_id: int,
    payload: ScriptUpdate,
    service: ScriptService = Depends(get_script_service),
):
    fields = payload.model_fields_set
    try:
        receipt = await service.update_script(
            script_id,
            ScriptUpdateInput(
                title=payload.title if "title" in fields else UNSET,
                language=payload.language if "language" in fields else UNSET,
                code=payload.code if "code" in fields else UNSET,
                description=payload.description if "description" in fields else UNSET,
            ),
        )
    except ScriptNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found.") from exc
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers={
            "X-Script-Id": str(receipt.script_id),
            "X-Version-Id": str(receipt.version_id),
        },
    )


@router.delete(
    "/{script_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a script and its history",
)
async def delete_script(script_id: int, service: ScriptService = Depends(get_script_service)):
    try:
        await service.delete_script(script_id)
    except ScriptDeleteError as exc:
        raise HTTPException(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            detail="The script does not exist.",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
