"""Menu upload, editing and import routes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile

from menu_import.config import settings
from menu_import.editor import EditModeError, EditorError, reduce
from menu_import.editor.actions import EditActionRequest
from menu_import.editor.grouping import build_category_groups, count_by_type
from menu_import.editor.state import cancel_edit, enter_edit_mode, save_edits
from menu_import.schemas import (
    EditorSessionResponse,
    ImportCommitRequest,
    ImportCommitResponse,
    ItemTypeFilter,
    MenuSummary,
    SessionImportRequest,
    SessionImportResponse,
)
from menu_import.services.editor_session import EditorSessionRecord, EditorSessionService
from menu_import.services.extraction import ExtractionError, MenuExtractionService
from menu_import.services.importer import (
    ImportFailedError,
    ImportFinalizer,
    ImportInProgressError,
    ImportSessionNotFoundError,
    ImportValidationError,
)
from menu_import.services.menu_store import MenuNotFoundError, MenuStoreError, MenuStoreService
from menu_import.validators import check_upload_file, describe_file_type

router = APIRouter(prefix="/menu", tags=["menu"])

logger = logging.getLogger(__name__)

_extraction_service = MenuExtractionService()
_session_service = EditorSessionService()
_menu_store = MenuStoreService()
_import_finalizer = ImportFinalizer(_session_service, _menu_store)

_EXTRACTION_TIMEOUT_SECONDS = float(settings.extraction_timeout_seconds)
_SESSION_EXPIRED_DETAIL = "Editor session expired. Please upload the menu again."
_WRONG_RESTAURANT_DETAIL = "This editor session belongs to a different restaurant."


def get_extraction_service() -> MenuExtractionService:
    return _extraction_service


def get_session_service() -> EditorSessionService:
    return _session_service


def get_menu_store() -> MenuStoreService:
    return _menu_store


def get_import_finalizer() -> ImportFinalizer:
    return _import_finalizer


@router.post("/upload", response_model=EditorSessionResponse)
async def upload_menu(
    files: List[UploadFile] = File(...),
    restaurant_id: str = Form(...),
    session_id: str | None = Form(default=None),
    extraction_service: MenuExtractionService = Depends(get_extraction_service),
    session_service: EditorSessionService = Depends(get_session_service),
) -> EditorSessionResponse:
    """Validate a single menu document, extract it and open an editor session.

    Passing ``session_id`` replaces that session's result instead of opening a
    new session.
    """

    if len(files) != 1:
        raise HTTPException(status_code=400, detail="Please upload only one file at a time.")

    upload = files[0]
    # Reject oversized files before reading them into memory.
    if upload.size is not None:
        _check_upload(upload, upload.size)
    raw = await upload.read()
    _check_upload(upload, len(raw))

    await session_service.purge_expired()

    if session_id:
        existing = await session_service.describe(session_id)
        if existing is None:
            raise HTTPException(status_code=404, detail=_SESSION_EXPIRED_DETAIL)
        if existing.restaurant_id != restaurant_id:
            raise HTTPException(status_code=400, detail=_WRONG_RESTAURANT_DETAIL)

    filename = upload.filename or "menu"
    try:
        parse_result = await asyncio.wait_for(
            extraction_service.extract(
                raw,
                filename,
                upload.content_type or "application/octet-stream",
                restaurant_id=restaurant_id,
            ),
            timeout=_EXTRACTION_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as exc:
        logger.warning(
            "Menu extraction timed out after %s seconds", _EXTRACTION_TIMEOUT_SECONDS
        )
        raise HTTPException(
            status_code=504,
            detail="Menu processing took too long. Please try again.",
        ) from exc
    except ExtractionError as exc:
        logger.warning("Menu extraction failed for %s: %s", filename, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    file_type = describe_file_type(filename)
    if session_id:
        try:
            record = await session_service.replace_result(
                session_id, parse_result, file_type=file_type
            )
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=_SESSION_EXPIRED_DETAIL) from exc
    else:
        record = await session_service.create_session(
            restaurant_id, parse_result, file_type=file_type
        )
    return _session_response(record)


@router.get("/session/{session_id}", response_model=EditorSessionResponse)
async def get_editor_session(
    session_id: str,
    item_type: ItemTypeFilter = Query(default="all"),
    session_service: EditorSessionService = Depends(get_session_service),
) -> EditorSessionResponse:
    record = await _load_session(session_service, session_id)
    return _session_response(record, item_type)


@router.post("/session/{session_id}/edit", response_model=EditorSessionResponse)
async def enter_edit(
    session_id: str,
    session_service: EditorSessionService = Depends(get_session_service),
) -> EditorSessionResponse:
    record = await _load_session(session_service, session_id, require_result=True)
    record = await session_service.save(
        replace(record, state=enter_edit_mode(record.state, record.parse_result))
    )
    return _session_response(record)


@router.post("/session/{session_id}/save", response_model=EditorSessionResponse)
async def save_edit(
    session_id: str,
    session_service: EditorSessionService = Depends(get_session_service),
) -> EditorSessionResponse:
    record = await _load_session(session_service, session_id, require_result=True)
    try:
        parse_result, state = save_edits(record.state, record.parse_result)
    except EditModeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    record = await session_service.save(replace(record, parse_result=parse_result, state=state))
    return _session_response(record)


@router.post("/session/{session_id}/cancel", response_model=EditorSessionResponse)
async def cancel_editing(
    session_id: str,
    session_service: EditorSessionService = Depends(get_session_service),
) -> EditorSessionResponse:
    record = await _load_session(session_service, session_id, require_result=True)
    record = await session_service.save(
        replace(record, state=cancel_edit(record.state, record.parse_result))
    )
    return _session_response(record)


@router.post("/session/{session_id}/actions", response_model=EditorSessionResponse)
async def apply_edit_action(
    session_id: str,
    payload: EditActionRequest,
    item_type: ItemTypeFilter = Query(default="all"),
    session_service: EditorSessionService = Depends(get_session_service),
) -> EditorSessionResponse:
    action = payload.action
    record = await _load_session(session_service, session_id, require_result=True)
    try:
        state = reduce(record.state, action)
    except EditModeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except EditorError as exc:
        logger.info("Rejected %s on session %s: %s", action.type, session_id, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    record = await session_service.save(replace(record, state=state))
    return _session_response(record, item_type)


@router.delete("/session/{session_id}", status_code=204)
async def delete_editor_session(
    session_id: str,
    session_service: EditorSessionService = Depends(get_session_service),
) -> Response:
    await session_service.delete(session_id)
    return Response(status_code=204)


@router.get("/restaurants/{restaurant_id}/menus", response_model=List[MenuSummary])
async def list_existing_menus(
    restaurant_id: str,
    menu_store: MenuStoreService = Depends(get_menu_store),
) -> List[MenuSummary]:
    return await menu_store.list_menus(restaurant_id)


@router.post("/session/{session_id}/import", response_model=SessionImportResponse)
async def import_session(
    session_id: str,
    payload: SessionImportRequest,
    finalizer: ImportFinalizer = Depends(get_import_finalizer),
) -> SessionImportResponse:
    try:
        outcome = await finalizer.finalize(session_id, payload.restaurant_id, payload.target)
    except ImportValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ImportSessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=_SESSION_EXPIRED_DETAIL) from exc
    except ImportInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ImportFailedError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return SessionImportResponse(
        imported_items=outcome.result.imported_items,
        menu_id=outcome.result.menu_id,
        menu_name=outcome.result.menu_name,
        existing_menus=outcome.existing_menus,
    )


@router.post("/import", response_model=ImportCommitResponse)
async def import_clean_menu(
    payload: ImportCommitRequest,
    menu_store: MenuStoreService = Depends(get_menu_store),
) -> ImportCommitResponse:
    """Write an already-cleaned extraction result into a menu."""

    try:
        result = await menu_store.import_clean_result(payload)
    except MenuNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except MenuStoreError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return ImportCommitResponse(
        success=True,
        message=f"Successfully imported {result.imported_items} items",
        data=result,
    )


def _check_upload(upload: UploadFile, size: int) -> None:
    check = check_upload_file(upload.filename, upload.content_type, size)
    if not check.accepted:
        logger.info("Rejected upload %s: %s", upload.filename, check.code)
        status_code = 413 if check.code == "file_too_large" else 400
        raise HTTPException(status_code=status_code, detail=check.reason)


async def _load_session(
    session_service: EditorSessionService,
    session_id: str,
    *,
    require_result: bool = False,
) -> EditorSessionRecord:
    record = await session_service.describe(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail=_SESSION_EXPIRED_DETAIL)
    if require_result and record.parse_result is None:
        raise HTTPException(status_code=409, detail="Upload a menu before editing.")
    return record


def _session_response(
    record: EditorSessionRecord, item_type: ItemTypeFilter = "all"
) -> EditorSessionResponse:
    state = record.state
    items = state.working_set
    return EditorSessionResponse(
        session_id=record.token,
        restaurant_id=record.restaurant_id,
        file_type=record.file_type,
        parse_result=record.parse_result,
        state=state.to_view(),
        item_type=item_type,
        groups=build_category_groups(items, state.expanded_categories, item_type),
        type_counts=count_by_type(items),
        default_menu_name=record.parse_result.menu_name if record.parse_result else None,
    )
