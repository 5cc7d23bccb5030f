"""Commit an edited working set into a new or existing menu."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Set

from menu_import.schemas import (
    ExistingMenuTarget,
    ImportCommitRequest,
    ImportCommitResult,
    ImportTarget,
    MenuSummary,
    NewMenuTarget,
)
from menu_import.services.editor_session import EditorSessionService
from menu_import.services.menu_store import MenuStoreService

logger = logging.getLogger(__name__)


class ImportValidationError(ValueError):
    """The import request failed a precondition; nothing was committed."""


class ImportSessionNotFoundError(LookupError):
    """The editor session expired or never existed."""


class ImportInProgressError(RuntimeError):
    """Another import for the same session has not finished yet."""


class ImportFailedError(RuntimeError):
    """The menu store rejected or failed the commit; the session is unchanged."""


@dataclass(frozen=True)
class ImportOutcome:
    result: ImportCommitResult
    existing_menus: List[MenuSummary]


class ImportFinalizer:
    """Validate an import target, commit the working set and reset the session."""

    def __init__(
        self,
        session_service: EditorSessionService,
        menu_store: MenuStoreService,
    ) -> None:
        self._sessions = session_service
        self._menu_store = menu_store
        self._in_flight: Set[str] = set()

    async def finalize(
        self,
        token: str,
        restaurant_id: str,
        target: ImportTarget,
    ) -> ImportOutcome:
        """Commit the session's working set to ``target``.

        Preconditions are checked against freshly loaded session state before
        the commit is issued. On success the session returns to its
        pre-upload state; on failure it is left exactly as it was.
        """

        if token in self._in_flight:
            raise ImportInProgressError("An import for this session is already running.")

        self._in_flight.add(token)
        try:
            return await self._finalize(token, restaurant_id, target)
        finally:
            self._in_flight.discard(token)

    async def _finalize(
        self,
        token: str,
        restaurant_id: str,
        target: ImportTarget,
    ) -> ImportOutcome:
        restaurant_id = (restaurant_id or "").strip()
        if not restaurant_id:
            raise ImportValidationError("A restaurant is required to import a menu.")

        menu_name: str | None = None
        target_menu_id: str | None = None
        if isinstance(target, NewMenuTarget):
            menu_name = target.menu_name.strip()
            if not menu_name:
                raise ImportValidationError("Enter a name for the new menu.")
        elif isinstance(target, ExistingMenuTarget):
            target_menu_id = target.target_menu_id.strip()
            if not target_menu_id:
                raise ImportValidationError("Choose a menu to import into.")
            known = await self._menu_store.list_menus(restaurant_id)
            if target_menu_id not in {menu.id for menu in known}:
                raise ImportValidationError("The selected menu is no longer available.")

        record = await self._sessions.describe(token)
        if record is None:
            raise ImportSessionNotFoundError(token)
        if record.restaurant_id != restaurant_id:
            raise ImportValidationError("This editor session belongs to a different restaurant.")
        if record.parse_result is None:
            raise ImportValidationError("Upload and parse a menu before importing.")

        clean_result = record.parse_result.model_copy(
            update={
                "items": list(record.state.working_set),
                "total_items_found": len(record.state.working_set),
            }
        )
        request = ImportCommitRequest(
            clean_result=clean_result,
            restaurant_id=restaurant_id,
            target_menu_id=target_menu_id,
            menu_name=menu_name,
        )

        try:
            result = await self._menu_store.import_clean_result(request)
        except Exception as exc:
            logger.exception("Menu import for session %s failed", token)
            raise ImportFailedError(f"Import failed: {exc}") from exc

        current = await self._sessions.describe(token)
        if current is not None and current.result_id == record.result_id:
            await self._sessions.clear(token)
        else:
            logger.info("Session %s changed during import; leaving it in place", token)

        existing_menus = await self._menu_store.list_menus(restaurant_id)
        return ImportOutcome(result=result, existing_menus=existing_menus)
