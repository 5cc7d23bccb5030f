"""Menu storage with in-memory and Postgres backends.

Serves two roles for the import flow: listing a restaurant's existing menus
as import targets, and committing a cleaned extraction result into a menu.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from menu_import.db import Base, get_session_factory
from menu_import.schemas import (
    CandidateItem,
    ImportCommitRequest,
    ImportCommitResult,
    MenuSummary,
)

logger = logging.getLogger(__name__)

DEFAULT_MENU_NAME = "Imported Menu"

_SUMMARY_FIELDS = {"name", "category", "price", "item_type", "confidence", "original_text"}


class MenuStoreError(RuntimeError):
    """Menu storage rejected or failed a request."""


class MenuNotFoundError(MenuStoreError):
    """The target menu does not exist for the restaurant."""


@dataclass(frozen=True)
class MenuItemRow:
    """Storage shape of an imported menu item."""

    name: str
    category: str
    item_type: str
    price: float | None
    description: str | None
    details: Dict[str, Any]


def to_menu_item_row(item: CandidateItem) -> MenuItemRow:
    details = item.model_dump(mode="json", by_alias=True, exclude=_SUMMARY_FIELDS | {"description"})
    if item.item_type == "wine" and not details.get("wineStyle"):
        details["wineStyle"] = "still"
    return MenuItemRow(
        name=item.name.strip(),
        category=item.category.strip(),
        item_type=item.item_type,
        price=item.price,
        description=(item.description or "").strip() or None,
        details=details,
    )


class MenuRecord(Base):
    """SQLAlchemy mapping for menus."""

    __tablename__ = "menus"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    restaurant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MenuItemRecord(Base):
    """SQLAlchemy mapping for imported menu items."""

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    menu_id: Mapped[str] = mapped_column(ForeignKey("menus.id"), nullable=False, index=True)
    restaurant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    item_type: Mapped[str] = mapped_column(String(16), nullable=False)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class InMemoryMenuRepository:
    """Ephemeral repository used when no database is available."""

    def __init__(self) -> None:
        self._menus: Dict[str, Tuple[str, MenuSummary]] = {}
        self._items: Dict[str, List[MenuItemRow]] = {}

    async def list_menus(self, restaurant_id: str) -> List[MenuSummary]:
        return [menu for owner, menu in self._menus.values() if owner == restaurant_id]

    async def get_menu(self, restaurant_id: str, menu_id: str) -> MenuSummary | None:
        entry = self._menus.get(menu_id)
        if entry is None or entry[0] != restaurant_id:
            return None
        return entry[1]

    async def create_menu(self, restaurant_id: str, name: str) -> MenuSummary:
        menu = MenuSummary(id=uuid.uuid4().hex, name=name)
        self._menus[menu.id] = (restaurant_id, menu)
        self._items[menu.id] = []
        return menu

    async def add_items(
        self, restaurant_id: str, menu_id: str, rows: Sequence[MenuItemRow]
    ) -> Tuple[int, List[str]]:
        self._items.setdefault(menu_id, []).extend(rows)
        return len(rows), []

    async def list_items(self, menu_id: str) -> List[MenuItemRow]:
        return list(self._items.get(menu_id, []))

    def reset(self) -> None:
        self._menus.clear()
        self._items.clear()


class DatabaseMenuRepository:
    """Persist menus and their items in Postgres via SQLAlchemy."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    async def list_menus(self, restaurant_id: str) -> List[MenuSummary]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MenuRecord)
                .where(MenuRecord.restaurant_id == restaurant_id)
                .order_by(MenuRecord.created_at)
            )
            return [MenuSummary(id=row.id, name=row.name) for row in result.scalars()]

    async def get_menu(self, restaurant_id: str, menu_id: str) -> MenuSummary | None:
        async with self._session_factory() as session:
            row = await session.get(MenuRecord, menu_id)
            if row is None or row.restaurant_id != restaurant_id:
                return None
            return MenuSummary(id=row.id, name=row.name)

    async def create_menu(self, restaurant_id: str, name: str) -> MenuSummary:
        async with self._session_factory() as session:
            row = MenuRecord(
                id=uuid.uuid4().hex,
                restaurant_id=restaurant_id,
                name=name,
                is_active=True,
                created_at=datetime.now(tz=timezone.utc),
            )
            session.add(row)
            await session.commit()
            return MenuSummary(id=row.id, name=row.name)

    async def add_items(
        self, restaurant_id: str, menu_id: str, rows: Sequence[MenuItemRow]
    ) -> Tuple[int, List[str]]:
        imported = 0
        errors: List[str] = []
        async with self._session_factory() as session:
            for row in rows:
                try:
                    async with session.begin_nested():
                        session.add(
                            MenuItemRecord(
                                menu_id=menu_id,
                                restaurant_id=restaurant_id,
                                name=row.name,
                                category=row.category,
                                item_type=row.item_type,
                                price=row.price,
                                description=row.description,
                                details=row.details,
                                created_at=datetime.now(tz=timezone.utc),
                            )
                        )
                    imported += 1
                except SQLAlchemyError as exc:
                    errors.append(f'Failed to create "{row.name}": {exc}')
            await session.commit()
        return imported, errors

    async def list_items(self, menu_id: str) -> List[MenuItemRow]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(MenuItemRecord)
                .where(MenuItemRecord.menu_id == menu_id)
                .order_by(MenuItemRecord.id)
            )
            return [
                MenuItemRow(
                    name=row.name,
                    category=row.category,
                    item_type=row.item_type,
                    price=row.price,
                    description=row.description,
                    details=row.details,
                )
                for row in result.scalars()
            ]

    def reset(self) -> None:  # pragma: no cover - used only in tests
        """Database-backed stores do not support sync resets."""


class MenuStoreService:
    """List import targets and commit edited extraction results."""

    def __init__(self) -> None:
        session_factory = get_session_factory()
        if session_factory is not None:
            self._repository: InMemoryMenuRepository | DatabaseMenuRepository = (
                DatabaseMenuRepository(session_factory)
            )
        else:
            self._repository = InMemoryMenuRepository()

    async def list_menus(self, restaurant_id: str) -> List[MenuSummary]:
        return await self._repository.list_menus(restaurant_id)

    async def list_items(self, menu_id: str) -> List[MenuItemRow]:
        return await self._repository.list_items(menu_id)

    async def import_clean_result(self, request: ImportCommitRequest) -> ImportCommitResult:
        """Write the result's items into the target menu, creating it when needed."""

        restaurant_id = request.restaurant_id.strip()
        if not restaurant_id:
            raise MenuStoreError("Missing required field: restaurantId")

        if request.target_menu_id:
            menu = await self._repository.get_menu(restaurant_id, request.target_menu_id)
            if menu is None:
                raise MenuNotFoundError(f"Menu {request.target_menu_id} not found")
        else:
            name = (
                (request.menu_name or "").strip()
                or request.clean_result.menu_name.strip()
                or DEFAULT_MENU_NAME
            )
            menu = await self._repository.create_menu(restaurant_id, name)

        items = request.clean_result.items
        rows = [
            to_menu_item_row(item)
            for item in items
            if item.name.strip() and item.category.strip()
        ]
        skipped = len(items) - len(rows)
        if skipped:
            logger.warning("Skipping %d items without name or category", skipped)

        imported, errors = await self._repository.add_items(restaurant_id, menu.id, rows)
        for error in errors:
            logger.error(error)
        logger.info(
            "Imported %d/%d items into menu %s (%s)",
            imported,
            len(items),
            menu.id,
            menu.name,
        )
        return ImportCommitResult(
            menu_id=menu.id,
            menu_name=menu.name,
            total_items=len(items),
            imported_items=imported,
            failed_items=len(items) - imported,
            processing_notes=list(request.clean_result.processing_notes),
        )

    def reset(self) -> None:
        reset_fn = getattr(self._repository, "reset", None)
        if callable(reset_fn):
            reset_fn()
