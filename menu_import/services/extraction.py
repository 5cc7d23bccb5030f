"""LLM integration layer for menu extraction."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from pathlib import PurePath
from typing import Any, AsyncIterator, List

from openai import AsyncOpenAI, OpenAIError

from menu_import.config import settings
from menu_import.normalise import parse_candidate, remove_duplicates
from menu_import.schemas import CandidateItem, ParseResult
from menu_import.services.prompt import (
    MenuDocument,
    build_prompt,
    build_reasoning_config,
    build_text_config,
)

logger = logging.getLogger(__name__)

_INLINE_TEXT_TYPES = {"csv", "json", "txt"}
_MIN_CONFIDENCE = 30


class ExtractionError(RuntimeError):
    """The extraction service failed or returned an unusable payload."""


class MenuExtractionService:
    """Service responsible for converting menu documents into candidate items."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Lazily instantiate an OpenAI client."""

        if self._client is None:
            if not settings.openai_api_key:
                raise ExtractionError("OPENAI_API_KEY is required to process menus")
            self._client = AsyncOpenAI(api_key=settings.openai_api_key)
        return self._client

    async def extract(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        *,
        restaurant_id: str | None = None,
    ) -> ParseResult:
        """Send one menu document for extraction and normalise the response."""

        if not content:
            raise ValueError("A non-empty menu document is required")

        logger.info(
            "Extracting menu %s (%d bytes) for restaurant %s",
            filename,
            len(content),
            restaurant_id,
        )
        async with self._document(content, filename, content_type) as document:
            try:
                payload = await self._run_extract_request(document)
            except OpenAIError as exc:
                raise ExtractionError("Failed to call the menu extraction service") from exc

        result = build_parse_result(payload, filename)
        logger.info(
            "Extracted %d items from %s", result.total_items_found, filename
        )
        return result

    @asynccontextmanager
    async def _document(
        self,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> AsyncIterator[MenuDocument]:
        """Inline text formats; upload binary formats once and guarantee cleanup."""

        if PurePath(filename).suffix.lower().lstrip(".") in _INLINE_TEXT_TYPES:
            yield MenuDocument(
                filename=filename, text=content.decode("utf-8", errors="replace")
            )
            return

        try:
            upload = await self.client.files.create(
                file=(filename, content, content_type),
                purpose="user_data",
            )
        except OpenAIError as exc:
            raise ExtractionError("Failed to upload the menu document") from exc
        try:
            yield MenuDocument(filename=filename, file_id=upload.id)
        finally:
            await self._delete_file(upload.id)

    async def _delete_file(self, file_id: str) -> None:
        try:
            await self.client.files.delete(file_id)
        except OpenAIError:  # pragma: no cover - best effort cleanup
            logger.warning("Could not delete uploaded menu file %s", file_id)

    async def _run_extract_request(self, document: MenuDocument) -> dict[str, Any]:
        prompt = build_prompt(document)

        response = await self.client.responses.create(
            model=settings.openai_model,
            instructions=prompt.instructions,
            input=[{"role": "user", "content": prompt.content}],
            text=build_text_config(),
            reasoning=build_reasoning_config(),
        )

        return _extract_json_payload(response)


def _extract_json_payload(response: object) -> dict[str, Any]:
    """Traverse the responses API payload to pull JSON content."""

    output_text = _extract_output_text(response)
    try:
        payload = json.loads(output_text)
    except json.JSONDecodeError as exc:
        raise ExtractionError("Extraction service returned malformed JSON") from exc
    if not isinstance(payload, dict):
        raise ExtractionError("Extraction service returned an unexpected payload")
    return payload


def _extract_output_text(response: object) -> str:
    """Return the textual content for a Responses API call."""

    try:
        output_text = response.output_text  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive guard
        raise ExtractionError("OpenAI response missing output_text") from exc

    if not output_text:
        raise ExtractionError("OpenAI response returned empty output_text")
    return str(output_text).strip()


def build_parse_result(payload: dict[str, Any], filename: str) -> ParseResult:
    """Convert the raw extraction payload into a ``ParseResult``."""

    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raise ExtractionError(f"Extraction response missing 'items' payload: {payload}")

    candidates: List[CandidateItem] = []
    for raw in raw_items:
        item = parse_candidate(raw)
        if item is None or item.confidence < _MIN_CONFIDENCE:
            continue
        candidates.append(item)
    items = remove_duplicates(candidates)

    notes = [str(note) for note in payload.get("processingNotes") or [] if note]
    notes.append(f"Validation: {len(raw_items)} raw items → {len(items)} valid items")

    menu_name = str(payload.get("menuName") or "").strip() or PurePath(filename).stem
    return ParseResult(
        menu_name=menu_name or "Unknown Menu",
        items=items,
        total_items_found=len(items),
        processing_notes=notes,
    )
