import asyncio
import json
from types import SimpleNamespace

import pytest

from menu_import.schemas import BeverageItem, FoodItem, WineItem
from menu_import.services.extraction import (
    ExtractionError,
    MenuExtractionService,
    build_parse_result,
)


def run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


PAYLOAD = {
    "menuName": "Trattoria Dinner",
    "items": [
        {"name": "Arancini", "category": "Antipasti", "itemType": "food", "price": "7", "confidence": 90},
        {"name": "arancini", "category": "Antipasti", "itemType": "food", "price": 7, "confidence": 85},
        {"name": "Barolo", "category": "Reds", "itemType": "wine", "price": 60, "confidence": 80},
        {"name": "Negroni", "category": "Cocktails", "itemType": "beverage", "price": 11},
        {"name": "Smudged line", "category": "Antipasti", "itemType": "food", "confidence": 20},
        {"name": "", "category": "Antipasti", "itemType": "food"},
    ],
    "processingNotes": ["Second page was blurry"],
}


class FakeOpenAI:
    def __init__(self, payload):
        self.uploaded = []
        self.deleted = []
        self.requests = []
        self.files = SimpleNamespace(create=self._create_file, delete=self._delete_file)
        self.responses = SimpleNamespace(create=self._create_response)
        self._payload = payload

    async def _create_file(self, *, file, purpose):
        self.uploaded.append((file[0], purpose))
        return SimpleNamespace(id="file-1")

    async def _delete_file(self, file_id):
        self.deleted.append(file_id)

    async def _create_response(self, **kwargs):
        self.requests.append(kwargs)
        return SimpleNamespace(output_text=json.dumps(self._payload))


def test_build_parse_result_filters_and_annotates():
    result = build_parse_result(PAYLOAD, "dinner.pdf")

    assert result.menu_name == "Trattoria Dinner"
    assert [item.name for item in result.items] == ["Arancini", "Barolo", "Negroni"]
    assert [type(item) for item in result.items] == [FoodItem, WineItem, BeverageItem]
    assert result.total_items_found == 3
    assert result.processing_notes == [
        "Second page was blurry",
        "Validation: 6 raw items → 3 valid items",
    ]


def test_menu_name_falls_back_to_file_stem():
    result = build_parse_result({"items": []}, "spring-specials.csv")
    assert result.menu_name == "spring-specials"
    assert result.items == []


def test_missing_items_is_an_error():
    with pytest.raises(ExtractionError):
        build_parse_result({"menuName": "Dinner"}, "dinner.pdf")


def test_binary_documents_are_uploaded_and_cleaned_up():
    client = FakeOpenAI(PAYLOAD)
    service = MenuExtractionService(client=client)

    result = run(service.extract(b"%PDF-1.7", "dinner.pdf", "application/pdf", restaurant_id="r-1"))

    assert result.total_items_found == 3
    assert client.uploaded == [("dinner.pdf", "user_data")]
    assert client.deleted == ["file-1"]
    content = client.requests[0]["input"][0]["content"]
    assert {"type": "input_file", "file_id": "file-1"} in content
    assert client.requests[0]["text"]["format"]["strict"] is True


def test_text_documents_are_sent_inline():
    client = FakeOpenAI(PAYLOAD)
    service = MenuExtractionService(client=client)

    run(service.extract(b"name,price\nArancini,7\n", "menu.csv", "text/csv"))

    assert client.uploaded == []
    content = client.requests[0]["input"][0]["content"]
    assert any("Arancini,7" in part.get("text", "") for part in content)


def test_uploaded_file_is_deleted_when_extraction_fails():
    client = FakeOpenAI(PAYLOAD)

    async def broken_response(**kwargs):
        return SimpleNamespace(output_text="not json")

    client.responses = SimpleNamespace(create=broken_response)
    service = MenuExtractionService(client=client)

    with pytest.raises(ExtractionError):
        run(service.extract(b"%PDF-1.7", "dinner.pdf", "application/pdf"))
    assert client.deleted == ["file-1"]


def test_empty_document_is_rejected():
    service = MenuExtractionService(client=FakeOpenAI(PAYLOAD))
    with pytest.raises(ValueError):
        run(service.extract(b"", "menu.pdf", "application/pdf"))
