import pytest

from menu_import.validators import (
    check_upload_file,
    coerce_price,
    describe_file_type,
    is_file_acceptable,
)

MB = 1024 * 1024


def test_two_megabyte_pdf_is_accepted():
    check = check_upload_file("dinner.pdf", "application/pdf", 2 * MB)
    assert check.accepted
    assert check.reason is None


@pytest.mark.parametrize(
    ("filename", "content_type"),
    [
        ("menu.csv", "text/csv"),
        ("menu.json", "application/json; charset=utf-8"),
        ("menu.xlsx", "application/octet-stream"),
        ("menu.DOCX", None),
        ("notes", "text/plain"),
    ],
)
def test_media_type_or_extension_is_enough(filename, content_type):
    assert is_file_acceptable(filename, content_type, 10)


def test_images_are_rejected_before_size_is_considered():
    check = check_upload_file("menu.png", "image/png", 80 * MB)
    assert not check.accepted
    assert check.code == "unsupported_type"
    assert "PDF, CSV" in check.reason


def test_size_limit_is_inclusive():
    assert check_upload_file("menu.pdf", "application/pdf", 50 * MB).accepted

    check = check_upload_file("menu.pdf", "application/pdf", 50 * MB + 1)
    assert check.code == "file_too_large"
    assert check.reason == "File too large. Please upload files smaller than 50MB."


def test_custom_size_limit():
    check = check_upload_file("menu.txt", "text/plain", 2 * MB, max_size=MB)
    assert check.code == "file_too_large"


def test_empty_file_is_rejected():
    check = check_upload_file("menu.txt", "text/plain", 0)
    assert check.code == "empty_file"


@pytest.mark.parametrize(
    ("filename", "label"),
    [
        ("menu.pdf", "PDF"),
        ("menu.xlsx", "XLS"),
        ("menu.doc", "DOC"),
        ("menu.TXT", "TXT"),
        ("menu", "FILE"),
        (None, "FILE"),
    ],
)
def test_describe_file_type(filename, label):
    assert describe_file_type(filename) == label


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        ("   ", None),
        (12, 12.0),
        (8.5, 8.5),
        ("£12.50", 12.5),
        ("1,200", 1200.0),
        ("9 / 34", 9.0),
        ("market price", 0.0),
        (True, 0.0),
    ],
)
def test_coerce_price(raw, expected):
    assert coerce_price(raw) == expected
