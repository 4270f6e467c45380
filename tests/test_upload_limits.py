from __future__ import annotations

import pytest

from core.upload_limits import MAX_FILE_SIZE_BYTES, check_file_size, file_type_label, format_file_size


def test_max_file_size_is_five_mebibytes():
    assert MAX_FILE_SIZE_BYTES == 5_242_880


def test_check_file_size_accepts_exact_limit_and_rejects_one_byte_more():
    assert check_file_size("scan.pdf", 5_242_880) is None
    assert check_file_size("scan.pdf", 5_242_881) == 'File "scan.pdf" exceeds 5MB limit (5.00MB)'


def test_check_file_size_reports_size_in_megabytes():
    assert check_file_size("photo.jpg", 7 * 1024 * 1024 + 512 * 1024) == 'File "photo.jpg" exceeds 5MB limit (7.50MB)'


@pytest.mark.parametrize(
    ("size_bytes", "expected"),
    [
        (0, "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (3 * 1024**3, "3 GB"),
        (2048 * 1024**3, "2048 GB"),
    ],
)
def test_format_file_size(size_bytes: int, expected: str):
    assert format_file_size(size_bytes) == expected


def test_file_type_label_uses_lowercase_extension():
    assert file_type_label("Estimate.PDF") == "pdf"
    assert file_type_label("archive.tar.gz") == "gz"
    assert file_type_label("README") == "unknown"
