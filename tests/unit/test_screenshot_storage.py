"""
Unit tests for screenshot storage
"""

import pytest
from uuid import uuid4

from app.core.errors import ValidationError
from app.services.storage import LocalScreenshotStorage


def test_save_returns_account_scoped_reference(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=1024)
    account_id = uuid4()

    ref = storage.save(account_id, "receipt.png", b"\x89PNG data", "image/png")

    assert ref.startswith(f"payment-screenshots/{account_id}/")
    assert ref.endswith("_receipt.png")
    assert storage.path_for(ref).read_bytes() == b"\x89PNG data"


def test_unsafe_file_names_are_sanitised(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=1024)

    ref = storage.save(uuid4(), "../../etc/pass wd.jpg", b"jpeg", "image/jpeg")

    assert ".." not in ref
    assert ref.endswith("_pass_wd.jpg")
    assert storage.path_for(ref).is_file()


def test_non_image_is_rejected(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=1024)

    with pytest.raises(ValidationError):
        storage.save(uuid4(), "notes.txt", b"hello", "text/plain")


def test_oversized_upload_is_rejected(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=10)

    with pytest.raises(ValidationError):
        storage.save(uuid4(), "big.png", b"x" * 11, "image/png")


def test_empty_upload_is_rejected(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=10)

    with pytest.raises(ValidationError):
        storage.save(uuid4(), "empty.png", b"", "image/png")


def test_repeated_uploads_get_distinct_references(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=1024)
    account_id = uuid4()

    first = storage.save(account_id, "screenshot.png", b"first", "image/png")
    second = storage.save(account_id, "screenshot.png", b"second", "image/png")

    assert first != second
    assert storage.path_for(first).read_bytes() == b"first"
    assert storage.path_for(second).read_bytes() == b"second"


def test_exists_only_for_stored_references(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=1024)
    account_id = uuid4()
    ref = storage.save(account_id, "receipt.png", b"png", "image/png")

    assert storage.exists(ref)
    assert not storage.exists(f"payment-screenshots/{account_id}/missing.png")
    assert not storage.exists("")


def test_references_outside_the_store_do_not_resolve(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path / "store"), max_bytes=1024)
    (tmp_path / "secret.png").write_bytes(b"x")

    assert storage.path_for("../secret.png") is None
    assert not storage.exists("../secret.png")


def test_owned_by_checks_account_folder(tmp_path):
    storage = LocalScreenshotStorage(root=str(tmp_path), max_bytes=1024)
    owner, other = uuid4(), uuid4()
    ref = storage.save(owner, "receipt.png", b"png", "image/png")

    assert storage.owned_by(owner, ref)
    assert not storage.owned_by(other, ref)
    assert not storage.owned_by(owner, f"payment-screenshots/{owner}/nested/receipt.png")
    assert not storage.owned_by(owner, f"avatars/{owner}/receipt.png")
