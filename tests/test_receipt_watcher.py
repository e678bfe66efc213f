"""
Tests for the receipt folder watcher.

The handler is driven directly; no observer thread is started.
"""

import json
import pytest
from watchdog.events import DirCreatedEvent, FileCreatedEvent
from receipt_watcher import ReceiptHandler


@pytest.fixture
def folders(tmp_path):
    incoming = tmp_path / "incoming"
    incoming.mkdir()
    return incoming, tmp_path / "ready", tmp_path / "review"


@pytest.fixture
def handler(folders):
    incoming, ready, review = folders
    return ReceiptHandler(incoming, ready, review, min_confidence=60, settle_seconds=0)


def test_folders_are_created(handler, folders):
    _, ready, review = folders
    assert ready.is_dir()
    assert review.is_dir()


def test_confident_receipt_goes_to_ready(handler, folders, grocery_receipt):
    incoming, ready, _ = folders
    source = incoming / "groceries.txt"
    source.write_text(grocery_receipt, encoding="utf-8")

    dest = handler.process_receipt(source)

    assert dest == ready / "groceries.txt"
    assert dest.exists()
    assert not source.exists()

    result = json.loads((ready / "groceries.json").read_text(encoding="utf-8"))
    assert result["source"] == "groceries.txt"
    assert result["receipt"]["total"] == 11.6
    assert len(result["invoice_items"]) == 3
    assert result["review"]["needs_review"] is False


def test_low_confidence_receipt_goes_to_review(handler, folders, no_total_receipt):
    incoming, _, review = folders
    source = incoming / "plumber.txt"
    source.write_text(no_total_receipt, encoding="utf-8")

    dest = handler.process_receipt(source)

    assert dest == review / "plumber.txt"
    assert (review / "plumber.json").exists()


def test_processing_log_is_appended(handler, folders, diner_receipt, grocery_receipt):
    incoming, _, _ = folders
    for name, text in [("lunch.txt", diner_receipt), ("groceries.txt", grocery_receipt)]:
        (incoming / name).write_text(text, encoding="utf-8")
        handler.process_receipt(incoming / name)

    log = json.loads((incoming.parent / "processing_log.json").read_text(encoding="utf-8"))
    assert [entry["filename"] for entry in log] == ["lunch.txt", "groceries.txt"]
    assert log[0]["total"] == 11.88
    assert log[0]["merchant_name"] == "Joe's Diner"


def test_created_event_processes_transcript(handler, folders, diner_receipt):
    incoming, ready, _ = folders
    source = incoming / "lunch.txt"
    source.write_text(diner_receipt, encoding="utf-8")

    handler.on_created(FileCreatedEvent(str(source)))

    assert (ready / "lunch.txt").exists()
    assert source in handler.processed_files


def test_non_transcript_files_are_ignored(handler, folders):
    incoming, ready, review = folders
    source = incoming / "photo.pdf"
    source.write_bytes(b"%PDF-1.4")

    handler.on_created(FileCreatedEvent(str(source)))

    assert source.exists()
    assert list(ready.iterdir()) == []
    assert list(review.iterdir()) == []


def test_directory_events_are_ignored(handler, folders):
    incoming, _, _ = folders
    subfolder = incoming / "nested.txt"
    subfolder.mkdir()

    handler.on_created(DirCreatedEvent(str(subfolder)))

    assert subfolder.is_dir()
    assert handler.processed_files == set()


def test_unreadable_file_is_moved_to_review(handler, folders):
    incoming, _, review = folders
    source = incoming / "broken.txt"
    source.write_text("", encoding="utf-8")

    dest = handler.handle_error(source, "could not read")

    assert dest == review / "ERROR_broken.txt"
    assert dest.exists()
