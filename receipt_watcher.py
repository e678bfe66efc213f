#!/usr/bin/env python3
"""
Receipt Folder Watcher - Automatic Extraction

Watches a folder for OCR transcripts (.txt) of receipts and runs them
through the extraction engine. Each transcript is moved to a "ready" or
"review" folder depending on the review rules, with the extracted receipt
and invoice items written next to it as JSON.

Usage:
    python receipt_watcher.py --watch-folder ./receipts-incoming
"""

import argparse
import json
import time
from datetime import datetime
from pathlib import Path
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from snap2invoice.core.logging import setup_logging
from snap2invoice.services.extraction import extract_receipt_data, generate_invoice_items
from snap2invoice.services.review_rules import create_review_rules

logger = setup_logging()


class ReceiptHandler(FileSystemEventHandler):
    """Handles new receipt transcript events"""

    def __init__(self, watch_folder, ready_folder, review_folder, min_confidence=None, settle_seconds=1.0):
        self.watch_folder = Path(watch_folder)
        self.ready_folder = Path(ready_folder)
        self.review_folder = Path(review_folder)
        self.rules = create_review_rules(min_confidence=min_confidence)
        self.settle_seconds = settle_seconds
        self.processed_files = set()

        # Create folders if they don't exist
        self.ready_folder.mkdir(parents=True, exist_ok=True)
        self.review_folder.mkdir(parents=True, exist_ok=True)

    def on_created(self, event):
        """Called when a file is created in the watched folder"""
        if event.is_directory:
            return

        file_path = Path(event.src_path)

        # Only process OCR transcripts
        if file_path.suffix.lower() != '.txt':
            return

        # Avoid processing the same file multiple times
        if file_path in self.processed_files:
            return

        # Small delay to ensure file is fully written
        time.sleep(self.settle_seconds)

        # Check if file still exists (might have been moved)
        if not file_path.exists():
            return

        self.processed_files.add(file_path)
        self.process_receipt(file_path)

    def process_receipt(self, file_path: Path) -> Path:
        """Extract a receipt transcript and route it; returns the new file location"""
        logger.info(f"New receipt transcript: {file_path.name}")

        try:
            text = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.error(f"Could not read {file_path.name}: {e}")
            return self.handle_error(file_path, str(e))

        receipt = extract_receipt_data(text)
        decision = self.rules.evaluate(receipt)
        destination = self.review_folder if decision.needs_review else self.ready_folder

        dest_path = destination / file_path.name
        file_path.rename(dest_path)

        result = {
            "source": file_path.name,
            "receipt": receipt.model_dump(),
            "invoice_items": [item.model_dump() for item in generate_invoice_items(receipt)],
            "review": decision.model_dump(),
        }
        dest_path.with_suffix(".json").write_text(json.dumps(result, indent=2), encoding="utf-8")

        print(f"{'REVIEW' if decision.needs_review else 'READY '}  {file_path.name}: "
              f"{receipt.merchant_name or 'Unknown'} ${receipt.total:.2f} ({decision.reason})")

        self.log_processing(file_path.name, result, dest_path)
        return dest_path

    def handle_error(self, file_path: Path, error_msg: str) -> Path:
        """Move an unreadable transcript to the review folder"""
        dest_path = self.review_folder / f"ERROR_{file_path.name}"
        if file_path.exists():
            file_path.rename(dest_path)
        logger.warning(f"Moved {file_path.name} to review: {error_msg}")
        return dest_path

    def log_processing(self, filename: str, result: dict, dest_path: Path):
        """Append processing results to the JSON log beside the watch folder"""
        log_file = self.watch_folder.parent / "processing_log.json"

        # Load existing log
        if log_file.exists():
            with open(log_file, 'r', encoding='utf-8') as f:
                log_data = json.load(f)
        else:
            log_data = []

        log_data.append({
            "timestamp": datetime.now().isoformat(),
            "filename": filename,
            "needs_review": result["review"]["needs_review"],
            "total": result["receipt"]["total"],
            "merchant_name": result["receipt"]["merchant_name"],
            "destination": str(dest_path)
        })

        with open(log_file, 'w', encoding='utf-8') as f:
            json.dump(log_data, f, indent=2)


def main():
    parser = argparse.ArgumentParser(
        description='Watch a folder for receipt OCR transcripts and extract them automatically'
    )
    parser.add_argument(
        '--watch-folder',
        default='./receipts-incoming',
        help='Folder to watch for new transcripts (default: ./receipts-incoming)'
    )
    parser.add_argument(
        '--ready-folder',
        default='./receipts-ready',
        help='Folder for receipts that need no review (default: ./receipts-ready)'
    )
    parser.add_argument(
        '--review-folder',
        default='./receipts-review',
        help='Folder for receipts flagged for review (default: ./receipts-review)'
    )
    parser.add_argument(
        '--min-confidence',
        type=float,
        default=None,
        help='Overall confidence (0-100) below which a receipt is flagged (default: REVIEW_MIN_CONFIDENCE)'
    )

    args = parser.parse_args()

    watch_folder = Path(args.watch_folder)
    watch_folder.mkdir(parents=True, exist_ok=True)

    event_handler = ReceiptHandler(
        args.watch_folder,
        args.ready_folder,
        args.review_folder,
        min_confidence=args.min_confidence,
    )
    observer = Observer()
    observer.schedule(event_handler, str(watch_folder), recursive=False)
    observer.start()

    print(f"Watching: {watch_folder.absolute()}")
    print(f"Ready  -> {Path(args.ready_folder).absolute()}")
    print(f"Review -> {Path(args.review_folder).absolute()}")
    print("Drop .txt receipt transcripts into the watch folder. Press Ctrl+C to stop.")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
    print("Watcher stopped")


if __name__ == "__main__":
    main()
