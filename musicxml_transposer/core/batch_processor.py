"""
Batch Processing Module - Transpose multiple files at once.

Provides batch single-interval transposition, batch all-keys
generation, and progress tracking.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Callable, Union
from enum import Enum
import logging

from musicxml_transposer.core.all_keys import AllKeysOrchestrator
from musicxml_transposer.core.keys import KeyOrder
from musicxml_transposer.core.rewriter import transpose_document
from musicxml_transposer.export.musicxml_exporter import (
    MusicXMLExporter,
    default_output_path,
    load_document,
)

logger = logging.getLogger(__name__)


class BatchJobStatus(Enum):
    """Status of a batch job item."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class BatchJobItem:
    """A single input file in a batch job."""
    input_path: Path
    output_paths: List[Path] = field(default_factory=list)
    status: BatchJobStatus = BatchJobStatus.PENDING
    progress: int = 0  # 0-100
    error_message: Optional[str] = None
    processing_time: float = 0.0


@dataclass
class BatchJobResult:
    """Result of a complete batch job."""
    total_items: int
    completed: int
    failed: int
    cancelled: int
    total_time: float
    items: List[BatchJobItem] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if self.total_items == 0:
            return 0.0
        return self.completed / self.total_items


class BatchProcessor:
    """
    Transpose multiple files in batch.

    Features:
    - Single-interval transposition of every file
    - All-keys generation per file (separate files or one combined score)
    - Progress tracking per item and overall
    - Cancellation support

    A failing file is marked FAILED and the remaining files are still
    processed.
    """

    def __init__(self, output_dir: Union[str, Path], max_workers: int = 1):
        """
        Initialize batch processor.

        Args:
            output_dir: Directory receiving every written file
            max_workers: Parallel rewrites per all-keys file (1 = sequential)
        """
        self.output_dir = Path(output_dir)
        self.max_workers = max_workers
        self.exporter = MusicXMLExporter()

        self._items: List[BatchJobItem] = []
        self._is_running = False
        self._cancel_requested = False
        self._thread: Optional[threading.Thread] = None
        self._result: Optional[BatchJobResult] = None

        # Callbacks
        self._item_started_callback: Optional[Callable[[int, BatchJobItem], None]] = None
        self._item_completed_callback: Optional[Callable[[int, BatchJobItem], None]] = None
        self._job_completed_callback: Optional[Callable[[BatchJobResult], None]] = None

    def set_callbacks(
        self,
        on_item_started: Optional[Callable[[int, BatchJobItem], None]] = None,
        on_item_completed: Optional[Callable[[int, BatchJobItem], None]] = None,
        on_job_completed: Optional[Callable[[BatchJobResult], None]] = None,
    ) -> None:
        """
        Set progress callbacks.

        Args:
            on_item_started: Called when item starts (index, item)
            on_item_completed: Called when item completes (index, item)
            on_job_completed: Called when entire job completes (result)
        """
        self._item_started_callback = on_item_started
        self._item_completed_callback = on_item_completed
        self._job_completed_callback = on_job_completed

    def add_files(self, files: List[Union[str, Path]]) -> None:
        """
        Add files to process.

        Args:
            files: List of file paths
        """
        for f in files:
            self._items.append(BatchJobItem(input_path=Path(f)))

    def clear(self) -> None:
        """Clear all items."""
        self._items.clear()

    @property
    def items(self) -> List[BatchJobItem]:
        """Get all items."""
        return self._items.copy()

    @property
    def is_running(self) -> bool:
        """Check if batch is currently running."""
        return self._is_running

    @property
    def result(self) -> Optional[BatchJobResult]:
        """Summary of the last finished job."""
        return self._result

    def process_transpose(self, semitones: int) -> None:
        """Start transposing every file by one interval in background."""
        def transpose_file(item: BatchJobItem) -> List[Path]:
            text = load_document(item.input_path)
            target = self.output_dir / default_output_path(item.input_path).name
            return [self.exporter.export(transpose_document(text, semitones), target)]

        self._start(transpose_file)

    def process_all_keys(
        self,
        key_order: Union[str, KeyOrder] = KeyOrder.CHROMATIC,
        combined: bool = False,
    ) -> None:
        """
        Start generating all twelve keys for every file in background.

        Args:
            key_order: "chromatic" or "circleOfFourths"
            combined: One combined score per file instead of twelve files

        Raises:
            InputFormatError: If the key order is unknown
        """
        orchestrator = AllKeysOrchestrator(key_order, self.max_workers)

        def all_keys_file(item: BatchJobItem) -> List[Path]:
            text = load_document(item.input_path)
            stem = item.input_path.stem
            if combined:
                target = self.output_dir / f"{stem}_all_keys.musicxml"
                return [self.exporter.export(orchestrator.generate_combined(text), target)]
            return self.exporter.export_all_keys(orchestrator.generate(text), self.output_dir, stem)

        self._start(all_keys_file)

    def _start(self, process_item: Callable[[BatchJobItem], List[Path]]) -> None:
        if self._is_running:
            return

        self._is_running = True
        self._cancel_requested = False
        self._result = None

        self._thread = threading.Thread(target=self._run, args=(process_item,), daemon=True)
        self._thread.start()

    def _run(self, process_item: Callable[[BatchJobItem], List[Path]]) -> None:
        start_time = time.time()
        completed = 0
        failed = 0
        cancelled = 0

        for i, item in enumerate(self._items):
            if self._cancel_requested:
                item.status = BatchJobStatus.CANCELLED
                cancelled += 1
                continue

            item.status = BatchJobStatus.PROCESSING
            item_start = time.time()

            if self._item_started_callback:
                self._item_started_callback(i, item)

            try:
                item.output_paths = process_item(item)
                item.status = BatchJobStatus.COMPLETED
                completed += 1

            except Exception as e:
                item.status = BatchJobStatus.FAILED
                item.error_message = str(e)
                failed += 1
                logger.exception(f"Batch transposition failed for {item.input_path}")

            item.processing_time = time.time() - item_start
            item.progress = 100

            if self._item_completed_callback:
                self._item_completed_callback(i, item)

        result = BatchJobResult(
            total_items=len(self._items),
            completed=completed,
            failed=failed,
            cancelled=cancelled,
            total_time=time.time() - start_time,
            items=self._items.copy(),
        )
        logger.info(
            f"Batch finished: {completed} completed, {failed} failed, {cancelled} cancelled"
        )

        self._result = result
        self._is_running = False

        if self._job_completed_callback:
            self._job_completed_callback(result)

    def cancel(self) -> None:
        """Request cancellation of current job."""
        self._cancel_requested = True

    def wait(self, timeout: Optional[float] = None) -> Optional[BatchJobResult]:
        """Wait for current job to complete."""
        if self._thread:
            self._thread.join(timeout=timeout)
        return self._result
