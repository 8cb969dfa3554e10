import logging
import threading
from queue import Empty, Queue
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from attrs import define, field
from PyQt5.QtCore import QObject, QThread, pyqtSignal

from rectab.export import ExportArtifact, export_table
from rectab.letterhead import Letterhead
from rectab.projection import ProjectedTable

logger = logging.getLogger(__name__)


@define
class ExportJob:
    """An export to be serialized and saved by the worker thread.

    Attributes:
        table: The projected table to serialize.
        fmt: The export format.
        file_name: The base name of the artifact.
        letterhead: The identity printed on PDF documents.
        path: Where to save the artifact; None keeps it in memory.
        callback: Called in the main thread when the job is done.
        req_id: Identifies the job.
        artifact: The result, set by the worker.
        error: The exception raised by the worker, if any.
    """

    table: ProjectedTable
    fmt: Any
    callback: Callable[["ExportJob"], None]
    file_name: str = "export"
    letterhead: Optional[Letterhead] = None
    path: Optional[str] = None
    req_id: Any = field(factory=lambda: uuid4().int)
    artifact: Optional[ExportArtifact] = field(default=None)
    error: Optional[BaseException] = field(default=None)

    def perform(self) -> None:
        """Serialize the table and save it if a path was given."""
        self.artifact = export_table(
            self.table,
            self.fmt,
            file_name=self.file_name,
            letterhead=self.letterhead,
        )
        if self.path is not None:
            with open(self.path, "wb") as f:
                f.write(self.artifact.content)


class ExportRelay(QObject):
    """Lives in the main thread and is informed when the worker thread
    finishes a job.
    """

    worker: "ExportWorker"
    data: Dict[Any, ExportJob]
    queue: Queue

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.data = {}
        self.queue = Queue()
        self.worker = ExportWorker(queue=self.queue, parent=self)
        self.worker.haveResult.connect(self.handle_result)

    def handle_result(self, req_id: Any):
        """Hand a finished job to its callback."""
        job = self.data.pop(req_id, None)
        if job is None:
            logger.debug("Export job %s not found", req_id)
            return

        try:
            job.callback(job)
        except Exception as e:
            if isinstance(e, RuntimeError) and "has been deleted" in str(e):
                logger.debug(
                    "Export job %s completed, but the callback receiver "
                    "has been deleted.",
                    req_id,
                )
            else:
                logger.error(
                    "Exception while handling the export result: %s",
                    e,
                    exc_info=True,
                )

    def stop(self):
        """Stop the worker thread."""
        if self.worker.isRunning():
            self.worker.should_stop = True
            self.worker.quit()
            self.worker.wait()

    def push_job(self, job: ExportJob) -> ExportJob:
        """Queue a job; the worker thread is started on first use."""
        if not self.worker.isRunning():
            self.worker.start()
        self.data[job.req_id] = job
        self.queue.put(job)
        return job


class ExportWorker(QThread):
    """Serializes exports away from the user interface thread.

    Attributes:
        queue: The queue to read from.
        should_stop: Set by the relay through `stop()`.

    Signals:
        haveResult: Emitted with the id of each finished job.
    """

    queue: Queue
    should_stop: bool

    haveResult = pyqtSignal(object)

    def __init__(self, queue: Queue, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.should_stop = False
        self.queue = queue
        self.setObjectName("RectabExportThread")

    def run(self) -> None:
        threading.current_thread().name = "RectabExportThread"
        while not self.should_stop:
            try:
                job: ExportJob = self.queue.get(timeout=0.5)
            except Empty:
                continue

            try:
                job.perform()
                logger.debug("Export job %s completed", job.req_id)
            except Exception as e:
                logger.error(
                    "Error while exporting %s (%d rows): %s",
                    job.fmt,
                    job.table.row_count,
                    e,
                    exc_info=True,
                )
                job.error = e

            self.haveResult.emit(job.req_id)
