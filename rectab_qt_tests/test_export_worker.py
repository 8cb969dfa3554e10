from queue import Queue
from unittest.mock import MagicMock, patch

import pytest

from rectab.column import TabColumn
from rectab.export import ExportFormat
from rectab.projection import build_table
from rectab_qt.export_worker import ExportJob, ExportRelay, ExportWorker


@pytest.fixture
def projected():
    return build_table(
        [{"a": 1}, {"a": 2}], [TabColumn.for_field("a")], "Numbers"
    )


@pytest.fixture
def relay(qt_app):
    result = ExportRelay()
    yield result
    result.stop()


def test_job_perform_saves_the_file(projected, tmp_path):
    path = tmp_path / "n.csv"
    job = ExportJob(
        table=projected,
        fmt=ExportFormat.CSV,
        callback=MagicMock(),
        path=str(path),
    )
    job.perform()
    assert job.artifact is not None
    assert job.artifact.file_name == "export.csv"
    assert path.read_bytes() == b"A\r\n1\r\n2\r\n"


def test_job_in_memory(projected):
    job = ExportJob(table=projected, fmt="xlsx", callback=MagicMock())
    job.perform()
    assert job.artifact.content.startswith(b"PK")


def test_relay_push_job_starts_worker(relay, projected):
    job = relay.push_job(
        ExportJob(table=projected, fmt="csv", callback=MagicMock())
    )
    assert job in relay.data.values()
    assert relay.worker.isRunning()


def test_relay_handle_result_success(relay, projected):
    callback = MagicMock()
    job = ExportJob(table=projected, fmt="csv", callback=callback, req_id=1)
    relay.data[job.req_id] = job

    relay.handle_result(job.req_id)

    callback.assert_called_once_with(job)
    assert relay.data == {}


def test_relay_handle_result_missing_job(relay, caplog):
    with caplog.at_level("DEBUG", logger="rectab_qt.export_worker"):
        relay.handle_result(999)
    assert "Export job 999 not found" in caplog.text


def test_relay_handle_result_deleted_receiver(relay, projected, caplog):
    callback = MagicMock(side_effect=RuntimeError("has been deleted"))
    job = ExportJob(table=projected, fmt="csv", callback=callback, req_id=2)
    relay.data[job.req_id] = job
    with caplog.at_level("DEBUG", logger="rectab_qt.export_worker"):
        relay.handle_result(job.req_id)
    assert "callback receiver has been deleted" in caplog.text


def test_worker_run_processes_jobs(projected):
    queue = Queue()
    worker = ExportWorker(queue=queue)
    job = ExportJob(table=projected, fmt="csv", callback=MagicMock(), req_id=1)
    queue.put(job)

    def stop_after_emit(req_id):
        worker.should_stop = True

    with patch.object(worker, "haveResult") as mock_signal:
        mock_signal.emit.side_effect = stop_after_emit
        worker.run()

    assert job.artifact is not None
    assert job.error is None
    mock_signal.emit.assert_called_once_with(1)


def test_worker_run_handles_exception(projected, caplog):
    queue = Queue()
    worker = ExportWorker(queue=queue)
    job = ExportJob(
        table=projected, fmt="docx", callback=MagicMock(), req_id=3
    )
    queue.put(job)

    with patch.object(worker, "haveResult") as mock_signal:
        mock_signal.emit.side_effect = lambda req_id: setattr(
            worker, "should_stop", True
        )
        worker.run()

    assert isinstance(job.error, AssertionError)
    assert job.artifact is None
    assert "Error while exporting" in caplog.text
    mock_signal.emit.assert_called_once_with(3)
