from unittest.mock import MagicMock

import pytest
from PyQt5.QtCore import QEvent, QPointF, QRect, Qt
from PyQt5.QtGui import QMouseEvent
from PyQt5.QtWidgets import QStyleOptionViewItem

from rectab.actions import RowAction, RowCallbacks
from rectab.export import ExportFormat
from rectab.presenter import Pagination, ReportPresenter, TablePresenter
from rectab.settings import LocalSettings
from rectab_qt.context import QtTableContext
from rectab_qt.data_table import DataTable
from rectab_qt.export_worker import ExportJob
from rectab_qt.print_surface import QtPrintSurface
from rectab_qt.report_table import ReportTable


@pytest.fixture
def callbacks():
    return RowCallbacks(on_view=MagicMock(), on_delete=MagicMock())


@pytest.fixture
def presenter(people, people_columns, callbacks):
    return TablePresenter(
        columns=people_columns,
        records=people,
        callbacks=callbacks,
        export_file_name="people",
        debouncer=None,
    )


@pytest.fixture
def table(ctx, presenter):
    widget = DataTable(ctx, presenter)
    yield widget
    widget.deleteLater()


class TestLayout:
    def test_export_menu(self, table):
        assert table.btn_export is not None
        assert table.btn_export.text() == "Export / Print"
        texts = [ac.text() for ac in table.btn_export.menu().actions()]
        assert texts == [
            "Export CSV",
            "Export Excel",
            "Export PDF",
            "",
            "Print",
        ]

    def test_no_export_menu(self, ctx, people, people_columns):
        presenter = TablePresenter(
            columns=people_columns, records=people, show_export=False
        )
        widget = DataTable(ctx, presenter)
        assert widget.btn_export is None
        assert widget.ac_export == {}

    def test_actions_column(self, table):
        assert table.view.itemDelegateForColumn(3) is table.delegate
        assert table.view.columnWidth(3) == 100
        assert table.view.columnWidth(0) == 160

    def test_pager(self, table, presenter):
        assert table.pager.lbl_range.text() == "1-10 of 25"
        assert table.pager.lbl_pages.text() == "/ 3"
        table.pager.btn_next.click()
        assert presenter.pagination.page == 2
        assert table.pager.lbl_range.text() == "11-20 of 25"
        table.pager.spin_page.setValue(3)
        assert table.model.rowCount() == 5
        assert not table.pager.btn_next.isEnabled()

    def test_page_size_is_remembered(self, table, presenter, ctx, mocker):
        mocker.patch.object(LocalSettings, "save_settings")
        table.pager.cmb_size.setCurrentIndex(1)
        assert presenter.pagination.page_size == 20
        assert ctx.get_stg("table.page_size") == 20


class TestRowActions:
    def test_trigger_rects(self, table):
        rects = table.delegate.trigger_rects(QRect(0, 0, 100, 30))
        assert [action for action, _ in rects] == [
            RowAction.VIEW,
            RowAction.DELETE,
        ]
        first, second = rects[0][1], rects[1][1]
        assert first.width() == 16
        assert second.left() - first.right() > 1

    def test_trigger_calls_back(self, table, callbacks):
        record = table.model.record(0)
        table.presenter.trigger(RowAction.DELETE, record)
        callbacks.on_delete.assert_called_once_with(record)

    def test_click(self, table, callbacks):
        option = QStyleOptionViewItem()
        option.rect = QRect(0, 0, 100, 30)
        rect = table.delegate.trigger_rects(option.rect)[0][1]
        event = QMouseEvent(
            QEvent.Type.MouseButtonRelease,
            QPointF(rect.center()),
            Qt.MouseButton.LeftButton,
            Qt.MouseButton.LeftButton,
            Qt.KeyboardModifier.NoModifier,
        )
        index = table.model.index(2, 3)
        assert table.delegate.editorEvent(event, table.model, option, index)
        callbacks.on_view.assert_called_once_with(table.model.record(2))

        miss = QMouseEvent(
            QEvent.Type.MouseButtonRelease,
            QPointF(1, 1),
            Qt.MouseButton.LeftButton,
            Qt.MouseButton.LeftButton,
            Qt.KeyboardModifier.NoModifier,
        )
        assert not table.delegate.editorEvent(miss, table.model, option, index)
        assert callbacks.on_view.call_count == 1


class TestExport:
    def test_export_to(self, table, tmp_path, mocker):
        notify = mocker.patch.object(QtTableContext, "notify")
        path = table.export_to(ExportFormat.CSV, str(tmp_path / "out"))
        assert path.endswith("out.csv")
        with open(path, "rb") as f:
            assert f.read().startswith(b"Name,Department,No.\r\n")
        notify.assert_called_once()
        assert "out.csv" in notify.call_args.args[0]

    def test_request_export(self, table, tmp_path, mocker):
        target = str(tmp_path / "people.xlsx")
        mocker.patch.object(table, "ask_save_path", return_value=target)
        mocker.patch.object(QtTableContext, "notify")
        assert table.request_export("excel") == target
        with open(target, "rb") as f:
            assert f.read(2) == b"PK"

    def test_request_cancelled(self, table, mocker):
        mocker.patch.object(table, "ask_save_path", return_value=None)
        export_to = mocker.patch.object(table, "export_to")
        assert table.request_export("pdf") is None
        export_to.assert_not_called()

    def test_repeated_request_is_ignored(self, table, mocker):
        table.presenter.debouncer = MagicMock()
        table.presenter.debouncer.should_run.return_value = False
        ask = mocker.patch.object(table, "ask_save_path")
        assert table.request_export("csv") is None
        ask.assert_not_called()

    def test_unknown_format(self, table):
        with pytest.raises(ValueError):
            table.request_export("docx")

    def test_large_exports_run_in_background(self, table, tmp_path, mocker):
        mocker.patch.object(
            QtTableContext,
            "background_threshold",
            new_callable=mocker.PropertyMock,
            return_value=10,
        )
        push_job = mocker.patch.object(table.ctx.work_relay, "push_job")
        path = table.export_to(ExportFormat.PDF, str(tmp_path / "big.pdf"))
        job = push_job.call_args.args[0]
        assert isinstance(job, ExportJob)
        assert job.path == path
        assert job.table.row_count == 25
        assert job.callback == table.on_export_done

    def test_export_done(self, table, mocker):
        notify = mocker.patch.object(QtTableContext, "notify")
        show_error = mocker.patch.object(QtTableContext, "show_error")
        job = ExportJob(
            table=table.presenter.projected(),
            fmt=ExportFormat.CSV,
            callback=table.on_export_done,
            path="/tmp/x.csv",
        )
        table.on_export_done(job)
        notify.assert_called_once()
        job.error = RuntimeError("disk full")
        table.on_export_done(job)
        assert "disk full" in show_error.call_args.args[0]

    def test_export_failure(self, table, tmp_path, mocker):
        show_error = mocker.patch.object(QtTableContext, "show_error")
        path = str(tmp_path / "missing" / "dir" / "out.csv")
        table.export_to(ExportFormat.CSV, path)
        show_error.assert_called_once()


class TestPrint:
    def test_no_printers(self, table, mocker):
        mocker.patch(
            "rectab_qt.print_surface.QPrinterInfo.availablePrinters",
            return_value=[],
        )
        notify = mocker.patch.object(QtTableContext, "notify")
        assert not table.print_table()
        notify.assert_called_once()
        assert "could not be opened" in notify.call_args.args[0]

    def test_print(self, table, mocker):
        surface = MagicMock(spec=QtPrintSurface)
        surface.auto_print = False
        mocker.patch(
            "rectab_qt.data_table.open_print_surface", return_value=surface
        )
        assert table.print_table()
        assert "Data Export" in surface.load.call_args.args[0]
        surface.print_.assert_called_once_with()


class TestReportTable:
    def test_summary(self, ctx, people, people_columns):
        presenter = ReportPresenter(
            columns=people_columns,
            records=people,
            pagination=Pagination(enabled=False),
            summary=lambda rows: {"name": "Total", "id": len(rows)},
        )
        widget = ReportTable(ctx, presenter)
        assert widget.model.rowCount() == 25
        assert widget.pager.isHidden()
        assert widget.delegate is not None
        assert widget.model.actions_section() == -1
        assert [lbl.text() for lbl in widget.summary_labels] == [
            "Total",
            "",
            "25",
        ]
        presenter.apply_search("dept", "it")
        assert widget.summary_labels[2].text() == "12"

    def test_without_summary(self, ctx, people, people_columns):
        presenter = ReportPresenter(columns=people_columns, records=people)
        widget = ReportTable(ctx, presenter)
        assert widget.summary_bar.isHidden()
        assert not widget.pager.isHidden()
