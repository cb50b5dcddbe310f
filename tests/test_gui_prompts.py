import pytest

pytest.importorskip("PyQt6.QtWidgets")

from PyQt6.QtCore import QCoreApplication
from PyQt6.QtWidgets import QInputDialog, QMessageBox

from resource_harvester.core.rewrite import RENAME, RewriteStatus, rename_or_clone
from resource_harvester.core.session import HarvestSession
from resource_harvester.gui.prompts import ConvertWorker, QtPrompter

from resource_builders import tuning_xml


@pytest.fixture(scope="module")
def qt_app():
    return QCoreApplication.instance() or QCoreApplication([])


def test_prompter_maps_dialog_results(monkeypatch):
    monkeypatch.setattr(QInputDialog, "getText", lambda *args: ("  creator:buff_Qt ", True))
    monkeypatch.setattr(QMessageBox, "warning", lambda *args: QMessageBox.StandardButton.Cancel)

    prompter = QtPrompter()
    assert prompter.ask_text("Title", "Prompt", "old") == "creator:buff_Qt"
    assert prompter.confirm("Overwrite?") == "Cancel"

    monkeypatch.setattr(QInputDialog, "getText", lambda *args: ("ignored", False))
    monkeypatch.setattr(QMessageBox, "warning", lambda *args: QMessageBox.StandardButton.NoButton)
    assert prompter.ask_text("Title", "Prompt") is None
    assert prompter.confirm("Overwrite?") is None


def test_rename_through_qt_prompter(tmp_path, monkeypatch):
    tuning = tmp_path / "buff_Fun.xml"
    tuning.write_text(tuning_xml("creator:buff_Fun"), encoding="utf-8")
    monkeypatch.setattr(QInputDialog, "getText", lambda *args: ("creator:buff_Qt", True))

    result = rename_or_clone(str(tuning), RENAME, HarvestSession(prompter=QtPrompter()))

    assert result.status == RewriteStatus.RENAMED
    assert (tmp_path / "buff_Qt.xml").is_file()


def test_convert_worker_reports(qt_app, tmp_path, buff_package):
    worker = ConvertWorker(str(buff_package.parent), str(tmp_path / "out"), HarvestSession())
    finished, progress = [], []
    worker.finished.connect(finished.append)
    worker.progress.connect(lambda current, total, path: progress.append(current))

    # Run on the calling thread; signals are delivered directly
    worker.run()

    assert progress == [1]
    assert len(finished) == 1
    assert len(finished[0]["writtenResources"]) == 3
