# ==============================================================================
# QT PROMPTS MODULE
# ==============================================================================
# PyQt6 implementations of the core prompts, plus a worker thread that runs a
# folder conversion off the UI thread.
#
# Questions are asked on the UI thread. A conversion that runs in a worker
# must therefore be confirmed (non-empty destination) before it starts; the
# worker itself never prompts.
#
# Usage:
#   prompter = QtPrompter(parent=window)
#   result = rename_or_clone(path, "rename", HarvestSession(prompter=prompter))
# ==============================================================================

from typing import Optional, Sequence

from PyQt6.QtCore import QThread, pyqtSignal
from PyQt6.QtWidgets import QInputDialog, QLineEdit, QMessageBox, QWidget

from ..core.prompts import Prompter, YES, CANCEL
from ..core.reclassifier import FolderReclassifier, NON_EMPTY_DESTINATION_MESSAGE, is_non_empty_folder
from ..core.session import HarvestSession


_BUTTONS = {
    YES: QMessageBox.StandardButton.Yes,
    CANCEL: QMessageBox.StandardButton.Cancel,
}


class QtPrompter(Prompter):
    """
    Prompts shown as Qt dialogs. Requires a running QApplication.

    Args:
        parent: Widget the dialogs are centred on
    """

    def __init__(self, parent: Optional[QWidget] = None):
        self.parent = parent

    def ask_text(self, title: str, prompt: str, default: str = "") -> Optional[str]:
        text, ok = QInputDialog.getText(self.parent, title, prompt,
                                        QLineEdit.EchoMode.Normal, default)
        if not ok:
            return None
        return text.strip() or None

    def confirm(self, message: str, options: Sequence[str] = (YES, CANCEL)) -> Optional[str]:
        buttons = QMessageBox.StandardButton.NoButton
        for option in options:
            buttons |= _BUTTONS.get(option, QMessageBox.StandardButton.NoButton)

        clicked = QMessageBox.warning(self.parent, "Resource Harvester", message, buttons)
        for option, button in _BUTTONS.items():
            if clicked == button and option in options:
                return option
        return None


# ==============================================================================
# WORKER THREAD FOR FOLDER CONVERSION
# ==============================================================================
class ConvertWorker(QThread):
    """
    Background worker for a folder conversion.

    Signals:
        progress(int, int, str): current, total, source path
        finished(dict): MaterializeReport.to_dict()
        error(str): error message
    """
    progress = pyqtSignal(int, int, str)
    finished = pyqtSignal(dict)
    error = pyqtSignal(str)

    def __init__(self, source_pattern: str, dest_root: str, session: HarvestSession):
        super().__init__()
        self.source_pattern = source_pattern
        self.dest_root = dest_root
        self.session = session

    def run(self):
        try:
            report = FolderReclassifier(self.session).materialize(
                self.source_pattern, self.dest_root,
                confirm_non_empty=False,
                progress_callback=self.progress.emit,
            )
            self.finished.emit(report.to_dict())
        except Exception as e:
            self.error.emit(str(e))


def start_conversion(parent: QWidget, source_pattern: str, dest_root: str,
                     session: HarvestSession) -> Optional[ConvertWorker]:
    """
    Confirm the destination on the UI thread, then start a ConvertWorker.

    Returns:
        The started worker, or None if the user declined
    """
    if session.config.confirm_non_empty_destination and is_non_empty_folder(dest_root):
        if QtPrompter(parent).confirm(NON_EMPTY_DESTINATION_MESSAGE, (YES, CANCEL)) != YES:
            return None

    worker = ConvertWorker(source_pattern, dest_root, session)
    worker.start()
    return worker
