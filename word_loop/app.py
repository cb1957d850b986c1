import sys
from pathlib import Path
import logging

from PyQt5 import QtWidgets

from .controller import WordLoopController
from .model.settings import resolve_log_level
from .view import WordLoopWindow


# Runs the GUI
def main() -> None:
    app = QtWidgets.QApplication(sys.argv)
    root_path = Path(__file__).resolve().parent.parent
    controller = WordLoopController(root_path)
    logging.basicConfig(
        level=resolve_log_level(controller.settings.notify.log_level),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    window = WordLoopWindow(controller)
    window.show()
    sys.exit(app.exec_())
