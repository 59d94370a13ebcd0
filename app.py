import sys
from pathlib import Path
from PySide6.QtWidgets import QApplication, QMessageBox
from PySide6.QtGui import QIcon

from core.config import load_settings
from core.errors import ConfigError
from ui.main_window import MainWindow

def main():
    app = QApplication(sys.argv)
    icon_path = Path(__file__).resolve().parent / "logo.png"
    if icon_path.exists():
        app.setWindowIcon(QIcon(str(icon_path)))

    try:
        settings = load_settings()
    except ConfigError as e:
        QMessageBox.critical(None, "Media Status", str(e))
        return 1

    app.setQuitOnLastWindowClosed(False)
    win = MainWindow(settings)
    win.show()
    app.aboutToQuit.connect(win._stop_worker)
    return app.exec()

if __name__ == "__main__":
    sys.exit(main())
