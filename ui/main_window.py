# ui/main_window.py
import time
import urllib.request
from pathlib import Path

from PySide6.QtCore import Qt, QEasingCurve, QPoint, QPropertyAnimation, QParallelAnimationGroup, QTimer
from PySide6.QtGui import QGuiApplication, QIcon, QPainter, QPainterPath, QPixmap
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QFrame, QStackedWidget, QProgressBar,
    QGraphicsOpacityEffect, QMenu, QSystemTrayIcon
)

from core.config import Settings
from core.formatting import get_server_name
from .worker import PresenceWorker

PRIMARY = "#00a4dc"
BG = "#1c2a3a"


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings):
        super().__init__()

        self.setWindowTitle("Media Status")
        self.setFixedSize(520, 620)

        self.settings = settings
        self.worker = None
        self._artwork_url = ""
        self._start_ms = 0
        self._end_ms = 0
        self._tray = None
        self._icon = self._load_app_icon()
        self._force_quit = False

        root = QWidget()
        root.setObjectName("Root")
        root_layout = QVBoxLayout(root)
        root_layout.setAlignment(Qt.AlignCenter)
        root_layout.setContentsMargins(0, 0, 0, 0)

        self.stack = QStackedWidget()

        self.connect_page = self._build_connect_page()
        self.dashboard_page = self._build_dashboard_page()

        self.stack.addWidget(self.connect_page)
        self.stack.addWidget(self.dashboard_page)

        root_layout.addWidget(self.stack)
        self.setCentralWidget(root)

        self._apply_styles()
        self._fade_in_root()

        self._init_tray()
        if self._icon:
            self.setWindowIcon(self._icon)

        # Progress bar is driven locally between polls
        self._progress_timer = QTimer(self)
        self._progress_timer.setInterval(1000)
        self._progress_timer.timeout.connect(self._refresh_progress)

        self.stack.setCurrentWidget(self.connect_page)

    # ==================================================
    # CONNECT PAGE
    # ==================================================

    def _build_connect_page(self):
        page = QWidget()
        page.setObjectName("ConnectPage")
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignCenter)

        card = QFrame()
        card.setObjectName("Card")
        card.setFixedWidth(420)

        v = QVBoxLayout(card)
        v.setSpacing(18)
        v.setContentsMargins(28, 28, 28, 28)

        title = QLabel("Connect Your Media Server")
        title.setObjectName("Title")
        title.setAlignment(Qt.AlignCenter)

        subtitle = QLabel("Show what you're watching or listening to on your Discord profile")
        subtitle.setObjectName("Subtitle")
        subtitle.setAlignment(Qt.AlignCenter)
        subtitle.setWordWrap(True)

        server = QLabel(f"{get_server_name(self.settings)} • {self.settings.server_url or 'no server configured'}")
        server.setObjectName("Foot2")
        server.setAlignment(Qt.AlignCenter)
        server.setWordWrap(True)

        self.connect_btn = QPushButton("Connect Now")
        self.connect_btn.setObjectName("CTA")
        self.connect_btn.clicked.connect(self._on_connect_clicked)

        self.connect_status = QLabel("")
        self.connect_status.setObjectName("Foot")
        self.connect_status.setAlignment(Qt.AlignCenter)
        self.connect_status.setWordWrap(True)

        v.addWidget(title)
        v.addWidget(subtitle)
        v.addWidget(server)
        v.addWidget(self.connect_btn)
        v.addWidget(self.connect_status)

        layout.addWidget(card)
        return page

    # ==================================================
    # DASHBOARD PAGE
    # ==================================================

    def _build_dashboard_page(self):
        page = QWidget()
        page.setObjectName("DashboardPage")
        layout = QVBoxLayout(page)
        layout.setAlignment(Qt.AlignTop)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(16)

        # Account card
        account = QFrame()
        account.setObjectName("GlassCard")
        av = QVBoxLayout(account)
        av.setContentsMargins(20, 18, 20, 18)
        av.setSpacing(4)

        self.acc_title = QLabel("Connecting…")
        self.acc_title.setObjectName("DashTitle")

        self.acc_sub = QLabel(get_server_name(self.settings))
        self.acc_sub.setObjectName("DashMuted")

        av.addWidget(self.acc_title)
        av.addWidget(self.acc_sub)

        # Now Playing card
        now = QFrame()
        now.setObjectName("NowCard")
        nv = QVBoxLayout(now)
        nv.setContentsMargins(26, 24, 26, 24)
        nv.setSpacing(8)

        self.d_art = QLabel("▶")
        self.d_art.setObjectName("ArtBig")
        self.d_art.setFixedSize(200, 200)
        self.d_art.setAlignment(Qt.AlignCenter)

        self.d_details = QLabel("Nothing playing")
        self.d_details.setObjectName("Details")
        self.d_details.setWordWrap(True)
        self.d_details.setAlignment(Qt.AlignCenter)

        self.d_state = QLabel("—")
        self.d_state.setObjectName("State")
        self.d_state.setWordWrap(True)
        self.d_state.setAlignment(Qt.AlignCenter)

        self.d_status = QLabel("")
        self.d_status.setObjectName("PlayingLine")
        self.d_status.setAlignment(Qt.AlignCenter)
        self.d_status.setWordWrap(True)

        self.d_progress = QProgressBar()
        self.d_progress.setObjectName("TrackProgress")
        self.d_progress.setRange(0, 1000)
        self.d_progress.setValue(0)
        self.d_progress.setTextVisible(False)
        self.d_progress.setFixedHeight(8)

        time_row = QWidget()
        time_layout = QHBoxLayout(time_row)
        time_layout.setContentsMargins(0, 0, 0, 0)
        time_layout.setSpacing(8)

        self.d_time_left = QLabel("0:00")
        self.d_time_left.setObjectName("TimeText")

        self.d_time_right = QLabel("0:00")
        self.d_time_right.setObjectName("TimeText")

        time_layout.addWidget(self.d_time_left, 0, Qt.AlignLeft)
        time_layout.addStretch()
        time_layout.addWidget(self.d_time_right, 0, Qt.AlignRight)

        nv.addWidget(self.d_art, 0, Qt.AlignHCenter)
        nv.addWidget(self.d_details)
        nv.addWidget(self.d_state)
        nv.addWidget(self.d_status)
        nv.addWidget(self.d_progress)
        nv.addWidget(time_row)

        layout.addWidget(account)
        layout.addWidget(now)

        footer = QLabel("Media Status")
        footer.setObjectName("FooterNote")
        footer.setAlignment(Qt.AlignCenter)
        layout.addWidget(footer)

        return page

    # ==================================================
    # WORKER HOOKUP
    # ==================================================

    def _on_connect_clicked(self):
        self.connect_btn.setEnabled(False)
        self.connect_status.setText("Connecting…")

        self._start_worker()
        self.stack.setCurrentWidget(self.dashboard_page)

    def _start_worker(self):
        if self.worker:
            return

        self.worker = PresenceWorker(self.settings, parent=self)
        self.worker.presence.connect(self._on_presence)
        self.worker.status.connect(self._on_worker_status)
        self.worker.account.connect(self._on_account)
        self.worker.start()
        self._progress_timer.start()

    def _on_worker_status(self, msg: str):
        self.connect_status.setText(msg)
        self.d_status.setText(msg)

    def _on_account(self, info: dict):
        self.acc_title.setText(info.get("name") or "Connected")
        self.acc_sub.setText(f"Discord account • {info.get('server') or ''}")

    def _format_time(self, ms: int) -> str:
        total = max(0, int(ms) // 1000)
        hours, rest = divmod(total, 3600)
        mins, secs = divmod(rest, 60)
        if hours:
            return f"{hours}:{mins:02d}:{secs:02d}"
        return f"{mins}:{secs:02d}"

    def _on_presence(self, activity: dict):
        if activity:
            self.d_details.setText(activity.get("details") or activity.get("name") or "")
            self.d_state.setText(activity.get("state") or "")
            verb = "Listening to" if activity.get("listening") else "Watching"
            self.d_status.setText(f"{verb} {activity.get('name') or ''}".strip())
        else:
            self.d_details.setText("Nothing playing")
            self.d_state.setText("—")
            self.d_status.setText("Idle")

        self._start_ms = int(activity.get("start") or 0)
        self._end_ms = int(activity.get("end") or 0)
        self._refresh_progress()

        artwork_url = activity.get("image_url") or ""
        if artwork_url != self._artwork_url:
            self._artwork_url = artwork_url
            self._set_artwork(artwork_url)

    def _refresh_progress(self):
        duration = self._end_ms - self._start_ms
        if duration <= 0:
            self.d_progress.setValue(0)
            self.d_time_left.setText("0:00")
            self.d_time_right.setText("0:00")
            return

        elapsed = int(time.time() * 1000) - self._start_ms
        elapsed = max(0, min(duration, elapsed))
        self.d_progress.setValue(int(elapsed / duration * 1000))
        self.d_time_left.setText(self._format_time(elapsed))
        self.d_time_right.setText(self._format_time(duration))

    def _set_artwork(self, url: str):
        if url:
            try:
                with urllib.request.urlopen(url, timeout=2) as resp:
                    data = resp.read()
                pix = QPixmap()
                if pix.loadFromData(data):
                    scaled = pix.scaled(
                        self.d_art.size(),
                        Qt.KeepAspectRatioByExpanding,
                        Qt.SmoothTransformation,
                    )
                    self.d_art.setPixmap(self._rounded_pixmap(scaled, radius=22))
                    self.d_art.setText("")
                    return
            except Exception:
                pass

        self.d_art.setPixmap(QPixmap())
        self.d_art.setText("▶")

    def _fade_in_root(self):
        effect = QGraphicsOpacityEffect(self.stack)
        self.stack.setGraphicsEffect(effect)
        effect.setOpacity(0.0)

        start_pos = self.stack.pos() + QPoint(0, 10)
        end_pos = self.stack.pos()
        self.stack.move(start_pos)

        anim = QPropertyAnimation(effect, b"opacity")
        anim.setDuration(420)
        anim.setStartValue(0.0)
        anim.setEndValue(1.0)
        anim.setEasingCurve(QEasingCurve.OutCubic)

        move = QPropertyAnimation(self.stack, b"pos")
        move.setDuration(420)
        move.setStartValue(start_pos)
        move.setEndValue(end_pos)
        move.setEasingCurve(QEasingCurve.OutCubic)

        group = QParallelAnimationGroup(self)
        group.addAnimation(anim)
        group.addAnimation(move)
        group.start()

        def _finish():
            self.stack.setGraphicsEffect(None)
            self.stack.move(end_pos)

        group.finished.connect(_finish)
        # Keep a ref so GC doesn't stop the animation
        self._root_fade = group

    def _rounded_pixmap(self, pixmap: QPixmap, radius: int) -> QPixmap:
        size = self.d_art.size()
        rounded = QPixmap(size)
        rounded.fill(Qt.transparent)

        painter = QPainter(rounded)
        painter.setRenderHints(QPainter.Antialiasing | QPainter.SmoothPixmapTransform)

        path = QPainterPath()
        path.addRoundedRect(0, 0, size.width(), size.height(), radius, radius)
        painter.setClipPath(path)
        painter.drawPixmap(0, 0, pixmap)
        painter.end()

        return rounded

    # ==================================================
    # CLEAN SHUTDOWN
    # ==================================================

    def closeEvent(self, event):
        # Minimize to tray if available
        if self._tray and self._tray.isVisible() and not self._force_quit:
            self.hide()
            event.ignore()
            return

        self._stop_worker()
        event.accept()

    def _init_tray(self):
        if not QSystemTrayIcon.isSystemTrayAvailable():
            return

        tray = QSystemTrayIcon(self)
        tray.setToolTip("Media Status")
        if self._icon:
            tray.setIcon(self._icon)

        menu = QMenu()
        action_show = menu.addAction("Show")
        action_quit = menu.addAction("Quit")

        action_show.triggered.connect(self._show_from_tray)
        action_quit.triggered.connect(self._quit_from_tray)
        tray.activated.connect(self._on_tray_activated)

        tray.setContextMenu(menu)
        tray.show()
        self._tray = tray

    def _on_tray_activated(self, reason):
        if reason == QSystemTrayIcon.Trigger:
            self._show_from_tray()

    def _show_from_tray(self):
        self.show()
        self.raise_()
        self.activateWindow()

    def _quit_from_tray(self):
        self._force_quit = True
        self._stop_worker()
        app = QGuiApplication.instance()
        if app:
            app.quit()
        else:
            self.close()

    def _load_app_icon(self):
        icon_path = Path(__file__).resolve().parents[1] / "logo.png"
        if icon_path.exists():
            return QIcon(str(icon_path))
        return None

    def _stop_worker(self):
        self._progress_timer.stop()
        if not self.worker:
            return
        self.worker.stop()
        # Worker stops the controller (which clears presence) before returning
        if self.worker.isRunning():
            self.worker.wait(3000)
        self.worker = None

    # ==================================================
    # STYLES
    # ==================================================

    def _apply_styles(self):
        self.setStyleSheet(f"""
            * {{
                background: transparent;
                outline: none;
            }}

            QWidget {{
                color: white;
                font-family: -apple-system, BlinkMacSystemFont,
                             "Segoe UI", Inter, Arial;
            }}

            QMainWindow, QWidget#Root {{
                background-color: {BG};
            }}

            QLabel {{
                background: transparent;
                qproperty-textInteractionFlags: NoTextInteraction;
            }}

            QFrame#Card {{
                background-color: {PRIMARY};
                border-radius: 24px;
            }}

            QLabel#Title {{
                font-size: 22px;
                font-weight: 800;
            }}

            QLabel#Subtitle {{
                font-size: 14px;
                color: rgba(255,255,255,0.9);
            }}

            QPushButton#CTA {{
                background-color: white;
                color: {PRIMARY};
                border-radius: 16px;
                padding: 14px;
                font-size: 15px;
                font-weight: 800;
            }}

            QPushButton#CTA:hover {{
                background-color: #f0f0f0;
            }}

            QLabel#Foot, QLabel#Foot2 {{
                font-size: 11px;
                color: rgba(255,255,255,0.88);
            }}

            QFrame#GlassCard {{
                background-color: rgba(255,255,255,0.10);
                border: 1px solid rgba(255,255,255,0.18);
                border-radius: 22px;
            }}

            QFrame#NowCard {{
                background-color: rgba(255,255,255,0.16);
                border: 1px solid rgba(255,255,255,0.24);
                border-radius: 32px;
            }}

            QLabel#DashTitle {{
                font-size: 18px;
                font-weight: 800;
            }}

            QLabel#DashMuted, QLabel#PlayingLine {{
                font-size: 12px;
                color: rgba(255,255,255,0.70);
            }}

            QLabel#Details {{
                font-size: 20px;
                font-weight: 900;
            }}

            QLabel#State {{
                font-size: 14px;
                color: rgba(255,255,255,0.90);
            }}

            QLabel#ArtBig {{
                background-color: rgba(255,255,255,0.16);
                border-radius: 20px;
                color: rgba(255,255,255,0.85);
                font-size: 28px;
                font-weight: 800;
            }}

            QProgressBar#TrackProgress {{
                background-color: rgba(255,255,255,0.22);
                border: 0px;
                border-radius: 5px;
            }}

            QProgressBar#TrackProgress::chunk {{
                background-color: rgba(255,255,255,0.90);
                border-radius: 5px;
            }}

            QLabel#TimeText, QLabel#FooterNote {{
                font-size: 11px;
                color: rgba(255,255,255,0.75);
            }}
        """)
