# ===== Part 1: Imports & Logging ============================================
import logging
import sys
from typing import Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QDialog, QMainWindow, QTabWidget, QWidget

from modules.contracts.ui.archive_panel import ArchivePanel
from modules.contracts.ui.output import ContractOutput
from modules.contracts.ui.workspace_panel import WorkspacePanel
from modules.finance.panels.ledger_panel import LedgerPanel
from modules.reports.panels import ReportsPanel
from modules.session.login_dialog import LoginDialog
from modules.settings.panels import SettingsPanel
from modules.users.permissions import first_allowed_tab
from notifications.models import Notification
from notifications.panels.toast import ToastOverlay
from notifications.services import Notifier
from utils.app_settings import load_config
from utils.state import AppContext, build_context

logger = logging.getLogger(__name__)

TAB_TITLES = {
    "workspace": "میز کار",
    "archive": "بایگانی",
    "accounting": "امور مالی",
    "reports": "گزارشات",
    "settings": "تنظیمات",
}


# ===== Part 2: Main Window ==================================================
class MainWindow(QMainWindow):
    """Tabbed shell; only the tabs the signed-in user may see are built."""

    def __init__(self, ctx: AppContext, notifier: Notifier) -> None:
        super().__init__()
        self.ctx = ctx
        self.setWindowTitle(f"TrackDesk  |  {ctx.current_user.username if ctx.current_user else ''}")
        self.setLayoutDirection(Qt.RightToLeft)
        self.resize(1360, 860)

        self.output = ContractOutput(ctx)
        self.tabs = QTabWidget()
        self.tab_keys: Dict[int, str] = {}
        self.panels: Dict[str, QWidget] = {}
        self.setCentralWidget(self.tabs)
        self._build_tabs()

        self.toast = ToastOverlay(self)
        notifier.showToast.connect(self.toast.show_payload)

        logout = QAction("خروج از حساب", self)
        logout.triggered.connect(self.sign_out)
        self.menuBar().addMenu("حساب کاربری").addAction(logout)

        self.tabs.currentChanged.connect(self._on_tab_changed)
        first = first_allowed_tab(ctx.access) if ctx.access else None
        if first is not None:
            self.show_tab(first)
        self._on_tab_changed(self.tabs.currentIndex())

    def _build_tabs(self) -> None:
        access = self.ctx.access
        if access is None:
            return
        factories = {
            "workspace": lambda: WorkspacePanel(self.ctx, self.output),
            "archive": lambda: ArchivePanel(self.ctx, self.output),
            "accounting": lambda: LedgerPanel(self.ctx),
            "reports": lambda: ReportsPanel(self.ctx),
            "settings": lambda: SettingsPanel(self.ctx),
        }
        for key in access.visible_tabs():
            panel = factories[key]()
            self.panels[key] = panel
            index = self.tabs.addTab(panel, TAB_TITLES[key])
            self.tab_keys[index] = key

        workspace = self.panels.get("workspace")
        archive = self.panels.get("archive")
        if isinstance(archive, ArchivePanel) and isinstance(workspace, WorkspacePanel):
            archive.editRequested.connect(self._edit_contract)
            workspace.contractSaved.connect(archive.refresh)

    def show_tab(self, key: str) -> None:
        for index, tab_key in self.tab_keys.items():
            if tab_key == key:
                self.tabs.setCurrentIndex(index)
                return

    def _on_tab_changed(self, index: int) -> None:
        panel = self.tabs.widget(index)
        if panel is None:
            return
        if isinstance(panel, WorkspacePanel):
            panel.picker.refresh()
        elif isinstance(panel, LedgerPanel):
            panel.refresh_clients()
        elif hasattr(panel, "refresh"):
            panel.refresh()

    def _edit_contract(self, contract) -> None:
        workspace = self.panels.get("workspace")
        if isinstance(workspace, WorkspacePanel) and workspace.open_contract(contract):
            self.show_tab("workspace")

    def sign_out(self) -> None:
        self.ctx.sign_out()
        self.close()

    def resizeEvent(self, event) -> None:  # noqa: N802 - Qt override
        super().resizeEvent(event)
        if self.toast.isVisible():
            self.toast.reposition()


# ===== Part 3: Startup ======================================================
def sign_in(ctx: AppContext) -> bool:
    if ctx.restore_session():
        return True
    login = LoginDialog(ctx.users)
    if login.exec() != QDialog.Accepted or login.user is None:
        return False
    ctx.sign_in(login.user)
    ctx.notify(Notification("ورود", f"خوش آمدید، {login.user.username}", severity="success", source="session"))
    return True


def main(argv: Optional[list] = None) -> int:
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app = QApplication(argv if argv is not None else sys.argv)
    app.setLayoutDirection(Qt.RightToLeft)

    notifier = Notifier()
    ctx = build_context(config, notifier.notify)
    ctx.load_template()

    try:
        while True:
            if not sign_in(ctx):
                return 0
            win = MainWindow(ctx, notifier)
            win.show()
            code = app.exec()
            notifier.showToast.disconnect(win.toast.show_payload)
            win.deleteLater()
            # signing out closes the window and shows the login dialog again
            if ctx.current_user is not None:
                return code
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
