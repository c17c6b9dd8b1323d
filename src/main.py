from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db.auth import AuthError
from db.models import Profile, Session
from utils.config import get_settings
from utils.logger import get_logger
from utils.messages import (
    ChatRepliedMessage,
    QuitRequestedMessage,
    SessionChangedMessage,
    SnapshotChangedMessage,
    TabSwitchedMessage,
    UserLogoutMessage,
)
from utils.router import Tab
from utils.state import GlobalState, Snapshot
from views.scr_inventory import InventoryScreen
from views.scr_login import LoginScreen
from views.scr_logistics import LogisticsScreen
from views.scr_map import MapScreen
from views.scr_overview import OverviewScreen

_logger = get_logger(__name__)


class DashboardApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
        Binding("f1", "switch_tab('overview')", "Dashboard", show=False),
        Binding("f2", "switch_tab('inventory')", "Inventory", show=False),
        Binding("f3", "switch_tab('logistics')", "Logistics", show=False),
        Binding("f4", "switch_tab('map')", "Map", show=False),
    ]

    # screens are built on first visit of their mode
    MODES = {
        Tab.OVERVIEW.value: OverviewScreen,
        Tab.INVENTORY.value: InventoryScreen,
        Tab.LOGISTICS.value: LogisticsScreen,
        Tab.MAP.value: MapScreen,
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/overview.tcss",
        "styles/map.tcss",
        "styles/modals.tcss",
        "styles/chat.tcss",
    ]

    state: GlobalState

    def __init__(self, state: Optional[GlobalState] = None):
        super().__init__()
        self.state = state or GlobalState()
        self._had_session = False
        self._exiting = False

    @property
    def redirect_url(self) -> str:
        settings = get_settings()
        scheme = "https" if settings.tls_available else "http"
        return f"{scheme}://{settings.public_host}:{settings.serve_port}"

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.state.snapshot.subscribe(self.handle_snapshot_replaced)
        self.state.session.subscribe(self.handle_session_transition)
        await self.state.auth.initialize()
        self.main_flow()

    def handle_snapshot_replaced(self, snapshot: Snapshot) -> None:
        self.screen.post_message(SnapshotChangedMessage(snapshot))

    def handle_session_transition(
        self, session: Optional[Session], profile: Optional[Profile]
    ) -> None:
        self.screen.post_message(SessionChangedMessage(session, profile))
        had_session, self._had_session = self._had_session, session is not None
        # sign-out and expiry both land here
        if had_session and session is None and not self._exiting:
            self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def action_switch_tab(self, tab: str) -> None:
        if self.state.session.is_authenticated:
            self.switch_tab(Tab(tab))

    def switch_tab(self, tab: Tab) -> None:
        old = self.state.router.active
        if self.state.router.switch(tab):
            self.post_message(TabSwitchedMessage(old.value, tab.value))
            self.switch_mode(tab.value)

    @on(TabSwitchedMessage)
    def handle_tab_switched(self, message: TabSwitchedMessage) -> None:
        _logger.debug(f"Tab {message.old_tab} -> {message.new_tab}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        try:
            await self.state.auth.sign_out()
        except AuthError as e:
            self.notify(f"Sign out incomplete: {e}", severity="error")
            return
        self.notify("Signed out.")

    @work(group="chat")
    async def ask_assistant(self, text: str) -> None:
        """
        Runs on the app so closing the chat panel does not cancel the
        request; the reply is kept in the conversation either way.
        """
        await self.state.chat.send(text, self.state.snapshot.current)
        self.screen.post_message(ChatRepliedMessage())

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        self._exiting = True
        if self.state.session.session is not None:
            try:
                await self.state.auth.sign_out()
            except AuthError as e:
                _logger.error(f"Sign out on quit failed: {e}")
        self.exit()

    @work(exclusive=True, group="main-flow")
    async def main_flow(self):
        if not self.state.session.is_authenticated:
            await self.push_screen_wait(LoginScreen())
        self.state.router.reset()
        await self.switch_mode(Tab.OVERVIEW.value)


def run() -> None:
    app = DashboardApp()
    app.run()


if __name__ == "__main__":
    run()
