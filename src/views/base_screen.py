from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import (
    SessionChangedMessage,
    SnapshotChangedMessage,
    UserLogoutMessage,
)
from utils.pure import generate_markdown_table
from utils.router import Tab
from utils.state import CancelToken, Snapshot
from views.modal_chat import ChatModal
from views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    def compose(self) -> ComposeResult:
        yield Label("AJC [b red]POC[/]", id="label-brand")
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Sign Out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(
            *[ListItem(Label(tab.label), id="list-menu-item-" + tab.value) for tab in Tab],
            id="list-menu",
        )

    async def on_mount(self):
        await self.render_profile()
        self.highlight_item(self.app.state.router.active)

    async def render_profile(self) -> None:
        store = self.app.state.session
        if store.session is None:
            await self.query_one(Markdown).update("")
            return

        profile = store.profile
        if profile is not None:
            initial = (profile.full_name or "U")[0].upper()
            table_rows = [
                ["Name", f"**{initial}** {profile.full_name}"],
                ["Email", profile.email],
                ["Role", profile.role.value.capitalize()],
            ]
        else:
            # profile fetch failed or the row is missing
            table_rows = [["Email", store.session.email]]
        md_table_str = generate_markdown_table(["", ""], table_rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected = Tab(event.item.id.removeprefix("list-menu-item-"))
        self.app.switch_tab(selected)
        self.highlight_item(self.app.state.router.active)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to sign out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, tab: Tab):
        list_menu = self.query_one("#list-menu", ListView)
        for i, item in enumerate(list_menu.children):
            if item.id == "list-menu-item-" + tab.value:
                list_menu.index = i
                item.highlighted = True
            else:
                item.highlighted = False


class BaseScreen(Screen):
    """
    Inherited by all dashboard screens, contains common elements like
    header, footer, sidebar and keybindings.

    Subclasses implement render_snapshot(); it runs on mount, whenever the
    screen is shown again and whenever the snapshot is replaced.
    """

    BINDINGS = [
        Binding("ctrl+b", "open_chat", "AJC-Bot", show=True),
        Binding("ctrl+r", "reload", "Reload", show=True),
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    TAB: Tab = Tab.OVERVIEW

    def __init__(self):
        super().__init__()
        # cancelled on unmount so late responses are dropped
        self.cancel_token = CancelToken()
        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.title = "AJC International"
        self.sub_title = header_sub_title or self.TAB.label
        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    def on_unmount(self) -> None:
        self.cancel_token.cancel()

    @on(ScreenResume)
    async def handle_resume(self) -> None:
        if self._show_sidebar:
            sidebar = self.query_one(Sidebar)
            sidebar.highlight_item(self.app.state.router.active)
            # another user may have signed in while this screen was hidden
            await sidebar.render_profile()
        await self.render_snapshot(self.app.state.snapshot.current)

    @on(SnapshotChangedMessage)
    async def handle_snapshot_changed(self) -> None:
        await self.render_snapshot(self.app.state.snapshot.current)

    @on(SessionChangedMessage)
    async def handle_session_changed(self) -> None:
        if self._show_sidebar:
            await self.query_one(Sidebar).render_profile()

    async def render_snapshot(self, snapshot: Snapshot) -> None:
        pass

    @work(group="reload")
    async def action_reload(self) -> None:
        await self.app.state.snapshot.refresh(self.cancel_token)
        self.notify("Data reloaded.")

    def action_open_chat(self) -> None:
        self.app.push_screen(ChatModal())

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
