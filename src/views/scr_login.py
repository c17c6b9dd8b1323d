from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from db.auth import OAUTH_PROVIDERS, AuthError
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal, SimpleDialogModal


class LoginScreen(BaseScreen):
    """
    Sign in / sign up. Dismissed once the auth client reports a session;
    auth errors are shown inline under the form.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Sign In", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Sign In", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email address")
                    yield Input(placeholder="you@ajcgroup.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="••••••••", password=True, id="input-login-pwd"
                    )
                    yield Label("", id="label-login-message", classes="auth-message")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Sign In", id="btn-login", variant="primary")
                    yield Label("Or continue with", classes="auth-divider")
                    with Horizontal(id="div-oauth-btns"):
                        for provider in OAUTH_PROVIDERS:
                            yield Button(
                                provider.capitalize(),
                                id=f"btn-oauth-{provider}",
                                classes="btn-oauth",
                            )

            with TabPane("Register", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Email address")
                    yield Input(placeholder="you@ajcgroup.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="••••••••", password=True, id="input-reg-pwd"
                    )
                    yield Label("", id="label-reg-message", classes="auth-message")
                    with Horizontal(id="div-reg-btns"):
                        yield Button(
                            "Register Account", id="btn-reg", variant="primary"
                        )

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def check_action(self, action: str, parameters) -> bool:
        # no data views before signing in
        return action not in ("open_chat", "reload")

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    def show_message(self, label_id: str, text: str) -> None:
        self.query_one(label_id, Label).update(text)

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        self.show_message("#label-login-message", "")
        btn = self.query_one("#btn-login", Button)
        btn.disabled = True
        btn.label = "Processing..."
        try:
            session = await self.app.state.auth.sign_in(email, pwd)
        except AuthError as e:
            self.show_message("#label-login-message", str(e))
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return
        finally:
            btn.disabled = False
            btn.label = "Sign In"

        self.notify(f"Welcome {session.email}!")
        self.dismiss()

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value

        self.show_message("#label-reg-message", "")
        try:
            await self.app.state.auth.sign_up(email, pwd)
        except AuthError as e:
            self.show_message("#label-reg-message", str(e))
            return

        await self.app.push_screen_wait(
            SimpleDialogModal("Registration successful! You can sign in now.")
        )

        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = email
        input_login_pwd = self.query_one("#input-login-pwd", Input)
        input_login_pwd.value = ""
        input_login_pwd.focus()

    @on(Button.Pressed, ".btn-oauth")
    def handle_oauth(self, event: Button.Pressed) -> None:
        provider = event.button.id.removeprefix("btn-oauth-")
        try:
            url = self.app.state.auth.sign_in_with_oauth(
                provider, self.app.redirect_url
            )
        except AuthError as e:
            self.show_message("#label-login-message", str(e))
            return
        self.app.open_url(url)
        self.notify(f"Continue the {provider.capitalize()} sign in in your browser.")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
