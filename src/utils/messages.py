from typing import Optional

from textual.message import Message

from db.models import Profile, Session
from utils.state import Snapshot


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user confirmed sign out
    """

    bubble = True


class SessionChangedMessage(Message):
    """
    Fired at app level after every auth transition (sign in, sign out, refresh).
    The app decides whether to show the login screen or the dashboard.
    """

    bubble = True

    def __init__(self, session: Optional[Session], profile: Optional[Profile]) -> None:
        super().__init__()
        self.session = session
        self.profile = profile


class SnapshotChangedMessage(Message):
    """
    Fired whenever the business snapshot was replaced.
    Forwarded by the app to the active screen, which re-renders from it.
    """

    bubble = True

    def __init__(self, snapshot: Snapshot) -> None:
        super().__init__()
        self.snapshot = snapshot


class TabSwitchedMessage(Message):
    """
    fired whenever the active tab changed
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_tab: str, new_tab: str) -> None:
        super().__init__()
        self.old_tab = old_tab
        self.new_tab = new_tab


class ChatRepliedMessage(Message):
    """
    posted to the active screen once the assistant answered (or gave up)
    """

    bubble = True
