from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

import db.crud as crud
from db.auth import AuthClient, AuthEvent, Subscription
from db.models import Product, Profile, Session, Shipment
from utils.chat import ChatAssistant
from utils.logger import get_logger
from utils.router import ViewRouter

_logger = get_logger(__name__)


class CancelToken:
    """
    Handed to an async call by whoever may stop caring about its result,
    e.g. a screen that is about to unmount. Results that land after
    cancel() are dropped.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class Snapshot:
    products: Tuple[Product, ...] = ()
    shipments: Tuple[Shipment, ...] = ()

    def product_ids(self) -> List[str]:
        return [p.id for p in self.products]

    def shipment_ids(self) -> List[str]:
        return [s.id for s in self.shipments]


SnapshotObserver = Callable[[Snapshot], None]


class BusinessSnapshot:
    """
    Owns the in-memory products and shipments shared by every view.

    The snapshot is only ever replaced wholesale. refresh() reads both
    collections independently; a failed read keeps the previous value of
    that collection. Concurrent refreshes are not ordered, whichever
    response lands last wins.
    """

    def __init__(
        self,
        fetch_products: Callable[[], Awaitable[Sequence[Product]]] = crud.list_products,
        fetch_shipments: Callable[[], Awaitable[Sequence[Shipment]]] = crud.list_shipments,
    ) -> None:
        self._fetch_products = fetch_products
        self._fetch_shipments = fetch_shipments
        self._current = Snapshot()
        self._observers: List[SnapshotObserver] = []

    @property
    def current(self) -> Snapshot:
        return self._current

    def subscribe(self, observer: SnapshotObserver) -> Callable[[], None]:
        """Register an observer; returns a callable that removes it again."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def replace(
        self,
        products: Optional[Sequence[Product]] = None,
        shipments: Optional[Sequence[Shipment]] = None,
    ) -> Snapshot:
        """Swap in new collections; a collection passed as None is kept."""
        self._current = Snapshot(
            products=tuple(products) if products is not None else self._current.products,
            shipments=tuple(shipments)
            if shipments is not None
            else self._current.shipments,
        )
        for observer in list(self._observers):
            observer(self._current)
        return self._current

    async def refresh(self, cancel_token: Optional[CancelToken] = None) -> Snapshot:
        async def load(name: str, fetch):
            try:
                rows = await fetch()
            except Exception as e:
                # stale data stays visible, nothing is surfaced
                _logger.error(f"Error fetching {name}: {e}")
                return
            if cancel_token is not None and cancel_token.cancelled:
                _logger.debug(f"Dropping {name} response, caller went away")
                return
            self.replace(**{name: rows})

        await asyncio.gather(
            load("products", self._fetch_products),
            load("shipments", self._fetch_shipments),
        )
        return self._current


SessionObserver = Callable[[Optional[Session], Optional[Profile]], None]


class SessionStore:
    """
    Follows the auth-state-change stream. A new session fetches the
    profile, then refreshes the business snapshot. Signing out clears the
    session and profile only; the snapshot keeps its last data.
    """

    def __init__(
        self,
        auth: AuthClient,
        snapshot: BusinessSnapshot,
        fetch_profile: Callable[[str], Awaitable[Optional[Profile]]] = crud.get_profile,
    ) -> None:
        self.session: Optional[Session] = None
        self.profile: Optional[Profile] = None

        self._snapshot = snapshot
        self._fetch_profile = fetch_profile
        self._observers: List[SessionObserver] = []
        self._subscription: Subscription = auth.on_auth_state_change(
            self.handle_auth_event
        )

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None and not self.session.expired

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(self.session, self.profile)

    async def handle_auth_event(
        self, event: AuthEvent, session: Optional[Session]
    ) -> None:
        if session is None:
            self.session = None
            self.profile = None
            self._notify()
            return

        self.session = session
        self.profile = None
        try:
            profile = await self._fetch_profile(session.user_id)
        except Exception as e:
            _logger.warning(f"Profile fetch failed for {session.user_id}: {e}")
            profile = None
        if self.session is not session:
            # signed out or replaced while the profile was loading
            return
        self.profile = profile
        self._notify()

        await self._snapshot.refresh()

    def close(self) -> None:
        self._subscription.unsubscribe()


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - auth: the auth collaborator client
      - snapshot: shared products/shipments
      - session: current session and profile, follows auth events
      - router: active tab
      - chat: assistant conversation, kept across tab switches
    """

    auth: AuthClient = field(default_factory=AuthClient)
    snapshot: BusinessSnapshot = field(default_factory=BusinessSnapshot)
    router: ViewRouter = field(default_factory=ViewRouter)
    chat: ChatAssistant = field(default_factory=ChatAssistant)
    session: SessionStore = field(init=False)

    def __post_init__(self) -> None:
        self.session = SessionStore(self.auth, self.snapshot)
