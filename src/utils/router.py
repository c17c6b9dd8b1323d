from __future__ import annotations

from enum import Enum
from typing import Callable, List


class Tab(str, Enum):
    OVERVIEW = "overview"
    INVENTORY = "inventory"
    LOGISTICS = "logistics"
    MAP = "map"

    @property
    def label(self) -> str:
        return TAB_TITLES[self]


TAB_TITLES = {
    Tab.OVERVIEW: "Dashboard",
    Tab.INVENTORY: "Inventory",
    Tab.LOGISTICS: "Logistics",
    Tab.MAP: "Shipment Map",
}

TabObserver = Callable[[Tab, Tab], None]


class ViewRouter:
    """
    Exactly one active tab. The app maps each tab to a mode and shows only
    that one; switching never touches the business snapshot.
    """

    def __init__(self, initial: Tab = Tab.OVERVIEW) -> None:
        self._active = initial
        self._observers: List[TabObserver] = []

    @property
    def active(self) -> Tab:
        return self._active

    def subscribe(self, observer: TabObserver) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def switch(self, tab: Tab | str) -> bool:
        """Make `tab` active. Returns False when it already was."""
        tab = Tab(tab)
        if tab is self._active:
            return False
        old, self._active = self._active, tab
        for observer in list(self._observers):
            observer(old, tab)
        return True

    def reset(self) -> None:
        self._active = Tab.OVERVIEW
