"""
Operator console application controller.

Drains the bridge's event queue, routes events to the tab views, renders the
active tab and dispatches key presses, all from one update/render loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import ExitStack
from enum import Enum
from typing import Callable, Optional, Protocol, Tuple

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.rule import Rule

from macula.services.console.clients.nats_bridge import TopicBridge
from macula.services.console.errors import BridgeConnectionError, CommandSendError
from macula.services.console.events import (
    AppStatusReceived,
    DomainEvent,
    EventQueue,
    LogReceived,
    PeerDisconnected,
    PeerDiscovered,
)
from macula.services.console.logger import hold_stderr_logs
from macula.services.console.terminal import InputEvent, KeyboardInput
from macula.services.console.ui.theme import DEFAULT_THEME, Theme
from macula.services.console.ui.widgets import LOGO_HEIGHT, Region, help_bar, logo, tab_bar
from macula.services.console.views import AppsView, DashboardView, LogsView, PeersView
from macula.services.console.views.logs import MAX_LOG_ENTRIES
from macula.shared.config import ConsoleSettings
from macula.shared.models import (
    Command,
    RestartAppCommand,
    RestartNodeCommand,
    StartAppCommand,
    StopAppCommand,
)

logger = logging.getLogger(__name__)

STATUS_TTL_S = 3.0
# Logo is hidden below this terminal height.
MIN_HEIGHT_FOR_LOGO = 24


class Tab(Enum):
    DASHBOARD = "Dashboard"
    PEERS = "Peers"
    APPS = "Apps"
    LOGS = "Logs"

    @property
    def title(self) -> str:
        return self.value

    @property
    def index(self) -> int:
        return TAB_ORDER.index(self)


TAB_ORDER: Tuple[Tab, ...] = (Tab.DASHBOARD, Tab.PEERS, Tab.APPS, Tab.LOGS)

HELP_TEXT = {
    Tab.DASHBOARD: "q: Quit | Tab: Next tab | 1-4: Switch tab | R: Restart node",
    Tab.PEERS: "q: Quit | Tab: Next tab | j/k: Navigate",
    Tab.APPS: "q: Quit | Tab: Next tab | j/k: Navigate | s: Start | x: Stop | r: Restart",
    Tab.LOGS: "q: Quit | Tab: Next tab | j/k: Scroll | G: Bottom | c: Clear | l: Level | f: Service",
}

QUIT_KEYS = {"q", "esc", "ctrl+c"}
DIRECT_TAB_KEYS = {"1": Tab.DASHBOARD, "2": Tab.PEERS, "3": Tab.APPS, "4": Tab.LOGS}
NEXT_KEYS = {"down", "j"}
PREVIOUS_KEYS = {"up", "k"}


class KeySource(Protocol):
    def poll_events(self, timeout_ms: int) -> list[InputEvent]:
        ...


class LiveSurface(Protocol):
    @property
    def console(self) -> Console:
        ...

    def update(self, renderable: RenderableType, *, refresh: bool = False) -> None:
        ...


class ConsoleApp:
    """Owns the active tab, the four views and the queue's consumer end."""

    def __init__(
        self,
        bridge: TopicBridge,
        *,
        theme: Theme = DEFAULT_THEME,
        log_capacity: int = MAX_LOG_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.bridge = bridge
        self.events: EventQueue = bridge.events
        self.theme = theme
        self.tab = Tab.DASHBOARD
        self.should_quit = False
        self.dashboard = DashboardView()
        self.peers = PeersView()
        self.apps = AppsView()
        self.logs = LogsView(capacity=log_capacity)
        self._clock = clock
        self._status: Optional[Tuple[str, float]] = None

    # Events

    def process_events(self) -> int:
        """Apply every queued event in arrival order; returns how many."""
        events = self.events.drain()
        for event in events:
            self.dispatch(event)
        return len(events)

    def dispatch(self, event: DomainEvent) -> None:
        if isinstance(event, (PeerDiscovered, PeerDisconnected)):
            self.peers.apply(event)
            self.dashboard.peer_count = len(self.peers.peers)
        elif isinstance(event, LogReceived):
            self.logs.apply(event)
        elif isinstance(event, AppStatusReceived):
            self.apps.apply(event)
        else:
            self.dashboard.apply(event)

    # Tabs

    def next_tab(self) -> None:
        self.tab = TAB_ORDER[(self.tab.index + 1) % len(TAB_ORDER)]

    def prev_tab(self) -> None:
        self.tab = TAB_ORDER[(self.tab.index - 1) % len(TAB_ORDER)]

    def select_tab(self, tab: Tab) -> None:
        self.tab = tab

    # Keys

    async def handle_key(self, key: str) -> None:
        if self._handle_global_key(key):
            return
        if self.tab is Tab.DASHBOARD:
            if key == "R":
                await self.send(RestartNodeCommand())
        elif self.tab is Tab.PEERS:
            if key in NEXT_KEYS:
                self.peers.select_next()
            elif key in PREVIOUS_KEYS:
                self.peers.select_previous()
        elif self.tab is Tab.APPS:
            await self._handle_apps_key(key)
        elif self.tab is Tab.LOGS:
            self._handle_logs_key(key)

    def _handle_global_key(self, key: str) -> bool:
        if key in QUIT_KEYS:
            self.should_quit = True
        elif key == "tab":
            self.next_tab()
        elif key == "backtab":
            self.prev_tab()
        elif key in DIRECT_TAB_KEYS:
            self.select_tab(DIRECT_TAB_KEYS[key])
        else:
            return False
        return True

    async def _handle_apps_key(self, key: str) -> None:
        if key in NEXT_KEYS:
            self.apps.select_next()
            return
        if key in PREVIOUS_KEYS:
            self.apps.select_previous()
            return
        factories = {"s": StartAppCommand, "x": StopAppCommand, "r": RestartAppCommand}
        factory = factories.get(key)
        if factory is None:
            return
        app_id = self.apps.selected_app_id()
        if app_id is None:
            return
        await self.send(factory(app_id=app_id))

    def _handle_logs_key(self, key: str) -> None:
        if key in NEXT_KEYS:
            self.logs.scroll_down()
        elif key in PREVIOUS_KEYS:
            self.logs.scroll_up()
        elif key == "G":
            self.logs.scroll_to_bottom()
        elif key == "c":
            self.logs.clear()
        elif key == "l":
            self.logs.cycle_level_filter()
        elif key == "f":
            self.logs.cycle_service_filter()

    async def send(self, command: Command) -> bool:
        """Hand ``command`` to the bridge once; failures become a status line."""
        try:
            await self.bridge.send_command(command)
        except CommandSendError as exc:
            logger.warning("Command %s not sent: %s", command.type, exc)
            self.set_status(f"{command.type} failed: {exc}")
            return False
        return True

    def set_status(self, message: str) -> None:
        self._status = (message, self._clock() + STATUS_TTL_S)

    @property
    def status_message(self) -> Optional[str]:
        if self._status is None:
            return None
        message, expires_at = self._status
        return message if self._clock() < expires_at else None

    # Rendering

    def render(self, width: int, height: int) -> RenderableType:
        show_logo = height >= MIN_HEIGHT_FOR_LOGO
        chrome = 4 + (LOGO_HEIGHT if show_logo else 0)
        area = Region(width, max(height - chrome, 3))

        parts: list[RenderableType] = []
        if show_logo:
            parts.append(logo(self.theme))
        parts.append(tab_bar([tab.title for tab in TAB_ORDER], self.tab.index, self.theme))
        parts.append(Rule(style=self.theme.border_style()))
        parts.append(self.render_view(area))
        parts.append(Rule(style=self.theme.border_style()))
        parts.append(help_bar(HELP_TEXT[self.tab], self.theme, self.status_message))
        return Group(*parts)

    def render_view(self, area: Region) -> RenderableType:
        if self.tab is Tab.DASHBOARD:
            return self.dashboard.render(area, self.theme)
        if self.tab is Tab.PEERS:
            return self.peers.render(area, self.theme)
        if self.tab is Tab.APPS:
            return self.apps.render(area, self.theme)
        return self.logs.render(area, self.theme)

    # Loop

    async def run(self, live: LiveSurface, keyboard: KeySource, poll_interval_ms: int = 100) -> None:
        """Update/render loop; returns once a quit key is handled."""
        while not self.should_quit:
            self.process_events()
            width, height = live.console.size
            live.update(self.render(width, height), refresh=True)
            # Polled off the event loop so receive tasks keep running meanwhile.
            for event in await asyncio.to_thread(keyboard.poll_events, poll_interval_ms):
                if event.kind != "key":
                    continue
                await self.handle_key(event.key)
                if self.should_quit:
                    break


async def run_console(settings: ConsoleSettings) -> None:
    """Connect to the bus (degrading to disconnected mode) and run the UI."""
    bridge = TopicBridge(settings.nats_url, EventQueue(settings.queue_capacity))
    try:
        await bridge.connect()
    except BridgeConnectionError as exc:
        logger.warning("Could not connect to NATS, continuing disconnected: %s", exc)

    app = ConsoleApp(bridge, log_capacity=settings.log_capacity)
    try:
        with ExitStack() as stack:
            # Held stderr records are replayed once the screen is restored.
            stack.enter_context(hold_stderr_logs())
            keyboard = stack.enter_context(KeyboardInput.open())
            live = stack.enter_context(Live(console=Console(), screen=True, auto_refresh=False))
            await app.run(live, keyboard, settings.poll_interval_ms)
    finally:
        await bridge.close()
