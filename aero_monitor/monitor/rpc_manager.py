"""
RPC endpoint management.

Discovers Base RPC endpoints published by the Aerodrome front-end, keeps a
round-robin list for failover, and notifies subscribers whenever the active
endpoint changes.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_DISCOVERY_URL = "https://aero.drome.eth.link"
RPC_URL_PATTERN = re.compile(r"https://lb\.drpc\.live/base/[a-zA-Z0-9_\-]+")
MAX_JS_FILES = 20
USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


class RpcManagerError(Exception):
    """Raised when the RPC manager is used before initialization."""
    pass


@dataclass(frozen=True)
class RpcEvent:
    """Notification about an endpoint change."""

    name: str
    data: Dict[str, Any] = field(default_factory=dict)


RpcListener = Callable[[RpcEvent], None]


def extract_script_urls(html: str, base_url: str) -> List[str]:
    """Absolute URLs of every JavaScript file referenced by src/href attributes."""
    soup = BeautifulSoup(html, "html.parser")
    urls = []
    for tag in soup.find_all(True):
        for attr in ("src", "href"):
            value = tag.get(attr)
            if isinstance(value, str) and ".js" in value:
                urls.append(urljoin(base_url.rstrip("/") + "/", value))
    return list(dict.fromkeys(urls))


def extract_rpc_urls(text: str) -> List[str]:
    return list(dict.fromkeys(RPC_URL_PATTERN.findall(text)))


class RpcManager:
    """
    Keeps track of usable RPC endpoints.

    - initialize() discovers endpoints, falling back to a configured URL
    - handle_rpc_error() rotates to the next endpoint, or refreshes the list
      when only one endpoint is known
    """

    def __init__(
        self,
        discovery_url: str = DEFAULT_DISCOVERY_URL,
        timeout: float = 10.0,
        max_js_files: int = MAX_JS_FILES,
        discovery_enabled: bool = True,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.discovery_url = discovery_url.rstrip("/")
        self.timeout = timeout
        self.max_js_files = max_js_files
        self.discovery_enabled = discovery_enabled

        self._current_rpc: Optional[str] = None
        self._all_rpc_addresses: List[str] = []
        self._current_index = 0
        self._failure_counts: Dict[str, int] = {}
        self._listeners: List[RpcListener] = []

        self._session = session
        self._owns_session = session is None

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def subscribe(self, listener: RpcListener) -> Callable[[], None]:
        """
        Register a listener for endpoint events.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, name: str, **data):
        event = RpcEvent(name, data)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"⚠️ RPC event listener failed on '{name}': {e}")

    @property
    def is_initialized(self) -> bool:
        return self._current_rpc is not None

    @property
    def current_rpc(self) -> str:
        if self._current_rpc is None:
            raise RpcManagerError("RPC Manager not initialized")
        return self._current_rpc

    def get_all_rpc_addresses(self) -> List[str]:
        return list(self._all_rpc_addresses)

    def get_failure_count(self, rpc: str) -> int:
        return self._failure_counts.get(rpc, 0)

    async def initialize(self, fallback_rpc: str) -> str:
        """
        Select the initial endpoint.

        Uses the first discovered endpoint, or ``fallback_rpc`` when discovery
        is disabled or finds nothing.
        """
        logger.info("🔌 Initializing RPC Manager...")

        rpc_list = await self.discover_rpc_urls() if self.discovery_enabled else []
        if rpc_list:
            self._all_rpc_addresses = rpc_list
            self._current_index = 0
            self._current_rpc = rpc_list[0]
            logger.info(f"✅ RPC Manager initialized with {len(rpc_list)} address(es)")
            logger.info(f"📡 Using RPC: {self._current_rpc}")
            self._emit("initialized", rpc=self._current_rpc, count=len(rpc_list))
            return self._current_rpc

        if self.discovery_enabled:
            logger.warning("⚠️ Could not discover RPC endpoints, using fallback")

        self._all_rpc_addresses = [fallback_rpc]
        self._current_index = 0
        self._current_rpc = fallback_rpc
        self._emit("initialized-fallback", rpc=fallback_rpc)
        return fallback_rpc

    async def handle_rpc_error(self, failed_rpc: str) -> str:
        """
        Record a failure of ``failed_rpc`` and return the endpoint to use next.
        """
        logger.error(f"❌ RPC error detected: {failed_rpc}")
        self._failure_counts[failed_rpc] = self._failure_counts.get(failed_rpc, 0) + 1

        if failed_rpc != self._current_rpc:
            return self.current_rpc

        if len(self._all_rpc_addresses) > 1:
            self._current_index = (self._current_index + 1) % len(self._all_rpc_addresses)
            self._current_rpc = self._all_rpc_addresses[self._current_index]
            logger.info(f"🔄 Switched to RPC: {self._current_rpc}")
            self._emit("rpc-switched", new_rpc=self._current_rpc, failed_rpc=failed_rpc)
            return self._current_rpc

        logger.info("🔄 Attempting to refresh RPC from Aerodrome...")
        return await self.refresh_rpc_now()

    async def refresh_rpc_now(self) -> str:
        """Re-run discovery; keeps the current endpoint if nothing is found."""
        rpc_list = await self.discover_rpc_urls() if self.discovery_enabled else []
        if rpc_list:
            self._all_rpc_addresses = rpc_list
            self._current_index = 0
            self._current_rpc = rpc_list[0]
            self._failure_counts.clear()
            logger.info(f"✅ RPC refreshed: found {len(rpc_list)} address(es)")
            logger.info(f"📡 Using RPC: {self._current_rpc}")
            self._emit("rpc-refreshed", rpc=self._current_rpc, count=len(rpc_list))
        else:
            logger.warning("⚠️ RPC refresh found no endpoints, keeping current RPC")

        return self.current_rpc

    async def discover_rpc_urls(self) -> List[str]:
        """
        Scrape the front-end for dRPC Base endpoints.

        Returns:
            Unique endpoints in discovery order (empty on failure)
        """
        logger.info(f"📡 Fetching RPC from {self.discovery_url}...")
        html = await self._fetch_text(self.discovery_url)
        if not html:
            return []

        script_urls = extract_script_urls(html, self.discovery_url)[: self.max_js_files]
        logger.debug(f"Found {len(script_urls)} JavaScript files")

        found: List[str] = []
        for script_url in script_urls:
            content = await self._fetch_text(script_url)
            if not content:
                continue
            matches = extract_rpc_urls(content)
            if matches:
                logger.debug(f"  🔎 {script_url.rsplit('/', 1)[-1][:40]}: found {len(matches)}")
                found.extend(matches)

        rpc_list = list(dict.fromkeys(found))
        if rpc_list:
            logger.info(f"✅ Found {len(rpc_list)} RPC address(es)")
        else:
            logger.warning("⚠️ No RPC found")
        return rpc_list

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": USER_AGENT},
            )
            self._owns_session = True
        return self._session

    async def _fetch_text(self, url: str) -> Optional[str]:
        try:
            session = self._get_session()
            async with session.get(url) as response:
                if response.status != 200:
                    logger.debug(f"GET {url} returned HTTP {response.status}")
                    return None
                return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            logger.debug(f"GET {url} failed: {e!r}")
            return None
