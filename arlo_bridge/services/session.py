"""
Bridge session

One explicitly owned directory session: its config, accessory cache,
directory client and host. Several sessions (for example one per account)
can coexist and be tested in isolation.

Processing Flow:
    restore(records)             cache filled from host storage
            ↓
    start()                      cache sealed, directory login (with timeout)
            ↓
    producer task                client.devices() → asyncio.Queue
            ↓
    consumer task (exactly one)  queue → process_device()
            ↓
    reconcile → dispatch → host.register_new / host.refresh_existing

Devices are processed strictly one at a time in arrival order.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Coroutine, Dict, Iterable, List, Optional, Set, Type

from arlo_bridge.config.platform import EffectiveConfig
from arlo_bridge.core.errors import DirectoryError
from arlo_bridge.core.logging_config import clear_session_id, set_session_id
from arlo_bridge.core.metrics import record_directory_login
from arlo_bridge.schemas.device import AccessoryRecord, Device, DeviceClass
from arlo_bridge.services.accessory_cache import AccessoryCache
from arlo_bridge.services.directory.base import DirectoryClient
from arlo_bridge.services.handler_dispatcher import HandlerDispatcher
from arlo_bridge.services.handlers import AccessoryHandler
from arlo_bridge.services.host import HostPlatform
from arlo_bridge.services.reconciler import (
    Created,
    Matched,
    ReconciliationOutcome,
    Reconciler,
)

logger = logging.getLogger(__name__)


@dataclass
class SessionStatus:
    """Status information for a bridge session."""
    session_id: str
    logged_in: bool = False
    running: bool = False
    cached_count: int = 0
    handler_count: int = 0
    processed_count: int = 0
    unseen_identities: List[str] = field(default_factory=list)
    error: Optional[str] = None


class BridgeSession:
    """
    Reconciles the directory's device stream against the accessory cache.

    Example:
        >>> session = BridgeSession(config, client, host)
        >>> session.restore(host.load_cached_records())
        >>> await session.start()
        >>> ...
        >>> await session.stop()
    """

    def __init__(
        self,
        config: EffectiveConfig,
        client: DirectoryClient,
        host: HostPlatform,
        cache: Optional[AccessoryCache] = None,
        handlers: Optional[Dict[DeviceClass, Type[AccessoryHandler]]] = None,
        session_id: Optional[str] = None,
    ):
        self.config = config
        self.client = client
        self.host = host
        self.cache = cache if cache is not None else AccessoryCache()
        self.session_id = session_id or str(uuid.uuid4())
        self.reconciler = Reconciler(self.cache, host.generate_identity)
        self.dispatcher = HandlerDispatcher(self, handlers)
        self.queue: "asyncio.Queue[Device]" = asyncio.Queue()

        self._handlers: Dict[str, AccessoryHandler] = {}
        self._seen: Set[str] = set()
        self._processed = 0
        self._logged_in = False
        self._running = False
        self._error: Optional[str] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._producer_task: Optional[asyncio.Task] = None
        self._consumer_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def handlers(self) -> Dict[str, AccessoryHandler]:
        """Active handlers keyed by accessory identity."""
        return dict(self._handlers)

    def restore(self, records: Iterable[AccessoryRecord]) -> None:
        """Fill the cache with records restored by the host."""
        for record in records:
            self.cache.restore(record)

    async def start(self) -> bool:
        """
        Seal the cache, log in and start consuming device events.

        A rejected or stalled login leaves the session idle: the failure is
        logged and kept in status().error, and no retry is attempted.

        Returns:
            True if the session is consuming device events
        """
        if self._running:
            logger.warning("Session already running", extra={"session_id": self.session_id})
            return True

        self.cache.seal()
        self._loop = asyncio.get_running_loop()
        token = set_session_id(self.session_id)
        try:
            if not await self._login():
                return False

            self._producer_task = asyncio.create_task(
                self._produce(), name=f"directory_producer_{self.session_id}"
            )
            self._consumer_task = asyncio.create_task(
                self._consume(), name=f"reconcile_consumer_{self.session_id}"
            )
            self._running = True
            logger.info(
                f"Session started with {len(self.cache)} cached accessories",
                extra={"cached_count": len(self.cache)}
            )
            return True
        finally:
            clear_session_id(token)

    async def _login(self) -> bool:
        timeout = self.config.login_timeout_seconds
        try:
            await asyncio.wait_for(
                self.client.login(self.config.email or "", self.config.password or ""),
                timeout=timeout
            )
        except asyncio.TimeoutError:
            self._error = f"Directory login timed out after {timeout}s"
            logger.error(self._error)
            record_directory_login("timeout")
            return False
        except DirectoryError as e:
            self._error = f"Directory login failed: {e}"
            logger.error(self._error)
            record_directory_login("failure")
            return False
        except Exception as e:
            self._error = f"Directory login failed: {e}"
            logger.error(self._error, exc_info=True)
            record_directory_login("failure")
            return False

        self._logged_in = True
        record_directory_login("success")
        return True

    async def _produce(self) -> None:
        try:
            async for device in self.client.devices():
                await self.queue.put(device)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._error = f"Directory stream failed: {e}"
            logger.error(self._error, exc_info=True)
            return
        logger.info("Directory stream ended")

    async def _consume(self) -> None:
        while True:
            device = await self.queue.get()
            try:
                self.process_device(device)
            except Exception as e:
                logger.error(
                    f"Error processing device {device.id}: {e}",
                    exc_info=True,
                    extra={"device_id": device.id}
                )
            finally:
                self.queue.task_done()

    def process_device(self, device: Device) -> Optional[ReconciliationOutcome]:
        """
        Reconcile one device, dispatch its handler and notify the host.

        A record that already has an active handler in this session is not
        handed to the dispatcher again.
        """
        outcome = self.reconciler.reconcile(device)
        record = outcome.record
        self._seen.add(record.identity)
        self._processed += 1

        if record.identity not in self._handlers:
            handler = self.dispatcher.dispatch(record, device)
            if handler is not None:
                self._handlers[record.identity] = handler
        else:
            logger.debug(
                f"Handler already active for {record.display_name}",
                extra={"identity": record.identity}
            )

        try:
            if isinstance(outcome, Created):
                self.host.register_new([record])
            elif isinstance(outcome, Matched) and outcome.context_changed:
                self.host.refresh_existing([record])
        except Exception as e:
            logger.error(
                f"Host notification failed for {record.display_name}: {e}",
                exc_info=True,
                extra={"identity": record.identity}
            )

        return outcome

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Any:
        """
        Schedule a coroutine on the session's event loop.

        Safe to call from the HAP driver thread. Returns the task or
        concurrent future, or None if the session has no running loop.
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            coro.close()
            logger.warning("Session is not running, dropping directory request")
            return None

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if running_loop is loop:
            return loop.create_task(coro)
        return asyncio.run_coroutine_threadsafe(coro, loop)

    async def join(self) -> None:
        """Wait until every queued device has been processed."""
        await self.queue.join()

    async def stop(self) -> None:
        """Cancel the session's tasks and close the directory client."""
        tasks = [t for t in (self._producer_task, self._consumer_task) if t is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._producer_task = None
        self._consumer_task = None

        try:
            await self.client.close()
        except Exception as e:
            logger.warning(f"Error closing directory client: {e}")

        if self._running:
            logger.info(
                f"Session stopped after {self._processed} device reports",
                extra={"session_id": self.session_id}
            )
        self._running = False

    def status(self) -> SessionStatus:
        return SessionStatus(
            session_id=self.session_id,
            logged_in=self._logged_in,
            running=self._running,
            cached_count=len(self.cache),
            handler_count=len(self._handlers),
            processed_count=self._processed,
            unseen_identities=[i for i in self.cache.identities() if i not in self._seen],
            error=self._error,
        )
