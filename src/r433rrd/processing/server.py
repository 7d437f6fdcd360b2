# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
UDP relay server.

Receives syslog datagrams, parses them and hands each sample to the
ingestion orchestrator. Datagrams are processed strictly one at a time:
the UDP protocol only queues them, and a single consumer task runs the
blocking parse/rrdtool work in a worker thread.
"""

import asyncio
import logging
import signal
from typing import Any, Dict, Optional, Tuple

from ..errors import ParseError, RRDToolError, UnsupportedSensorType
from ..shared.config import Config
from .orchestrator import IngestionOrchestrator, IngestResult
from .parser import parse_line
from .rrdtool.gateway import RRDToolGateway
from .schedule import create_schedule

logger = logging.getLogger(__name__)


class SyslogDatagramProtocol(asyncio.DatagramProtocol):
    """Hands every received datagram to the server queue."""

    def __init__(self, server: "RelayServer"):
        self.server = server

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        self.server.enqueue(data, addr)

    def error_received(self, exc: Exception) -> None:
        logger.error(f"UDP socket error: {exc}")


class RelayServer:
    """
    Main server for the syslog to rrdtool relay.

    Manages:
    - UDP listener
    - Bounded datagram queue
    - Sequential ingestion consumer
    - Graceful shutdown
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        orchestrator: Optional[IngestionOrchestrator] = None,
    ):
        """
        Initialize relay server.

        Args:
            config: Configuration instance (creates default if not provided)
            orchestrator: Ingestion orchestrator (built from config if not provided)
        """
        self.config = config or Config()
        self.orchestrator = orchestrator

        self.transport: Optional[asyncio.DatagramTransport] = None
        self.queue: Optional[asyncio.Queue] = None
        self.consumer_task: Optional[asyncio.Task] = None
        self._stopped: Optional[asyncio.Event] = None
        self.running = False

        self.stats: Dict[str, Any] = {
            'received': 0,
            'parsed': 0,
            'rejected': 0,
            'stored': 0,
            'rendered': 0,
            'failed': 0,
            'dropped': 0,
        }

    def _initialize_orchestrator(self) -> None:
        """Build the rrdtool gateway, graph schedule and orchestrator."""
        if self.orchestrator is not None:
            return

        logger.info("Initializing ingestion orchestrator")
        backend = RRDToolGateway(
            binary=self.config.rrdtool_binary,
            timeout=self.config.rrdtool_timeout,
        )
        schedule = create_schedule(self.config)
        self.orchestrator = IngestionOrchestrator.from_config(self.config, backend, schedule)

    def handle_datagram(self, data: bytes) -> Optional[IngestResult]:
        """
        Parse and ingest one datagram.

        Never raises for per-datagram problems; they are logged and counted.

        Returns:
            IngestResult if the sample was stored, None otherwise
        """
        data = data[:self.config.recv_buffer_size]

        try:
            line = data.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.warning(f"Message from socket is not UTF-8, tossing: {data!r}")
            self.stats['rejected'] += 1
            return None

        logger.debug(line)

        try:
            sample = parse_line(line, self.config.rrd_path)
        except UnsupportedSensorType as e:
            logger.debug(str(e))
            self.stats['rejected'] += 1
            return None
        except ParseError as e:
            logger.warning(f"Encountered an error while parsing: {e}")
            self.stats['rejected'] += 1
            return None

        self.stats['parsed'] += 1

        try:
            result = self.orchestrator.ingest(sample)
        except RRDToolError as e:
            logger.error(f"rrdtool error for {sample.label}: {e}")
            self.stats['failed'] += 1
            return None

        self.stats['stored'] += 1
        if result.rendered:
            self.stats['rendered'] += 1
        logger.debug(f"Stored sample for {result.label}")
        return result

    def enqueue(self, data: bytes, addr: Optional[Tuple[str, int]] = None) -> bool:
        """Queue a datagram for processing. Returns False if it was dropped."""
        self.stats['received'] += 1
        try:
            self.queue.put_nowait(data)
            return True
        except asyncio.QueueFull:
            self.stats['dropped'] += 1
            logger.warning(f"Datagram queue full, dropping message from {addr}")
            return False

    async def _consume(self) -> None:
        """Process queued datagrams one at a time."""
        logger.info("Ingestion consumer started")

        while self.running:
            data = await self.queue.get()
            try:
                await asyncio.to_thread(self.handle_datagram, data)
            except Exception as e:
                logger.exception(f"Unexpected error handling datagram: {e}")
                self.stats['failed'] += 1
            finally:
                self.queue.task_done()

    async def start(self) -> None:
        """Bind the UDP socket and start the consumer."""
        if self.running:
            logger.warning("Server already running")
            return

        logger.info("Relay service starting up...")

        self._initialize_orchestrator()

        host, port = self.config.listen_address
        self.queue = asyncio.Queue(maxsize=self.config.queue_size)
        self._stopped = asyncio.Event()

        loop = asyncio.get_running_loop()
        self.transport, _ = await loop.create_datagram_endpoint(
            lambda: SyslogDatagramProtocol(self),
            local_addr=(host, port),
        )
        logger.info(f"Listening for syslog datagrams on {host}:{port}")

        self.running = True
        self.consumer_task = asyncio.create_task(self._consume())

    async def serve_forever(self) -> None:
        """Start the server and wait until stop() is called."""
        await self.start()
        await self._stopped.wait()

    async def stop(self) -> None:
        """Stop the server gracefully."""
        if not self.running:
            return

        logger.info("Stopping server...")
        self.running = False

        if self.transport:
            self.transport.close()

        if self.consumer_task:
            self.consumer_task.cancel()
            try:
                await self.consumer_task
            except asyncio.CancelledError:
                logger.debug("Ingestion consumer cancelled")

        if self._stopped:
            self._stopped.set()

        logger.info(f"Server stopped: {self.stats}")


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


async def run_server(config: Config) -> None:
    """Run a relay server until SIGINT or SIGTERM."""
    server = RelayServer(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: asyncio.create_task(server.stop()))
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms
            pass

    try:
        await server.serve_forever()
    finally:
        await server.stop()


def main(config: Optional[Config] = None) -> None:
    """Main entry point."""
    config = config or Config()
    setup_logging(config.log_level)
    asyncio.run(run_server(config))


if __name__ == "__main__":
    main()
