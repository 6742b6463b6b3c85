"""Listener lifecycle for the HTTP, RPC and hybrid servers.

Every listener binds its port synchronously in ``start`` (so bind errors
reach the caller) and then serves from its own thread. A ``ListenerGroup``
starts its members independently, stops them together and joins their
threads, which is what the process blocks on before exiting.
"""
import logging
import socket
import threading
from typing import Dict, List, Optional

import uvicorn

from .app import create_app
from .errors import ListenerError, StartupError
from .gateway import create_gateway_app
from .rpc import RecipeClient, create_server
from .storage import RecipeStore

logger = logging.getLogger(__name__)

HTTP_GRACE_SECONDS = 5.0


class HttpListener:
    def __init__(self, app, port: int, address: str = "127.0.0.1", grace: float = HTTP_GRACE_SECONDS):
        self.app = app
        self.port = port
        self.address = address
        self.grace = grace
        self.name = "http"
        self.error: Optional[BaseException] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.address, self.port))
            # listen now so early connections queue until the loop accepts them
            sock.listen(128)
        except OSError as exc:
            sock.close()
            raise ListenerError(f"binding HTTP listener on {self.address}:{self.port}: {exc}") from exc
        self.port = sock.getsockname()[1]

        config = uvicorn.Config(
            self.app,
            log_config=None,
            timeout_graceful_shutdown=self.grace,
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._serve, args=(sock,), name=f"http-{self.port}", daemon=True
        )
        self._thread.start()

    def _serve(self, sock: socket.socket) -> None:
        logger.info("starting HTTP listener on port %d", self.port)
        try:
            self._server.run(sockets=[sock])
        except (Exception, SystemExit) as exc:
            self.error = exc
            logger.error("http server error: %s", exc)
        finally:
            sock.close()
            logger.info("HTTP listener on port %d stopped", self.port)

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.should_exit = True
        self.join(self.grace + 1)
        if self.alive:
            logger.warning("HTTP listener did not drain within %.1fs, forcing exit", self.grace)
            self._server.force_exit = True
            self.join(self.grace)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class RpcListener:
    def __init__(self, store: RecipeStore, api_key: str, port: int, address: str = "127.0.0.1", grace: Optional[float] = None):
        self.store = store
        self.api_key = api_key
        self.port = port
        self.address = address
        # None aborts in-flight calls; a number drains them for that long
        self.grace = grace
        self.name = "rpc"
        self.error: Optional[BaseException] = None
        self._server = None
        self._thread: Optional[threading.Thread] = None

    @property
    def target(self) -> str:
        return f"{self.address}:{self.port}"

    def start(self) -> None:
        server = create_server(self.store, self.api_key)
        try:
            bound = server.add_insecure_port(self.target)
        except RuntimeError as exc:
            raise ListenerError(f"binding gRPC listener on {self.target}: {exc}") from exc
        if not bound:
            raise ListenerError(f"binding gRPC listener on {self.target}")
        self.port = bound
        server.start()
        self._server = server
        self._thread = threading.Thread(target=self._serve, name=f"rpc-{self.port}", daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        logger.info("starting gRPC listener on port %d", self.port)
        try:
            self._server.wait_for_termination()
        except Exception as exc:
            self.error = exc
            logger.error("gRPC server error: %s", exc)
        finally:
            logger.info("gRPC listener on port %d stopped", self.port)

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.stop(self.grace).wait()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class ListenerGroup:
    """Listeners started independently and stopped as one."""

    def __init__(self, listeners: List):
        self.listeners = listeners
        self.started: List = []

    def start(self) -> None:
        failures: Dict[str, BaseException] = {}
        for listener in self.listeners:
            try:
                listener.start()
            except ListenerError as exc:
                logger.error("%s listener failed to start: %s", listener.name, exc)
                failures[listener.name] = exc
            else:
                self.started.append(listener)
        if failures:
            self.stop()
            raise StartupError(failures)

    def stop(self) -> None:
        # stop order is the construction order
        for listener in self.started:
            listener.stop()

    def wait(self, timeout: Optional[float] = None) -> None:
        for listener in self.started:
            listener.join(timeout)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()
        self.wait()


class HybridListener(ListenerGroup):
    """RPC gateway plus an HTTP facade forwarding to it, over one store."""

    def __init__(
        self,
        store: RecipeStore,
        api_key: str,
        http_port: int,
        grpc_port: int,
        address: str = "127.0.0.1",
        http_grace: float = HTTP_GRACE_SECONDS,
        rpc_grace: Optional[float] = None,
    ):
        self.rpc = RpcListener(store, api_key, grpc_port, address=address, grace=rpc_grace)
        self.http_port = http_port
        self.address = address
        self.http_grace = http_grace
        self.client: Optional[RecipeClient] = None
        self.http: Optional[HttpListener] = None
        super().__init__([])

    def start(self) -> None:
        failures: Dict[str, BaseException] = {}
        try:
            self.rpc.start()
        except ListenerError as exc:
            logger.error("rpc listener failed to start: %s", exc)
            failures["rpc"] = exc
        else:
            self.started.append(self.rpc)

        # the facade comes up even without the RPC side, so both errors surface
        self.client = RecipeClient(self.rpc.target)
        self.http = HttpListener(
            create_gateway_app(self.client), self.http_port, address=self.address, grace=self.http_grace
        )
        try:
            self.http.start()
        except ListenerError as exc:
            logger.error("http listener failed to start: %s", exc)
            failures["http"] = exc
        else:
            self.started.append(self.http)

        self.listeners = [self.rpc, self.http]
        if failures:
            self.stop()
            raise StartupError(failures)

    def stop(self) -> None:
        super().stop()
        if self.client is not None:
            self.client.close()
            self.client = None


def http_server(store: RecipeStore, api_key: str, port: int, address: str = "127.0.0.1", grace: float = HTTP_GRACE_SECONDS) -> ListenerGroup:
    return ListenerGroup([HttpListener(create_app(store, api_key), port, address=address, grace=grace)])


def rpc_server(store: RecipeStore, api_key: str, port: int, address: str = "127.0.0.1", grace: Optional[float] = None) -> ListenerGroup:
    return ListenerGroup([RpcListener(store, api_key, port, address=address, grace=grace)])
