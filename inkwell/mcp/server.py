import sys
import queue
import logging
import threading
from typing import Any, BinaryIO, Dict, Optional

from inkwell.mcp.dispatcher import Dispatcher
from inkwell.mcp.framing import StdioFramer, decode_message, encode_frame
from inkwell.mcp.protocol import INTERNAL_ERROR, make_error

logger = logging.getLogger("Inkwell.mcp.server")

_EOF = None


class StdioServer:
    """
    Serves one JSON-RPC session over a pair of byte streams.

    A reader thread only moves raw chunks from stdin into a queue. A single
    worker owns the framer buffer, so complete messages are dispatched one at
    a time in arrival order while new bytes keep accumulating.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        stdin: Optional[BinaryIO] = None,
        stdout: Optional[BinaryIO] = None,
        chunk_size: int = 65536,
    ):
        self.dispatcher = dispatcher
        self.stdin = stdin if stdin is not None else sys.stdin.buffer
        self.stdout = stdout if stdout is not None else sys.stdout.buffer
        self.chunk_size = chunk_size

        self.framer = StdioFramer()
        self.transport_closed = threading.Event()
        self.write_lock = threading.Lock()
        self._inbox: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._reader: Optional[threading.Thread] = None
        self._worker: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the reader and worker threads without blocking."""
        self._reader = threading.Thread(target=self._read_loop, name="inkwell-stdin-reader", daemon=True)
        self._worker = threading.Thread(target=self._work_loop, name="inkwell-dispatch", daemon=True)
        self._reader.start()
        self._worker.start()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker finishes; returns False if still running."""
        if self._worker is None:
            return True
        self._worker.join(timeout)
        return not self._worker.is_alive()

    def serve_forever(self) -> None:
        """Run until stdin reaches EOF or stop() is called."""
        self.start()
        # Short joins keep the main thread responsive to signals.
        while not self.wait(0.5):
            pass

    def stop(self) -> None:
        """Close the transport; responses still in flight are not written."""
        self.transport_closed.set()
        self._inbox.put(_EOF)

    def send(self, message: Dict[str, Any]) -> None:
        if self.transport_closed.is_set():
            return
        frame = encode_frame(message)
        try:
            with self.write_lock:
                if self.transport_closed.is_set():
                    return
                self.stdout.write(frame)
                self.stdout.flush()
        except (BrokenPipeError, OSError, ValueError) as exc:
            self.transport_closed.set()
            logger.warning("MCP stdio transport closed while sending: %s", exc)

    def _read_chunk(self) -> bytes:
        read1 = getattr(self.stdin, "read1", None)
        if read1 is not None:
            return read1(self.chunk_size)
        return self.stdin.read(self.chunk_size)

    def _read_loop(self) -> None:
        try:
            while not self.transport_closed.is_set():
                chunk = self._read_chunk()
                if not chunk:
                    logger.info("stdin closed")
                    break
                self._inbox.put(chunk)
        except (OSError, ValueError) as exc:
            logger.warning("stdin read failed: %s", exc)
        finally:
            self._inbox.put(_EOF)

    def _work_loop(self) -> None:
        while not self.transport_closed.is_set():
            chunk = self._inbox.get()
            if chunk is _EOF:
                break
            for body in self.framer.feed(chunk):
                if self.transport_closed.is_set():
                    return
                msg = decode_message(body)
                if msg is not None:
                    self._dispatch(msg)

    def _dispatch(self, msg: Dict[str, Any]) -> None:
        try:
            response = self.dispatcher.handle(msg)
        except Exception:
            logger.exception("Unexpected error during RPC dispatch")
            msg_id = msg.get("id")
            if msg_id is None:
                return
            response = make_error(msg_id, INTERNAL_ERROR, "Internal error during request dispatch.")
        if response is not None:
            self.send(response)
