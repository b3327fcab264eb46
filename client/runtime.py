"""
client/runtime.py -- asyncio event loop around the session state machine.

One queue, one consumer. Messages are taken off the queue and dispatched one
at a time, so each transition is atomic with respect to every other. The
AuthRequests a transition returns run in worker threads (the transport is
blocking requests code) and post their completion back onto the same queue
as an ordinary message. Completions may therefore arrive in any order; the
machine's sequence tags decide which ones count.

Usage:
    runtime = SessionRuntime(machine, transport)
    runtime.start()                  # queues the startup CheckAuth
    await runtime.run_until_idle()   # drains messages and in-flight requests
"""

from __future__ import annotations

import asyncio
import logging

from client.machine import AuthRequest, SessionStateMachine
from client.models import CheckAuth, Message, SessionModel
from client.transport import AuthTransport, NetworkFailure, RequestTimeout, TransportError

logger = logging.getLogger("sessiongate.client.runtime")


class SessionRuntime:
    def __init__(self, machine: SessionStateMachine, transport: AuthTransport) -> None:
        self.machine = machine
        self.transport = transport
        self._queue: asyncio.Queue[Message] = asyncio.Queue()
        self._inflight = 0
        self._tasks: set[asyncio.Task] = set()
        self._started = False

    @property
    def model(self) -> SessionModel:
        return self.machine.model

    def start(self) -> None:
        """Queue the single startup CheckAuth. Calling twice is a no-op."""
        if self._started:
            return
        self._started = True
        self.post(CheckAuth())

    def post(self, msg: Message) -> None:
        self._queue.put_nowait(msg)

    async def run_until_idle(self) -> SessionModel:
        """Process messages until the queue is empty and no request is in flight."""
        while self._inflight or not self._queue.empty():
            msg = await self._queue.get()
            self._handle(msg)
        return self.machine.model

    def _handle(self, msg: Message) -> None:
        for req in self.machine.dispatch(msg):
            self._spawn(req)

    def _spawn(self, req: AuthRequest) -> None:
        self._inflight += 1
        task = asyncio.create_task(self._perform(req), name=f"auth-{req.kind}-{req.seq}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _perform(self, req: AuthRequest) -> None:
        # The counter drops before the completion is queued so run_until_idle
        # never waits on a request whose answer is already in the queue.
        # requests' timeout bounds each socket read, not the whole exchange;
        # the total deadline is enforced here. A worker thread that overruns
        # it is abandoned and its eventual answer discarded.
        timeout_ms = self.transport.timeout_ms
        try:
            try:
                body = await asyncio.wait_for(
                    asyncio.to_thread(self.transport.send, req.endpoint, req.headers),
                    timeout_ms / 1000,
                )
            except asyncio.TimeoutError:
                logger.warning("%s request %d exceeded its %d ms deadline", req.kind, req.seq, timeout_ms)
                completion = req.complete(error=RequestTimeout(timeout_ms))
            except TransportError as e:
                completion = req.complete(error=e)
            except Exception as e:
                logger.exception("%s request %d failed unexpectedly", req.kind, req.seq)
                completion = req.complete(error=NetworkFailure(str(e)))
            else:
                completion = req.complete(body=body)
        finally:
            self._inflight -= 1
        self._queue.put_nowait(completion)
