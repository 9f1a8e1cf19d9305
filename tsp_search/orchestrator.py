"""
Incremental execution of a single search run.

``RunOrchestrator`` is a message-driven state machine: ``handle()`` applies
an inbound message and ``tick()`` advances the active engine by at most one
batch of iterations, emitting throttled progress snapshots and, at the end,
a completion message. It never blocks and holds no locks, so it can be
driven directly (tests, ``run_search``) or hosted by a ``RunWorker`` thread
that interleaves inbox messages with ticks.
"""

import queue
import random
import threading
import time
import uuid
from typing import Callable, List, Optional, Sequence, Union

from .convergence import DEFAULT_TARGET_POINTS, ConvergencePoint, ConvergenceSampler
from .data import Point
from .distance import build_matrix
from .messages import (
    CompleteMessage,
    InboundMessage,
    InitMessage,
    OutboundMessage,
    PauseMessage,
    ProgressMessage,
    ResumeMessage,
    RunResult,
    StopMessage,
    StoppedMessage,
    utc_now,
)
from .solvers import Algorithm, AnySettings, Engine, build_engine


DEFAULT_EMIT_INTERVAL_MS = 80.0
RESULT_TARGET_POINTS = 160

Emit = Callable[[OutboundMessage], None]
Logger = Callable[[str], None]


def default_batch_size(point_count: int) -> int:
    return max(8, point_count // 4)


def new_run_id() -> str:
    return str(uuid.uuid4())


class RunOrchestrator:
    def __init__(
        self,
        emit: Emit,
        clock: Callable[[], float] = time.perf_counter,
        logger: Optional[Logger] = None,
        target_points: int = DEFAULT_TARGET_POINTS,
    ):
        self.emit = emit
        self.clock = clock
        self.logger = logger
        self.target_points = target_points
        self._reset()

    def _reset(self) -> None:
        self.run_id: Optional[str] = None
        self.algorithm: Optional[Algorithm] = None
        self.settings: Optional[AnySettings] = None
        self.engine: Optional[Engine] = None
        self.sampler: Optional[ConvergenceSampler] = None
        self.running = False
        self.paused = False
        self.batch_size = 1
        self.emit_interval_ms = DEFAULT_EMIT_INTERVAL_MS
        self.started_at = 0.0
        self.paused_at: Optional[float] = None
        self.paused_total = 0.0
        self.last_emit_ms: Optional[float] = None
        self.pending_sample: Optional[ConvergencePoint] = None

    def _log(self, msg: str) -> None:
        if self.logger is not None:
            self.logger(msg)

    @property
    def active(self) -> bool:
        return self.run_id is not None

    def handle(self, message: InboundMessage) -> None:
        if isinstance(message, InitMessage):
            self._init(message)
            return
        if self.run_id is None or message.run_id != self.run_id:
            self._log(f"ignoring {type(message).__name__} for inactive run {message.run_id}")
            return
        if isinstance(message, PauseMessage):
            self.pause()
        elif isinstance(message, ResumeMessage):
            self.resume()
        elif isinstance(message, StopMessage):
            self.stop()

    def _init(self, message: InitMessage) -> None:
        if self.run_id is not None:
            self._log(f"run {self.run_id} superseded by {message.run_id}")
        self._reset()
        matrix = build_matrix(message.points)
        self.engine = build_engine(
            message.algorithm,
            message.settings,
            matrix,
            message.start_index,
            rng=random.Random(message.seed),
            initial_tour=message.seed_tour,
        )
        self.run_id = message.run_id
        self.algorithm = message.algorithm
        self.settings = message.settings
        self.batch_size = message.batch_size or default_batch_size(len(message.points))
        if message.emit_interval_ms is not None:
            self.emit_interval_ms = float(message.emit_interval_ms)
        self.sampler = ConvergenceSampler(self.engine.iterations, self.target_points)
        self.sampler.start(self.engine.best_distance)
        self.started_at = self.clock()
        self.running = True
        self._log(
            f"run {self.run_id}: {self.algorithm.value} on {len(message.points)} points, "
            f"{self.engine.iterations} iterations, batch={self.batch_size}"
        )

    def pause(self) -> None:
        if not self.running:
            return
        self.running = False
        self.paused = True
        self.paused_at = self.clock()
        self._log(f"run {self.run_id} paused at iteration {self.engine.iteration}")

    def resume(self) -> None:
        if self.running or not self.paused:
            return
        if self.paused_at is not None:
            self.paused_total += self.clock() - self.paused_at
            self.paused_at = None
        self.running = True
        self.paused = False
        self._log(f"run {self.run_id} resumed at iteration {self.engine.iteration}")

    def stop(self) -> None:
        run_id = self.run_id
        self._reset()
        self._log(f"run {run_id} stopped")
        self.emit(StoppedMessage(run_id=run_id))

    def elapsed_ms(self) -> float:
        now = self.clock()
        paused = self.paused_total
        if self.paused_at is not None:
            paused += now - self.paused_at
        return (now - self.started_at - paused) * 1000.0

    def _snapshot(self, sample: Optional[ConvergencePoint] = None) -> dict:
        engine = self.engine
        extras = engine.extras()
        return dict(
            run_id=self.run_id,
            algorithm=self.algorithm,
            iteration=engine.iteration,
            iterations=engine.iterations,
            best_distance=engine.best_distance,
            best_tour=tuple(engine.best_tour),
            elapsed_ms=self.elapsed_ms(),
            temperature=extras.get("temperature"),
            memory_updates=extras.get("memory_updates"),
            new_sample_point=sample,
        )

    def tick(self) -> bool:
        """Run one batch. Returns True while the run still needs ticks."""
        if not self.running:
            return False
        engine = self.engine
        for _ in range(self.batch_size):
            if engine.done:
                break
            engine.step()
            point = self.sampler.observe(engine.iteration, engine.best_distance)
            if point is not None:
                self.pending_sample = point

        now_ms = self.clock() * 1000.0
        if self.last_emit_ms is None or now_ms - self.last_emit_ms >= self.emit_interval_ms:
            self.last_emit_ms = now_ms
            self.emit(ProgressMessage(**self._snapshot(self.pending_sample)))
            self.pending_sample = None

        if engine.done:
            self._complete()
            return False
        return True

    def _complete(self) -> None:
        engine = self.engine
        self.sampler.finish(engine.iteration, engine.best_distance)
        message = CompleteMessage(
            **self._snapshot(),
            convergence=self.sampler.trace(),
            settings=self.settings,
            created_at=utc_now(),
        )
        self._log(
            f"run {self.run_id} complete: best={engine.best_distance:.4f} "
            f"in {message.elapsed_ms:.1f} ms ({len(message.convergence)} samples)"
        )
        # The run is over; later control messages for it are stale.
        self._reset()
        self.emit(message)

    def run_to_completion(self) -> None:
        while self.tick():
            pass


_SHUTDOWN = object()


class RunWorker:
    """
    Hosts one ``RunOrchestrator`` on a background thread. Callers talk to it
    only through ``send()``; outbound messages are delivered to ``on_message``
    from the worker thread. Between batches the worker drains its inbox, so
    control messages take effect within one batch.
    """

    def __init__(
        self,
        on_message: Emit,
        name: str = "tsp-run-worker",
        clock: Callable[[], float] = time.perf_counter,
        logger: Optional[Logger] = None,
        target_points: int = DEFAULT_TARGET_POINTS,
    ):
        self.orchestrator = RunOrchestrator(on_message, clock=clock, logger=logger, target_points=target_points)
        self._inbox: "queue.Queue[Union[InboundMessage, object]]" = queue.Queue()
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)

    def start(self) -> "RunWorker":
        self._thread.start()
        return self

    def send(self, message: InboundMessage) -> None:
        self._inbox.put(message)

    def close(self, timeout: Optional[float] = None) -> None:
        self._inbox.put(_SHUTDOWN)
        self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def __enter__(self) -> "RunWorker":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.close()

    def _loop(self) -> None:
        while True:
            try:
                # Idle workers block; running ones only peek between batches.
                message = self._inbox.get(block=not self.orchestrator.running)
            except queue.Empty:
                self.orchestrator.tick()
                continue
            if message is _SHUTDOWN:
                break
            self.orchestrator.handle(message)


def run_search(
    points: Sequence[Point],
    algorithm: Union[Algorithm, str],
    settings: AnySettings,
    start_index: int = 0,
    seed_tour: Optional[Sequence[int]] = None,
    seed: Optional[int] = None,
    run_id: Optional[str] = None,
    target_points: int = RESULT_TARGET_POINTS,
    logger: Optional[Logger] = None,
) -> RunResult:
    """Run a search to completion on the calling thread."""
    done: List[CompleteMessage] = []

    def collect(message: OutboundMessage) -> None:
        if isinstance(message, CompleteMessage):
            done.append(message)

    orchestrator = RunOrchestrator(collect, logger=logger, target_points=target_points)
    orchestrator.handle(
        InitMessage(
            run_id=run_id or new_run_id(),
            algorithm=algorithm,
            points=tuple(points),
            start_index=start_index,
            settings=settings,
            seed_tour=tuple(seed_tour) if seed_tour is not None else None,
            batch_size=max(1, settings.iterations),
            emit_interval_ms=float("inf"),
            seed=seed,
        )
    )
    orchestrator.run_to_completion()
    return done[-1].to_result()
