# src/poselog/sampler.py
# ---------------------------------------------------------------
# Fixed-cadence pose sampling. Each timer tick re-arms itself first
# and then asks the detector for poses on the latest video frame,
# so a slow detector skews the effective rate but never stops the
# loop. Only one detector call is in flight at a time: ticks that
# land while it runs are skipped, so no frames queue up behind a slow
# model. Direct sample_once calls may still overlap; whichever
# finishes last wins. Detector failures keep the previous poses.
# ---------------------------------------------------------------

from __future__ import annotations
import asyncio
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Set

import numpy as np

from .config import UPDATE_RATE

if TYPE_CHECKING:
    from .backends.base import PoseBackend
    from .data_models import Pose

FrameSource = Callable[[], Optional[np.ndarray]]


def select_first_pose(poses: Sequence["Pose"]) -> Optional["Pose"]:
    """Only one subject is tracked: the detector's first pose, if any."""
    return poses[0] if poses else None


class FrameSampler:
    def __init__(self, detector: "PoseBackend", frame_source: FrameSource,
                 update_rate: float = UPDATE_RATE, executor: Optional[Executor] = None):
        if update_rate <= 0:
            raise ValueError("update_rate must be positive")
        self.detector = detector
        self.frame_source = frame_source
        self.update_rate = float(update_rate)
        self.poses: List["Pose"] = []
        self.samples_completed = 0
        self.samples_failed = 0
        self.samples_skipped = 0

        # one worker: TFLite interpreters are not re-entrant
        self._own_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="pose-detector")
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Set[asyncio.Task] = set()
        self.running = False

    @property
    def period(self) -> float:
        return 1.0 / self.update_rate

    @property
    def pose(self) -> Optional["Pose"]:
        return select_first_pose(self.poses)

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if self.running:
            return
        self._loop = loop or asyncio.get_running_loop()
        self.running = True
        self._tick()

    def stop(self) -> None:
        self.running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    def close(self) -> None:
        self.stop()
        if self._own_executor:
            self._executor.shutdown(wait=False)

    def _tick(self) -> None:
        if not self.running:
            return
        self._handle = self._loop.call_later(self.period, self._tick)
        if self._pending:
            self.samples_skipped += 1
            return
        task = self._loop.create_task(self.sample_once())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def sample_once(self) -> bool:
        """Run the detector once on the current frame; True when poses were replaced."""
        frame = self.frame_source()
        if frame is None:
            return False

        loop = asyncio.get_running_loop()
        try:
            poses = await loop.run_in_executor(self._executor, self.detector.estimate, frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.samples_failed += 1
            print(f"[FrameSampler] Detector failed, keeping previous poses: {e}")
            return False

        self.poses = list(poses)
        self.samples_completed += 1
        return True
