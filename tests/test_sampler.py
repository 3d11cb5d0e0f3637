import asyncio
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from conftest import FakeBackend, make_pose
from poselog.sampler import FrameSampler, select_first_pose


class FailingBackend(FakeBackend):
    def estimate(self, frame_bgr):
        self.calls += 1
        raise RuntimeError("detector exploded")


class SlowFirstBackend(FakeBackend):
    """First call is slow and returns `first`; later calls return `second` at once."""

    def __init__(self, first, second):
        super().__init__()
        self.first, self.second = first, second

    def estimate(self, frame_bgr):
        self.calls += 1
        if self.calls == 1:
            time.sleep(0.2)
            return [self.first]
        return [self.second]


FRAME = np.zeros((4, 4, 3), dtype=np.uint8)


def test_select_first_pose():
    a, b = make_pose(score=0.5), make_pose(score=0.6)
    assert select_first_pose([a, b]) is a
    assert select_first_pose([]) is None


def test_no_frame_means_no_detector_call():
    backend = FakeBackend()
    sampler = FrameSampler(backend, lambda: None)
    assert asyncio.run(sampler.sample_once()) is False
    assert backend.calls == 0
    assert sampler.pose is None
    sampler.close()


def test_sample_keeps_all_poses_but_exposes_first():
    a, b = make_pose(score=0.5), make_pose(score=0.6)
    sampler = FrameSampler(FakeBackend([a, b]), lambda: FRAME)
    assert asyncio.run(sampler.sample_once()) is True
    assert sampler.poses == [a, b]
    assert sampler.pose is a
    sampler.close()


def test_empty_detection_clears_pose():
    backend = FakeBackend()
    sampler = FrameSampler(backend, lambda: FRAME)
    asyncio.run(sampler.sample_once())
    backend.poses = []
    asyncio.run(sampler.sample_once())
    assert sampler.pose is None
    sampler.close()


def test_detector_failure_keeps_previous_poses():
    sampler = FrameSampler(FakeBackend(), lambda: FRAME)
    asyncio.run(sampler.sample_once())
    previous = sampler.poses
    sampler.detector = FailingBackend()
    assert asyncio.run(sampler.sample_once()) is False
    assert sampler.poses == previous
    assert sampler.samples_failed == 1
    sampler.close()


def test_last_completed_result_wins():
    first, second = make_pose(score=0.4), make_pose(score=0.8)
    pool = ThreadPoolExecutor(max_workers=2)
    sampler = FrameSampler(SlowFirstBackend(first, second), lambda: FRAME, executor=pool)

    async def overlapping():
        slow = asyncio.create_task(sampler.sample_once())
        await asyncio.sleep(0.05)
        await sampler.sample_once()
        assert sampler.pose is second
        await slow

    asyncio.run(overlapping())
    assert sampler.pose is first
    pool.shutdown()


def test_timer_keeps_sampling_through_failures():
    backend = FailingBackend()
    sampler = FrameSampler(backend, lambda: FRAME, update_rate=100)

    async def run():
        sampler.start()
        await asyncio.sleep(0.25)
        sampler.stop()

    asyncio.run(run())
    assert backend.calls >= 3
    assert sampler.running is False
    sampler.close()


def test_timer_skips_when_video_not_ready():
    backend = FakeBackend()
    sampler = FrameSampler(backend, lambda: None, update_rate=100)

    async def run():
        sampler.start()
        await asyncio.sleep(0.1)
        sampler.stop()

    asyncio.run(run())
    assert backend.calls == 0
    sampler.close()


class SlowBackend(FakeBackend):
    def estimate(self, frame_bgr):
        self.calls += 1
        time.sleep(0.05)
        return self.poses


def test_slow_detector_never_queues_more_than_one_call():
    backend = SlowBackend()
    sampler = FrameSampler(backend, lambda: FRAME, update_rate=100)
    in_flight = []

    async def run():
        sampler.start()
        for _ in range(50):
            await asyncio.sleep(0.01)
            in_flight.append(len(sampler._pending))
        sampler.stop()

    asyncio.run(run())
    assert max(in_flight) <= 1
    assert backend.calls >= 3
    assert sampler.samples_skipped > 0
    assert sampler.pose is not None
    sampler.close()
