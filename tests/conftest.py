"""Shared pytest fixtures for mgpipe tests."""

import logging
import os
from concurrent.futures import Executor, Future

import pytest

from mgpipe.pipeline.engine import PipelineResult
from mgpipe.pipeline.parallel import ParallelExecutionManager

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


class FakeExecutor(Executor):
    """Runs submitted work inline; records shutdown."""

    def __init__(self, max_workers):
        self.max_workers = max_workers
        self.shut_down = False

    def submit(self, fn, *args, **kwargs):
        future = Future()
        future.set_result(fn(*args, **kwargs))
        return future

    def shutdown(self, wait=True, **kwargs):
        self.shut_down = True


class RecordingEngine:
    """Engine stand-in that records its calls and returns a fixed result."""

    def __init__(self, result=None, error=None, chdir_to=None):
        self.calls = []
        self.result = result if result is not None else PipelineResult(
            net_secretion_fluxes={'S1': 1.0},
            net_uptake_fluxes={'S1': 0.5},
            y=[[0.0, 1.0]],
            model_stats={'S1': (10, 20)},
            summary={'mean': 15},
            statistics=None,
            models_ok=True,
        )
        self.error = error
        self.chdir_to = chdir_to

    def __call__(self, config, diet, pool):
        self.calls.append((config, diet, pool))
        if self.chdir_to is not None:
            os.chdir(self.chdir_to)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_manager():
    """Pool manager backed by inline executors."""
    created = []

    def factory(n):
        executor = FakeExecutor(n)
        created.append(executor)
        return executor

    manager = ParallelExecutionManager(pool_factory=factory, capability_check=lambda: True)
    manager.created = created
    yield manager
    manager.release()


@pytest.fixture
def engine():
    return RecordingEngine()


@pytest.fixture
def abundance_csv(tmp_path):
    """Normalized abundance table with two samples (sums 1.00 and 0.995)."""
    path = tmp_path / "normCoverage.csv"
    path.write_text(
        "organism,S1,S2\n"
        "Bacteroides_sp,0.6,0.5\n"
        "E_coli,0.4,0.495\n"
    )
    return path


@pytest.fixture
def model_dir(tmp_path):
    path = tmp_path / "models"
    path.mkdir()
    (path / "Bacteroides_sp.mat").write_text("")
    (path / "E_coli.mat").write_text("")
    return path


@pytest.fixture
def diet_file(tmp_path):
    path = tmp_path / "AverageEuropeanDiet.txt"
    path.write_text("Diet_EX_glc_D[d]\t-10\n")
    return path


@pytest.fixture
def results_dir(tmp_path):
    return tmp_path / "Results"


@pytest.fixture
def make_engine():
    """Factory for engines with a custom result, error or directory change."""
    return RecordingEngine
