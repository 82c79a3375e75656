"""
mgPipe Pipeline Orchestration

This module ties the initialization steps together: it resolves the
configuration, validates the abundance table, diet and stratification inputs,
makes sure the worker pool exists and finally hands everything to the modeling
engine. Any failed precondition aborts the run before the engine is called.
"""

import logging
from typing import Optional

import pandas as pd

from mgpipe.pipeline.abundance import check_model_files, validate_abundance_normalization
from mgpipe.pipeline.config import MgPipeConfig, resolve_config
from mgpipe.pipeline.context import ProcessContext, preserve_cwd
from mgpipe.pipeline.diet import DietSpec, resolve_diet, resolve_stratification
from mgpipe.pipeline.engine import Engine, PipelineResult
from mgpipe.pipeline.errors import MgPipeError, PipelineOutcome
from mgpipe.pipeline.io_utils import log_memory_usage, log_with_timestamp
from mgpipe.pipeline.parallel import (ParallelExecutionManager, WorkerPool,
                                      check_parallel_request, get_default_manager)

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Runs the modeling engine on a fully resolved configuration.

    Args:
        engine: The modeling engine, called as `engine(config, diet, pool)`.
        context: Process context whose one-time initialization runs before
            the first engine call.
    """

    def __init__(self, engine: Engine, context: Optional[ProcessContext] = None):
        self.engine = engine
        self.context = context or ProcessContext()

    def run(self, config: MgPipeConfig, abundance: pd.DataFrame, diet: DietSpec,
            pool: WorkerPool) -> PipelineResult:
        """
        Invoke the engine once and return its results unchanged.

        The working directory is restored afterwards, also when the engine
        fails. Engine errors propagate to the caller; there are no retries.
        """
        with preserve_cwd():
            self.context.initialize()

            logger.info(f" > Models will be read from: {config.mod_path}")
            logger.info(f" > Abundances will be read from: {config.abun_path} ({abundance.shape[1]} samples)")
            if diet.per_individual:
                logger.info(f" > Using {len(diet.paths)} individual diets")
            else:
                logger.info(f" > Diet will be read from: {diet.path}")
            logger.info(f" > Results will be stored in: {config.res_path}")
            log_memory_usage("before modeling engine")
            logger.info(" > Microbiome Toolbox pipeline initialized successfully.")

            log_with_timestamp("Starting modeling engine")
            result = self.engine(config, diet, pool)
            log_with_timestamp("Modeling engine finished")
        return result


def init_mg_pipe(mod_path, abun_path, compute_profiles, engine: Engine,
                 context: Optional[ProcessContext] = None,
                 pool_manager: Optional[ParallelExecutionManager] = None,
                 **options) -> PipelineResult:
    """
    Initialize the mgPipe pipeline and run the modeling engine.

    Args:
        mod_path: Directory where the organism models are stored.
        abun_path: Path to the abundance table.
        compute_profiles: Whether flux variability analysis should be run to
            compute the metabolic profiles.
        engine: The modeling engine (see `mgpipe.pipeline.engine`).
        context: Process context; a fresh one is used if omitted.
        pool_manager: Worker pool manager; the process-wide one if omitted.
        **options: Optional parameters accepted by `resolve_config`.

    Returns:
        The engine's `PipelineResult`, unchanged.

    Raises:
        MgPipeError: If any precondition fails. Engine errors propagate as is.
    """
    config = resolve_config(mod_path, abun_path, compute_profiles, **options)
    check_parallel_request(config.num_workers)

    abundance = validate_abundance_normalization(config.abun_path)
    check_model_files(config.mod_path, list(abundance.index))
    diet = resolve_diet(config.diet_file_path, abundance.shape[1])
    resolve_stratification(config.info_file_path)

    pool_manager = pool_manager or get_default_manager()
    pool = pool_manager.ensure_pool(config.num_workers)

    orchestrator = PipelineOrchestrator(engine, context)
    return orchestrator.run(config, abundance, diet, pool)


def try_init_mg_pipe(mod_path, abun_path, compute_profiles, engine: Engine, **kwargs) -> PipelineOutcome:
    """
    Same as `init_mg_pipe`, but returns a `PipelineOutcome` instead of raising
    for pipeline errors. Engine exceptions that are not `MgPipeError` still
    propagate.
    """
    try:
        result = init_mg_pipe(mod_path, abun_path, compute_profiles, engine, **kwargs)
    except MgPipeError as e:
        return PipelineOutcome.failure(e)
    return PipelineOutcome.success(result)
