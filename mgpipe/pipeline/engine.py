"""
Modeling Engine Boundary

The community modeling engine (model construction, diet-constrained FVA,
statistics and ordination) is an external collaborator. It is called once per
pipeline run as `engine(config, diet, pool)` and returns a `PipelineResult`,
which this package passes back to the caller untouched.
"""

import importlib
from typing import Any, Callable, NamedTuple

from mgpipe.pipeline.errors import ValidationError


class PipelineResult(NamedTuple):
    """Aggregated engine outputs. Not interpreted by this package."""
    net_secretion_fluxes: Any
    net_uptake_fluxes: Any
    y: Any
    model_stats: Any
    summary: Any
    statistics: Any
    models_ok: bool


# engine(config: MgPipeConfig, diet: DietSpec, pool: WorkerPool) -> PipelineResult
Engine = Callable[..., Any]


def load_engine(spec: str) -> Engine:
    """
    Import an engine callable from a `package.module:function` string.

    Raises:
        ValidationError: If the string is malformed or does not name a callable.
    """
    module_name, sep, attr = spec.partition(':')
    if not sep or not module_name or not attr:
        raise ValidationError(f"Engine must be given as 'module:function', got '{spec}'.")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValidationError(f"Could not import engine module '{module_name}': {e}") from e

    engine = module
    for part in attr.split('.'):
        engine = getattr(engine, part, None)
        if engine is None:
            raise ValidationError(f"Engine '{attr}' not found in module '{module_name}'.")
    if not callable(engine):
        raise ValidationError(f"Engine '{spec}' is not callable.")
    return engine
