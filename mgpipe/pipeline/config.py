"""
Configuration Resolution for the mgPipe Pipeline

This module merges the required and optional pipeline parameters with their
documented defaults, checks each against its type constraint and produces a
single immutable `MgPipeConfig`. It is the Python counterpart of the
inputParser block of mgPipe's initialization function.
"""

import os
import numbers
import logging
from typing import Any, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from mgpipe.pipeline.errors import ValidationError
from mgpipe.pipeline.io_utils import ensure_result_dir

logger = logging.getLogger(__name__)

DEFAULT_OBJECTIVE = "EX_biomass(e)"
DEFAULT_DIET = "AverageEuropeanDiet"
DEFAULT_RESULTS_DIRNAME = "Results"
DEFAULT_FIGURE_FORMAT = "eps"


class MgPipeConfig(BaseModel):
    """Fully resolved pipeline parameters. Never mutated once resolved.

    The camelCase aliases are the option names of the original mgPipe
    initialization function and are accepted alongside the field names.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    mod_path: str = Field(strict=True, description="Directory with the organism models")
    abun_path: str = Field(strict=True, description="Abundance table")
    compute_profiles: bool = Field(strict=True, description="Run FVA to compute metabolic profiles")
    res_path: str = Field(None, alias="resPath", strict=True, validate_default=True)
    diet_file_path: Union[str, Tuple[str, ...]] = Field(DEFAULT_DIET, alias="dietFilePath")
    info_file_path: str = Field("", alias="infoFilePath", strict=True)
    host_path: str = Field("", alias="hostPath", strict=True)
    host_biomass_rxn: str = Field("", alias="hostBiomassRxn", strict=True)
    host_biomass_rxn_flux: float = Field(1.0, alias="hostBiomassRxnFlux")
    objre: Tuple[str, ...] = Field("", validate_default=True)
    save_constr_models: bool = Field(False, alias="saveConstrModels", strict=True)
    num_workers: int = Field(2, alias="numWorkers")
    r_diet: bool = Field(False, alias="rDiet", strict=True)
    p_diet: bool = Field(False, alias="pDiet", strict=True)
    include_human_mets: bool = Field(True, alias="includeHumanMets", strict=True)
    lower_bm_bound: float = Field(0.4, alias="lowerBMBound")
    repeat_sim: bool = Field(False, alias="repeatSim", strict=True)
    adapt_medium: bool = Field(True, alias="adaptMedium", strict=True)
    remove_blocked_rxns: bool = Field(False, alias="removeBlockedRxns", strict=True)
    figure_format: str = Field(DEFAULT_FIGURE_FORMAT, alias="figForm", strict=True)

    @property
    def pat_stat(self) -> bool:
        """Whether stratification information is available for the individuals."""
        return self.info_file_path != ""

    @model_validator(mode="before")
    @classmethod
    def reject_duplicate_options(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for name, field in cls.model_fields.items():
                if field.alias and name in data and field.alias in data:
                    raise ValueError(f"Option '{name}' was given more than once.")
        return data

    @field_validator("mod_path", "abun_path", "info_file_path", "host_path", mode="before")
    @classmethod
    def fspath(cls, v: Any) -> Any:
        return os.fspath(v) if isinstance(v, os.PathLike) else v

    @field_validator("host_biomass_rxn_flux", "lower_bm_bound", "num_workers", mode="before")
    @classmethod
    def require_number(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            raise ValueError(f"must be a number, got {v!r}")
        return v

    @field_validator("diet_file_path", mode="before")
    @classmethod
    def validate_diet(cls, v: Any) -> Any:
        if isinstance(v, os.PathLike):
            return os.fspath(v)
        if isinstance(v, (list, tuple)):
            if not v:
                raise ValueError("must be a path or a non-empty list of paths")
            return tuple(os.fspath(d) if isinstance(d, os.PathLike) else d for d in v)
        return v

    @field_validator("objre", mode="before")
    @classmethod
    def default_objective(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v] if v else []
        if isinstance(v, (list, tuple)):
            v = tuple(r for r in v if r != "")
            if not v:
                logger.warning(f"The default objective (objre) has been set to {DEFAULT_OBJECTIVE}")
                return (DEFAULT_OBJECTIVE,)
        return v

    @field_validator("res_path", mode="before")
    @classmethod
    def default_res_path(cls, v: Any) -> Any:
        if v is None:
            return os.path.join(os.getcwd(), DEFAULT_RESULTS_DIRNAME)
        return os.fspath(v) if isinstance(v, os.PathLike) else v

    @field_validator("res_path")
    @classmethod
    def create_res_path(cls, v: str) -> str:
        if v == "":
            raise ValueError("must not be empty")
        if os.path.exists(v) and not os.path.isdir(v):
            raise ValueError(f"{v} exists and is not a directory")
        try:
            return ensure_result_dir(v)
        except OSError as e:
            raise ValueError(f"could not create result directory {v}: {e}") from e


def _describe_errors(error: PydanticValidationError) -> str:
    """Turn pydantic's error list into one message using field names."""
    alias_to_name = {f.alias: name for name, f in MgPipeConfig.model_fields.items() if f.alias}
    messages = []
    for err in error.errors():
        loc = [str(part) for part in err["loc"]]
        name = alias_to_name.get(loc[0], loc[0]) if loc else ""
        if err["type"] == "extra_forbidden":
            messages.append(f"Unknown option '{name}'.")
            continue
        msg = str(err["ctx"]["error"]) if err["type"] == "value_error" else err["msg"]
        messages.append(f"{name}: {msg}" if name else msg)
    return " ".join(messages)


def resolve_config(mod_path, abun_path, compute_profiles, **options) -> MgPipeConfig:
    """
    Merge required and optional parameters into an immutable configuration.

    Args:
        mod_path: Directory where the organism models are stored.
        abun_path: Path to the abundance table.
        compute_profiles: Whether flux variability analysis should be run to
            compute the metabolic profiles.
        **options: Optional `MgPipeConfig` fields, by field name or by their
            mgPipe camelCase alias.

    Returns:
        The resolved `MgPipeConfig`. The result directory exists afterwards.

    Raises:
        ValidationError: If a parameter fails its type constraint or is unknown.
    """
    try:
        return MgPipeConfig(mod_path=mod_path, abun_path=abun_path,
                            compute_profiles=compute_profiles, **options)
    except PydanticValidationError as e:
        raise ValidationError(_describe_errors(e)) from e
