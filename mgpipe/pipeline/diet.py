"""
Diet and Stratification Resolution for the mgPipe Pipeline

A diet is either one file shared by all individuals, or one file per
individual. Diet paths may be given without their extension, in which case the
default text extension is appended before checking that the file exists.
"""

import os
import logging
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

from mgpipe.pipeline.errors import MissingFileError, ValidationError
from mgpipe.pipeline.io_utils import PathLike, has_extension

logger = logging.getLogger(__name__)

DIET_FILE_EXTENSION = '.txt'
RECOGNIZED_DIET_EXTENSIONS = (DIET_FILE_EXTENSION,)


@dataclass(frozen=True)
class DietSpec:
    """Resolved diet file(s): one shared file, or one file per individual."""
    paths: Tuple[str, ...]
    per_individual: bool = False

    @property
    def path(self) -> str:
        """The shared diet file. Only defined for a non-personalized diet."""
        if self.per_individual:
            raise AttributeError("A per-individual diet has no single path; use `paths`.")
        return self.paths[0]

    def for_sample(self, index: int) -> str:
        """Diet file used for the sample at position `index`."""
        return self.paths[index] if self.per_individual else self.paths[0]


def resolve_diet_path(diet_file_path: PathLike) -> str:
    """
    Append the diet extension if absent and check that the file exists.

    Returns:
        The canonical (normalized) diet file path.

    Raises:
        MissingFileError: If the resulting path does not exist.
    """
    diet_file_path = os.fspath(diet_file_path)
    if not has_extension(diet_file_path, RECOGNIZED_DIET_EXTENSIONS):
        diet_file_path = diet_file_path + DIET_FILE_EXTENSION
    diet_file_path = os.path.normpath(diet_file_path)

    if not os.path.isfile(diet_file_path):
        raise MissingFileError(f"Path to file with dietary information is incorrect: {diet_file_path}")
    return diet_file_path


def resolve_diet(diet_file_path: Union[PathLike, Sequence[PathLike]], sample_count: int) -> DietSpec:
    """
    Resolve a diet specification.

    Args:
        diet_file_path: A single diet file, or a sequence with one diet file per
            individual.
        sample_count: Number of samples in the abundance table.

    Returns:
        The resolved `DietSpec`.

    Raises:
        MissingFileError: If a diet file does not exist.
        ValidationError: If the number of per-individual diets differs from
            the number of samples.
    """
    if isinstance(diet_file_path, (str, os.PathLike)):
        return DietSpec(paths=(resolve_diet_path(diet_file_path),))

    diet_files = list(diet_file_path)
    if len(diet_files) != sample_count:
        raise ValidationError(
            f"Found {len(diet_files)} individual diets for {sample_count} samples. "
            "The number of diets must equal the number of samples.")
    return DietSpec(paths=tuple(resolve_diet_path(d) for d in diet_files), per_individual=True)


def resolve_stratification(info_file_path: PathLike) -> bool:
    """
    Decide whether stratification information is available.

    Args:
        info_file_path: Path to the file with stratification criteria, or "".

    Returns:
        True if an info file was given.

    Raises:
        MissingFileError: If an info file was given but does not exist.
    """
    info_file_path = os.fspath(info_file_path)
    if info_file_path == "":
        logger.warning("Individuals health status not declared. Analysis will ignore that.")
        return False
    if not os.path.isfile(info_file_path):
        raise MissingFileError(f"Stratification info file not found: {info_file_path}")
    return True
