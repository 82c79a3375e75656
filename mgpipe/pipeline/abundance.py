"""
Abundance Validation for the mgPipe Pipeline

This module loads the organism abundance table and checks the preconditions
the community model builder relies on: every sample's relative abundances must
be normalized (sum to at most 1, within a rounding tolerance), and every
organism listed must have a model file in the model directory.

Table layout: the first row holds the sample names and the first column holds
the organism names. All other cells are relative abundances.
"""

import os
import logging
from pathlib import Path
from typing import List, Sequence

import numpy as np
import pandas as pd

from mgpipe.pipeline.errors import MissingFileError, NotNormalizedError
from mgpipe.pipeline.io_utils import PathLike

logger = logging.getLogger(__name__)

# Column sums above this value mean the abundances were not normalized.
# The extra 0.01 allows for rounding in coverage-derived abundances.
ABUNDANCE_NORMALIZATION_TOLERANCE = 1.01

MODEL_FILE_EXTENSIONS = ('.mat', '.sbml', '.xml', '.json')

_SEPARATORS = {'.csv': ',', '.tsv': '\t', '.txt': '\t'}
SPREADSHEET_EXTENSIONS = ('.xlsx',)


def read_abundance_table(abun_path: PathLike) -> pd.DataFrame:
    """
    Read an abundance table into a numeric DataFrame.

    Args:
        abun_path: Path to the abundance table (.csv, .tsv, tab-separated .txt
            or an .xlsx spreadsheet).

    Returns:
        DataFrame indexed by organism with one column per sample. Missing or
        non-numeric cells are read as 0.

    Raises:
        MissingFileError: If the file does not exist.
    """
    abun_path = os.fspath(abun_path)
    if not os.path.isfile(abun_path):
        raise MissingFileError(f"Abundance file not found: {abun_path}")

    suffix = Path(abun_path).suffix.lower()
    if suffix in SPREADSHEET_EXTENSIONS:
        raw = pd.read_excel(abun_path, header=None, dtype=str)
    else:
        sep = _SEPARATORS.get(suffix)
        read_kwargs = {'sep': sep} if sep else {'sep': None, 'engine': 'python'}
        raw = pd.read_csv(abun_path, header=None, dtype=str, skip_blank_lines=True, **read_kwargs)

    # spreadsheet exports leave trailing ",," rows and empty trailing columns
    raw = raw.dropna(axis=0, how='all').dropna(axis=1, how='all')

    if raw.empty:
        return pd.DataFrame()

    samples = [str(s) for s in raw.iloc[0, 1:]]
    organisms = [str(o) for o in raw.iloc[1:, 0]]
    body = raw.iloc[1:, 1:].apply(pd.to_numeric, errors='coerce').fillna(0.0)
    body.index = organisms
    body.columns = samples
    return body


def validate_abundance_normalization(abun_path: PathLike,
                                     tolerance: float = ABUNDANCE_NORMALIZATION_TOLERANCE) -> pd.DataFrame:
    """
    Test whether the abundances of every sample are normalized.

    Args:
        abun_path: Path to the abundance table.
        tolerance: Largest accepted per-sample total abundance.

    Returns:
        The abundance table, as read by `read_abundance_table`.

    Raises:
        NotNormalizedError: If any sample column sums to more than `tolerance`.
    """
    abundance = read_abundance_table(abun_path)
    totals = abundance.sum(axis=0).to_numpy(dtype=float)
    offending = np.flatnonzero(totals > tolerance)

    if offending.size:
        names = [abundance.columns[i] for i in offending]
        details = ", ".join(f"{name} ({totals[i]:.4f})" for name, i in zip(names, offending))
        raise NotNormalizedError(
            f"Abundances are not normalized (column sums above {tolerance}): {details}. "
            "Please normalize the coverage before running the pipeline.",
            column_indices=offending.tolist(),
            column_names=names,
            totals=totals[offending].tolist(),
        )

    logger.info(f"Abundances in {os.fspath(abun_path)} are normalized for {abundance.shape[1]} samples.")
    return abundance


def check_model_files(mod_path: PathLike, organisms: Sequence[str]) -> List[str]:
    """
    Check that the model directory holds one model file per organism.

    Args:
        mod_path: Directory containing the organism model files.
        organisms: Organism names, as listed in the abundance table.

    Returns:
        The model file path found for each organism, in the same order.

    Raises:
        MissingFileError: If the directory or any organism model is missing.
    """
    mod_path = os.fspath(mod_path)
    if not os.path.isdir(mod_path):
        raise MissingFileError(f"Model directory not found: {mod_path}")

    found, missing = [], []
    for organism in organisms:
        candidates = [os.path.join(mod_path, organism + ext) for ext in MODEL_FILE_EXTENSIONS]
        model_file = next((c for c in candidates if os.path.isfile(c)), None)
        if model_file is None:
            missing.append(organism)
        else:
            found.append(model_file)

    if missing:
        raise MissingFileError(
            f"Model file not found in {mod_path} for {len(missing)} organism(s): {', '.join(missing)}")
    return found
