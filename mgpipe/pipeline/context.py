"""
Process Context for the mgPipe Pipeline

Holds the process-level state the pipeline touches: one-time toolbox/solver
initialization and the working directory, which the modeling engine may change.
"""

import os
import logging
from contextlib import contextmanager
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@contextmanager
def preserve_cwd():
    """Restore the current working directory on exit, whatever happens inside."""
    current_dir = os.getcwd()
    try:
        yield current_dir
    finally:
        if os.getcwd() != current_dir:
            logger.debug(f"Restoring working directory to {current_dir}")
        os.chdir(current_dir)


class ProcessContext:
    """
    Init-once process state passed to the orchestrator.

    `initialize` runs the initializer hook (e.g. solver setup) the first time
    it is called; later calls do nothing. There is no re-initialization.
    """

    def __init__(self, initializer: Optional[Callable[[], None]] = None):
        self._initializer = initializer
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self):
        if self._initialized:
            return
        if self._initializer is not None:
            logger.info("Initializing modeling toolbox.")
            self._initializer()
        self._initialized = True
