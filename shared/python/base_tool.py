"""
VegScan — Shared Base Tool
===========================
Common skeleton for the VegScan image tools.

Design Pattern:
    Template Method.  :meth:`VegScanTool.run` fixes the order
    validate → process → report; a tool supplies ``validate_inputs`` and
    ``process`` and may override ``summary`` to put its headline result
    in the completion log line.

Usage::

    from shared.python.base_tool import VegScanTool

    class BlockCounter(VegScanTool):
        def validate_inputs(self) -> None:
            Validators.assert_file_exists(self.input_path)

        def process(self) -> None:
            self.count = count_blocks(self.input_path)

        def summary(self) -> str:
            return f"{self.count} blocks"
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

# Root of the package logger tree; modules log to "vegscan.<tool>.<module>".
logger = logging.getLogger("vegscan")

_LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s — %(message)s"


class VegScanTool(ABC):
    """Base class for tools that turn one input image into output files.

    Attributes:
        input_path: Image the tool reads.
        output_path: Directory the tool writes into.
        verbose: Log at DEBUG instead of INFO.
        elapsed: Wall-clock seconds of the last successful :meth:`run`,
            ``None`` before one has completed.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        *,
        verbose: bool = False,
    ) -> None:
        self.input_path: Path = Path(input_path)
        self.output_path: Path = Path(output_path)
        self.verbose: bool = verbose
        self.elapsed: float | None = None

        self._configure_logging()

    @abstractmethod
    def validate_inputs(self) -> None:
        """Check preconditions; raise an ``InputValidationError`` on failure."""

    @abstractmethod
    def process(self) -> None:
        """Do the work.  Only called once :meth:`validate_inputs` passed."""

    def summary(self) -> str:
        """One-line description of the outcome for the completion log."""
        return str(self.output_path)

    def run(self) -> None:
        """Validate, process, then log the outcome and timing.

        Errors from either step propagate unchanged and leave
        :attr:`elapsed` untouched.
        """
        logger.info("Starting %s on %s", type(self).__name__, self.input_path.name)
        start = time.perf_counter()

        self.validate_inputs()
        self.process()

        self.elapsed = time.perf_counter() - start
        logger.info(
            "%s finished %s in %.2fs: %s",
            type(self).__name__, self.input_path.name, self.elapsed, self.summary(),
        )

    def _configure_logging(self) -> None:
        """Attach one console handler to the ``vegscan`` logger and set its level."""
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt="%H:%M:%S"))
            logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(input_path={self.input_path!r}, "
            f"output_path={self.output_path!r})"
        )
