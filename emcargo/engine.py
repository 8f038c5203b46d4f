"""Pluggable executor that intercepts rustc invocations.

The orchestrator hands every tool invocation to :meth:`BuildEngine.exec` or
:meth:`BuildEngine.exec_with_output`.  For binary crates the engine asks
rustc for LLVM IR, repairs and optimises it, and lowers it to a browser
artifact when an ``em-*`` kind is configured.  Each call touches only files
named after its own crate, and the configuration is frozen, so concurrent
calls from the orchestrator need no locking.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import dispatch, executor, ir_transform, planner
from .classifier import Classification, classify
from .command import CompileCommand
from .config import EngineConfig, is_browser_emit
from .executor import ProcessResult

LOGGER = logging.getLogger("emcargo.engine")


class BuildEngine:
    """Intercepts compile commands according to an :class:`EngineConfig`."""

    def __init__(self, config: EngineConfig, classifier=classify) -> None:
        self.config = config
        self.classifier = classifier

    def exec(self, command: CompileCommand) -> None:
        self._run(command, with_output=False)

    def exec_with_output(self, command: CompileCommand) -> ProcessResult:
        return self._run(command, with_output=True)

    def _run(self, command: CompileCommand, with_output: bool) -> Optional[ProcessResult]:
        classification = self.classifier(command, self.config)
        if classification is None:
            return executor.execute(command, with_output)

        rewrite = planner.plan(classification, self.config)
        browser = is_browser_emit(rewrite.emit)
        if browser:
            # fail on an unknown kind before rustc runs
            dispatch.output_extension(rewrite.emit)

        command = planner.apply(command, rewrite, self.config)
        output = executor.execute(command, with_output)

        if rewrite.transform:
            self._transform(classification)

        if browser:
            return dispatch.dispatch(
                classification.ir_path,
                classification.crate_name,
                classification.out_dir,
                rewrite.emit,
                self.config.emcc_program,
                with_output,
            )
        return output

    def _transform(self, classification: Classification) -> None:
        LOGGER.debug("transforming IR for %s", classification.crate_name)
        ir_transform.transform_module(
            classification.ir_path,
            self.config.opt_program,
            self.config.plugin_dir,
        )


__all__ = ["BuildEngine"]
