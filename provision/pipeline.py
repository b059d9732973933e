# provision/pipeline.py
# -*- coding: utf-8 -*-
"""
Ordered, fail-fast provisioning pipelines.

A Pipeline is an immutable sequence of named Steps. A PipelineRunner executes
it exactly once, in order, stopping at the first failing step. Each execution
is recorded in a PipelineRun. Runs are not persisted and cannot be resumed;
running a pipeline again re-executes every step.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from common.command_utils import get_symbols, log_message
from provision.config import EXIT_INTERRUPTED, EXIT_STEP_FAILURE, EXIT_SUCCESS
from provision.config_models import AppSettings
from provision.step_executor import StepStatus, execute_step

module_logger = logging.getLogger(__name__)


class PreconditionPolicy(enum.Enum):
    FAIL = "fail"
    SKIP = "skip"


def always() -> bool:
    return True


@dataclass(frozen=True)
class Step:
    """
    One named unit of host mutation.

    ``precondition`` and ``action`` take no arguments; they close over the
    resolved site parameters and the injected executor.
    """

    name: str
    description: str
    action: Callable[[], object]
    precondition: Callable[[], bool] = always
    on_precondition_failure: PreconditionPolicy = PreconditionPolicy.FAIL
    failure_exit_code: int = EXIT_STEP_FAILURE


class Pipeline:
    def __init__(self, name: str, steps: Iterable[Step]):
        self.name = name
        self.steps: Tuple[Step, ...] = tuple(steps)
        seen = set()
        for step in self.steps:
            if step.name in seen:
                raise ValueError(
                    f"Pipeline '{name}' has duplicate step name '{step.name}'"
                )
            seen.add(step.name)

    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __repr__(self) -> str:
        return f"Pipeline({self.name!r}, {self.step_names()!r})"


class RunState(enum.Enum):
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass
class PipelineRun:
    pipeline: Pipeline
    started_at: Optional[datetime] = None
    state: RunState = RunState.NOT_STARTED
    current_index: Optional[int] = None
    completed_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None
    failure_reason: Optional[str] = None
    exit_code: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.COMPLETED

    @property
    def current_step(self) -> Optional[str]:
        if self.current_index is None:
            return None
        return self.pipeline.steps[self.current_index].name


class PipelineRunner:
    """Executes a Pipeline once, sequentially, aborting on the first failure."""

    def __init__(
        self,
        app_settings: Optional[AppSettings] = None,
        current_logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.logger = current_logger if current_logger else module_logger
        self.last_run: Optional[PipelineRun] = None

    def run(self, pipeline: Pipeline) -> PipelineRun:
        symbols = get_symbols(self.app_settings)
        run = PipelineRun(pipeline=pipeline, started_at=datetime.now())
        self.last_run = run
        run.state = RunState.RUNNING
        log_message(
            f"{symbols.get('rocket', '🚀')} Running pipeline '{pipeline.name}' "
            f"({len(pipeline)} steps)",
            "debug",
            self.logger,
            self.app_settings,
        )

        for index, step in enumerate(pipeline.steps):
            run.current_index = index
            try:
                outcome = execute_step(step, self.app_settings, self.logger)
            except KeyboardInterrupt:
                run.state = RunState.FAILED
                run.failed_step = step.name
                run.failure_reason = "interrupted by operator"
                run.exit_code = EXIT_INTERRUPTED
                raise

            if outcome.status is StepStatus.FAILED:
                run.state = RunState.FAILED
                run.failed_step = step.name
                run.failure_reason = outcome.reason
                run.exit_code = step.failure_exit_code
                return run
            if outcome.status is StepStatus.SKIPPED:
                run.skipped_steps.append(step.name)
            else:
                run.completed_steps.append(step.name)

        run.current_index = None
        run.state = RunState.COMPLETED
        run.exit_code = EXIT_SUCCESS
        return run
