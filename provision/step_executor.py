# provision/step_executor.py
# -*- coding: utf-8 -*-
"""
Provides functionality to execute individual provisioning steps.

This module defines a function to run a single step: log its start, evaluate
its precondition, run its action and turn the result (or exception) into a
StepOutcome. It never re-raises ordinary exceptions; the pipeline runner
decides what a failed outcome means for the run.
"""

import enum
import logging
from typing import TYPE_CHECKING, NamedTuple, Optional

from common.command_utils import get_symbols, log_message
from provision.config_models import AppSettings

if TYPE_CHECKING:
    from provision.pipeline import Step

module_logger = logging.getLogger(__name__)

PRECONDITION_NOT_MET = "precondition not met"


class StepStatus(enum.Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class StepOutcome(NamedTuple):
    status: StepStatus
    reason: Optional[str] = None


def _describe_exception(exc: BaseException) -> str:
    text = str(exc).strip()
    return text if text else exc.__class__.__name__


def execute_step(
    step: "Step",
    app_settings: Optional[AppSettings] = None,
    current_logger_instance: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Execute a single provisioning step.

    The precondition is evaluated first. When it does not hold the step is
    skipped or failed according to its policy. Otherwise the action runs;
    an exception or a ``False`` return value is a failure, anything else
    (including None) is success.

    Args:
        step: The step to execute.
        app_settings: The application settings object.
        current_logger_instance: The logger instance to use.

    Returns:
        The StepOutcome. For failures ``reason`` holds the proximate cause.
    """
    # Local import: pipeline imports this module.
    from provision.pipeline import PreconditionPolicy

    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    symbols = get_symbols(app_settings)

    log_message(
        f"Starting step '{step.name}': {step.description}",
        "info",
        logger_to_use,
        app_settings,
    )

    try:
        precondition_met = bool(step.precondition())
    except Exception as e:
        reason = f"precondition check raised: {_describe_exception(e)}"
        log_message(
            f"{symbols.get('error', '❌')} Step '{step.name}' failed: {reason}",
            "error",
            logger_to_use,
            app_settings,
            exc_info=logger_to_use.isEnabledFor(logging.DEBUG),
        )
        return StepOutcome(StepStatus.FAILED, reason)

    if not precondition_met:
        if step.on_precondition_failure is PreconditionPolicy.SKIP:
            log_message(
                f"Skipping step '{step.name}': {PRECONDITION_NOT_MET}",
                "info",
                logger_to_use,
                app_settings,
            )
            return StepOutcome(StepStatus.SKIPPED, PRECONDITION_NOT_MET)
        log_message(
            f"{symbols.get('error', '❌')} Step '{step.name}' failed: {PRECONDITION_NOT_MET}",
            "error",
            logger_to_use,
            app_settings,
        )
        return StepOutcome(StepStatus.FAILED, PRECONDITION_NOT_MET)

    try:
        step_result = step.action()
    except Exception as e:
        reason = _describe_exception(e)
        log_message(
            f"{symbols.get('error', '❌')} Step '{step.name}' failed: {reason}",
            "error",
            logger_to_use,
            app_settings,
            exc_info=logger_to_use.isEnabledFor(logging.DEBUG),
        )
        return StepOutcome(StepStatus.FAILED, reason)

    if step_result is False:
        reason = "action reported failure"
        log_message(
            f"{symbols.get('error', '❌')} Step '{step.name}' failed: {reason}",
            "error",
            logger_to_use,
            app_settings,
        )
        return StepOutcome(StepStatus.FAILED, reason)

    log_message(
        f"Step '{step.name}' completed",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome(StepStatus.COMPLETED)
