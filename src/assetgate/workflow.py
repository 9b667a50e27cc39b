"""
Asset transfer workflow - the fixed sequence of contract calls.

Every step is issued and fully awaited before the next one.  The first
failure stops the sequence and is raised as a ``WorkflowError``; a failed
submit first runs the diagnostic probe (when enabled) so the report is
printed before the caller decides how to exit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

import click

from .errors import DiagnosticError, SubmitError, TransactionError, WorkflowError
from .pneuma.probe import ProbeReport, probe_containers
from .pneuma.tx import DEFAULT_COMMIT_TIMEOUT, Contract
from .present import Presentation, present

SUBMIT = "submit"
EVALUATE = "evaluate"

Echo = Callable[[str], None]
Probe = Callable[[], ProbeReport]


@dataclass(frozen=True)
class Step:
    kind: str
    function: str
    args: tuple[str, ...] = ()
    description: str = ""

    @property
    def name(self) -> str:
        verb = "Submit" if self.kind == SUBMIT else "Evaluate"
        return f"{verb} Transaction: {self.function}"


@dataclass(frozen=True)
class StepResult:
    step: Step
    payload: bytes
    presentation: Optional[Presentation] = None


DEFAULT_STEPS: tuple[Step, ...] = (
    Step(SUBMIT, "InitLedger", (), "function creates the initial set of assets on the ledger"),
    Step(EVALUATE, "GetAllAssets", (), "function returns all the current assets on the ledger"),
    Step(
        SUBMIT,
        "CreateAsset",
        ("asset13", "yellow", "5", "Tom", "1300"),
        "creates new asset with ID, color, size, owner, and appraisedValue arguments",
    ),
    Step(EVALUATE, "ReadAsset", ("asset13",), "function returns an asset with a given assetID"),
    Step(EVALUATE, "AssetExists", ("asset1",), "function returns 'true' if an asset with given assetID exist"),
    Step(SUBMIT, "TransferAsset", ("asset1", "Tom"), "transfer asset to new owner"),
    Step(EVALUATE, "ReadAsset", ("asset1",), "function returns asset attributes"),
)


def run_step(contract: Contract, step: Step, commit_timeout: float = DEFAULT_COMMIT_TIMEOUT) -> bytes:
    if step.kind == SUBMIT:
        return contract.submit_transaction(step.function, *step.args, commit_timeout=commit_timeout)
    if step.kind == EVALUATE:
        return contract.evaluate_transaction(step.function, *step.args)
    raise ValueError(f"Unknown step kind: {step.kind!r}")


def run_diagnostics(probe: Probe, echo: Echo) -> Union[ProbeReport, DiagnosticError]:
    """Run the probe and echo its findings; a probe failure is returned, not raised."""
    echo("--> Diagnostics: inspecting backing service containers")
    try:
        report = probe()
    except DiagnosticError as exc:
        echo(f"Diagnostics failed: {exc}")
        return exc

    echo(f"Found {len(report.matches)} container(s) matching {report.keyword!r} "
         f"out of {report.scanned} running")
    for container in report.matches:
        for line in container.describe():
            echo(f"    {line}")
        echo("")
    return report


def run_workflow(
    contract: Contract,
    steps: Sequence[Step] = DEFAULT_STEPS,
    *,
    diagnose: bool = True,
    probe: Probe = probe_containers,
    echo: Echo = click.echo,
    commit_timeout: float = DEFAULT_COMMIT_TIMEOUT,
) -> list[StepResult]:
    """
    Run ``steps`` against ``contract`` in order.

    Args:
        contract: Bound contract
        steps: Steps to run (default: the asset transfer sample)
        diagnose: Probe backing containers when a submit fails
        probe: Zero-argument probe callable
        echo: Transcript sink
        commit_timeout: Seconds to wait for each submit to commit

    Returns:
        One StepResult per step

    Raises:
        WorkflowError: On the first failing step; ``cause`` is the
            SubmitError/EvaluateError, with ``cause.diagnostics`` set when
            the probe ran
    """
    results: list[StepResult] = []
    for step in steps:
        args = ", ".join(step.args)
        echo(f"--> {step.name}" + (f", {step.description}" if step.description else ""))
        if args:
            echo(f"--> {step.name}, {args}")

        try:
            payload = run_step(contract, step, commit_timeout=commit_timeout)
        except TransactionError as exc:
            echo(f"Failed to {step.kind} transaction: {exc}")
            if isinstance(exc, SubmitError) and diagnose:
                exc.diagnostics = run_diagnostics(probe, echo)
            raise WorkflowError(step.name, exc) from exc

        presentation = None
        if step.kind == EVALUATE:
            presentation = present(payload)
            if presentation.error is not None:
                echo(str(presentation.error))
            echo(presentation.text)
        results.append(StepResult(step=step, payload=payload, presentation=presentation))

    return results
