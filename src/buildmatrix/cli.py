# cli.py
from __future__ import annotations

import json
import sys
import threading
from pathlib import Path

import click

from buildmatrix.errors import ConfigError
from buildmatrix.matrix import expand_matrix, select_targets
from buildmatrix.model import JobOutcome
from buildmatrix.runner import exit_code, load_workflow, results_to_dict, run
from buildmatrix.step_workflows import LocalEnvironment
from buildmatrix.step_workflows.artifacts import DEFAULT_ARTIFACTS_DIR, LocalArtifactStore
from buildmatrix.ui.console import Console, get_console, set_console

DEFAULT_WORKFLOW = "buildmatrix_workflow.py"


def find_workflow_files(root: Path = Path(".")) -> list[Path]:
    """
    Find all workflow files in `root`.

    Returns:
        List of Path objects for workflow files
    """
    workflow_files = []

    default_workflow = root / DEFAULT_WORKFLOW
    if default_workflow.exists():
        workflow_files.append(default_workflow)

    for path in root.glob("*_workflow.py"):
        if path != default_workflow:
            workflow_files.append(path)

    return sorted(workflow_files)


def discover_workflow(workflow_arg: str | None) -> Path:
    """
    Discover workflow file from argument or default.

    Raises:
        SystemExit: If workflow cannot be found or multiple workflows exist
    """
    console = get_console()

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix != ".py":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or specify a different path:\n  buildmatrix run --workflow my_workflow.py",
            )
            sys.exit(1)
        return workflow_path

    workflow_files = find_workflow_files()

    if len(workflow_files) == 0:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=["Looked for:", f"  {DEFAULT_WORKFLOW}", "  *_workflow.py"],
            suggestion=f"Create a workflow file:\n  {DEFAULT_WORKFLOW}\n\nOr specify a workflow explicitly:\n  buildmatrix run --workflow my_workflow.py",
        )
        sys.exit(1)

    if len(workflow_files) > 1:
        file_list = "\n".join(f"  {f}" for f in workflow_files)
        console.print_error(
            "Multiple workflow files found",
            "Found multiple workflow files. Please specify which one to use:",
            details=[file_list],
            suggestion=f"Specify a workflow explicitly:\n  buildmatrix run --workflow {DEFAULT_WORKFLOW}",
        )
        sys.exit(1)

    return workflow_files[0]


def _config_error(err: ConfigError) -> None:
    get_console().print_error(
        "Invalid build matrix",
        err.message,
        details=[f"{k}={v}" for k, v in err.details.items()] or None,
        suggestion="Fix the workflow file; no jobs were started.",
    )
    sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """buildmatrix: multi-target build & release runner."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command("run")
@click.option("--workflow", default=None, help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)")
@click.option("--workers", default=None, type=click.IntRange(min=1), help="Number of jobs to run in parallel")
@click.option("--repo-root", default=".", show_default=True, help="Repository to build")
@click.option("--artifacts-dir", default=DEFAULT_ARTIFACTS_DIR, show_default=True, help="Where artifacts are stored")
@click.option("--target", "targets", multiple=True, help="Only run these targets (repeatable)")
@click.option("--any-host/--strict-host", default=False, help="Run jobs whose runs-on label does not match this OS")
@click.option("--report", default=None, type=click.Path(dir_okay=False), help="Write JSON results to this file")
@click.option("--print-plan/--no-print-plan", default=True, show_default=True, help="Print selected jobs")
@click.pass_context
def run_cmd(ctx, workflow, workers, repo_root, artifacts_dir, targets, any_host, report, print_plan):
    """Build every enabled target of a workflow."""
    console = get_console()

    workflow_path = discover_workflow(workflow)
    cancel = threading.Event()

    try:
        definition = load_workflow(workflow_path)
        results = run(
            definition,
            workflow_name=workflow_path.name,
            environment=LocalEnvironment(repo_root, artifacts_dir, strict_host=not any_host),
            max_workers=workers,
            only=targets,
            cancel=cancel,
            print_plan=print_plan,
        )
    except ConfigError as e:
        _config_error(e)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_results(results)

    if report:
        Path(report).write_text(json.dumps(results_to_dict(results), indent=2), encoding="utf-8")
        console.print_info(f"Report written to {report}")

    if cancel.is_set() or any(r.outcome is JobOutcome.CANCELLED for r in results.values()):
        sys.exit(130)
    sys.exit(exit_code(results))


@cli.command()
@click.option("--workflow", default=None, help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)")
@click.option("--target", "targets", multiple=True, help="Only show these targets (repeatable)")
@click.pass_context
def plan(ctx, workflow, targets):
    """Expand the matrix and show the jobs without running them."""
    console = get_console()
    workflow_path = discover_workflow(workflow)

    try:
        definition = load_workflow(workflow_path)
        jobs = select_targets(expand_matrix(definition), targets)
    except ConfigError as e:
        _config_error(e)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_info(f"{len(jobs)} job(s) from {workflow_path.name}")
    for d in jobs:
        console.print_descriptor(d)


@cli.command()
@click.option("--artifacts-dir", default=DEFAULT_ARTIFACTS_DIR, show_default=True, help="Where artifacts are stored")
def artifacts(artifacts_dir):
    """List stored artifacts."""
    store = LocalArtifactStore(artifacts_dir)
    get_console().print_artifacts(artifacts_dir, store.names())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
