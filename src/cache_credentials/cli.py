#!/usr/bin/env python3
"""
Credential hand-off CLI

One command per process invocation in the workflow:

Commands:
    acquire         Exchange the OIDC token and persist credentials (action main step)
    guard-setup     Record the credentials file in run state (guard main step)
    guard-restore   Re-export credentials before the cache save (guard post step)

Usage:
    cache-credentials acquire
    python -m cache_credentials guard-restore

Inputs, outputs and state are exchanged with the runner through the
INPUT_*, STATE_*, GITHUB_OUTPUT, GITHUB_STATE and GITHUB_ENV conventions.
"""

import sys

import click

from . import acquire as acquire_phase
from . import guard
from .config import Settings
from .logging_config import configure_logging
from .runner import ActionsContext, issue_command
from .version import __version__


def _context() -> tuple[ActionsContext, Settings]:
    context = ActionsContext.from_environ(stream=sys.stdout)
    settings = Settings()
    configure_logging(settings, context.masker)
    return context, settings


@click.group()
@click.version_option(version=__version__, prog_name="cache-credentials")
def cli():
    """
    Workload-identity AWS credentials for cache steps

    Exchanges the workflow OIDC token for temporary AWS credentials and
    hands them from step to step across composite action boundaries.
    """
    pass


@cli.command()
def acquire():
    """
    Obtain credentials and publish them as step outputs

    Reads the 'environment' input (prod or dev, default: prod).
    """
    context, settings = _context()
    acquire_phase.run(context, settings)
    sys.exit(context.exit_code)


@cli.command("guard-setup")
def guard_setup():
    """
    Save the 'credentials-file' input to run state
    """
    context, _ = _context()
    guard.setup(context)
    sys.exit(context.exit_code)


@cli.command("guard-restore")
def guard_restore():
    """
    Export persisted credentials for the rest of the job (never fails)
    """
    context = None
    try:
        context, settings = _context()
        guard.run_restore(context, settings)
    except Exception as e:
        # Post step: configuration errors are warnings too
        message = f"Failed to restore credentials: {e}"
        if context is not None:
            context.warning(message)
        else:
            issue_command(sys.stdout, "warning", message)
    sys.exit(0)


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
