"""CLI for gitlobster."""

import asyncio

import click
import structlog
from pydantic import ValidationError

from gitlobster.config.logging import configure_logging, verbosity_to_level
from gitlobster.config.settings import load_settings
from gitlobster.core.exceptions import GitlobsterError
from gitlobster.core.models.result import MirrorResult

logger = structlog.get_logger(__name__)


def run_async(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def echo_progress(completed: int, total: int) -> None:
    click.echo(f"Cloning: {completed}/{total}", err=True)


def echo_dry_run(result: MirrorResult) -> None:
    """Print what a real run would mirror."""
    group = result.backup_group
    if group is not None:
        click.echo(f"Backup group:   {group.name} (id: {group.id}, path: {group.full_path})")
    click.echo(f"Local out dir: {result.destination}")
    click.echo()
    for project in result.projects:
        click.echo(f"{project.name:<32} (id: {project.id}, path: {project.path_with_namespace})")


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "settings"
        problems.append(f"{field}: {item['msg']}")
    return "Invalid configuration: " + "; ".join(problems)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--fu", "fetch_url", metavar="FETCH_URL",
              help="The GitLab instance URL to fetch repositories from [env: GTLBSTR_FETCH_URL]")
@click.option("--ft", "fetch_token", metavar="FETCH_TOKEN",
              help="Personal GitLab token for fetching [env: GTLBSTR_FETCH_TOKEN]")
@click.option("--bu", "backup_url", metavar="BACKUP_URL",
              help="The GitLab instance URL to back repositories up to [env: GTLBSTR_BACKUP_URL]")
@click.option("--bt", "backup_token", metavar="BACKUP_TOKEN",
              help="Personal GitLab token for the backup instance [env: GTLBSTR_BACKUP_TOKEN]")
@click.option("--bg", "backup_group", metavar="BACKUP_GROUP",
              help="Existing group on the backup instance to push into [env: GTLBSTR_BACKUP_GROUP]")
@click.option("--include", "-i", multiple=True, metavar="PATTERN",
              help="Include regexp pattern (repeatable, not with --exclude)")
@click.option("--exclude", "-x", multiple=True, metavar="PATTERN",
              help="Exclude regexp pattern (repeatable, not with --include)")
@click.option("--dst", "-d", metavar="DIRECTORY", help="Local folder for downloaded repositories")
@click.option("--verbose", "-v", count=True, help="Verbose level (repeat up to three times)")
@click.option("--dry-run", is_flag=True, help="Show all projects to download")
@click.option("--objects-per-page", type=click.IntRange(1, 100), metavar="COUNT",
              help="How many projects to fetch per request")
@click.option("--limit", type=click.IntRange(min=0), metavar="COUNT",
              help="Maximum projects to download")
@click.option("--concurrency-limit", type=int, metavar="LIMIT",
              help="How many projects to mirror at once [default: 21]")
@click.option("--only-owned", is_flag=True,
              help="Download projects explicitly owned by the user")
@click.option("--only-membership", is_flag=True,
              help="Download only projects the user is a member of")
@click.option("--group", metavar="GROUP", help="Download only projects in this group")
@click.option("--exclude-archived", is_flag=True, help="Skip archived projects")
@click.option("--download-ssh", is_flag=True,
              help="Download over ssh instead of http (needs an authorized key)")
@click.option("--upload-ssh", is_flag=True,
              help="Upload over ssh instead of http (needs an authorized key)")
@click.option("--download-force-http", is_flag=True,
              help="Force downloads over http")
@click.option("--download-force-https", is_flag=True,
              help="Force downloads over https")
@click.option("--upload-force-http", is_flag=True, help="Force uploads over http")
@click.option("--upload-force-https", is_flag=True, help="Force uploads over https")
@click.option("--disable-hierarchy", is_flag=True,
              help="Do not recreate the group hierarchy")
@click.option("--clear-dst", is_flag=True, help="Clear the destination first")
@click.option("--only-master", is_flag=True, help="Download only the default branch")
@click.option("--disable-sync-date", is_flag=True,
              help="Do not add the sync date to backup project descriptions")
@click.option("--gitlab-timeout", type=float, metavar="SECONDS",
              help="Timeout for GitLab requests in seconds")
@click.option("--continue-on-error", is_flag=True,
              help="Log failed projects and keep going")
def cli(verbose: int, include: tuple[str, ...], exclude: tuple[str, ...], **options) -> None:
    """gitlobster: clone every repository available in a GitLab instance.

    Optionally pushes each one to a backup GitLab, recreating the groups.
    """
    configure_logging(log_level=verbosity_to_level(verbose))

    # Unset options and unset flags fall back to the environment
    overrides = {
        key: value
        for key, value in options.items()
        if value is not None and value is not False
    }
    if include:
        overrides["include"] = list(include)
    if exclude:
        overrides["exclude"] = list(exclude)

    from gitlobster.services.orchestrator import MirrorOrchestrator

    try:
        config = load_settings(**overrides).to_mirror_config()
        orchestrator = MirrorOrchestrator(config, on_progress=echo_progress)
        result = run_async(orchestrator.run())
    except ValidationError as e:
        raise click.ClickException(_format_validation_error(e)) from e
    except GitlobsterError as e:
        logger.debug("Run failed", error=str(e), details=e.details)
        raise click.ClickException(str(e)) from e

    if result.dry_run:
        echo_dry_run(result)
        return

    if result.failures:
        click.echo(
            f"Mirrored {result.succeeded}/{result.total} projects, "
            f"{len(result.failures)} failed",
            err=True,
        )


if __name__ == "__main__":
    cli()
