"""Click CLI for gitme."""

import asyncio
from typing import Optional

import click
from trogon import tui

from gitme import __version__
from gitme.config import AVAILABLE_THEMES, GitmeConfig, RepositoryConfig
from gitme.exceptions import ConfigError, GitmeError
from gitme.github import GitHubClient
from gitme.log import configure_logger


_log = configure_logger("gitme.cli")


def mask_token(token: Optional[str]) -> str:
    """Show only the last four characters of a token."""
    if not token:
        return "(not set)"
    if len(token) <= 4:
        return "****"
    return f"{'*' * 8}{token[-4:]}"


def _run_dashboard(config: GitmeConfig) -> None:
    from gitme.tui import GitmeApp
    app = GitmeApp(config)
    app.run()


@tui()
@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="gitme")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """gitme - Pull requests that need you, in your terminal.

    Running gitme without a command launches the dashboard.

    Quick start:
        gitme init                    Create a configuration interactively
        gitme repos add owner/name    Watch another repository
        gitme dashboard               Launch the dashboard
        gitme tui                     Launch command explorer (Trogon)
    """
    if ctx.invoked_subcommand is None:
        _run_dashboard(GitmeConfig.load())


@cli.command()
def dashboard() -> None:
    """Launch the interactive TUI dashboard.

    Two panels list the open pull requests of the configured repositories,
    grouped by repository: those waiting for your review (or already
    reviewed by you) and those assigned to you.

    Keyboard shortcuts:
        j/k - Scroll list
        u/d - Jump up/down
        n/p - Next/previous repository
        TAB - Switch panel
        / - Search
        f - Refresh
        r - Review PR
        o - Open in browser
        ? - Help
        q - Quit
    """
    _run_dashboard(GitmeConfig.load())


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing configuration")
def init(force: bool) -> None:
    """Create a configuration interactively."""
    if GitmeConfig.exists() and not force:
        click.echo(
            f"Error: {GitmeConfig.get_config_path()} already exists (use --force to overwrite).",
            err=True,
        )
        raise SystemExit(1)

    click.echo("Welcome to gitme!")
    click.echo("We're going to create a configuration file.\n")

    api_key = click.prompt("Insert your GitHub token", hide_input=True).strip()

    default_username = None
    try:
        default_username = asyncio.run(_authenticated_login(api_key))
    except GitmeError as e:
        _log.info("Could not look up authenticated user: %s", e.message)

    username = click.prompt("What's your GitHub username?", default=default_username).strip()
    command = click.prompt("What command do you want to use for reviews?").strip()

    command_args = []
    click.echo("If needed add argument(s) to your command, leave empty otherwise:")
    while True:
        arg = click.prompt(f"Argument {len(command_args) + 1}", default="", show_default=False).strip()
        if not arg:
            break
        command_args.append(arg)

    theme = click.prompt(
        "Theme",
        type=click.Choice([value for value, _ in AVAILABLE_THEMES]),
        default=AVAILABLE_THEMES[0][0],
    )

    config = GitmeConfig(
        api_key=api_key,
        username=username,
        command=command,
        command_args=command_args,
        theme=theme,
    )
    while click.confirm("Do you wish to add a repository?", default=True):
        owner = click.prompt("Repository owner").strip()
        name = click.prompt("Repository name").strip()
        system_path = None
        if click.confirm("Add a path to the local repository for review operations?", default=True):
            system_path = click.prompt("Absolute path to local repository (~ is allowed)").strip()
        try:
            config.add_repository(RepositoryConfig(owner, name, system_path))
        except ConfigError as e:
            click.echo(f"Error: {e.message}", err=True)

    config.save()
    click.echo(f"✓ Wrote {GitmeConfig.get_config_path()}")


async def _authenticated_login(token: str) -> str:
    async with GitHubClient(token, max_retries=0) as client:
        profile = await client.get_authenticated_user()
    return profile.login


# =============================================================================
# Repos Commands - Manage watched repositories
# =============================================================================


@cli.group()
def repos() -> None:
    """Manage the repositories shown on the dashboard."""
    pass


@repos.command("list")
def repos_list() -> None:
    """List configured repositories."""
    config = GitmeConfig.load()
    if not config.repositories:
        click.echo("No repositories configured.")
        return

    click.echo("\n📁 Repositories:")
    click.echo("=" * 50)
    for repo in config.repositories:
        path = f"  → {repo.system_path}" if repo.system_path else ""
        click.echo(f"  {repo.full_name}{path}")
    click.echo(f"\nTotal: {len(config.repositories)} repositories")


@repos.command("add")
@click.argument("repository")
@click.option("--path", "-p", "system_path", help="Local checkout used by the review command")
def repos_add(repository: str, system_path: Optional[str]) -> None:
    """Add a repository.

    REPOSITORY: owner/name of the GitHub repository
    """
    config = GitmeConfig.load()
    try:
        repo = RepositoryConfig.parse(repository, system_path)
        config.add_repository(repo)
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    config.save()
    click.echo(f"✓ Added repository: {repo.full_name}")


@repos.command("remove")
@click.argument("repository")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def repos_remove(repository: str, yes: bool) -> None:
    """Remove a repository.

    REPOSITORY: owner/name of the GitHub repository
    """
    config = GitmeConfig.load()
    try:
        target = RepositoryConfig.parse(repository)
        if not config.find_repository(target.full_name):
            raise ConfigError(f"The repository {target.full_name} is not in the config")
        if not yes:
            click.confirm(f"Remove repository '{target.full_name}'?", abort=True)
        config.remove_repository(target.owner, target.name)
    except ConfigError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    config.save()
    click.echo(f"✓ Removed repository: {target.full_name}")


# =============================================================================
# Config Commands
# =============================================================================


@cli.group("config")
def config_group() -> None:
    """Inspect the configuration."""
    pass


@config_group.command("show")
def config_show() -> None:
    """Show the current configuration (token masked)."""
    config = GitmeConfig.load()
    click.echo(f"Config file: {GitmeConfig.get_config_path()}")
    click.echo(f"Username:    {config.username or '(not set)'}")
    click.echo(f"Token:       {mask_token(config.resolve_token())}")
    command = " ".join([config.command, *config.command_args]) if config.command else "(not set)"
    click.echo(f"Review cmd:  {command}")
    click.echo(f"Theme:       {config.theme}")
    click.echo(f"Refresh:     every {config.refresh_interval:g}s")
    click.echo(f"Repositories: {len(config.repositories)}")
    for repo in config.repositories:
        click.echo(f"  {repo.full_name}")


@config_group.command("path")
def config_path() -> None:
    """Print the configuration file path."""
    click.echo(str(GitmeConfig.get_config_path()))


if __name__ == "__main__":
    cli()
