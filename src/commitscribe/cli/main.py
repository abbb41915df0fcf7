"""Command-line interface for commitscribe."""

import click
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .. import __version__
from ..core import CommitAssistant, Config
from ..git import GitRepository, UnstagedFile, find_repositories
from ..utils.output import OutputFormatter


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool, quiet: bool, log_file: Optional[Path] = None) -> None:
    """Setup logging configuration."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        logging.getLogger().addHandler(file_handler)


def _fail(error: Exception) -> None:
    logger.error(f"Command failed: {error}", exc_info=True)
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _emit(config: Config, text: str) -> None:
    if config.output.output_file:
        config.output.output_file.write_text(text + "\n", encoding='utf-8')
        if not config.output.quiet:
            click.echo(f"Results written to {config.output.output_file}")
    else:
        click.echo(text)


def _assistant(ctx) -> CommitAssistant:
    config = ctx.obj['config']
    repository = GitRepository(ctx.obj['repo'], timeout=config.git.command_timeout)
    return CommitAssistant(config, repository=repository)


def _walk_remaining(assistant: CommitAssistant, formatter: OutputFormatter, chunks) -> None:
    if not chunks:
        return
    limit = assistant.config.chunking.review_chunk_limit
    click.echo()
    click.echo(f"Reviewing up to {min(limit, len(chunks))} of {len(chunks)} remaining chunk(s)")
    planned = min(limit, len(chunks))
    for count, review in enumerate(assistant.iter_chunk_reviews(chunks, limit), 1):
        click.echo()
        click.echo(formatter.format_review(review))
        if count < planned and not click.confirm("Continue to next chunk?", default=True):
            break


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress output except errors')
@click.option('--config', '-c', type=click.Path(exists=True, path_type=Path),
              help='Configuration file path')
@click.option('--repo', '-r', type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=Path('.'), help='Repository working directory')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, config: Optional[Path], repo: Path):
    """commitscribe - commit messages and PR descriptions for diffs of any size."""
    ctx.ensure_object(dict)

    # Load configuration
    if config:
        ctx.obj['config'] = Config.load_from_file(config)
    else:
        # Try to find config file automatically
        config_file = Config.find_config_file()
        if config_file:
            ctx.obj['config'] = Config.load_from_file(config_file)
        else:
            ctx.obj['config'] = Config.get_default_config()

    setup_logging(verbose, quiet, ctx.obj['config'].log_file)

    # Override config with CLI options
    if verbose:
        ctx.obj['config'].output.verbose = True
    if quiet:
        ctx.obj['config'].output.quiet = True
    ctx.obj['repo'] = repo


@cli.command()
@click.option('--staged', is_flag=True, help='Chunk the staged changes (default)')
@click.option('--commit', 'commit_hash', help='Chunk the changes introduced by a commit')
@click.option('--branch', help='Chunk a branch against the configured base branch')
@click.option('--diff-file', type=click.File('r', encoding='utf-8'),
              help="Chunk a diff read from a file ('-' for stdin)")
@click.option('--token-budget', type=int, help='Token budget per chunk')
@click.option('--format', '-f', 'output_format', type=click.Choice(['text', 'json', 'markdown']),
              help='Output format')
@click.pass_context
def chunks(ctx,
           staged: bool,
           commit_hash: Optional[str],
           branch: Optional[str],
           diff_file,
           token_budget: Optional[int],
           output_format: Optional[str]):
    """Show how a diff is split and in which order it is analyzed."""
    try:
        config = ctx.obj['config'].merge_with_cli_args(format=output_format, token_budget=token_budget)
        ctx.obj['config'] = config

        assistant = _assistant(ctx)
        repo = assistant.repository
        if diff_file is not None:
            diff_text = diff_file.read()
        elif commit_hash:
            diff_text = repo.get_commit_diff(commit_hash)
        elif branch:
            diff_text = repo.get_branch_diff(branch, config.git.base_branch)
        else:
            diff_text = repo.get_staged_diff()

        if not diff_text.strip():
            click.echo("No changes to analyze.")
            return

        result = assistant.chunk_diff(diff_text)
        formatter = OutputFormatter(config.output)
        _emit(config, formatter.format_chunking(result, list_chunks=True))

    except Exception as e:
        _fail(e)


@cli.command()
@click.argument('files', nargs=-1)
@click.option('--format', '-f', 'output_format', type=click.Choice(['text', 'json', 'markdown']),
              help='Output format')
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Output file path')
@click.pass_context
def commit(ctx, files: tuple[str, ...], output_format: Optional[str], output: Optional[Path]):
    """Generate a commit message for staged changes or the given unstaged FILES."""
    try:
        config = ctx.obj['config'].merge_with_cli_args(format=output_format, output=output)
        ctx.obj['config'] = config

        assistant = _assistant(ctx)
        repo = assistant.repository

        if files:
            unstaged = {f.path: f for f in repo.get_unstaged_files()}
            missing = [f for f in files if f not in unstaged]
            if missing:
                raise click.UsageError(f"Not an unstaged file: {', '.join(missing)}")
            selected: List[UnstagedFile] = [unstaged[f] for f in files]
            result = assistant.unstaged_commit_message(selected)
        elif repo.has_staged_changes():
            result = assistant.staged_commit_message()
        else:
            unstaged_files = repo.get_unstaged_files()
            if not unstaged_files:
                click.echo("No changes to analyze.")
                return
            click.echo("No staged changes. Unstaged files:")
            for f in unstaged_files:
                click.echo(f"  [{f.status.value}] {f.path}")
            click.echo("Stage changes or pass file paths to generate a commit message.")
            return

        formatter = OutputFormatter(config.output)
        _emit(config, formatter.format_workflow(result))
        if not result.outcome.succeeded and not result.outcome.is_empty:
            sys.exit(1)

    except click.UsageError:
        raise
    except Exception as e:
        _fail(e)


@cli.command()
@click.argument('commit_hash')
@click.option('--review', is_flag=True, help='Review the chunks that were not analyzed')
@click.option('--format', '-f', 'output_format', type=click.Choice(['text', 'json', 'markdown']),
              help='Output format')
@click.option('--review-limit', type=int, help='Maximum number of chunks to review')
@click.pass_context
def pr(ctx, commit_hash: str, review: bool, output_format: Optional[str], review_limit: Optional[int]):
    """Generate a pull-request title and description for a commit."""
    try:
        config = ctx.obj['config'].merge_with_cli_args(format=output_format, review_limit=review_limit)
        ctx.obj['config'] = config

        assistant = _assistant(ctx)
        result = assistant.commit_pr_details(commit_hash)

        formatter = OutputFormatter(config.output)
        _emit(config, formatter.format_workflow(result))

        if review and result.outcome.succeeded:
            _walk_remaining(assistant, formatter, result.unanalyzed_chunks)
        if not result.outcome.succeeded and not result.outcome.is_empty:
            sys.exit(1)

    except Exception as e:
        _fail(e)


@cli.command()
@click.argument('commit_hash')
@click.option('--remaining', is_flag=True, help='Review the remaining chunks afterwards')
@click.option('--format', '-f', 'output_format', type=click.Choice(['text', 'json', 'markdown']),
              help='Output format')
@click.pass_context
def preview(ctx, commit_hash: str, remaining: bool, output_format: Optional[str]):
    """Preview PR details and a code review of a commit's most important changes."""
    try:
        config = ctx.obj['config'].merge_with_cli_args(format=output_format)
        ctx.obj['config'] = config

        assistant = _assistant(ctx)
        result = assistant.commit_preview(commit_hash)

        formatter = OutputFormatter(config.output)
        _emit(config, formatter.format_preview(result))

        if remaining and result.remaining_count:
            _walk_remaining(assistant, formatter, result.chunking.remaining)
        if not result.succeeded and not result.pr_details.is_empty:
            sys.exit(1)

    except Exception as e:
        _fail(e)


@cli.command()
@click.argument('branch')
@click.option('--base', 'base_branch', help='Base branch to compare against')
@click.pass_context
def commits(ctx, branch: str, base_branch: Optional[str]):
    """List the commits on BRANCH that are not on the base branch and summarize its diff."""
    try:
        config = ctx.obj['config'].merge_with_cli_args(base_branch=base_branch)
        ctx.obj['config'] = config

        found, chunking = _assistant(ctx).branch_overview(branch)
        base = config.git.base_branch
        if not found:
            click.echo(f"No commits on '{branch}' that are not on '{base}'.")
            return

        click.echo(f"{len(found)} commit(s) on '{branch}' not on '{base}':")
        for line in found:
            click.echo(f"  {line}")
        if chunking.chunks:
            click.echo()
            click.echo(chunking.summary())

    except Exception as e:
        _fail(e)


@cli.command()
@click.pass_context
def branches(ctx):
    """List local branches."""
    config = ctx.obj['config']

    try:
        repo = GitRepository(ctx.obj['repo'], timeout=config.git.command_timeout)
        found = repo.get_local_branches()
        if not found:
            click.echo("No local branches.")
            return

        for name in found:
            click.echo(name)

    except Exception as e:
        _fail(e)


@cli.command()
@click.argument('root', required=False, type=click.Path(path_type=Path))
@click.pass_context
def repos(ctx, root: Optional[Path]):
    """List git repositories under ROOT."""
    config = ctx.obj['config']

    try:
        search_root = root or config.git.repository_search_root or Path.cwd()
        found = find_repositories(search_root)
        if not found:
            click.echo(f"No git repositories found under {search_root}")
            return

        for repository in found:
            click.echo(f"{repository.name}\t{repository.path}")

    except Exception as e:
        _fail(e)


@cli.command()
@click.option('--output', '-o', type=click.Path(path_type=Path),
              default=Path('.commitscribe.yaml'),
              help='Output configuration file path')
@click.pass_context
def init(ctx, output: Path):
    """Initialize a new configuration file."""
    try:
        if output.exists():
            if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
                click.echo("Cancelled.")
                return

        # Create default configuration
        config = Config.get_default_config()

        # Save to file
        config.save_to_file(output)

        click.echo(f"Configuration file created: {output}")
        click.echo("Edit this file to customize budgets, priorities and the model.")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
