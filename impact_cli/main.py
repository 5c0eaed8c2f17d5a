import json
from typing import List, Optional

import typer
from rich.markup import escape

from impact_cli.aggregator import ContributorAggregator, summarize_repository, top_contributors
from impact_cli.classifier import DiffClassifier
from impact_cli.config import AnalysisConfig, load_config
from impact_cli.exceptions import ImpactError
from impact_cli.git_client import open_repository
from impact_cli.identity import parse_alias_lines
from impact_cli.logging_config import setup_logging
from impact_cli.models import to_jsonable
from impact_cli.range_analysis import MeaningfulChangeAnalyzer, commits_in_range
from impact_cli.ui import console, render_commits, render_contributors, render_meaningful, render_summary

app = typer.Typer(help="Per-contributor engineering impact metrics from git history", add_completion=False)


def _config(env_file, count, aliases, ignore_ext, ignore_folder, branch, all_refs, limit=None) -> AnalysisConfig:
    return load_config(
        env_file=env_file,
        commit_limit=count,
        table_limit=limit,
        aliases=parse_alias_lines("\n".join(aliases)) if aliases else None,
        ignored_extensions=ignore_ext or None,
        ignored_folders=ignore_folder or None,
        branch=branch,
        all_refs=all_refs or None,
    )


def _classifier(config: AnalysisConfig) -> DiffClassifier:
    return DiffClassifier(
        ignored_extensions=config.ignored_extensions,
        ignored_folders=config.ignored_folders,
        count_renames_as_edits=config.count_renames_as_edits,
    )


def _aggregator(config: AnalysisConfig) -> ContributorAggregator:
    return ContributorAggregator(
        classifier=_classifier(config),
        aliases=config.aliases,
        genders=config.genders,
        buckets=config.buckets,
        top_files=config.top_files,
        branch_label=config.branch,
    )


def _fail(err: Exception, export_json: bool):
    if export_json:
        print(json.dumps({"error": str(err)}))
    else:
        console.print(f"[bold red]Error[/bold red]: {escape(str(err))}")
    raise typer.Exit(code=1)


PathOpt = typer.Option(".", help="Path to the Git repository")
EnvOpt = typer.Option(None, "--env-file", help="Read settings from this .env file")
AliasOpt = typer.Option(None, "--alias", help="EMAIL=NAME alias mapping (repeatable)")
ExtOpt = typer.Option(None, "--ignore-ext", help="Extension or suffix excluded from language stats (repeatable)")
FolderOpt = typer.Option(None, "--ignore-folder", help="Folder dropped before classification (repeatable)")
BranchOpt = typer.Option(None, "--branch", help="Branch label attached to commits for display")
JsonOpt = typer.Option(False, "--json", help="Export results as JSON")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


@app.command(name="contributors")
def contributors_cmd(
    path: str = PathOpt,
    count: Optional[int] = typer.Option(None, help="Number of commits to analyze (0 = whole history)"),
    limit: Optional[int] = typer.Option(None, help="Contributors shown before grouping the rest as Others"),
    all_refs: bool = typer.Option(False, "--all", help="Walk every branch and tag, not just HEAD"),
    alias: Optional[List[str]] = AliasOpt,
    ignore_ext: Optional[List[str]] = ExtOpt,
    ignore_folder: Optional[List[str]] = FolderOpt,
    branch: Optional[str] = BranchOpt,
    env_file: Optional[str] = EnvOpt,
    export_json: bool = JsonOpt,
    verbose: bool = VerboseOpt,
):
    """Aggregate commits into per-contributor statistics and a repository summary."""
    setup_logging(verbose=verbose)
    try:
        config = _config(env_file, count, alias, ignore_ext, ignore_folder, branch, all_refs, limit)
        with open_repository(path) as reader:
            commits = reader.iter_commits(max_count=config.commit_limit, all_refs=config.all_refs)
            result = _aggregator(config).aggregate(commits)
            summary = summarize_repository(result, reader.name)
    except ImpactError as e:
        _fail(e, export_json)

    if export_json:
        print(json.dumps(to_jsonable({
            "summary": summary,
            "contributors": list(result.contributors.values()),
            "top_files": result.top_files,
            "skipped": result.skipped,
        }), indent=2))
        return

    if not result.contributors:
        console.print("[yellow]No commits found.[/yellow]")
        return
    render_summary(summary)
    render_contributors(summary.repo_name, top_contributors(result.contributors, config.table_limit))
    for commit_id, reason in result.skipped.items():
        console.print(f"[yellow]Skipped {commit_id}[/yellow]: {reason}")


@app.command(name="commits")
def commits_cmd(
    path: str = PathOpt,
    count: Optional[int] = typer.Option(None, help="Number of recent commits to list"),
    alias: Optional[List[str]] = AliasOpt,
    ignore_ext: Optional[List[str]] = ExtOpt,
    ignore_folder: Optional[List[str]] = FolderOpt,
    branch: Optional[str] = BranchOpt,
    env_file: Optional[str] = EnvOpt,
    export_json: bool = JsonOpt,
    verbose: bool = VerboseOpt,
):
    """List recent commits with their automated-generation probability."""
    setup_logging(verbose=verbose)
    try:
        config = _config(env_file, count, alias, ignore_ext, ignore_folder, branch, False)
        with open_repository(path) as reader:
            aggregator = _aggregator(config)
            recent = aggregator.aggregate(reader.iter_commits(max_count=config.commit_limit)).commits
            root = reader.root_commit()
            initial = aggregator.aggregate([root]).commits if root is not None else []
    except ImpactError as e:
        _fail(e, export_json)

    initial_info = initial[0] if initial else None
    if export_json:
        print(json.dumps(to_jsonable({"commits": recent, "initial": initial_info}), indent=2))
        return

    if not recent:
        console.print("[yellow]No commits found.[/yellow]")
        return
    render_commits(recent, initial_info)


@app.command(name="meaningful")
def meaningful_cmd(
    path: str = PathOpt,
    newest: str = typer.Option("HEAD", help="Newest commit of the range"),
    oldest: Optional[str] = typer.Option(None, help="Oldest commit of the range (inclusive)"),
    count: Optional[int] = typer.Option(None, help="Commits to analyze when no --oldest is given"),
    top: int = typer.Option(20, help="Number of top changed files to report"),
    ignore_ext: Optional[List[str]] = ExtOpt,
    ignore_folder: Optional[List[str]] = FolderOpt,
    env_file: Optional[str] = EnvOpt,
    export_json: bool = JsonOpt,
    verbose: bool = VerboseOpt,
):
    """Summarize how much of a commit range is meaningful source and test change."""
    setup_logging(verbose=verbose)
    try:
        config = _config(env_file, count, None, ignore_ext, ignore_folder, None, False)
        with open_repository(path) as reader:
            commits = commits_in_range(reader, newest=newest, oldest=oldest, limit=config.commit_limit)
            analyzer = MeaningfulChangeAnalyzer(
                classifier=_classifier(config),
                buckets=config.buckets,
                policy=config.warning_policy,
                top_k=top,
            )
            analysis = analyzer.analyze(commits)
    except ImpactError as e:
        _fail(e, export_json)

    if export_json:
        print(json.dumps(to_jsonable(analysis), indent=2))
        return

    render_meaningful(analysis, top=min(top, 10))


def main():
    app()


if __name__ == "__main__":
    main()
