from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from impact_cli.models import CommitInfo, ContributorStats, MeaningfulChangeAnalysis, RepositorySummary

console = Console()


def format_probability(score: float) -> str:
    if score >= 0.7:
        color = "red bold"
    elif score >= 0.3:
        color = "yellow"
    else:
        color = "green"
    return f"[{color}]{score:.2f}[/{color}]"


def format_meaningful(score: float) -> str:
    if score >= 60:
        color = "green"
    elif score >= 30:
        color = "yellow"
    else:
        color = "red"
    return f"[{color}]{score:.1f}/100[/{color}]"


def format_breakdown(breakdown: Dict[str, int], limit: int = 4) -> str:
    if not breakdown:
        return "[dim]-[/dim]"
    items = sorted(breakdown.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return ", ".join(f"{k}:{v}" for k, v in items)


def build_contributors_table(repo_name: str) -> Table:
    table = Table(title=f"Contributor Impact: {repo_name}", show_header=True, header_style="bold cyan")
    table.add_column("Rank", style="dim", width=5)
    table.add_column("Contributor", width=22)
    table.add_column("Gender", style="dim")
    table.add_column("Commits", justify="right")
    table.add_column("Merges", justify="right")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Deleted", justify="right", style="red")
    table.add_column("Files +/~/-", justify="center")
    table.add_column("Languages")
    table.add_column("Avg Auto", justify="center")
    table.add_column("Meaningful", justify="center")
    return table


def render_contributors(repo_name: str, stats: List[ContributorStats]):
    table = build_contributors_table(repo_name)
    for i, s in enumerate(stats):
        name = escape(s.name) + (" [dim](tests)[/dim]" if s.touched_tests else "")
        table.add_row(
            str(i + 1),
            name,
            s.gender,
            str(s.commit_count),
            str(s.merge_count),
            str(s.lines_added),
            str(s.lines_deleted),
            f"{s.files_added}/{s.files_edited}/{s.files_deleted}",
            format_breakdown(s.language_breakdown),
            format_probability(s.average_automation_probability),
            format_meaningful(s.meaningful_change_score),
        )
    console.print(table)


def render_summary(summary: RepositorySummary):
    text = (
        f"  Contributors       : {summary.total_contributors}\n"
        f"  Commits            : {summary.total_commits}\n"
        f"  Lines added        : [green]{summary.total_lines_added}[/green]\n"
        f"  Lines deleted      : [red]{summary.total_lines_deleted}[/red]\n"
        f"  Primary language   : {summary.primary_language or '-'}\n"
        f"  Avg meaningful     : {format_meaningful(summary.average_meaningful_score)}"
    )
    console.print(Panel(text, title=f"[bold]{summary.repo_name}[/bold]", border_style="cyan", expand=False))


def build_commits_table(count: int) -> Table:
    table = Table(title=f"Last {count} Commits", show_header=True, header_style="bold magenta")
    table.add_column("Commit", style="dim", width=9)
    table.add_column("Author", width=20)
    table.add_column("Message")
    table.add_column("+/-", justify="right")
    table.add_column("Languages")
    table.add_column("Auto", justify="center")
    return table


def render_commits(commits: List[CommitInfo], initial: Optional[CommitInfo] = None):
    table = build_commits_table(len(commits))
    for c in commits:
        message = escape(c.message) + (" [dim](merge)[/dim]" if c.is_merge else "")
        table.add_row(
            c.id,
            escape(c.author),
            message,
            f"[green]+{c.lines_added}[/green]/[red]-{c.lines_deleted}[/red]",
            format_breakdown(c.language_breakdown),
            format_probability(c.automation_probability),
        )
    console.print(table)
    if initial is not None:
        console.print(
            f"[bold]Initial:[/bold] {escape('[' + initial.id + ']')} by {escape(initial.author)} "
            f"({format_breakdown(initial.language_breakdown)})"
        )


def render_meaningful(analysis: MeaningfulChangeAnalysis, top: int = 10):
    console.print(Panel(
        f"{analysis.summary}\n\n"
        f"  Meaningful-change score : {format_meaningful(analysis.meaningful_change_score)}\n"
        f"  Whitespace churn        : {analysis.whitespace_churn} lines",
        title=f"[bold]Meaningful Change: {analysis.commit_range or '-'}[/bold]",
        border_style="yellow" if analysis.warnings else "green",
        expand=False,
    ))

    buckets = Table(title="Change Buckets", show_header=True, header_style="bold cyan")
    buckets.add_column("Bucket")
    buckets.add_column("Files", justify="right")
    buckets.add_column("Insertions", justify="right", style="green")
    buckets.add_column("Deletions", justify="right", style="red")
    for name, m in analysis.bucket_breakdown.items():
        if m.file_count:
            buckets.add_row(name, str(m.file_count), str(m.insertions), str(m.deletions))
    console.print(buckets)

    files = Table(title=f"Top {top} Changed Files", show_header=True, header_style="bold magenta")
    files.add_column("Path")
    files.add_column("Kind", style="dim")
    files.add_column("+", justify="right", style="green")
    files.add_column("-", justify="right", style="red")
    for f in analysis.top_changed_files[:top]:
        files.add_row(escape(f.path), f.kind.value, str(f.insertions), str(f.deletions))
    console.print(files)

    for w in analysis.warnings:
        console.print(f"[bold red]•[/bold red] {w}")
