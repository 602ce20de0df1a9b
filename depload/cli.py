"""CLI entry point for Depload."""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from depload.core.exceptions import DeploadError
from depload.core.graph import (
    ClosureResolver,
    Direction,
    ProjectGraph,
    load_from_repository,
    reachable,
)
from depload.core.graph.analysis import find_cycles, get_hub_projects
from depload.core.ingest import CommitIngestor, sync_git_commits
from depload.core.metrics import DEFAULT_COMMIT_WINDOW, MetricsEngine
from depload.core.models import IngestStats
from depload.core.optimizer import SplitOptimizer
from depload.core.storage import GraphRepository, get_default_db_path
from depload.core.workspace import WorkspaceSync, load_snapshot

app = typer.Typer(
    name="depload",
    help="Churn-weighted dependency load metrics for monorepo workspaces.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

WorkspaceOption = Annotated[
    Path, typer.Option("--workspace", "-w", help="Workspace root directory")
]
DbOption = Annotated[
    Path | None,
    typer.Option("--db", envvar="DEPLOAD_DB", help="Database path (default: .depload/projects.db)"),
]
CommitsOption = Annotated[
    int,
    typer.Option(
        "--commits", "-n", min=1, envvar="DEPLOAD_COMMITS", help="Commit window size"
    ),
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]
PathsArgument = Annotated[list[str], typer.Argument(help="Workspace-relative file paths")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def fail(message: str) -> NoReturn:
    """Print an error and exit non-zero."""
    err_console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


@contextmanager
def open_repo(workspace: Path, db: Path | None) -> Iterator[GraphRepository]:
    """Open the repository for a workspace; depload errors exit with code 1."""
    db_path = db if db is not None else get_default_db_path(workspace.resolve())
    with GraphRepository(db_path) as repo:
        try:
            yield repo
        except DeploadError as e:
            fail(str(e))


@app.command("sync-workspace")
def sync_workspace(
    snapshot: Annotated[Path, typer.Argument(help="Workspace snapshot JSON file")],
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Replace projects, files and dependency edges from a workspace snapshot."""
    with open_repo(workspace, db) as repo:
        stats = WorkspaceSync(repo).sync(load_snapshot(snapshot))

        console.print("[green]Done![/green]")
        console.print(f"  Projects: {stats.projects}")
        console.print(f"  Files: {stats.files}")
        console.print(f"  Project dependencies: {stats.project_dependencies}")
        console.print(f"  File dependencies: {stats.file_dependencies}")
        if stats.cycles:
            console.print(f"  [yellow]Dependency cycles: {len(stats.cycles)}[/]")


@app.command("sync-git")
def sync_git(
    commits: CommitsOption = DEFAULT_COMMIT_WINDOW,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Record the most recent git commits and the files they touched."""
    root = workspace.resolve()
    with open_repo(root, db) as repo:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Reading git log of [cyan]{root.name}[/]", total=None)

            def on_progress(commit_hash: str, count: int) -> None:
                progress.update(task, description=f"[cyan]{commit_hash[:10]}[/] ({count})")

            stats = sync_git_commits(repo, root, commits, on_progress=on_progress)

        _print_ingest_stats(stats)


@app.command("ingest-log")
def ingest_log(
    source: Annotated[
        str, typer.Argument(help="Log file in 'hash|author|date|subject' format, or '-'")
    ] = "-",
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Ingest a commit log produced elsewhere."""
    if source == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(source).read_text(encoding="utf-8")
        except OSError as e:
            fail(f"Cannot read {source}: {e}")

    with open_repo(workspace, db) as repo:
        stats = CommitIngestor(repo).ingest_text(text)
        _print_ingest_stats(stats)


def _print_ingest_stats(stats: IngestStats) -> None:
    console.print("[green]Done![/green]")
    console.print(f"  Commits: {stats.commits} ({stats.new_commits} new)")
    console.print(f"  Touched files: {stats.touched_files}")
    if stats.skipped_lines:
        console.print(f"  [dim]Skipped lines: {stats.skipped_lines}[/]")


@app.command()
def projects(
    commits: CommitsOption = DEFAULT_COMMIT_WINDOW,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """List projects with touched count, load and affected count."""
    with open_repo(workspace, db) as repo:
        metrics = MetricsEngine(repo).windowed_project_metrics(commits)
        rows = sorted(metrics.values(), key=lambda m: (-m.load, m.name))

        if output_json:
            print(json.dumps([m.to_dict() for m in rows]))
            return
        if not rows:
            console.print("No projects found")
            return

        table = Table(title=f"Projects (last {commits} commits)")
        table.add_column("Project", style="cyan")
        table.add_column("Touched", justify="right")
        table.add_column("Dependents", justify="right")
        table.add_column("Load", justify="right", style="bold")
        table.add_column("Affected", justify="right")
        for m in rows:
            dependents = str(m.dependent_count)
            if m.degraded:
                dependents += "[yellow]*[/]"
            table.add_row(
                m.name, str(m.touched_count), dependents, str(m.load), str(m.affected_count)
            )
        console.print(table)

        degraded = [m.name for m in rows if m.degraded]
        if degraded:
            console.print(f"[yellow]*[/] dependents lookup failed for: {', '.join(degraded)}")


@app.command()
def files(
    project: Annotated[str, typer.Argument(help="Project name")],
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """List the files of a project."""
    with open_repo(workspace, db) as repo:
        project_files = repo.projects.list_files(project)

        if output_json:
            print(json.dumps([f.file_path for f in project_files]))
        elif not project_files:
            console.print(f"No files found in project '[cyan]{project}[/cyan]'")
        else:
            console.print(f"Files in project '[cyan]{project}[/cyan]':")
            for f in project_files:
                suffix = f" [dim]({f.file_type})[/]" if f.file_type else ""
                console.print(f"  {f.file_path}{suffix}")


@app.command("add-file")
def add_file(
    project: Annotated[str, typer.Argument(help="Project name")],
    path: Annotated[str, typer.Argument(help="Workspace-relative file path")],
    file_type: Annotated[str | None, typer.Option("--type", "-t", help="File type")] = None,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Add a file to an existing project."""
    with open_repo(workspace, db) as repo:
        repo.projects.add_file(project, path, file_type)
        console.print(f"Added [cyan]{path}[/] to [cyan]{project}[/]")


@app.command()
def owners(
    path: Annotated[str, typer.Argument(help="Workspace-relative file path")],
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Show which projects contain a file."""
    with open_repo(workspace, db) as repo:
        names = [p.name for p in repo.projects.list_file_owners(path)]

        if output_json:
            print(json.dumps(names))
        elif not names:
            console.print(f"File '[cyan]{path}[/cyan]' not found in any project")
        else:
            console.print(f"File '[cyan]{path}[/cyan]' found in projects:")
            for name in names:
                console.print(f"  {name}")


@app.command("remove-file")
def remove_file(
    project: Annotated[str, typer.Argument(help="Project name")],
    path: Annotated[str, typer.Argument(help="Workspace-relative file path")],
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Remove a file from a project."""
    with open_repo(workspace, db) as repo:
        repo.projects.require(project)
        if not repo.projects.remove_file(project, path):
            fail(f"File '{path}' is not in project '{project}'")
        console.print(f"Removed [cyan]{path}[/] from [cyan]{project}[/]")


@app.command("delete-project")
def delete_project(
    project: Annotated[str, typer.Argument(help="Project name")],
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Delete a project and its file memberships."""
    with open_repo(workspace, db) as repo:
        repo.projects.require(project)
        repo.projects.delete(project)
        console.print(f"Deleted project [cyan]{project}[/]")


@app.command("by-tag")
def by_tag(
    tag: Annotated[str, typer.Argument(help="Exact tag, e.g. scope:shared")],
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """List projects carrying a tag."""
    with open_repo(workspace, db) as repo:
        tagged = repo.projects.find_by_tag(tag)

        if output_json:
            print(json.dumps([{"name": p.name, "type": p.type, "root": p.root} for p in tagged]))
        elif not tagged:
            console.print(f"No projects tagged '[cyan]{tag}[/cyan]'")
        else:
            for p in tagged:
                suffix = f" [dim]({p.type})[/]" if p.type else ""
                console.print(f"  {p.name}{suffix}")


@app.command()
def affected(
    paths: PathsArgument,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Show projects owning the changed files and everything depending on them."""
    with open_repo(workspace, db) as repo:
        names = sorted(MetricsEngine(repo).affected_projects(paths))

        if output_json:
            print(json.dumps(names))
        elif not names:
            console.print("No affected projects")
        else:
            console.print(f"Affected projects ({len(names)}):")
            for name in names:
                console.print(f"  {name}")


def _print_closure(
    project: str, direction: Direction, output_json: bool, workspace: Path, db: Path | None
) -> None:
    with open_repo(workspace, db) as repo:
        repo.projects.require(project)
        result = ClosureResolver(repo).resolve(project, direction)
        names = sorted(result.projects)

        if output_json:
            payload = {"project": project, direction.value: names, "degraded": result.degraded}
            print(json.dumps(payload))
            return
        if result.degraded:
            console.print(f"[yellow]Could not resolve {direction.value} of {project}[/]")
        elif not names:
            console.print(f"No {direction.value} for '[cyan]{project}[/cyan]'")
        else:
            console.print(f"[bold cyan]{project}[/] {direction.value} ({len(names)}):")
            for name in names:
                console.print(f"  {name}")


@app.command()
def dependents(
    project: Annotated[str, typer.Argument(help="Project name")],
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Show every project that transitively depends on a project."""
    _print_closure(project, Direction.DEPENDENTS, output_json, workspace, db)


@app.command()
def dependencies(
    project: Annotated[str, typer.Argument(help="Project name")],
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Show every project a project transitively depends on."""
    _print_closure(project, Direction.DEPENDENCIES, output_json, workspace, db)


@app.command("file-dependents")
def file_dependents(
    paths: PathsArgument,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Show which projects import from each file."""
    with open_repo(workspace, db) as repo:
        dependency_map = MetricsEngine(repo).project_dependency_map_for_files(paths)

        if output_json:
            print(json.dumps(dependency_map))
            return
        for path, names in dependency_map.items():
            console.print(f"[cyan]{path}[/]")
            if not names:
                console.print("  [dim]No dependents[/]")
            for name in names:
                console.print(f"  {name}")


@app.command("estimated-load")
def estimated_load(
    paths: PathsArgument,
    commits: CommitsOption = DEFAULT_COMMIT_WINDOW,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Estimate the load of a set of files."""
    with open_repo(workspace, db) as repo:
        load = MetricsEngine(repo).estimated_load(paths, commits)

        if output_json:
            payload = {"file_paths": paths, "commit_count": commits, "estimated_load": load}
            print(json.dumps(payload))
        else:
            console.print(f"Estimated load: [bold]{load}[/] [dim](last {commits} commits)[/]")


@app.command()
def split(
    paths: Annotated[list[str] | None, typer.Argument(help="Files to split")] = None,
    project: Annotated[
        str | None, typer.Option("--project", "-p", help="Split all files of a project")
    ] = None,
    commits: CommitsOption = DEFAULT_COMMIT_WINDOW,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed for the initial split")] = None,
    max_iterations: Annotated[
        int | None, typer.Option("--max-iterations", min=1, help="Cap on applied moves")
    ] = None,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Suggest a two-way split of files that minimizes total estimated load."""
    with open_repo(workspace, db) as repo:
        file_paths = list(paths or [])
        if project is not None:
            repo.projects.require(project)
            file_paths.extend(f.file_path for f in repo.projects.list_files(project))
        if not file_paths:
            fail("Give file paths or --project")

        result = SplitOptimizer(MetricsEngine(repo)).suggest_split(
            file_paths, commits, seed=seed, max_iterations=max_iterations
        )

        if output_json:
            print(json.dumps(result.to_dict()))
            return

        for label, group, load in (
            ("A", result.group_a, result.load_a),
            ("B", result.group_b, result.load_b),
        ):
            console.print(f"\n[bold]Group {label}[/] [dim](load {load})[/]")
            for path in group:
                console.print(f"  {path}")
            if not group:
                console.print("  [dim](empty)[/]")
        console.print(
            f"\n[dim]Total load: {result.initial_total} -> {result.total} "
            f"in {result.iterations} moves[/]"
        )


@app.command("commits")
def list_commits(
    limit: Annotated[int, typer.Option("--limit", "-l", min=1, help="Number of commits")] = 50,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """List recent commits from the database."""
    with open_repo(workspace, db) as repo:
        recent = repo.commits.recent(limit)

        if output_json:
            print(
                json.dumps(
                    [
                        {"hash": c.hash, "author": c.author, "date": c.date, "message": c.message}
                        for c in recent
                    ]
                )
            )
        elif not recent:
            console.print("No commits found")
        else:
            for c in recent:
                console.print(f"[yellow]{c.hash[:10]}[/] [dim]{c.date}[/] {c.author}: {c.message}")


@app.command("touched-files")
def touched_files(
    commit_hash: Annotated[str | None, typer.Argument(help="Limit to one commit")] = None,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """List files touched by recorded commits."""
    with open_repo(workspace, db) as repo:
        touched = repo.commits.touched_files(commit_hash)

        if output_json:
            print(
                json.dumps(
                    [
                        {
                            "commit_id": t.commit_id,
                            "file_path": t.file_path,
                            "change_type": t.change_type.name.lower(),
                        }
                        for t in touched
                    ]
                )
            )
        elif not touched:
            console.print("No touched files found")
        else:
            for t in touched:
                console.print(f"  [dim]{t.change_type.value}[/] {t.file_path}")


def _hub_summary(project_graph: ProjectGraph, name: str) -> dict[str, object]:
    project = project_graph.get_project(name)
    return {
        "name": name,
        "type": project.type if project else None,
        "direct_dependents": project_graph.in_degree(name),
        "transitive_dependents": len(reachable(name, project_graph.expand_dependents)),
        "direct_dependencies": project_graph.out_degree(name),
        "transitive_dependencies": len(reachable(name, project_graph.expand_dependencies)),
    }


@app.command()
def graph(
    top: Annotated[int, typer.Option("--top", help="Hub projects to show")] = 10,
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Summarize the project graph: size, cycles and hub projects."""
    with open_repo(workspace, db) as repo:
        project_graph = load_from_repository(repo)
        cycles = find_cycles(project_graph)
        hubs = [_hub_summary(project_graph, h) for h in get_hub_projects(project_graph, top)]

        if output_json:
            payload = {
                "projects": project_graph.num_nodes,
                "dependencies": project_graph.num_edges,
                "cycles": cycles,
                "hubs": hubs,
            }
            print(json.dumps(payload))
            return

        console.print(f"Projects: {project_graph.num_nodes}")
        console.print(f"Dependencies: {project_graph.num_edges}")
        if cycles:
            console.print(f"[yellow]Cycles ({len(cycles)}):[/]")
            for cycle in cycles:
                console.print(f"  {' -> '.join([*cycle, cycle[0]])}")
        if hubs:
            table = Table(title="Most depended-on")
            table.add_column("Project", style="cyan")
            table.add_column("Type", style="dim")
            table.add_column("Dependents", justify="right")
            table.add_column("All dependents", justify="right", style="bold")
            table.add_column("Dependencies", justify="right")
            table.add_column("All dependencies", justify="right")
            for hub in hubs:
                table.add_row(
                    str(hub["name"]),
                    str(hub["type"] or ""),
                    str(hub["direct_dependents"]),
                    str(hub["transitive_dependents"]),
                    str(hub["direct_dependencies"]),
                    str(hub["transitive_dependencies"]),
                )
            console.print(table)


@app.command()
def stats(
    output_json: JsonOption = False,
    workspace: WorkspaceOption = Path("."),
    db: DbOption = None,
) -> None:
    """Show database statistics."""
    with open_repo(workspace, db) as repo:
        result = repo.get_stats()

        if output_json:
            print(json.dumps(result))
        else:
            for key, value in result.items():
                if value is not None:
                    console.print(f"{key.replace('_', ' ').capitalize()}: {value}")


if __name__ == "__main__":
    app()
