import json
import logging
import os
from pathlib import Path
import typer
from tabulate import tabulate
from dotenv import load_dotenv

from .errors import ConfigError
from .graph import GraphState, build_graph
from .metadata import parse_row_text
from .reporter import render_trends_markdown
from .settings import load_config
from .store import TrendStore
from .trends import observations_frame

load_dotenv()

app = typer.Typer(help="Veterinary lab trends (LangGraph + BeautifulSoup)")


@app.callback()
def main(
    log_level: str = typer.Option(
        os.getenv("VET_TRENDS_LOG_LEVEL", "WARNING"), help="Logging level (DEBUG, INFO, WARNING, ...)"
    ),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _open_store(config_path: str | None, db: str | None) -> TrendStore:
    try:
        config = load_config(config_path)
    except ConfigError as e:
        typer.echo(f"Config error: {e}", err=True)
        raise typer.Exit(code=2)
    return TrendStore.from_path(db or config.database.path)


@app.command()
def run(
    html_path: str = typer.Argument(..., help="Saved HTML snapshot of the patient's records page"),
    config_path: str = typer.Option(None, "--config", help="Path to config file"),
    db: str = typer.Option(None, help="SQLite database path (default from config / VET_TRENDS_DB)"),
    store: bool = typer.Option(True, help="Merge the extracted observations into the patient's stored trends"),
    strict: bool = typer.Option(False, help="Keep only CBC, Chemistry and Urinalysis rows"),
    as_json: bool = typer.Option(False, "--json", help="Print the extraction result as JSON"),
):
    """Run extraction, merge and report once for one page snapshot."""
    graph = build_graph()
    result = graph.invoke(
        GraphState(html_path=html_path, config_path=config_path, db_path=db, persist=store, strict=strict)
    )

    # Handle both dict and GraphState returns
    if hasattr(result, "report_md"):
        final = result
    else:
        final = GraphState(**result)

    if as_json and final.result is not None:
        typer.echo(json.dumps(final.result.model_dump(by_alias=True), indent=2))
    elif final.report_md:
        typer.echo(final.report_md)
    if final.errors:
        typer.echo("\n## Errors", err=True)
        for e in final.errors:
            typer.echo(f"- {e}", err=True)
        raise typer.Exit(code=1)


@app.command("parse-row")
def parse_row(
    file: Path = typer.Option(None, "--file", help="File holding the row text"),
    text: str = typer.Option(None, "--text", help="Row text given inline"),
):
    """Show the metadata parsed from one row's text."""
    if file is None and text is None:
        typer.echo("Provide --file or --text", err=True)
        raise typer.Exit(code=2)
    row_text = file.read_text(encoding="utf-8") if file is not None else text
    meta = parse_row_text(row_text)
    typer.echo(json.dumps(meta.model_dump(by_alias=True), indent=2))


@app.command("list-patients")
def list_patients(
    config_path: str = typer.Option(None, "--config", help="Path to config file"),
    db: str = typer.Option(None, help="SQLite database path"),
):
    """List patients with stored trends."""
    rows = _open_store(config_path, db).list_patients()
    if not rows:
        typer.echo("No stored patients.")
        return
    typer.echo(tabulate(rows, headers="keys"))


@app.command()
def show(
    patient_id: str = typer.Argument(..., help="Patient ID"),
    config_path: str = typer.Option(None, "--config", help="Path to config file"),
    db: str = typer.Option(None, help="SQLite database path"),
):
    """Render the stored, merged trends of one patient."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        typer.echo(f"Config error: {e}", err=True)
        raise typer.Exit(code=2)
    payload = TrendStore.from_path(db or config.database.path).export(patient_id)
    if payload is None:
        typer.echo(f"No stored trends for patient {patient_id}", err=True)
        raise typer.Exit(code=1)
    typer.echo(render_trends_markdown(
        payload["observations"], patient=payload["patient"], trend_settings=config.trends
    ))


@app.command()
def export(
    patient_id: str = typer.Argument(..., help="Patient ID"),
    csv: Path = typer.Option(None, "--csv", help="Write observations as CSV to this path"),
    config_path: str = typer.Option(None, "--config", help="Path to config file"),
    db: str = typer.Option(None, help="SQLite database path"),
):
    """Export a patient's stored trends as JSON (stdout) or CSV."""
    payload = _open_store(config_path, db).export(patient_id)
    if payload is None:
        typer.echo(f"No stored trends for patient {patient_id}", err=True)
        raise typer.Exit(code=1)
    if csv is not None:
        observations_frame(payload["observations"]).to_csv(csv, index=False)
        typer.echo(f"Wrote {len(payload['observations'])} observations to {csv}")
        return
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def clean(
    patient_id: str = typer.Argument(None, help="Patient ID to remove"),
    all_: bool = typer.Option(False, "--all", help="Remove every stored patient"),
    dry_run: bool = typer.Option(False, help="Show what would be deleted without actually deleting"),
    config_path: str = typer.Option(None, "--config", help="Path to config file"),
    db: str = typer.Option(None, help="SQLite database path"),
):
    """Delete stored trends for one patient or for everyone."""
    if not patient_id and not all_:
        typer.echo("Provide a patient ID or --all", err=True)
        raise typer.Exit(code=2)

    store = _open_store(config_path, db)
    if all_:
        patients = store.list_patients()
        if dry_run:
            typer.echo(f"[DRY RUN] Would delete {len(patients)} patients")
            for p in patients:
                typer.echo(f"  - {p['patient_id']} {p['name'] or ''}".rstrip())
            return
        n = store.clear()
        typer.echo(f"Deleted {n} patients")
        return

    if store.export(patient_id) is None:
        typer.echo(f"No stored trends for patient {patient_id}")
        return
    if dry_run:
        typer.echo(f"[DRY RUN] Would delete patient {patient_id}")
        return
    store.remove(patient_id)
    typer.echo(f"Deleted patient {patient_id}")


if __name__ == "__main__":
    app()
