"""
Command-Line Interface for higcorpus.
"""

import typer
import logging
from pathlib import Path
import json
from typing_extensions import Annotated
import shutil

from .utils.state_manager import DEFAULT_STATE_FILE, JSONStateManager, StateManager
from .utils.frontmatter import render_document
from .core.pipeline import run_pipeline, parse_raw_document, build_thresholds
from .core.builder import build_document
from .core.factory import (
    SOURCE_REGISTRY,
    SINK_REGISTRY,
    STATE_REGISTRY,
    build_component,
)
from .core.store import CorpusStore
from .core.validation import CorpusValidator
from .components.sources import BundleSource, LocalFileSource
from .utils.config import load_config


logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Tools for a corpus of Human Interface Guidelines documents.")

DEFAULT_YAML_CONTENT = """# Default higcorpus pipeline configuration
source:
  type: local_files
  config:
    path: ./corpus
    glob_pattern: "**/*.md"

sink:
  type: markdown_directory
  config:
    path: ./build

state:
  type: json
  config:
    path: .higcorpus_state.json

validation:
  fail_on_error: true
  min_quality_score: 0.5
  min_confidence: 0.4
  min_content_length: 200
"""

SAMPLE_CONTENT = """# Boxes

A box groups related information and controls into one visually distinct region.

## Best practices

Keep boxes small relative to the view that contains them. A box that fills most of
the window stops reading as a group.

Use padding and alignment inside a box to show finer grouping.
"""


def _load_corpus(corpus: str) -> CorpusStore:
    try:
        return CorpusStore.load_directory(corpus)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load corpus from '{corpus}': {e}")
        raise typer.Exit(code=1)


@app.command()
def run(
    config_path: str = typer.Option(
        "pipeline.yaml",
        "-c",
        help="Path to the pipeline's YAML configuration file.",
    )
):
    """Loads, validates and writes a corpus as configured."""
    try:
        result = run_pipeline(config_path=config_path)
    except Exception:
        raise typer.Exit(code=1)
    if result.aborted:
        raise typer.Exit(code=1)


@app.command()
def init():
    """Initializes a new corpus project with a sample document."""
    logger.info("Initializing new higcorpus project...")

    sample = build_document(
        title="Boxes",
        platform="universal",
        category="visual-design",
        url="https://developer.apple.com/design/human-interface-guidelines/boxes",
        content=SAMPLE_CONTENT,
        keywords=["boxes", "grouping", "layout"],
        confidence=0.9,
    )
    sample_path = Path("corpus") / "platforms" / sample.platform / f"{sample.id}.md"
    if sample_path.exists():
        logger.warning(f"'{sample_path}' already exists.")
    else:
        sample_path.parent.mkdir(parents=True, exist_ok=True)
        sample_path.write_text(render_document(sample), encoding="utf-8")
        logger.info(f"Created sample document '{sample_path}'.")

    config_file = Path("pipeline.yaml")
    if config_file.exists():
        logger.warning("'pipeline.yaml' already exists.")
    else:
        config_file.write_text(DEFAULT_YAML_CONTENT)
        logger.info("Created default 'pipeline.yaml'.")

    logger.info("Project initialized.")


@app.command()
def status(
    state_path: str = typer.Option(DEFAULT_STATE_FILE, "--state", help="State file path."),
):
    """Shows which document sources have been loaded."""
    state_file = Path(state_path)
    if not state_file.exists():
        logger.warning("No state file found. Run a pipeline first.")
        return

    state_manager = StateManager(backend=JSONStateManager(path=state_path))
    processed_items = state_manager.processed_items()
    if not processed_items:
        logger.info("No documents have been loaded yet.")
        return

    last_run = state_manager.get_last_run_timestamp() or "never"
    print(f"\n--- Tracked Documents (last run: {last_run}) ---")
    for item_id in sorted(processed_items.keys()):
        print(f"  - {item_id}")
    print("---------------------")


@app.command(name="list-components")
def list_components():
    """Lists all available components."""
    logger.info("Listing available components...")

    def print_registry(title, registry):
        print(f"\n--- {title} ---")
        for name in sorted(registry.keys()):
            print(f"  - {name}")

    print_registry("Sources", SOURCE_REGISTRY)
    print_registry("Sinks", SINK_REGISTRY)
    print_registry("State backends", STATE_REGISTRY)


@app.command(name="test-connection")
def test_connection(
    component: Annotated[
        str, typer.Argument(help="Component to test (source or sink)")
    ],
    config_path: str = typer.Option("pipeline.yaml", "-c", help="Config path."),
):
    """Tests the connection for a specified component."""
    logger.info(f"Testing connection for '{component}'...")
    config = load_config(config_path)
    if component not in ("source", "sink"):
        logger.error(f"Unknown component: '{component}'")
        raise typer.Exit(code=1)
    try:
        if component == "source":
            comp_obj = build_component(config["source"], SOURCE_REGISTRY)
        else:
            comp_obj = build_component(config["sink"], SINK_REGISTRY)
        comp_obj.test_connection()
    except Exception as e:
        logger.error(f"Connection test failed: {e}", exc_info=True)
        raise typer.Exit(code=1)


@app.command()
def clean(
    config_path: str = typer.Option("pipeline.yaml", "-c", help="Config file."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
):
    """Removes the state and everything the sink has written."""
    logger.info("Starting cleanup...")
    if not yes and not typer.confirm("Are you sure?"):
        logger.info("Aborting cleanup.")
        return

    config = load_config(config_path)
    state_config = config.get("state") or {"type": "json", "config": {}}
    try:
        StateManager(backend=build_component(state_config, STATE_REGISTRY)).clear()
    except Exception as e:
        logger.warning(f"Could not clear state: {e}", exc_info=True)

    sink_config = config["sink"].get("config") or {}
    sink_path_str = sink_config.get("path")
    if sink_path_str:
        sink_path = Path(sink_path_str)
        if sink_path.is_dir():
            shutil.rmtree(sink_path)
            logger.info(f"Deleted sink directory: {sink_path}")
        elif sink_path.is_file():
            sink_path.unlink()
            logger.info(f"Deleted sink file: {sink_path}")

    logger.info("Cleanup complete.")


@app.command()
def validate(
    path: Annotated[
        str, typer.Argument(help="Corpus directory or transport-unit file.")
    ],
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings too."),
    show_warnings: bool = typer.Option(True, "--warnings/--no-warnings", help="Print warnings."),
):
    """Runs the integrity checks on a corpus."""
    target = Path(path)
    if target.is_dir():
        source = LocalFileSource(path=str(target))
    elif target.is_file():
        source = BundleSource(path=str(target))
    else:
        logger.error(f"'{target}' does not exist.")
        raise typer.Exit(code=1)

    validator = CorpusValidator(build_thresholds(None))
    documents, sources = [], []
    for raw in source.load_data():
        outcome = parse_raw_document(raw)
        if outcome.document is None:
            validator.record_issues(outcome.issues)
        else:
            documents.append(outcome.document)
            sources.append(raw.metadata.get("source"))
    report = validator.validate(documents, sources=sources)

    shown = report.issues if show_warnings else report.errors
    for issue in shown:
        print(issue.describe())
    print(report.summary())

    if not report.is_valid or (strict and report.warnings):
        raise typer.Exit(code=1)


@app.command()
def show(
    document_id: Annotated[str, typer.Argument(help="Document id.")],
    corpus: str = typer.Option("./corpus", "--corpus", help="Corpus directory."),
):
    """Prints a document."""
    store = _load_corpus(corpus)
    document = store.get(document_id)
    if document is None:
        logger.error(f"No document with id '{document_id}'.")
        raise typer.Exit(code=1)
    print(render_document(document))


@app.command()
def stats(
    corpus: str = typer.Option("./corpus", "--corpus", help="Corpus directory."),
):
    """Prints corpus statistics as JSON."""
    store = _load_corpus(corpus)
    print(json.dumps(store.statistics().model_dump(mode="json", by_alias=True), indent=2))


@app.command()
def resources(
    corpus: str = typer.Option("./corpus", "--corpus", help="Corpus directory."),
):
    """Lists the hig:// pages the corpus can render."""
    store = _load_corpus(corpus)
    listed = store.list_resources()
    if not listed:
        logger.info("The corpus has no documents.")
        return
    for info in listed:
        print(f"{info.uri}\t{info.name}\t{info.description}")


@app.command()
def resource(
    uri: Annotated[str, typer.Argument(help="hig://<platform>[/<category>]")],
    corpus: str = typer.Option("./corpus", "--corpus", help="Corpus directory."),
):
    """Prints the combined page of a platform or category."""
    store = _load_corpus(corpus)
    content = store.render_resource(uri)
    if content is None:
        logger.error(f"No documents for resource '{uri}'.")
        raise typer.Exit(code=1)
    print(content)


if __name__ == "__main__":
    app()
