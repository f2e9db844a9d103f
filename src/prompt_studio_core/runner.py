"""
prompt-studio-core CLI Runner

Minimal CLI for running one prompt against several models.

Usage:
    python -m prompt_studio_core.runner --prompt-file prompts/summary.json
    python -m prompt_studio_core.runner --prompt-file prompt.md --models gpt-5-mini,claude-sonnet-4-5-20250929 --evaluate

A .json prompt file is read as an exported prompt document; any other
file is used as the prompt content.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from prompt_studio_core.domain.entities import CompletedRun, FailedRun, StreamingRun
from prompt_studio_core.domain.errors import PromptStudioError
from prompt_studio_core.prompt_io import ImportedDocument, parse_import_json, write_export_file
from prompt_studio_core.reporting import history_frame, save_history_csv
from prompt_studio_core.stores.observable import StoreEvent
from prompt_studio_core.studio_config import load_config
from prompt_studio_core.workspace import Workspace


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="prompt-studio-core: Run a prompt against several LLM providers",
    )
    parser.add_argument(
        "--prompt-file",
        required=True,
        help="Path to an exported prompt JSON file or a plain text prompt",
    )
    parser.add_argument(
        "--models",
        default=None,
        help="Comma-separated list of model ids (default: default models of configured providers)",
    )
    parser.add_argument(
        "--evaluate",
        action="store_true",
        help="Score the outputs with the judge model after the run",
    )
    parser.add_argument(
        "--judge-model",
        default=None,
        help="Judge model id (default: STUDIO_JUDGE_MODEL from .env)",
    )
    parser.add_argument(
        "--rubric",
        default=None,
        help="Custom evaluation criteria (default: derived from the prompt intent)",
    )
    parser.add_argument(
        "--discover-ollama",
        action="store_true",
        help="Register models served by the local Ollama server",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory for the export JSON and history CSV (default: results)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def load_prompt_document(path: Path) -> ImportedDocument:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return parse_import_json(text)
    return ImportedDocument(name=path.stem, content=text)


def select_models(workspace: Workspace, requested: str | None) -> list[str]:
    """Requested models, else the defaults of configured providers, else the best available model"""
    if requested:
        return [m.strip() for m in requested.split(",") if m.strip()]
    models = [m.id for m in workspace.registry.defaults() if workspace.is_provider_available(m.provider)]
    if models:
        return models
    best = workspace.registry.best_available(workspace.keys.configured_providers())
    return [best.id] if best else []


def _print_progress(event: StoreEvent) -> None:
    if event.type == "run_started":
        print(f"  {event.payload['model_id']:<40} started")
    elif event.type == "run_completed":
        print(f"  {event.payload['model_id']:<40} completed")
    elif event.type == "run_failed":
        print(f"  {event.payload['model_id']:<40} FAILED ({event.payload['error_kind']})")


def print_runs(workspace: Workspace) -> None:
    print(f"  {'Model':<40} {'Status':>10} {'Latency':>10} {'Chars':>8}")
    print(f"  {'-'*40} {'-'*10} {'-'*10} {'-'*8}")
    for item in workspace.display_runs():
        run = item.run
        if isinstance(run, CompletedRun):
            latency = f"{run.latency_ms}ms" if run.latency_ms is not None else "-"
            print(f"  {item.display_name:<40} {'completed':>10} {latency:>10} {len(run.output):>8}")
        elif isinstance(run, FailedRun):
            print(f"  {item.display_name:<40} {'failed':>10} {'-':>10} {'-':>8}")
            print(f"    {run.error_kind.value}: {run.message[:200]}")
        elif isinstance(run, StreamingRun):
            print(f"  {item.display_name:<40} {'streaming':>10} {'-':>10} {len(run.content):>8}")
    print()


async def run(args: argparse.Namespace) -> int:
    config = load_config()
    workspace = Workspace(config)

    if args.discover_ollama or config.ollama.discover_on_startup:
        print(f"=== Discovering Ollama models at {config.ollama.base_url} ===\n")
        added = await workspace.discover_ollama()
        for model in added:
            print(f"  {model.id:<40} {model.display_name}")
        print(f"  {len(added)} model(s) registered\n")

    prompt_path = Path(args.prompt_file)
    print(f"\n=== Loading prompt: {prompt_path} ===\n")
    try:
        document = load_prompt_document(prompt_path)
    except PromptStudioError as e:
        print(f"ERROR: {e}")
        return 1

    models = select_models(workspace, args.models)
    if not models:
        print("ERROR: No models selected and no provider is configured. Exiting.")
        return 1
    workspace.load_document(document, models)
    print(f"  Prompt: {document.name}")
    print(f"  Examples: {len(document.examples)}")
    print(f"  Models: {models}")
    print()

    print("=== Running ===\n")
    unsubscribe = workspace.tracker.subscribe(_print_progress)
    try:
        entry = await workspace.run()
    finally:
        unsubscribe()
    print()
    if entry is None:
        print("ERROR: The prompt cannot be executed (empty content or no models). Exiting.")
        return 1

    print("=== Results ===\n")
    print_runs(workspace)

    if args.evaluate:
        if args.rubric:
            workspace.evaluation.set_custom_prompt(args.rubric)
        judge = args.judge_model or workspace.evaluation.judge_model_id
        print(f"=== Evaluation (judge: {judge}) ===\n")
        evaluation = await workspace.evaluate(args.judge_model)
        if evaluation is None:
            print(f"  Evaluation failed: {workspace.evaluation.error or 'no completed outputs'}\n")
        else:
            for result in sorted(evaluation.results, key=lambda r: -r.score):
                print(f"  {result.model_id:<40} {result.score:>6.1f}")
                print(f"    {result.reasoning[:200]}")
            print()

    output_dir = Path(args.output_dir)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    export_path = write_export_file(workspace.export_data(), output_dir)
    history_path = save_history_csv(
        history_frame(workspace.history, workspace.registry),
        output_dir / f"history_{timestamp}.csv",
    )

    print("=== Output ===\n")
    print(f"  Export:  {export_path}")
    print(f"  History: {history_path}")
    print()
    return 0


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
