"""
Integration test for the CLI runner (using scripted model clients).

Verifies the full pipeline works end-to-end:
1. Load a prompt file
2. Run the selected models
3. Evaluate with the judge
4. Write the export JSON and history CSV
"""

import json

import pandas as pd
import pytest

from prompt_studio_core import runner
from prompt_studio_core.domain.errors import TransportError
from prompt_studio_core.studio_config import EvaluationConfig, ProviderKeysConfig, StudioConfig
from prompt_studio_core.workspace import Workspace

from fakes import ClientTable, FakeClock, ScriptedClient, make_registry


@pytest.fixture
def clients():
    return {
        "model-a": ScriptedClient(chunks=("alpha",)),
        "model-b": ScriptedClient(error=TransportError("overloaded")),
        "judge": ScriptedClient(response_text='{"evaluations": [{"modelId": "model-a", "score": 88, "reasoning": "solid"}]}'),
    }


@pytest.fixture
def patched_workspace(monkeypatch, clients):
    monkeypatch.delenv("OLLAMA_DISCOVER_ON_STARTUP", raising=False)
    created = []

    def factory(_config):
        config = StudioConfig(
            providers=ProviderKeysConfig(openai="sk-test"),
            evaluation=EvaluationConfig(judge_model="judge"),
        )
        ws = Workspace(config, registry=make_registry(), client_factory=ClientTable(clients), clock=FakeClock())
        created.append(ws)
        return ws

    monkeypatch.setattr(runner, "Workspace", factory)
    return created


class TestParseArgs:
    def test_defaults(self):
        args = runner.parse_args(["--prompt-file", "p.md"])
        assert args.prompt_file == "p.md"
        assert args.models is None
        assert args.evaluate is False
        assert args.output_dir == "results"

    def test_prompt_file_is_required(self):
        with pytest.raises(SystemExit):
            runner.parse_args([])


class TestLoadPromptDocument:
    def test_plain_text(self, tmp_path):
        path = tmp_path / "summary.md"
        path.write_text("Summarize this", encoding="utf-8")
        document = runner.load_prompt_document(path)
        assert document.name == "summary"
        assert document.content == "Summarize this"

    def test_exported_json(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text(json.dumps({"prompt": {"name": "Doc", "content": "Body", "intent": "Goal"}}), encoding="utf-8")
        document = runner.load_prompt_document(path)
        assert (document.name, document.content, document.intent) == ("Doc", "Body", "Goal")


class TestSelectModels:
    def test_requested_models(self, patched_workspace):
        ws = runner.Workspace(None)
        assert runner.select_models(ws, " model-a, ,model-b ") == ["model-a", "model-b"]

    def test_best_available_fallback(self):
        ws = Workspace(StudioConfig(providers=ProviderKeysConfig(google="g")), clock=FakeClock())
        models = runner.select_models(ws, None)
        assert "gemini-3-flash-preview" in models
        assert all(ws.registry.get(m).provider == "google" for m in models)


class TestRunPipeline:
    """CLI の一連の処理"""

    @pytest.mark.asyncio
    async def test_run_evaluate_and_write_outputs(self, tmp_path, patched_workspace, capsys):
        prompt = tmp_path / "prompt.md"
        prompt.write_text("Explain recursion", encoding="utf-8")
        out = tmp_path / "out"
        args = runner.parse_args([
            "--prompt-file", str(prompt),
            "--models", "model-a,model-b",
            "--evaluate",
            "--output-dir", str(out),
        ])

        code = await runner.run(args)

        assert code == 0
        printed = capsys.readouterr().out
        assert "FAILED (api_error)" in printed
        assert "88.0" in printed

        export = json.loads((out / "prompt-export.json").read_text(encoding="utf-8"))
        assert export["prompt"]["content"] == "Explain recursion"
        assert [h["modelId"] for h in export["executionHistory"]] == ["model-a"]

        csv_files = list(out.glob("history_*.csv"))
        assert len(csv_files) == 1
        history = pd.read_csv(csv_files[0])
        assert set(history["model_id"]) == {"model-a", "model-b"}

        ws = patched_workspace[0]
        assert ws.history.latest.snapshot.evaluation.result_for("model-a").score == 88.0

    @pytest.mark.asyncio
    async def test_invalid_prompt_file(self, tmp_path, patched_workspace, capsys):
        prompt = tmp_path / "broken.json"
        prompt.write_text("{", encoding="utf-8")
        args = runner.parse_args(["--prompt-file", str(prompt), "--output-dir", str(tmp_path)])

        assert await runner.run(args) == 1
        assert "Invalid JSON format" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_empty_prompt(self, tmp_path, patched_workspace, capsys):
        prompt = tmp_path / "empty.md"
        prompt.write_text("   ", encoding="utf-8")
        args = runner.parse_args(["--prompt-file", str(prompt), "--models", "model-a"])

        assert await runner.run(args) == 1
        assert "cannot be executed" in capsys.readouterr().out
