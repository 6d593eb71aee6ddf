import sys
import types
from pathlib import Path

import pytest

from tictactoe_ai.config import AgentConfig, MatchArgs
from tictactoe_ai.matches import run_match
from tictactoe_ai.tracking import log_metrics, log_params, maybe_mlflow_run


def _failing_mlflow() -> types.ModuleType:
    mod = types.ModuleType("mlflow")

    def start_run(run_name=None):
        raise RuntimeError("tracking server unreachable")

    mod.set_tracking_uri = lambda uri: None
    mod.start_run = start_run
    mod.active_run = lambda: None
    return mod


def test_tracking_disabled_is_a_no_op():
    with maybe_mlflow_run(False, run_name="off") as run:
        assert run is None


def test_start_run_failure_does_not_abort_the_body(monkeypatch, caplog):
    monkeypatch.setitem(sys.modules, "mlflow", _failing_mlflow())
    ran = []
    with maybe_mlflow_run(True, run_name="x", log_dir=Path("runs")):
        ran.append(True)
        log_params({"a": 1})
        log_metrics({"b": 2.0})
    assert ran == [True]
    assert "continuing without tracking" in caplog.text


def test_errors_in_the_body_still_propagate(monkeypatch):
    monkeypatch.setitem(sys.modules, "mlflow", _failing_mlflow())
    with pytest.raises(KeyError):
        with maybe_mlflow_run(True, run_name="x"):
            raise KeyError("body")


@pytest.mark.parametrize("mlflow_module", [None, "failing"])
def test_match_finishes_when_tracking_fails(tmp_path: Path, monkeypatch, mlflow_module):
    # None in sys.modules makes `import mlflow` raise ImportError
    monkeypatch.setitem(sys.modules, "mlflow", _failing_mlflow() if mlflow_module else None)
    res = run_match(MatchArgs(
        x="minimax",
        o="random",
        games=2,
        agent_config=AgentConfig(seed=1),
        tracking=True,
        log_dir=tmp_path / "runs",
        out=tmp_path / "out",
    ))
    assert res.scoreboard.games == 2
    assert (tmp_path / "out" / "manifest.json").exists()
