"""Tests for the swarm-opt console script."""

import yaml
from typer.testing import CliRunner

from swarm_opt.cli import app

runner = CliRunner()


def _write(tmp_path, config):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config))
    return path


class TestCLI:
    def test_run_single(self, tmp_path, basic_config):
        result = runner.invoke(app, ["run", str(_write(tmp_path, basic_config)),
                                     "--log-dir", str(tmp_path / "logs")])
        assert result.exit_code == 0, result.output
        assert "Best objective" in result.output
        assert "Final rho" in result.output
        assert (tmp_path / "logs" / "run.log").exists()

    def test_run_multi(self, tmp_path, basic_config):
        basic_config["optimization"]["multi_run"] = {"num_runs": 2}
        result = runner.invoke(app, ["run", str(_write(tmp_path, basic_config)), "--multi-run"])
        assert result.exit_code == 0, result.output
        assert "Objective mean" in result.output

    def test_run_vepso(self, tmp_path, vepso_config):
        result = runner.invoke(app, ["run", str(_write(tmp_path, vepso_config))])
        assert result.exit_code == 0, result.output
        assert "VEPSO on zdt1" in result.output

    def test_vepso_rejects_multi_run_flag(self, tmp_path, vepso_config):
        result = runner.invoke(app, ["run", str(_write(tmp_path, vepso_config)), "--multi-run"])
        assert result.exit_code == 2
        assert "not supported for VEPSO" in result.output
        assert "VEPSO on zdt1" not in result.output

    def test_vepso_rejects_multi_run_config(self, tmp_path, vepso_config):
        vepso_config["optimization"]["multi_run"] = {"enabled": True, "num_runs": 3}
        result = runner.invoke(app, ["run", str(_write(tmp_path, vepso_config))])
        assert result.exit_code == 2
        assert "not supported for VEPSO" in result.output

    def test_summary(self, tmp_path, basic_config):
        result = runner.invoke(app, ["summary", str(_write(tmp_path, basic_config))])
        assert result.exit_code == 0, result.output
        assert "OPTIMIZATION CONFIGURATION SUMMARY" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["run", str(tmp_path / "missing.yaml")])
        assert result.exit_code != 0
