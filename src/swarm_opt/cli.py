"""Console script for swarm_opt."""

from pathlib import Path
from typing import Optional

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from swarm_opt.logging import setup_logger
from swarm_opt.optimisation.config import OptimizationConfigManager
from swarm_opt.optimisation.runners import PSORunner, VEPSORunner

app = typer.Typer(help="Particle swarm optimisation of pymoo benchmark problems.")
console = Console()


def _format_vector(vector, limit: int = 6) -> str:
    text = np.array2string(np.asarray(vector)[:limit], precision=4, separator=", ")
    return text if len(vector) <= limit else text[:-1] + ", ...]"


@app.command()
def run(
    config: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML configuration file."),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also write a DEBUG log file here."),
    multi_run: bool = typer.Option(False, "--multi-run", help="Force multi-run statistics."),
):
    """Run the optimiser described by CONFIG."""
    config_manager = OptimizationConfigManager(config_path=str(config))
    monitoring = config_manager.get_monitoring_config()
    setup_logger("swarm_opt", str(log_dir) if log_dir else None, console_level=monitoring.log_level)

    algorithm = config_manager.get_pso_config().type
    wants_multi_run = multi_run or config_manager.get_multi_run_config().enabled
    if algorithm == "VEPSO":
        if wants_multi_run:
            console.print("[red]Multi-run is not supported for VEPSO configurations.[/red]")
            raise typer.Exit(code=2)
        result = VEPSORunner(config_manager).optimize()
        table = Table(title=f"VEPSO on {config_manager.get_problem_config().type}")
        table.add_column("Sub-swarm", justify="right")
        table.add_column("Own objective", justify="right")
        table.add_column("Objective vector")
        table.add_column("Position")
        for index, (value, vector, position) in enumerate(zip(
            result.best_objectives, result.objective_vectors, result.best_positions
        )):
            table.add_row(str(index), f"{value:.6g}", _format_vector(vector), _format_vector(position))
        console.print(table)
        console.print(f"{result.generations_completed} generations in {result.optimization_time:.2f}s")
        return

    runner = PSORunner(config_manager)
    if wants_multi_run:
        multi_result = runner.optimize_multi_run()
        table = Table(title=f"{algorithm} multi-run on {config_manager.get_problem_config().type}")
        table.add_column("Run", justify="right")
        table.add_column("Seed", justify="right")
        table.add_column("Objective", justify="right")
        table.add_column("Generations", justify="right")
        table.add_column("Stop reason")
        for summary in multi_result.run_summaries:
            table.add_row(
                str(summary["run_id"]),
                str(summary["seed"]),
                f"{summary['objective']:.6g}",
                str(summary["generations"]),
                str(summary["reason"]),
            )
        console.print(table)
        stats = multi_result.statistical_summary
        console.print(
            f"Objective mean {stats['objective_mean']:.6g} ± {stats['objective_std']:.6g} "
            f"(best {multi_result.best_result.best_objective:.6g}, "
            f"{multi_result.num_runs_completed} runs, {multi_result.total_time:.1f}s)"
        )
        return

    result = runner.optimize()
    table = Table(title=f"{algorithm} on {config_manager.get_problem_config().type}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Best objective", f"{result.best_objective:.6g}")
    table.add_row("Generations", str(result.generations_completed))
    table.add_row("Stop reason", str(result.convergence_info.get("reason")))
    table.add_row("Evaluations", str(result.performance_stats["evaluations"]))
    table.add_row("Time (s)", f"{result.optimization_time:.2f}")
    if "rho_schedule" in result.performance_stats:
        table.add_row("Final rho", f"{result.performance_stats['rho_schedule'][-1]:.4g}")
    table.add_row("Best position", _format_vector(result.best_solution))
    console.print(table)


@app.command()
def summary(
    config: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML configuration file."),
):
    """Validate CONFIG and print its summary."""
    OptimizationConfigManager(config_path=str(config)).print_summary()


if __name__ == "__main__":
    app()
