# pylint: disable=logging-fstring-interpolation
"""This module can be used to start topicq."""
import logging
import logging.config
import os
import sys
import warnings
from typing import Optional

import click
from colorama import Fore

from topicq.framework.controller import PipelineController
from topicq.util.configuration import Configuration, InvalidConfigurationError
from topicq.util.context_managers import logqueue_listener
from topicq.util.defaults import (
    DEFAULT_COORDINATE_TASK_COUNT,
    DEFAULT_GRAPH_COUNT,
    DEFAULT_GRAPH_SIZE,
    DEFAULT_LOG_CONFIG,
    DEFAULT_POINTS_PER_TASK,
    EXITCODES,
)
from topicq.util.helper import get_versions_string, print_fcolor
from topicq.workload.coordinates import populate_coordinates
from topicq.workload.graph import generate_adjacency_lists

warnings.simplefilter("always", DeprecationWarning)
logging.captureWarnings(True)
logging.config.dictConfig(DEFAULT_LOG_CONFIG)
logger = logging.getLogger("topicq")


def _print_version(config: "Configuration") -> None:
    print(get_versions_string(config))
    sys.exit(EXITCODES.SUCCESS.value)


def _get_configuration(config_path: Optional[str]) -> Configuration:
    try:
        config = Configuration.from_source(config_path)
        config.logger.setup_logging()
        logger = logging.getLogger("root")  # pylint: disable=redefined-outer-name
        logger.info(f"Log level set to '{logging.getLevelName(logger.level)}'")
        return config
    except InvalidConfigurationError as error:
        print(f"InvalidConfigurationError: {error}", file=sys.stderr)
        sys.exit(EXITCODES.CONFIGURATION_ERROR.value)


@click.group(name="topicq")
@click.version_option(version=get_versions_string(), message="%(version)s")
def cli() -> None:
    """
    topicq pipelines batch workloads through bounded topic queues served by pools of
    producer and consumer threads.
    """


@cli.command(short_help="Run the configured workloads")
@click.argument("config", required=False)
@click.option(
    "--workload",
    help="Run only the given workload.",
    type=click.Choice(["all", "coordinates", "graphs"]),
    default="all",
    show_default=True,
)
@click.option(
    "--version",
    is_flag=True,
    default=False,
    help="Print version and exit (includes also config version)",
)
def run(config: Optional[str], workload: str, version=None) -> None:
    """
    Run topicq with the given configuration.

    CONFIG is a path to a configuration file, defaults to ./topicq.yml.
    """
    configuration = _get_configuration(config)
    if version:
        _print_version(configuration)
    exit_code = EXITCODES.SUCCESS
    with logqueue_listener("console"):
        for line in get_versions_string(configuration).split("\n"):
            logger.info(line)
        controller = PipelineController(configuration)
        try:
            reports = controller.run(None if workload == "all" else [workload])
            if not all(report.success for report in reports):
                exit_code = EXITCODES.PIPELINE_ERROR
        except KeyboardInterrupt:
            logger.warning("Received interrupt, shut down")
            exit_code = EXITCODES.ERROR
        # pylint: disable=broad-except
        except Exception as error:
            if os.environ.get("DEBUG", False):
                logger.exception(f"A critical error occurred: {error}")  # pragma: no cover
            else:
                logger.critical(f"A critical error occurred: {error}")
            controller.stop()
            exit_code = EXITCODES.ERROR
        # pylint: enable=broad-except
    sys.exit(exit_code.value)


@cli.group(name="test", short_help="Verify a given configuration")
def test() -> None:
    """
    Verify configurations without running any workload.
    """


@test.command(name="config")
@click.argument("config", required=False)
def test_config(config: Optional[str]) -> None:
    """
    Verify the configuration file

    CONFIG is a path to a configuration file.
    """
    _get_configuration(config)
    print_fcolor(Fore.GREEN, "The verification of the configuration was successful")


@cli.command(name="print", short_help="Print the resolved configuration")
@click.argument("config", required=False)
@click.option(
    "--output",
    type=click.Choice(["json", "yaml"]),
    default="yaml",
    help="What output format to use",
    show_default=True,
)
def print_config(config: Optional[str], output: str) -> None:
    """Prints the resolved configuration including all defaults.

    CONFIG is a path to a configuration file.
    """
    configuration = _get_configuration(config)
    if output == "json":
        print(configuration.as_json(indent=2))
    else:
        print(configuration.as_yaml())


@cli.group(short_help="Generate random input files")
def generate() -> None:
    """
    Generate input files for the coordinates and graphs workloads.
    """


@generate.command(name="coordinates")
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--tasks", default=DEFAULT_COORDINATE_TASK_COUNT, show_default=True, type=int)
@click.option(
    "--points", default=DEFAULT_POINTS_PER_TASK, show_default=True, type=int, help="Per task"
)
@click.option("--seed", default=None, type=int, help="Seed for reproducible files")
def generate_coordinates(output: str, tasks: int, points: int, seed: Optional[int]) -> None:
    """
    Write random coordinate tasks to OUTPUT.
    """
    path = populate_coordinates(output, task_count=tasks, points_per_task=points, seed=seed)
    print_fcolor(Fore.GREEN, f"Wrote {tasks} coordinate tasks to {path}")


@generate.command(name="graphs")
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--count", default=DEFAULT_GRAPH_COUNT, show_default=True, type=int)
@click.option(
    "--size", default=DEFAULT_GRAPH_SIZE, show_default=True, type=int, help="Vertices per graph"
)
@click.option("--seed", default=None, type=int, help="Seed for reproducible files")
def generate_graphs(output: str, count: int, size: int, seed: Optional[int]) -> None:
    """
    Write random graphs to OUTPUT.
    """
    path = generate_adjacency_lists(output, graph_count=count, graph_size=size, seed=seed)
    print_fcolor(Fore.GREEN, f"Wrote {count} graphs to {path}")


if __name__ == "__main__":
    cli()
