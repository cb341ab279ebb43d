"""CLI entry point for Pattern Prophet."""

import json
import random

import click

from patternprophet.config.logging import setup_logger
from patternprophet.config.settings import Settings
from patternprophet.engine.factory import PatternFactory, PatternType


@click.group()
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx: click.Context, log_level: str) -> None:
    """Pattern Prophet: adaptive pattern puzzles."""
    ctx.ensure_object(dict)
    settings = Settings.load()
    setup_logger((log_level or settings.logging.get_level()).upper(), settings.logging.file)
    ctx.obj["settings"] = settings


@main.command()
def types() -> None:
    """List pattern types."""
    for pattern_type in PatternType:
        status = "ready" if PatternFactory.is_implemented(pattern_type) else "not implemented"
        click.echo(f"  {pattern_type.value}: {status}")


@main.command()
@click.option("--type", "pattern_type", default=PatternType.VISUAL_SEQUENCE.value,
              type=click.Choice([t.value for t in PatternType]), help="Pattern type")
@click.option("--difficulty", type=click.FloatRange(1, 10), default=None, help="Difficulty 1-10")
@click.option("--seed", type=int, default=None, help="Seed for a reproducible puzzle")
@click.pass_context
def generate(ctx: click.Context, pattern_type: str, difficulty: float, seed: int) -> None:
    """Generate one puzzle and print it as JSON."""
    settings: Settings = ctx.obj["settings"]
    if difficulty is None:
        difficulty = settings.generator.default_difficulty
    if seed is None:
        seed = settings.generator.get_seed()

    config = PatternFactory.get_default_config(pattern_type, difficulty)
    config.accessibility = settings.accessibility.to_features()
    progress = PatternFactory.get_default_progress("cli", pattern_type)
    try:
        engine = PatternFactory.create_pattern(
            pattern_type,
            config,
            progress,
            rng=random.Random(seed) if seed is not None else None,
            **settings.generator.engine_options(),
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(engine.generate().to_dict(), indent=2))


@main.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the JSON-lines server on stdin/stdout."""
    import asyncio

    from patternprophet.server.__main__ import main as server_main

    asyncio.run(server_main(ctx.obj["settings"]))
