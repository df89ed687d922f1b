from pathlib import Path

from invoke import task
from invoke.exceptions import Exit

SAMPLE_DIR = Path(__file__).resolve().parent / "sample"


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c):
    c.run("pytest")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)


@task
def demo(c, database="sqlite:///demo_arena.db"):
    """Create a database, load the sample galleries and print the stats."""
    seed_file = SAMPLE_DIR / "galleries.yaml"
    if not seed_file.exists():
        raise Exit(f"Missing sample data: {seed_file}")

    config = SAMPLE_DIR / "arena.yaml"
    c.run(f"gallery-arena init-db -c {config} -d {database}")
    c.run(f"gallery-arena seed {seed_file} -c {config} -d {database}")
    c.run(f"gallery-arena stats -c {config} -d {database}")
