import os
from pathlib import Path

from invoke import task

DEMO_DB = Path(__file__).resolve().parent / "demo.db"


@task
def lint(c):
    c.run("ruff check src tests tasks.py")


@task
def format_check(c):
    c.run("ruff format --check src tests tasks.py")


@task(help={"k": "Only run tests matching this expression"})
def test(c, k=None):
    cmd = "pytest"
    if k:
        cmd += f" -k '{k}'"
    c.run(cmd)


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)


@task
def demo(c):
    """Create a four-player tournament in demo.db and score a few rallies."""
    if DEMO_DB.exists():
        DEMO_DB.unlink()
    env = {**os.environ, "AURA_DATABASE_URL": f"sqlite:///{DEMO_DB}"}
    commands = [
        "create-tournament Demo --rounds 3",
        *(f"add-player {name}" for name in ("ann", "bob", "cat", "dan")),
        "register 1 1 2 3 4",
        "generate-round 1",
        "start 1 --serving 1 --positions 1 2 3 4",
        "point 1 1",
        "point 1 2",
        "point 1 2",
        "state 1",
        "leaderboard 1 --partners",
    ]
    for command in commands:
        c.run(f"aura-tournament {command}", env=env)
