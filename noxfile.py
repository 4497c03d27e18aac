"""Nox sessions for testing and quality assurance."""

import nox


@nox.session(python=["3.13"])
def tests(session: nox.Session) -> None:
    """Run test suite with coverage reporting.

    Args:
        session: The nox session object.
    """
    session.run("uv", "sync", "--extra", "test", external=True)
    session.run(
        "pytest",
        "--cov=onrender_pinger",
        "--cov-report=term-missing:skip-covered",
        "--cov-report=html",
        "--cov-fail-under=80",
    )


@nox.session(python=["3.13"])
def lint(session: nox.Session) -> None:
    """Run ruff linting and formatting checks."""
    session.run("uv", "sync", "--extra", "dev", external=True)
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(python=["3.13"])
def typecheck(session: nox.Session) -> None:
    """Run basedpyright type checking."""
    session.run("uv", "sync", "--extra", "test", external=True)
    session.run("uvx", "basedpyright@latest", external=True)


@nox.session(python=["3.13"])
def format(session: nox.Session) -> None:
    """Auto-format code with ruff."""
    session.run("uv", "sync", "--extra", "dev", external=True)
    session.run("ruff", "check", ".", "--fix")
    session.run("ruff", "format", ".")


@nox.session(python=["3.13"])
def coverage(session: nox.Session) -> None:
    """Generate and display coverage report."""
    session.run("uv", "sync", "--extra", "test", external=True)
    session.run("coverage", "report", "--show-missing")
    session.run("coverage", "html")
    session.log("Coverage report generated in htmlcov/index.html")


@nox.session(python=["3.13"])
def check_isolation(session: nox.Session) -> None:
    """Check that core, types and utils never name a webhook platform.

    Platform-specific knowledge belongs in the notifications package.
    """
    session.run("python3", "scripts/check_platform_isolation.py", external=True)
