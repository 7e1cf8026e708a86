# NOTE: Nox is used for anything that requires some sort of special virtual
# environment in order to operate, here that is the test and QA sessions.

# Standard Library
from pathlib import Path

# Third Party Library
import nox

# only the tests are run by default
nox.options.sessions = ["test_unit", "test_integration"]

DEFAULT_PYTHON_VERSION = "3.10"

PROJECT_ROOT_DIR = Path(__file__).parent

# listing of things to be formatted and checked
FORMAT_TARGETS = [
    "src",
    "tests",
    "noxfile.py",
]

LINT_TARGETS = [
    "src/cres",
    "noxfile.py",
]

UNIT_TEST_DIRNAME = "unit"
INTEGRATION_TEST_DIRNAME = "integration"

QA_REQUIREMENTS = [
    "black",
    "isort",
    "ruff",
]


### QA


def _black_check(session):
    session.run("black", "--check", *FORMAT_TARGETS)


def _isort_check(session):
    session.run("isort", "--check", *FORMAT_TARGETS)


def _format_check(session):
    _black_check(session)
    _isort_check(session)


def _lint(session):
    session.run("ruff", "check", *LINT_TARGETS)


def qa_install(session):
    session.install(*QA_REQUIREMENTS)


@nox.session
def format_check(session):
    qa_install(session)
    _format_check(session)


@nox.session
def lint(session):
    qa_install(session)
    _lint(session)


@nox.session
def validate(session: nox.Session) -> None:
    """Run all static analysis QA checks."""
    qa_install(session)

    _format_check(session)
    _lint(session)


@nox.session
def format(session):
    """Run formatting on the code."""
    qa_install(session)

    session.run("black", *FORMAT_TARGETS)
    session.run("isort", *FORMAT_TARGETS)


### Tests


def _test_install(session):
    session.install("-e", ".[test]")


@nox.session(python=DEFAULT_PYTHON_VERSION)
def test_unit(session: nox.Session) -> None:
    """Run the unit tests."""

    _test_install(session)

    session.run("pytest", f"tests/{UNIT_TEST_DIRNAME}", *session.posargs)


@nox.session(python=DEFAULT_PYTHON_VERSION)
def test_integration(session: nox.Session) -> None:
    """Run the integration tests, these spawn worker processes and
    invoke the command line interface."""

    _test_install(session)

    session.run("pytest", f"tests/{INTEGRATION_TEST_DIRNAME}", *session.posargs)
