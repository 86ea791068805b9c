import allure
from click.testing import CliRunner

from task_workflow import __version__
from task_workflow.main import task_workflow

pytestmark = [
    allure.epic("Operations"),
    allure.feature("CLI"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(task_workflow, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
