import sys
from pathlib import Path

# allow running the suite from a checkout without installing the package
_SRC = Path(__file__).resolve().parent / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))


def pytest_addoption(parser):
    parser.addoption(
        "--skip-slow",
        action="store_true",
        default=False,
        help="skip long multi-hundred-frame scenario runs",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long scenario runs (deselect with --skip-slow)")


def pytest_collection_modifyitems(config, items):
    """Deselect tests marked `slow` when --skip-slow is given."""
    if not config.getoption("--skip-slow"):
        return

    removed = [item for item in items if "slow" in item.keywords]
    if removed:
        config.hook.pytest_deselected(items=removed)
        items[:] = [item for item in items if "slow" not in item.keywords]
        tr = config.pluginmanager.get_plugin('terminalreporter')
        if tr:
            tr.write_sep('-', f'Deselected {len(removed)} slow tests')
