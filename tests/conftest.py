import logging

import pytest

from throttlekit.config import hierarchy


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's global config, cwd and THROTTLEKIT_* env out of tests."""
    monkeypatch.setattr(hierarchy, "_GLOBAL_CONFIG_PATH", tmp_path / "home" / "config.yaml")
    for key in hierarchy.config_keys():
        monkeypatch.delenv(hierarchy.env_var_name(key), raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo the handler and level the CLI installs on the package logger."""
    yield
    package_logger = logging.getLogger("throttlekit")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def commands_file(tmp_path):
    """Write a small commands file and return its path."""
    content = """
# comment lines and blanks are skipped
echo one

echo two
echo three
"""
    path = tmp_path / "commands.txt"
    path.write_text(content)
    return path
