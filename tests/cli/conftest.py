"""Shared fixtures for CLI tests."""

import pytest
from click.testing import CliRunner

RIS_CONTENT = """TY  - JOUR
AU  - Smith, John
TI  - A Study of Things
PY  - 2021
JO  - Journal of Science
ER  - 

TY  - BOOK
AU  - Roe, Richard
TI  - The Art of Modelling
PY  - 2019
ER  - 
"""


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files out of every CLI run."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in (
        "BIBXCHANGE_BATCH_SIZE",
        "BIBXCHANGE_CHECK_DUPLICATES",
        "BIBXCHANGE_UPDATE_EXISTING",
        "BIBXCHANGE_CSV_DELIMITER",
        "BIBXCHANGE_EXPORTED_BY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def runner():
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def ris_file(tmp_path):
    """A RIS file with a journal article and a book."""
    path = tmp_path / "refs.ris"
    path.write_text(RIS_CONTENT, encoding="utf-8")
    return path


@pytest.fixture
def broken_ris_file(tmp_path):
    """A file with a RIS extension but no RIS tags."""
    path = tmp_path / "broken.ris"
    path.write_text("just some notes\n", encoding="utf-8")
    return path
