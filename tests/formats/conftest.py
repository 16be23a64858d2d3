"""Sample payloads for format handler tests."""

import pytest

from bibxchange.core.options import ExportOptions

SAMPLE_RIS = """TY  - JOUR
AU  - Smith, John
AU  - Doe, Jane
TI  - A Study of Things
JO  - Journal of Science
PY  - 2021
VL  - 12
IS  - 3
SP  - 123
EP  - 145
DO  - https://doi.org/10.1000/xyz
KW  - alpha
KW  - beta
AB  - The first part of the abstract
      continues here.
M3  - Custom value
ER  -

TY  - BOOK
AU  - Roe, Richard
TI  - The Art of Modelling
PY  - 2019
PB  - Example Press
CY  - Oslo
SN  - 978-0-306-40615-7
ER  -
"""

SAMPLE_BIBTEX = r"""@string{jsci = "Journal of Science"}

% Entries exported from a reference manager
@article{smith2021,
  author = {Smith, John and Doe, Jane},
  title = {A {Study} of \textit{Things}},
  journal = jsci,
  year = 2021,
  month = jan,
  pages = {123--145},
  doi = {10.1000/xyz\_1},
  note = "See " # jsci
}

@book{roe2019,
  author = {Roe, Richard},
  title = {The Art of Modelling},
  publisher = {Example Press},
  address = {Oslo},
  year = {2019}
}
"""

SAMPLE_CSV = (
    "Reference Type,Title,Authors,Publication Year,Journal Name,DOI,Custom\n"
    'Journal Article,A Study,"Smith, John; Doe, Jane",2021,J,'
    "https://doi.org/10.1/x,extra\n"
    "Book,The Art of Modelling,\"Roe, Richard\",2019,,,\n"
)


@pytest.fixture
def sample_ris() -> str:
    return SAMPLE_RIS


@pytest.fixture
def sample_bibtex() -> str:
    return SAMPLE_BIBTEX


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def bare_options() -> ExportOptions:
    """Export options without a timestamped header."""
    return ExportOptions(include_header=False)
