import sys
from pathlib import Path

import pytest

# Ensure the project src directory is on sys.path for test imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_PATH = PROJECT_ROOT / "src"
if SRC_PATH not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


# Three generations of Smiths plus one unrelated individual:
#
#   William (@I6@)
#       |
#   John (@I1@) == Mary (@I2@)
#       |
#   Robert (@I3@) == Alice (@I4@)
#       |
#   Tom (@I5@)
#
#   Edith (@I7@) is not connected to anyone.
FAMILY_GED = """\
0 HEAD
1 SOUR TEST
1 GEDC
2 VERS 5.5.1
1 CHAR UTF-8
0 @I1@ INDI
1 NAME John /Smith/
1 SEX M
1 BIRT
2 DATE 12 MAR 1900
2 PLAC Leeds, England
1 OCCU Carpenter
1 NOTE Built the family house
2 CONT on Elm Street.
1 SOUR @S1@
1 OBJE
2 FILE photos/john.jpg
1 FAMS @F1@
1 FAMC @F0@
0 @I2@ INDI
1 NAME Mary /Jones/
1 SEX F
1 BIRT
2 DATE ABT 1902
1 DEAT
2 DATE 1980
2 PLAC York
1 FAMS @F1@
0 @I3@ INDI
1 NAME Robert /Smith/
1 SEX M
1 BIRT
2 DATE 1926
1 FAMC @F1@
1 FAMS @F2@
0 @I4@ INDI
1 NAME Alice /Brown/
1 SEX F
1 FAMS @F2@
0 @I5@ INDI
1 NAME Tom /Smith/
1 SEX M
1 FAMC @F2@
0 @I6@ INDI
1 NAME William /Smith/
1 SEX M
1 FAMS @F0@
0 @I7@ INDI
1 NAME Edith /Unrelated/
1 SEX F
0 @F0@ FAM
1 HUSB @I6@
1 CHIL @I1@
0 @F1@ FAM
1 HUSB @I1@
1 WIFE @I2@
1 MARR
2 DATE 4 JUN 1925
2 PLAC Leeds
1 CHIL @I3@
0 @F2@ FAM
1 HUSB @I3@
1 WIFE @I4@
1 CHIL @I5@
0 @S1@ SOUR
1 TITL Parish register
0 TRLR
"""

# A is parent of B, B is married to C.
ABC_GED = """\
0 HEAD
0 @A@ INDI
1 NAME Ada /Parent/
1 FAMS @F1@
0 @B@ INDI
1 NAME Ben /Child/
1 FAMC @F1@
1 FAMS @F2@
0 @C@ INDI
1 NAME Cleo /Spouse/
1 FAMS @F2@
0 @F1@ FAM
1 HUSB @A@
1 CHIL @B@
0 @F2@ FAM
1 HUSB @B@
1 WIFE @C@
0 TRLR
"""

OWNER = "owner-1"


@pytest.fixture
def family_ged() -> str:
    return FAMILY_GED


@pytest.fixture
def abc_ged() -> str:
    return ABC_GED


@pytest.fixture
def owner() -> str:
    return OWNER


@pytest.fixture
def family_file(tmp_path: Path) -> Path:
    path = tmp_path / "family.ged"
    path.write_text(FAMILY_GED, encoding="utf-8")
    return path
