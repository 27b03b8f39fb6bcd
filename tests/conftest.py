import pytest
from pathlib import Path


@pytest.fixture
def output_dir(tmp_path):
    """An existing, empty output directory."""
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def photo_tree(tmp_path):
    """
    A small source tree:

        src/2021-05-04 12.30.00_vacation_.jpg
        src/100_1213 _baby nipples_.JPG
        src/_family_/2020-01-01_beach_.jpg
        src/_family_/_noah_ trip/IMG_1.png
        src/_work_/2019-02-03_desk_.jpg
    """
    root = tmp_path / "src"
    family = root / "_family_"
    trip = family / "_noah_ trip"
    work = root / "_work_"
    for d in (trip, work):
        d.mkdir(parents=True)

    files = [
        root / "2021-05-04 12.30.00_vacation_.jpg",
        root / "100_1213 _baby nipples_.JPG",
        family / "2020-01-01_beach_.jpg",
        trip / "IMG_1.png",
        work / "2019-02-03_desk_.jpg",
    ]
    for f in files:
        f.write_bytes(b"img:" + f.name.encode("utf-8"))
    return root
