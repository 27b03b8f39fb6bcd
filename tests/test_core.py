import json
import os
import random
from datetime import datetime

import pytest

from photo_repo import config
from photo_repo.core import PhotoRepository
from photo_repo.exceptions import ConfigurationError, FilesystemError
from photo_repo.scanning.filesystem import LocalFilesystem


@pytest.fixture(autouse=True)
def fixed_creation_time(monkeypatch):
    ts = datetime(2015, 3, 4, 5, 6, 7).timestamp()
    monkeypatch.setattr(LocalFilesystem, "creation_time", lambda self, path: ts)


def managed_links(output_dir):
    return {
        name: os.readlink(output_dir / name)
        for name in os.listdir(output_dir)
        if config.MANAGED_LINK_PATTERN.match(name)
    }


def test_missing_output_dir_is_fatal(tmp_path):
    with pytest.raises(FilesystemError):
        PhotoRepository(tmp_path / "missing")


def test_fresh_repository_defaults(output_dir):
    repo = PhotoRepository(output_dir)
    assert repo.ingest_dirs == []
    assert repo.photos == {}
    assert repo.order == "any"
    assert repo.link_type == "symbolic"
    assert repo.safe_to_save


def test_update_links_matching_photos(output_dir, photo_tree):
    repo = PhotoRepository(output_dir)
    repo.add_ingest_dir(photo_tree)
    repo.add_filter(required=["family"], disallowed=["noah"])

    links = repo.update()

    beach = str(photo_tree / "_family_" / "2020-01-01_beach_.jpg")
    assert list(links) == [beach]
    assert managed_links(output_dir) == {"photo_0.jpg": beach}
    assert len(repo.photos) == 5
    assert (output_dir / config.CACHE_FILENAME).exists()


def test_boolean_expression_filter(output_dir, photo_tree):
    repo = PhotoRepository(output_dir)
    repo.add_ingest_dir(photo_tree)
    repo.set_link_type("t")
    repo.add_filter(bool_expr=["vacation | baby nipples"])

    links = repo.update()
    assert sorted(os.path.basename(p) for p in links) == [
        "100_1213 _baby nipples_.JPG", "2021-05-04 12.30.00_vacation_.jpg",
    ]
    assert managed_links(output_dir) == {}


def test_each_photo_yields_filtered_records(output_dir, photo_tree):
    repo = PhotoRepository(output_dir)
    repo.add_ingest_dir(photo_tree)
    repo.set_disallowed(["family", "work"])
    repo.rebuild()

    names = sorted(record.basename for _, record in repo.each_photo())
    assert names == ["100_1213 _baby nipples_.JPG", "2021-05-04 12.30.00_vacation_.jpg"]


def test_state_survives_reload(output_dir, photo_tree):
    repo = PhotoRepository(output_dir)
    repo.add_ingest_dir(photo_tree)
    repo.add_filter(required=["family"], disallowed=["work"], bool_expr=["beach | noah"])
    repo.set_order("random")
    repo.set_link_type("h")
    repo.update()

    reloaded = PhotoRepository(output_dir)
    assert reloaded.state == repo.state
    assert reloaded.link_type == "hard"


def test_cleared_filter_survives_reload(output_dir, photo_tree):
    repo = PhotoRepository(output_dir)
    repo.add_ingest_dir(photo_tree)
    repo.add_filter(required=["family"])
    repo.update()

    repo = PhotoRepository(output_dir)
    repo.set_required([])
    repo.update()

    assert PhotoRepository(output_dir).filter.required == set()


def test_two_updates_are_idempotent(output_dir, photo_tree):
    repo = PhotoRepository(output_dir)
    repo.add_ingest_dir(photo_tree)
    repo.add_filter(disallowed=["work"])
    repo.update()
    cache = output_dir / config.CACHE_FILENAME
    first_doc = cache.read_text()
    first_links = managed_links(output_dir)

    PhotoRepository(output_dir).update()

    assert cache.read_text() == first_doc
    assert managed_links(output_dir) == first_links
    assert len(first_links) == 4


def test_random_order_is_permutation_of_any(output_dir, photo_tree):
    repo = PhotoRepository(output_dir, rng=random.Random(3))
    repo.add_ingest_dir(photo_tree)
    repo.rebuild()

    in_any = repo.selected_photos()
    repo.set_order("random")
    in_random = repo.selected_photos()

    assert sorted(in_random) == sorted(in_any)


def test_invalid_settings_leave_state_unchanged(output_dir):
    repo = PhotoRepository(output_dir)
    repo.add_filter(bool_expr=["a"])

    with pytest.raises(ConfigurationError, match="h, hard"):
        repo.set_link_type("copy")
    with pytest.raises(ConfigurationError):
        repo.set_order("newest")
    with pytest.raises(ConfigurationError, match="'\\$'"):
        repo.add_filter(required=["x"], bool_expr=["a $ b"])

    assert repo.link_type == "symbolic"
    assert repo.order == "any"
    assert repo.filter.required == set()
    assert repo.filter.bool_expr == ["a"]


def test_ingest_dirs_are_unique_and_absolute(output_dir, photo_tree, monkeypatch):
    repo = PhotoRepository(output_dir)
    monkeypatch.chdir(photo_tree.parent)
    repo.add_ingest_dir("src")
    repo.add_ingest_dir(photo_tree)
    assert repo.ingest_dirs == [str(photo_tree)]

    repo.remove_ingest_dir(photo_tree)
    assert repo.ingest_dirs == []


def test_corrupt_cache_blocks_saving_until_dismissed(output_dir, photo_tree):
    cache = output_dir / config.CACHE_FILENAME
    cache.write_text("{broken")

    repo = PhotoRepository(output_dir)
    assert repo.load_error is not None
    assert not repo.safe_to_save

    repo.add_ingest_dir(photo_tree)
    repo.update()
    assert cache.read_text() == "{broken"

    repo.dismiss_load_error()
    repo.save()
    assert json.loads(cache.read_text())["ingest_dirs"] == [str(photo_tree)]


def test_failed_update_does_not_save(output_dir, photo_tree, tmp_path):
    repo = PhotoRepository(output_dir)
    repo.add_ingest_dir(photo_tree)
    repo.update()
    cache = output_dir / config.CACHE_FILENAME
    before = cache.read_text()

    repo.add_ingest_dir(tmp_path / "gone")
    with pytest.raises(FilesystemError):
        repo.update()
    assert cache.read_text() == before


def test_output_dir_inside_ingest_dir_is_not_ingested(photo_tree):
    view = photo_tree / "view"
    view.mkdir()
    repo = PhotoRepository(view)
    repo.add_ingest_dir(photo_tree)
    repo.add_filter(disallowed=["work"])
    first = repo.update()

    second = PhotoRepository(view).update()

    assert len(first) == len(second) == 4
    assert not any(p.startswith(str(view)) for p in second)
    for name, target in managed_links(view).items():
        assert os.path.exists(view / name)
        assert not target.startswith(str(view))
