"""Unit tests for recursive remove and walk."""

from unittest.mock import Mock

import pytest

from termxfer.modules.file_transfer.exceptions import DirStatFailedError, FileReadonlyError
from termxfer.modules.file_transfer.fs_entry import FsDirectory, FsFile
from termxfer.modules.file_transfer.recursive import remove_entry, walk


def _file(path):
    return FsFile(name=path.rsplit("/", 1)[-1], abs_path=path, size=0)


def _dir(path, symlink=None, link=False):
    return FsDirectory(name=path.rsplit("/", 1)[-1], abs_path=path, symlink=symlink, link=link)


TREE = {
    "/t": [_dir("/t/a"), _file("/t/b")],
    "/t/a": [_file("/t/a/1"), _file("/t/a/2")],
}


class TestRemoveEntry:
    """Tests for remove_entry()."""

    def test_file_unlinked(self):
        """Test a file is unlinked directly."""
        unlink, rmdir = Mock(), Mock()

        remove_entry(_file("/x"), TREE.get, unlink, rmdir)

        unlink.assert_called_once_with("/x")
        rmdir.assert_not_called()

    def test_children_before_parent(self):
        """Test depth-first, children-before-parent order."""
        order = []

        remove_entry(
            _dir("/t"),
            TREE.get,
            lambda p: order.append(("unlink", p)),
            lambda p: order.append(("rmdir", p)),
        )

        assert order == [
            ("unlink", "/t/a/1"),
            ("unlink", "/t/a/2"),
            ("rmdir", "/t/a"),
            ("unlink", "/t/b"),
            ("rmdir", "/t"),
        ]

    def test_first_failure_aborts(self):
        """Test the first failing child stops everything, parent untouched."""
        unlink = Mock(side_effect=[None, OSError("busy"), None])
        rmdir = Mock()

        with pytest.raises(FileReadonlyError, match="/t/a/2"):
            remove_entry(_dir("/t"), TREE.get, unlink, rmdir)

        assert unlink.call_count == 2
        rmdir.assert_not_called()

    def test_rmdir_failure_is_readonly(self):
        """Test failing to remove the emptied directory is FileReadonlyError."""
        rmdir = Mock(side_effect=OSError("denied"))

        with pytest.raises(FileReadonlyError):
            remove_entry(_dir("/empty"), lambda p: [], Mock(), rmdir)

    def test_listing_error_propagates_unchanged(self):
        """Test list errors surface as they are."""
        error = DirStatFailedError("cannot list")

        with pytest.raises(DirStatFailedError) as exc_info:
            remove_entry(_dir("/t"), Mock(side_effect=error), Mock(), Mock())

        assert exc_info.value is error

    def test_symlinked_directory_is_unlinked(self):
        """Test a link to a directory is removed without touching its target."""
        list_dir, unlink, rmdir = Mock(), Mock(), Mock()

        remove_entry(_dir("/link", symlink="/t"), list_dir, unlink, rmdir)

        unlink.assert_called_once_with("/link")
        list_dir.assert_not_called()
        rmdir.assert_not_called()

    def test_link_with_unknown_target_is_unlinked(self):
        """Test a directory link whose target could not be read is never followed."""
        list_dir, unlink, rmdir = Mock(return_value=[_file("/link/precious")]), Mock(), Mock()

        remove_entry(_dir("/link", link=True), list_dir, unlink, rmdir)

        unlink.assert_called_once_with("/link")
        list_dir.assert_not_called()
        rmdir.assert_not_called()


class TestWalk:
    """Tests for walk()."""

    def test_preorder_with_depth(self):
        """Test pre-order traversal with depths."""
        walked = [(depth, entry.abs_path) for depth, entry in walk(_dir("/t"), TREE.get)]

        assert walked == [(0, "/t"), (1, "/t/a"), (2, "/t/a/1"), (2, "/t/a/2"), (1, "/t/b")]

    def test_does_not_follow_symlinks(self):
        """Test symlinked directories are yielded but not entered."""
        list_dir = Mock()

        walked = list(walk(_dir("/link", symlink="/t"), list_dir))

        assert len(walked) == 1
        list_dir.assert_not_called()

    def test_does_not_follow_link_with_unknown_target(self):
        """Test a directory link without a readable target is not entered."""
        list_dir = Mock()

        walked = list(walk(_dir("/link", link=True), list_dir))

        assert len(walked) == 1
        list_dir.assert_not_called()
