"""Tests for the sync engine."""

import logging
from unittest.mock import Mock, patch

import pytest
from conftest import make_local_tree, snapshot

from dirmirror.exceptions import (
    LocalDeleteError,
    LocalListError,
    RemoteDownloadError,
    RemoteListError,
)
from dirmirror.models import FileInfo
from dirmirror.output import OutputFormatter
from dirmirror.sync import MirrorPair, SyncEngine


class FakeClock:
    """Monotonic clock advanced only by sleeping or by simulated work."""

    def __init__(self):
        self.now = 100.0
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def engine(remote, quiet_output):
    """Create a sync engine over the in-memory remote."""
    return SyncEngine(remote, remote, quiet_output)


@pytest.fixture
def pair(local_root):
    return MirrorPair(local=local_root, remote="/", interval=10)


class TestSyncOnce:
    """Tests for a single synchronization pass."""

    def test_downloads_into_empty_directory(self, engine, remote, pair, local_root):
        """New files and nested directories are materialized."""
        remote.add_file("/a", 10)
        remote.add_dir("/b")
        remote.add_file("/b/c", 5)

        stats = engine.sync_once(pair)

        assert snapshot(local_root) == {"a": 10, "b": -1, "b/c": 5}
        assert stats == {"deletes_local": 0, "downloads": 2, "directories": 1, "bytes": 15}

    def test_size_change_replaces_file(self, engine, remote, pair, local_root):
        """A changed file is removed and fetched again."""
        make_local_tree(local_root, {"x": 8})
        remote.add_file("/x", 9)

        stats = engine.sync_once(pair)

        assert snapshot(local_root) == {"x": 9}
        assert stats["deletes_local"] == 1
        assert stats["downloads"] == 1

    def test_second_pass_is_idempotent(self, engine, remote, pair, local_root):
        """Without remote changes the second agenda is empty."""
        make_local_tree(local_root, {"stale": 1, "docs/old": 2})
        remote.add_file("/docs/readme", 4)
        remote.add_dir("/empty")
        remote.add_file("/tree/a/b/c", 3)

        engine.sync_once(pair)
        agenda = engine.compute_agenda(pair)

        assert agenda.to_delete == []
        assert agenda.to_download == []
        assert snapshot(local_root) == {
            "docs": -1,
            "docs/readme": 4,
            "empty": -1,
            "tree": -1,
            "tree/a": -1,
            "tree/a/b": -1,
            "tree/a/b/c": 3,
        }

    def test_type_change_file_to_directory(self, engine, remote, pair, local_root):
        """The old file is gone before the directory is created."""
        make_local_tree(local_root, {"item": 4})
        remote.add_file("/item/inner", 2)

        engine.sync_once(pair)

        assert snapshot(local_root) == {"item": -1, "item/inner": 2}

    def test_type_change_directory_to_file(self, engine, remote, pair, local_root):
        """The old directory and its contents are removed first."""
        make_local_tree(local_root, {"item/inner/deep": 4})
        remote.add_file("/item", 7)

        engine.sync_once(pair)

        assert snapshot(local_root) == {"item": 7}

    def test_deletions_precede_downloads(self, remote, quiet_output, pair, local_root):
        """Every deletion is applied before the first download."""
        make_local_tree(local_root, {"a": 1, "z": 1})
        remote.add_file("/a", 2)
        remote.add_file("/z", 2)
        events = []
        remover = Mock(side_effect=lambda path: events.append(("delete", path.name)))
        downloader = Mock()
        downloader.download.side_effect = lambda remote_path, local_path: events.append(
            ("download", local_path.name)
        )
        engine = SyncEngine(remote, downloader, quiet_output, remover=remover)

        engine.sync_once(pair)

        assert events == [
            ("delete", "a"),
            ("delete", "z"),
            ("download", "a"),
            ("download", "z"),
        ]

    def test_remote_list_failure_applies_nothing(self, engine, remote, pair, local_root):
        """A failed diff leaves the local tree untouched."""
        make_local_tree(local_root, {"stale": 1, "sub/": 0})
        remote.add_file("/new", 3)
        remote.add_dir("/sub")
        remote.fail_list.add("/sub")

        with pytest.raises(RemoteListError):
            engine.sync_once(pair)

        assert snapshot(local_root) == {"stale": 1, "sub": -1}
        assert remote.download_calls == []

    def test_local_list_failure(self, engine, remote, tmp_path):
        """A missing local root fails the pass."""
        pair = MirrorPair(local=tmp_path / "missing", remote="/", interval=1)
        with pytest.raises(LocalListError):
            engine.sync_once(pair)

    def test_delete_failure_aborts_pass(self, remote, quiet_output, pair, local_root):
        """The first failed deletion stops the pass before any download."""
        make_local_tree(local_root, {"a": 1, "b": 1})
        remote.add_file("/c", 1)
        remover = Mock(side_effect=LocalDeleteError(local_root / "a", "busy"))
        engine = SyncEngine(remote, remote, quiet_output, remover=remover)

        with pytest.raises(LocalDeleteError):
            engine.sync_once(pair)

        remover.assert_called_once_with(local_root / "a")
        assert remote.download_calls == []

    def test_download_failure_aborts_remaining(self, engine, remote, pair, local_root):
        """A failed download stops the rest of the agenda."""
        remote.add_file("/a", 1)
        remote.add_file("/b", 1)
        remote.add_file("/c", 1)
        remote.fail_download.add("/b")

        with pytest.raises(RemoteDownloadError):
            engine.sync_once(pair)

        assert [path for path, _ in remote.download_calls] == ["/a", "/b"]
        assert snapshot(local_root) == {"a": 1}

    def test_dry_run_changes_nothing(self, engine, remote, pair, local_root):
        """A dry run reports the plan without touching files."""
        make_local_tree(local_root, {"stale": 1})
        remote.add_file("/a", 10)
        remote.add_dir("/b")

        stats = engine.sync_once(pair, dry_run=True)

        assert stats == {"deletes_local": 1, "downloads": 2, "directories": 0, "bytes": 10}
        assert snapshot(local_root) == {"stale": 1}
        assert remote.download_calls == []

    def test_plan_and_summary_are_displayed(self, remote, pair):
        """Without quiet mode the plan and summary are shown."""
        remote.add_file("/a", 10)
        output = Mock(spec=OutputFormatter)
        output.quiet = False
        output.json_output = True  # keeps the progress bar off
        engine = SyncEngine(remote, remote, output)

        engine.sync_once(pair)

        messages = [call.args[0] for call in output.info.call_args_list]
        assert "Sync plan:" in messages
        assert any("Download: 1 item(s)" in m for m in messages)
        output.success.assert_called_once_with("Sync complete!")


class TestDownload:
    """Tests for recursive materialization of remote entries."""

    def test_file_is_delegated(self, remote, quiet_output, tmp_path):
        """Files go straight to the downloader."""
        downloader = Mock()
        engine = SyncEngine(remote, downloader, quiet_output)

        engine.download(FileInfo(False, "/f", 3), tmp_path / "f")

        downloader.download.assert_called_once_with("/f", tmp_path / "f")

    def test_nested_directory(self, engine, remote, tmp_path):
        """Every descendant is fetched with matching sizes."""
        remote.add_file("/d/one", 1)
        remote.add_file("/d/sub/two", 2)
        remote.add_dir("/d/sub/empty")

        engine.download(remote.find("/d"), tmp_path / "d")

        assert snapshot(tmp_path / "d") == {
            "one": 1,
            "sub": -1,
            "sub/empty": -1,
            "sub/two": 2,
        }

    def test_listing_failure_inside_directory(self, engine, remote, tmp_path):
        """A listing error during recursion propagates."""
        remote.add_file("/d/sub/two", 2)
        remote.fail_list.add("/d/sub")

        with pytest.raises(RemoteListError):
            engine.download(remote.find("/d"), tmp_path / "d")

    def test_directory_blocked_by_file(self, engine, remote, tmp_path):
        """A file in the way of a new directory is reported."""
        remote.add_dir("/d")
        (tmp_path / "d").write_text("in the way")

        with pytest.raises(RemoteDownloadError, match="not a directory"):
            engine.download(remote.find("/d"), tmp_path / "d")


class TestRunForever:
    """Tests for the synchronization loop."""

    def _engine(self, remote, quiet_output, clock):
        return SyncEngine(
            remote, remote, quiet_output, sleep=clock.sleep, clock=clock.time
        )

    def test_interval_measured_from_pass_start(self, remote, quiet_output, pair):
        """A 3 second pass with a 10 second interval sleeps 7 seconds."""
        clock = FakeClock()
        engine = self._engine(remote, quiet_output, clock)

        def slow_pass(p):
            clock.now += 3

        with patch.object(engine, "sync_once", side_effect=slow_pass):
            passes = engine.run_forever(pair, max_passes=3)

        assert passes == 3
        assert clock.sleeps == [7, 7]

    def test_overrunning_pass_starts_next_immediately(self, remote, quiet_output, pair):
        """No sleep happens when a pass takes longer than the interval."""
        clock = FakeClock()
        engine = self._engine(remote, quiet_output, clock)

        def slow_pass(p):
            clock.now += 15

        with patch.object(engine, "sync_once", side_effect=slow_pass):
            engine.run_forever(pair, max_passes=2)

        assert clock.sleeps == []

    def test_failure_stops_loop(self, remote, quiet_output, pair):
        """The first failed pass ends the loop with its error."""
        clock = FakeClock()
        engine = self._engine(remote, quiet_output, clock)
        error = RemoteListError("/", "timeout")

        with patch.object(engine, "sync_once", side_effect=[None, None, error]) as mock:
            with pytest.raises(RemoteListError):
                engine.run_forever(pair)

        assert mock.call_count == 3
        assert clock.sleeps == [10, 10]

    def test_failure_not_logged_as_error(self, remote, quiet_output, pair, caplog):
        """A failed pass is left to the caller to report."""
        engine = self._engine(remote, quiet_output, FakeClock())
        remote.fail_list.add(pair.remote)

        with caplog.at_level(logging.DEBUG, logger="dirmirror"):
            with pytest.raises(RemoteListError):
                engine.run_forever(pair)

        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert "Pass 1 failed" in caplog.text

    def test_single_pass(self, remote, quiet_output, pair, local_root):
        """max_passes=1 runs once without sleeping."""
        remote.add_file("/a", 4)
        clock = FakeClock()
        engine = self._engine(remote, quiet_output, clock)

        assert engine.run_forever(pair, max_passes=1) == 1
        assert snapshot(local_root) == {"a": 4}
        assert clock.sleeps == []
