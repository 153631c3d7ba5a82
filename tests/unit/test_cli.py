"""
Tests for the sync CLI exit codes.
"""

from unittest.mock import MagicMock

import pytest

from gallery.sync.errors import ConfigError
from gallery.sync.orchestrator import SyncStats
from scripts import sync_videos


@pytest.fixture
def orchestrator(monkeypatch, settings):
    instance = MagicMock()
    instance.run.return_value = SyncStats(discovered=1, published=1)
    monkeypatch.setattr(sync_videos, "get_settings", lambda: settings)
    monkeypatch.setattr(sync_videos, "SyncOrchestrator", lambda settings: instance)
    return instance


class TestMain:
    """Tests for sync_videos.main()."""

    def test_help_exits_cleanly(self):
        with pytest.raises(SystemExit) as exc:
            sync_videos.main(["--help"])
        assert exc.value.code == 0

    def test_sync_success(self, orchestrator, capsys):
        assert sync_videos.main([]) == 0

        orchestrator.run.assert_called_once_with(cleanup=False)
        assert "SYNC COMPLETE" in capsys.readouterr().out

    def test_cleanup_flag(self, orchestrator):
        assert sync_videos.main(["--cleanup"]) == 0

        orchestrator.run.assert_called_once_with(cleanup=True)

    def test_missing_ffmpeg_exits_nonzero(self, orchestrator, capsys):
        orchestrator.check_dependencies.side_effect = ConfigError("ffmpeg not found")

        assert sync_videos.main([]) == 1

        orchestrator.run.assert_not_called()
        assert "ffmpeg not found" in capsys.readouterr().out

    def test_unexpected_failure_still_exits_zero(self, orchestrator, capsys):
        orchestrator.run.side_effect = RuntimeError("disk full")

        assert sync_videos.main([]) == 0

        assert "Sync failed: disk full" in capsys.readouterr().out

    def test_errors_are_listed(self, orchestrator, capsys):
        orchestrator.run.return_value = SyncStats(
            failed=1, errors=["Preview generation failed for d.webm"]
        )

        assert sync_videos.main([]) == 0

        assert "Preview generation failed for d.webm" in capsys.readouterr().out

    def test_show_config(self, orchestrator, capsys):
        assert sync_videos.main(["--config"]) == 0

        out = capsys.readouterr().out
        assert "None (demo mode)" in out
        orchestrator.run.assert_not_called()
