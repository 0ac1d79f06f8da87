"""
End-to-End Tests for the Demonstration Script

Runs demo.main() against a local TLE file so no network access is needed.

Run with:
    python -m pytest tests/test_demo.py -v
"""

import os
import tempfile
import unittest
from unittest import mock

import config
import demo
from orbit_tracker.element_source import CatalogFetchError
from orbit_tracker.tle_parser import ElementRecord

ISS = config.SAMPLE_ISS_TLE
ISS_EPOCH = "2023-09-16T13:49:00"


class TestDemo(unittest.TestCase):
    """Test suite for demo.main()."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.source = os.path.join(self.tmpdir.name, "active.tle")
        self.cache = os.path.join(self.tmpdir.name, "cache", "tle_cache.json")
        with open(self.source, "w", encoding="utf-8") as fh:
            fh.write(f"{ISS['name']}\n{ISS['line1']}\n{ISS['line2']}\n")

        patcher = mock.patch("demo.configure_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _argv(self, *extra):
        return [
            "--source-file", self.source,
            "--cache-file", self.cache,
            "--start", ISS_EPOCH,
            "--ticks", "2",
            "--workers", "1",
            *extra,
        ]

    def test_run_from_file(self):
        """A full run succeeds and writes the element cache."""
        self.assertEqual(demo.main(self._argv("--show", "ISS", "--filter", "zarya")), 0)
        self.assertTrue(os.path.isfile(self.cache))

    def test_plot(self):
        output = os.path.join(self.tmpdir.name, "scene.png")

        self.assertEqual(demo.main(self._argv("--plot", output)), 0)
        self.assertTrue(os.path.isfile(output))
        self.assertGreater(os.path.getsize(output), 0)

    def test_missing_source_runs_empty(self):
        """Without data or cache the demo continues with zero objects."""
        argv = ["--source-file", os.path.join(self.tmpdir.name, "missing.tle"), "--cache-file", self.cache]

        with self.assertLogs("demo", level="ERROR"):
            self.assertEqual(demo.main(argv), 0)

    def test_parse_args_defaults(self):
        args = demo.parse_args([])

        self.assertEqual(args.catalog, config.DEFAULT_CATALOG)
        self.assertEqual(args.viewer, list(config.DEFAULT_VIEWER_POSITION))
        self.assertFalse(args.refresh)


class TestLoadCatalog(unittest.TestCase):
    """Test suite for the degraded-mode fallback."""

    def test_fetch_failure_uses_last_good(self):
        record = ElementRecord(name=ISS["name"], line1=ISS["line1"], line2=ISS["line2"])
        loader = mock.Mock()
        loader.load_catalog.side_effect = CatalogFetchError("timeout")
        loader.load_last_good.return_value = {record.name: record}

        with self.assertLogs("demo", level="ERROR"):
            catalog = demo.load_catalog(loader, refresh=False)

        self.assertEqual(list(catalog), [ISS["name"]])
        loader.refresh.assert_not_called()

    def test_refresh_path(self):
        loader = mock.Mock()
        loader.refresh.return_value = {}

        self.assertEqual(demo.load_catalog(loader, refresh=True), {})
        loader.load_catalog.assert_not_called()


if __name__ == "__main__":
    unittest.main()
