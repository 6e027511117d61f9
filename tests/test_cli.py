"""
Tests for the command-line front end and timeout configuration.
"""

import argparse
import io
import os
import subprocess
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from pkgcache import cli
from pkgcache.config import DEFAULT_LIST_FILENAME, DEFAULT_TIMEOUT, resolve_timeout
from pkgcache.core.index import PackageIndex
from pkgcache.errors import AccessDenied, IncompletePage, PackageInfoError


class TestResolveCommand(unittest.TestCase):
    def test_prefixes(self):
        for word, command in (("d", "download"), ("DOWN", "download"), ("a", "add"),
                              ("Create", "create"), ("h", "help"), ("help", "help")):
            self.assertEqual(cli.resolve_command(word), command, word)

    def test_invalid(self):
        for word in ("", "x", "downloads", "-"):
            with self.assertRaises(argparse.ArgumentTypeError):
                cli.resolve_command(word)

    def test_parser_uses_resolution(self):
        args = cli.build_parser().parse_args(["d", "/cache", "-t", "60", "--no-progress"])
        self.assertEqual(args.command, "download")
        self.assertEqual(args.path, "/cache")
        self.assertEqual(args.timeout, 60)
        self.assertFalse(args.progress)
        self.assertTrue(args.verify_ssl)


class TestResolveTimeout(unittest.TestCase):
    def test_explicit_value(self):
        with patch.dict(os.environ, {"HTTP_TIMEOUT": "30"}):
            self.assertEqual(resolve_timeout(60), 60)

    def test_environment(self):
        with patch.dict(os.environ, {"HTTP_TIMEOUT": "30"}):
            self.assertEqual(resolve_timeout(), 30)
            self.assertEqual(resolve_timeout(1), 30)

    def test_defaults(self):
        for raw in ("", "1", "0", "-5", "soon"):
            with patch.dict(os.environ, {"HTTP_TIMEOUT": raw}):
                self.assertEqual(resolve_timeout(), DEFAULT_TIMEOUT, raw)
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(resolve_timeout(), DEFAULT_TIMEOUT)


class TestResolvePaths(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_default_is_current_directory(self):
        with patch.object(Path, "cwd", return_value=self.dir):
            self.assertEqual(cli.resolve_paths("", "add"),
                             (self.dir, self.dir / DEFAULT_LIST_FILENAME))

    def test_directory(self):
        self.assertEqual(cli.resolve_paths(str(self.dir), "download"),
                         (self.dir, self.dir / DEFAULT_LIST_FILENAME))

    def test_existing_file(self):
        listfile = self.dir / "mylist"
        listfile.write_text("http://m/\n")
        self.assertEqual(cli.resolve_paths(str(listfile), "download"), (self.dir, listfile))

    def test_new_file(self):
        target = self.dir / "newlist"
        self.assertEqual(cli.resolve_paths(str(target), "create"), (self.dir, target))

    def test_download_needs_existing_path(self):
        with self.assertRaises(AccessDenied):
            cli.resolve_paths(str(self.dir / "nothing"), "download")


class TestCommands(unittest.TestCase):
    def test_add_interactive_stops_at_empty_line(self):
        index = PackageIndex()
        stream = io.StringIO("vim-9.1\ncurl\n\nignored\n")
        with patch("builtins.print"):
            self.assertEqual(cli.add_interactive(index, stream), 2)
        self.assertEqual(list(index), ["curl", "vim"])

    def test_add_interactive_end_of_input(self):
        index = PackageIndex()
        with patch("builtins.print"):
            self.assertEqual(cli.add_interactive(index, io.StringIO("git")), 1)
        self.assertEqual(list(index), ["git"])

    def test_create_from_pkg_info(self):
        runner = MagicMock(return_value=SimpleNamespace(stdout=(
            "bash-5.2.26                    GNU Project's Bourne Again SHell\n"
            "curl-8.6.0                     Command line tool and library\n"
            "pkg-1.21.1                     Package manager\n"
        )))
        index = PackageIndex()
        self.assertEqual(cli.create_from_pkg_info(index, runner=runner), 3)
        self.assertEqual(list(index), ["bash", "curl", "pkg"])
        self.assertEqual(runner.call_args.args[0], ["pkg", "info"])

    def test_create_when_pkg_missing(self):
        runner = MagicMock(side_effect=FileNotFoundError("pkg"))
        with self.assertRaises(PackageInfoError):
            cli.create_from_pkg_info(PackageIndex(), runner=runner)

    def test_create_when_pkg_fails(self):
        runner = MagicMock(side_effect=subprocess.CalledProcessError(70, ["pkg", "info"]))
        with self.assertRaises(PackageInfoError):
            cli.create_from_pkg_info(PackageIndex(), runner=runner)

    def test_prompt_retry(self):
        exc = IncompletePage("http://m/")
        with patch("builtins.print"):
            self.assertTrue(cli.prompt_retry(exc, 180, io.StringIO("\n")))
            self.assertTrue(cli.prompt_retry(exc, 180, io.StringIO("yes\n")))
            self.assertFalse(cli.prompt_retry(exc, 180, io.StringIO("n\n")))
            self.assertFalse(cli.prompt_retry(exc, 180, io.StringIO("")))


class TestMain(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.listfile = self.dir / DEFAULT_LIST_FILENAME

    def tearDown(self):
        self._tmp.cleanup()

    def test_help_returns_zero(self):
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            self.assertEqual(cli.main(["help"]), 0)
        self.assertIn("download", out.getvalue())

    def test_invalid_command_exits(self):
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["frobnicate"])
        self.assertEqual(ctx.exception.code, 2)

    def test_create_saves_list(self):
        self.listfile.write_text("http://m/repo\nzsh\n", encoding="utf-8")
        with patch.object(cli, "create_from_pkg_info",
                          side_effect=lambda index: index.add("curl-8.6.0")):
            self.assertEqual(cli.main(["c", str(self.dir)]), 0)
        self.assertEqual(self.listfile.read_text(encoding="utf-8"),
                         "http://m/repo/\ncurl\nzsh\n")

    def test_download_without_url_fails(self):
        self.listfile.write_text("\ncurl\n", encoding="utf-8")
        self.assertEqual(cli.main(["download", str(self.dir), "--no-progress"]), 1)

    def test_download_runs_crawler(self):
        self.listfile.write_text("http://m/repo/\ncurl\n", encoding="utf-8")
        with patch.object(cli, "Crawler") as crawler_cls, \
                patch.object(cli, "HttpFetcher") as fetcher_cls:
            self.assertEqual(cli.main(["d", str(self.dir), "-t", "45"]), 0)

        fetcher_cls.assert_called_once_with(timeout=45, verify_ssl=True)
        crawler_cls.return_value.run.assert_called_once()
        fetcher_cls.return_value.close.assert_called_once()
        self.assertEqual(crawler_cls.call_args.args[1], self.dir)

    def test_failure_still_closes_fetcher(self):
        self.listfile.write_text("http://m/repo/\ncurl\n", encoding="utf-8")
        with patch.object(cli, "Crawler") as crawler_cls, \
                patch.object(cli, "HttpFetcher") as fetcher_cls:
            crawler_cls.return_value.run.side_effect = IncompletePage("http://m/repo/")
            self.assertEqual(cli.main(["d", str(self.dir)]), 1)
        fetcher_cls.return_value.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
