"""
Tests for package-name normalisation and the PackageIndex.
"""

import random
import string
import tempfile
import unittest
from pathlib import Path

from pkgcache.config import INITIAL_CAPACITY, MAX_NAME_LENGTH
from pkgcache.core.index import PackageIndex, normalize_name
from pkgcache.errors import AccessDenied, ResourceExhaustion


class _FailingList(list):
    """Slot storage whose growth always runs out of memory."""

    def extend(self, items):
        raise MemoryError


class TestNormalizeName(unittest.TestCase):
    def test_version_suffix_stripped(self):
        self.assertEqual(normalize_name("curl-8.5.0"), "curl")

    def test_dash_without_digit_kept(self):
        self.assertEqual(normalize_name("py39-pip-23.0"), "py39-pip")

    def test_whitespace_ends_name(self):
        self.assertEqual(normalize_name("bash-5.2.21  GNU Project's Bourne Again SHell"), "bash")
        self.assertEqual(normalize_name("vim\n"), "vim")
        self.assertEqual(normalize_name("nano\tEditor"), "nano")

    def test_first_terminator_wins(self):
        self.assertEqual(normalize_name("foo bar-1"), "foo")
        self.assertEqual(normalize_name("foo-1 bar"), "foo")

    def test_filename_keeps_extension_without_version(self):
        self.assertEqual(normalize_name("foo.pkg"), "foo.pkg")
        self.assertEqual(normalize_name("foo-1.2.txz"), "foo")

    def test_length_cap(self):
        self.assertEqual(len(normalize_name("x" * 200)), MAX_NAME_LENGTH)

    def test_empty_results(self):
        self.assertEqual(normalize_name(""), "")
        self.assertEqual(normalize_name(None), "")
        self.assertEqual(normalize_name("-1.0"), "")
        self.assertEqual(normalize_name("   leading"), "")

    def test_properties_hold_for_random_input(self):
        rng = random.Random(1234)
        alphabet = string.ascii_letters + string.digits + "-_. \t"
        for _ in range(500):
            raw = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 80)))
            name = normalize_name(raw)
            self.assertLessEqual(len(name), MAX_NAME_LENGTH)
            self.assertFalse(any(c.isspace() for c in name), repr(raw))
            for i in range(len(name) - 1):
                self.assertFalse(name[i] == "-" and name[i + 1].isdigit(), repr(raw))


class TestPackageIndexAdd(unittest.TestCase):
    def test_add_new_then_existing(self):
        index = PackageIndex()
        self.assertTrue(index.add("curl-8.5.0"))
        self.assertEqual((index.stat_new(), index.stat_existing()), (1, 0))
        self.assertFalse(index.add("curl"))
        self.assertEqual((index.stat_new(), index.stat_existing()), (1, 1))

    def test_empty_name_is_ignored(self):
        index = PackageIndex()
        self.assertIsNone(index.add(""))
        self.assertIsNone(index.add("\n"))
        self.assertEqual(len(index), 0)
        self.assertEqual((index.stat_new(), index.stat_existing()), (0, 0))

    def test_iteration_is_sorted_and_unique(self):
        rng = random.Random(42)
        names = [f"pkg{rng.randint(0, 400)}" for _ in range(1000)]
        index = PackageIndex()
        for name in names:
            index.add(name)
        self.assertEqual(list(index), sorted(set(names)))
        self.assertEqual(index.stat_new(), len(set(names)))
        self.assertEqual(index.stat_existing(), len(names) - len(set(names)))

    def test_sorted_and_reverse_input(self):
        names = [f"p{i:04d}" for i in range(300)]
        for ordering in (names, list(reversed(names))):
            index = PackageIndex()
            for name in ordering:
                index.add(name)
            self.assertEqual(list(index.iterate()), names)

    def test_bytewise_ordering(self):
        index = PackageIndex()
        for name in ("zsh", "Zope", "apache24", "_internal", "a"):
            index.add(name)
        self.assertEqual(list(index), ["Zope", "_internal", "a", "apache24", "zsh"])

    def test_contains_normalises(self):
        index = PackageIndex()
        index.add("gettext-runtime-0.22.5")
        self.assertTrue(index.contains("gettext-runtime"))
        self.assertTrue(index.contains("gettext-runtime-0.21.txz"))
        self.assertIn("gettext-runtime-0.22.5.pkg", index)
        self.assertFalse(index.contains("gettext"))
        self.assertFalse(index.contains(""))
        self.assertNotIn(42, index)

    def test_contains_does_not_count(self):
        index = PackageIndex()
        index.add("vim")
        index.contains("vim")
        self.assertEqual((index.stat_new(), index.stat_existing()), (1, 0))

    def test_capacity_starts_at_initial_and_doubles(self):
        index = PackageIndex()
        self.assertEqual(index.capacity, 0)
        index.add("a")
        self.assertEqual(index.capacity, INITIAL_CAPACITY)
        for i in range(INITIAL_CAPACITY):
            index.add(f"n{i:03d}")
        self.assertEqual(index.capacity, INITIAL_CAPACITY * 2)
        self.assertEqual(len(index), INITIAL_CAPACITY + 1)

    def test_allocation_failure_poisons_index(self):
        index = PackageIndex()
        index._slots = _FailingList()
        with self.assertRaises(ResourceExhaustion):
            index.add("first")
        with self.assertRaises(ResourceExhaustion):
            index.add("second")

    def test_iteration_invalidated_by_insert(self):
        index = PackageIndex()
        for name in ("a", "b", "c"):
            index.add(name)
        it = index.iterate()
        self.assertEqual(next(it), "a")
        index.add("aa")
        with self.assertRaises(RuntimeError):
            next(it)
        self.assertEqual(list(index.iterate()), ["a", "aa", "b", "c"])

    def test_iteration_survives_duplicate_add(self):
        index = PackageIndex()
        for name in ("a", "b"):
            index.add(name)
        it = index.iterate()
        next(it)
        index.add("a")
        self.assertEqual(list(it), ["b"])

    def test_iteration_is_restartable(self):
        index = PackageIndex()
        index.add("x")
        self.assertEqual(list(index), ["x"])
        self.assertEqual(list(index), ["x"])


class TestPackageIndexPersistence(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_load_appends_slash_and_resets_counters(self):
        path = self.dir / "list"
        path.write_text("http://pkg.FreeBSD.org/FreeBSD:14:amd64/latest\n"
                        "vim-9.0\ncurl\n\ncurl\n", encoding="utf-8")
        index = PackageIndex()
        self.assertTrue(index.load(path))
        self.assertEqual(index.repo_url, "http://pkg.FreeBSD.org/FreeBSD:14:amd64/latest/")
        self.assertEqual(list(index), ["curl", "vim"])
        self.assertEqual((index.stat_new(), index.stat_existing()), (0, 0))

    def test_load_keeps_existing_slash(self):
        path = self.dir / "list"
        path.write_text("http://mirror/repo/\n", encoding="utf-8")
        index = PackageIndex()
        index.load(path)
        self.assertEqual(index.repo_url, "http://mirror/repo/")
        self.assertEqual(len(index), 0)

    def test_load_empty_url_line(self):
        path = self.dir / "list"
        path.write_text("\nvim\n", encoding="utf-8")
        index = PackageIndex()
        index.load(path)
        self.assertEqual(index.repo_url, "")
        self.assertEqual(list(index), ["vim"])

    def test_load_missing_file(self):
        index = PackageIndex()
        self.assertFalse(index.load(self.dir / "absent"))
        self.assertEqual(len(index), 0)

    def test_load_directory_is_access_denied(self):
        with self.assertRaises(AccessDenied):
            PackageIndex().load(self.dir)

    def test_save_format(self):
        index = PackageIndex("http://mirror/repo")
        for name in ("zsh-5.9", "bash", "curl"):
            index.add(name)
        path = self.dir / "list"
        index.save(path)
        self.assertEqual(path.read_text(encoding="utf-8"),
                         "http://mirror/repo/\nbash\ncurl\nzsh\n")

    def test_round_trip(self):
        index = PackageIndex("https://pkg.example.org/FreeBSD:14:amd64/quarterly/")
        for name in ("perl5-5.36", "python311", "git", "perl5", "gmake-4.4"):
            index.add(name)
        path = self.dir / "list"
        index.save(path)
        reloaded = PackageIndex()
        reloaded.load(path)
        self.assertEqual(reloaded.repo_url, index.repo_url)
        self.assertEqual(list(reloaded), list(index))
        reloaded.save(self.dir / "again")
        self.assertEqual((self.dir / "again").read_bytes(), path.read_bytes())

    def test_save_into_missing_directory_is_access_denied(self):
        with self.assertRaises(AccessDenied):
            PackageIndex("http://x/").save(self.dir / "missing" / "list")


if __name__ == "__main__":
    unittest.main()
