"""
test_namer — content-addressed object paths.

The hash is a cache key: accidental collisions are improbable, it is not
adversarially resistant. These tests only check determinism and that
every kind of argument change moves the object.
"""
import re
from itertools import permutations
from pathlib import Path

from native_make.core.namer import invocation_hash, object_path, sanitize
from native_make.policy.profile import Profile

BASE = ["-std=c11", "-fPIC", "-I", ".", "-fvisibility=hidden", "-c", "src/a.c"]


def _path(args, stem="src/a.c", namespace="c"):
    return object_path(args, stem, namespace, Path("target"), Profile.default())


class TestDeterminism:

    def test_same_args_same_path(self):
        assert _path(list(BASE)) == _path(list(BASE))

    def test_hash_is_128_bit_hex(self):
        digest = invocation_hash(BASE)
        assert re.fullmatch(r"[0-9a-f]{32}", digest)

    def test_layout(self):
        p = _path(BASE)
        assert p.parent == Path("target/c")
        assert re.fullmatch(r"src_a_c_[0-9a-f]{32}\.o", p.name)

    def test_generated_namespace(self):
        p = _path(BASE, stem="main", namespace="zz")
        assert p.parent == Path("target/zz")
        assert p.name.startswith("main_")


class TestDistinctness:

    def test_flag_permutations_distinct(self):
        """Reordering flags yields a different object path."""
        flags = ["-O2", "-g", "-DNDEBUG"]
        paths = {_path(list(p) + ["-c", "a.c"]) for p in permutations(flags)}
        assert len(paths) == 6

    def test_source_path_variation(self):
        a = _path(BASE[:-1] + ["src/a.c"], stem="src/a.c")
        b = _path(BASE[:-1] + ["src/b.c"], stem="src/b.c")
        assert a != b

    def test_single_flag_change(self):
        changed = ["-std=c99"] + BASE[1:]
        assert _path(BASE) != _path(changed)

    def test_same_stem_different_hash(self):
        """Same sanitized name, different args: only the hash tells them apart."""
        a = _path(BASE + ["-O0"])
        b = _path(BASE + ["-O3"])
        assert a.name.split("_")[:3] == b.name.split("_")[:3]
        assert a != b


class TestSanitize:

    def test_non_alnum_replaced(self):
        assert sanitize("./src/my-file.c") == "__src_my_file_c"

    def test_alnum_kept(self):
        assert sanitize("abc123") == "abc123"

    def test_unicode_letters_kept(self):
        assert sanitize("café.c") == "café_c"
