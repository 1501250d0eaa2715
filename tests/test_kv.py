"""Contract tests shared by every storage backend."""

import shutil
import tempfile
import threading

import pytest

from objgit.kv.disk import Disk
from objgit.kv.files import Files
from objgit.kv.memory import Memory


@pytest.fixture(params=["memory", "files", "disk"])
def backend(request):
    if request.param == "memory":
        yield Memory()
        return
    tmpdir = tempfile.mkdtemp()
    store = Files(tmpdir) if request.param == "files" else Disk(tmpdir)
    yield store
    if isinstance(store, Disk):
        store.close()
    shutil.rmtree(tmpdir, ignore_errors=True)


class TestBackendBasic:
    def test_set_get(self, backend):
        backend.set("k", b"v")
        assert backend.get("k") == b"v"

    def test_get_missing(self, backend):
        assert backend.get("nope") is None

    def test_nested_keys(self, backend):
        backend.set("refs/heads/main", b"abc")
        assert backend.get("refs/heads/main") == b"abc"
        assert "refs/heads/main" in backend
        assert "refs/heads" not in backend

    def test_keys_with_prefix(self, backend):
        backend.set("refs/heads/main", b"1")
        backend.set("refs/heads/dev", b"2")
        backend.set("refs/tags/v1", b"3")
        backend.set("HEAD", b"main")
        assert sorted(backend.keys("refs/heads/")) == [
            "refs/heads/dev",
            "refs/heads/main",
        ]
        assert set(backend.keys()) == {
            "refs/heads/main",
            "refs/heads/dev",
            "refs/tags/v1",
            "HEAD",
        }

    def test_set_many_get_many(self, backend):
        backend.set_many(**{"a": b"1", "x/b": b"2", "c": b"3"})
        result = backend.get_many("a", "x/b", "missing")
        assert result == {"a": b"1", "x/b": b"2"}

    def test_items(self, backend):
        backend.set("a", b"1")
        backend.set("d/b", b"2")
        assert dict(backend.items()) == {"a": b"1", "d/b": b"2"}

    def test_overwrite(self, backend):
        backend.set("k", b"old")
        backend.set("k", b"new")
        assert backend.get("k") == b"new"

    def test_empty_value(self, backend):
        backend.set("k", b"")
        assert backend.get("k") == b""
        assert "k" in backend

    def test_type_error_on_non_bytes(self, backend):
        with pytest.raises(TypeError, match="Expected bytes"):
            backend.set("k", "not bytes")  # type: ignore

    @pytest.mark.parametrize("key", ["", "/abs", "a/../b", "a//b", "./a"])
    def test_invalid_keys(self, backend, key):
        with pytest.raises(ValueError, match="Invalid key"):
            backend.set(key, b"v")

    def test_clear(self, backend):
        backend.set_many(**{"a": b"1", "d/b": b"2"})
        backend.clear()
        assert backend.get("a") is None
        assert list(backend.keys()) == []


class TestBackendRemove:
    def test_remove(self, backend):
        backend.set("k", b"v")
        backend.remove("k")
        assert backend.get("k") is None

    def test_remove_missing(self, backend):
        backend.remove("nope")  # should not raise

    def test_remove_many(self, backend):
        backend.set_many(a=b"1", b=b"2", c=b"3")
        backend.remove_many("a", "c", "missing")
        assert backend.get("a") is None
        assert backend.get("b") == b"2"
        assert backend.get("c") is None


class TestBackendCAS:
    def test_cas_success(self, backend):
        backend.set("k", b"old")
        assert backend.cas("k", b"new", expected=b"old")
        assert backend.get("k") == b"new"

    def test_cas_failure(self, backend):
        backend.set("k", b"old")
        assert not backend.cas("k", b"new", expected=b"wrong")
        assert backend.get("k") == b"old"

    def test_cas_create(self, backend):
        assert backend.cas("k", b"val", expected=None)
        assert backend.get("k") == b"val"

    def test_cas_create_fails_if_exists(self, backend):
        backend.set("k", b"existing")
        assert not backend.cas("k", b"new", expected=None)
        assert backend.get("k") == b"existing"

    def test_cas_thread_safety(self, backend):
        backend.set("counter", b"0")
        wins = []

        def try_cas(thread_id):
            if backend.cas("counter", f"thread-{thread_id}".encode(), expected=b"0"):
                wins.append(thread_id)

        threads = [threading.Thread(target=try_cas, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(wins) == 1
