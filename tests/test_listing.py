import io

from clipbox.listing import PINNED_LIST_LIMIT, option, render_list, write_list

HEADER = (
    "\x00use-hot-keys\x1ftrue\n"
    "\x00keep-selection\x1ftrue\n"
    "\x00markup-rows\x1ftrue\n"
)


def _rows(output: str) -> list[str]:
    return output.splitlines()[4:]


class TestHeader:
    def test_option_line(self):
        assert option("prompt", "Buffer 1") == "\x00prompt\x1fBuffer 1\n"

    def test_header_and_default_prompt(self, storage, make_settings):
        output = render_list(storage, make_settings())
        assert output.startswith(HEADER + "\x00prompt\x1fBuffer 1\n")

    def test_configured_buffer_name(self, storage, make_settings):
        storage.switch_buffer(2)
        settings = make_settings(buffer_names=("Main", "Work", "", "", ""))
        assert "\x00prompt\x1fWork\n" in render_list(storage, settings)

    def test_fallback_for_unnamed_buffer(self, storage, make_settings):
        storage.switch_buffer(3)
        settings = make_settings(buffer_names=("Main", "Work", "", "", ""))
        assert "\x00prompt\x1fBuffer 3\n" in render_list(storage, settings)


class TestRows:
    def test_empty_buffer(self, storage, make_settings):
        storage.switch_buffer(4)
        rows = _rows(render_list(storage, make_settings()))
        assert rows == [" (No entries in buffer 4)\x00info\x1f0"]

    def test_newest_first(self, storage, make_settings):
        ids = [storage.put(f"item {i}".encode()).id for i in range(3)]
        rows = _rows(render_list(storage, make_settings()))
        assert rows == [f" item {i}\x00info\x1f{ids[i]}" for i in (2, 1, 0)]

    def test_only_current_buffer(self, storage, make_settings):
        storage.put(b"one", buffer_id=1)
        storage.put(b"two", buffer_id=2)
        rows = _rows(render_list(storage, make_settings()))
        assert len(rows) == 1
        assert rows[0].startswith(" one")

    def test_explicit_limit(self, storage, make_settings):
        for i in range(10):
            storage.put(f"item {i}".encode())
        assert len(_rows(render_list(storage, make_settings(), limit=4))) == 4

    def test_configured_limit_used_by_default(self, storage, make_settings):
        for i in range(10):
            storage.put(f"item {i}".encode())
        assert len(_rows(render_list(storage, make_settings(limit=6)))) == 6

    def test_non_positive_limit_uses_configured(self, storage, make_settings):
        for i in range(10):
            storage.put(f"item {i}".encode())
        assert len(_rows(render_list(storage, make_settings(limit=3), limit=0))) == 3


class TestPinnedSection:
    def test_pinned_repeated_after_separator(self, storage, make_settings):
        a = storage.put(b"alpha")
        b = storage.put(b"beta")
        storage.toggle_pin(a.id)
        rows = _rows(render_list(storage, make_settings(separator_length=5)))
        assert rows == [
            f" beta\x00info\x1f{b.id}",
            f" alpha\x00info\x1f{a.id}",
            "─────\x00info\x1f0",
            f" alpha\x00info\x1f{a.id}",
        ]

    def test_pinned_section_ignores_limit(self, storage, make_settings):
        pinned = storage.put(b"old pinned")
        storage.toggle_pin(pinned.id)
        for i in range(5):
            storage.put(f"item {i}".encode())
        rows = _rows(render_list(storage, make_settings(separator_length=3), limit=2))
        assert len(rows) == 4
        assert rows[2] == "───\x00info\x1f0"
        assert rows[3].startswith(" old pinned")

    def test_pinned_newest_first(self, storage, make_settings):
        first = storage.put(b"first")
        second = storage.put(b"second")
        storage.toggle_pin(first.id)
        storage.toggle_pin(second.id)
        rows = _rows(render_list(storage, make_settings()))
        assert rows[-2:] == [f" second\x00info\x1f{second.id}", f" first\x00info\x1f{first.id}"]

    def test_no_separator_without_pinned(self, storage, make_settings):
        storage.put(b"alpha")
        assert "\x00info\x1f0" not in render_list(storage, make_settings())

    def test_pinned_limit(self):
        assert PINNED_LIST_LIMIT == 1000


class TestWriteList:
    def test_writes_to_stream(self, storage, make_settings):
        storage.put(b"hello")
        stream = io.StringIO()
        write_list(storage, make_settings(), stream=stream)
        assert stream.getvalue() == render_list(storage, make_settings())
