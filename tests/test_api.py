"""Tests for the TopicHelp facade used by the UI layer."""

import os

import pytest

from topic_help.api import TopicHelp, word_at
from topic_help.core.completion import CompletionState
from topic_help.core.config import HelpConfig, SourceGroup, save_config


@pytest.fixture
def docs(tmp_path):
    """An HTML manual for python mode and an index that applies everywhere."""
    html = tmp_path / "lib.html"
    html.write_text(
        '<a href="#open">open</a> <a href="#os.path">os.path</a>\n'
        '<a href="save.html">Save</a>\n'
    )
    idx = tmp_path / "general.idx"
    idx.write_text("Save\thttp://g/save\nSearch\thttp://g/search\n")
    return {"root": tmp_path, "html": str(html), "idx": str(idx)}


@pytest.fixture
def config(docs):
    return HelpConfig(sources=[
        SourceGroup(files=[(docs["html"], "http://x/")], modes=["python"]),
        SourceGroup(files=[(docs["idx"], None)], modes=[]),
    ])


@pytest.fixture
def help_index(config):
    messages = []
    h = TopicHelp(status_callback=messages.append)
    h.messages = messages
    h.load(config)
    return h


class TestLoad:
    def test_load_reports_summary(self, help_index):
        assert help_index.last_message.startswith("Loaded 2 manual(s)")
        assert help_index.messages

    def test_load_reports_failures(self, docs, tmp_path):
        h = TopicHelp()
        missing = str(tmp_path / "missing.idx")
        report = h.load(HelpConfig(sources=[SourceGroup(files=[(missing, None), (docs["idx"], None)])]))
        assert report.loaded == ["general.idx"]
        assert "1 failed" in h.last_message
        assert missing in h.last_message

    def test_unknown_parser_reported(self):
        h = TopicHelp()
        report = h.load(HelpConfig(parsers=[("pdf", ".*")]))
        assert report.loaded == []
        assert "Unknown parser" in h.last_message

    def test_load_file(self, config, tmp_path):
        path = str(tmp_path / "manuals.json")
        save_config(config, path)
        h = TopicHelp()
        assert len(h.load_file(path).loaded) == 2

    def test_load_corrupt_file_reported(self, tmp_path):
        path = tmp_path / "manuals.json"
        path.write_text("{{{")
        h = TopicHelp()
        report = h.load_file(str(path))
        assert report.loaded == []
        assert "Cannot read configuration" in h.last_message


class TestLookup:
    def test_hit_in_context(self, help_index):
        result = help_index.lookup("python", "open")
        assert result.found
        assert result.hits == [("open", "lib.html", "http://x/lib.html#open")]

    def test_same_topic_in_two_manuals(self, help_index):
        result = help_index.lookup("python", "Save")
        assert {h.manual for h in result.hits} == {"lib.html", "general.idx"}
        assert "2 entries" in result.message

    def test_context_restricts_manuals(self, help_index):
        assert not help_index.lookup("c", "open").found
        assert help_index.lookup("c", "Search").found

    def test_miss_message(self, help_index):
        result = help_index.lookup("python", "nothing")
        assert result.hits == []
        assert result.message == "No help on nothing"

    def test_query_whitespace_stripped(self, help_index):
        assert help_index.lookup("python", "  open\n").found

    def test_empty_query(self, help_index):
        result = help_index.lookup("python", "   ")
        assert not result.found
        assert result.message == "No topic given."

    def test_lookup_at(self, help_index):
        text = "import os.path as p"
        result = help_index.lookup_at("python", text, text.index("path"))
        assert result.hits[0].topic == "os.path"

    def test_changed_source_picked_up(self, help_index, docs):
        with open(docs["idx"], "a") as f:
            f.write("Replace\thttp://g/replace\n")
        mtime = os.stat(docs["idx"]).st_mtime + 10
        os.utime(docs["idx"], (mtime, mtime))
        result = help_index.lookup("c", "Replace")
        assert result.hits == [("Replace", "general.idx", "http://g/replace")]

    def test_unchanged_sources_not_reloaded(self, help_index):
        assert help_index.refresh() is None
        manual = help_index.registry.get_manual("general.idx")
        help_index.lookup("c", "Search")
        assert help_index.registry.get_manual("general.idx") is manual


class TestWordAt:
    def test_inside_word(self):
        assert word_at("call open(x)", 7) == "open"

    def test_at_word_end(self):
        assert word_at("call open", 9) == "open"

    def test_trailing_period_dropped(self):
        assert word_at("See Search.", 6) == "Search"

    def test_no_word(self):
        assert word_at("a  b", 2) == ""

    def test_position_clamped(self):
        assert word_at("word", 100) == "word"


class TestCompletionFacade:
    def test_unique_completion_and_accept(self, help_index):
        session = help_index.begin_completion_session("c")
        result = help_index.session_type(session, "Sea")
        assert result.state == CompletionState.UNIQUE
        assert help_index.last_message == "[Sole completion]"
        hit = help_index.session_accept(session)
        assert hit.link == "http://g/search"

    def test_ambiguous_message(self, help_index):
        session = help_index.begin_completion_session("python")
        result = help_index.session_type(session, "S")
        assert result.state == CompletionState.AMBIGUOUS
        assert result.extension is None
        assert help_index.last_message == "2 possible completions"

    def test_same_topic_from_two_manuals(self, help_index):
        session = help_index.begin_completion_session("python")
        help_index.session_type(session, "Sav")
        assert help_index.last_message == "[Sole completion]"
        help_index.session_type(session, "o")
        assert help_index.last_message == "2 possible completions"
        session2 = help_index.begin_completion_session("python")
        result = help_index.session_type(session2, "Save")
        assert result.topics == ["Save"]

    def test_no_match_message(self, help_index):
        session = help_index.begin_completion_session("python")
        help_index.session_type(session, "zz")
        assert help_index.last_message == "[No match]"

    def test_repeat_message(self, help_index):
        session = help_index.begin_completion_session("python")
        help_index.session_type(session, "")
        result = help_index.session_type(session, "")
        assert result.repeat
        assert help_index.last_message.startswith("Showing")

    def test_page_size_from_config(self, config):
        config.page_size = 1
        h = TopicHelp(config=config)
        h.load()
        session = h.begin_completion_session("python")
        assert len(h.session_type(session, "").page) == 1

    def test_incomplete_accept_reported(self, help_index):
        session = help_index.begin_completion_session("python")
        help_index.session_type(session, "o")
        assert help_index.session_accept(session) is None
        assert "Not complete" in help_index.last_message
        assert not session.closed

    def test_cancel(self, help_index):
        session = help_index.begin_completion_session("python")
        help_index.session_cancel(session)
        assert session.closed
        assert help_index.session_type(session, "S") is None
        assert "closed" in help_index.last_message


class TestManuals:
    def test_export(self, help_index):
        text = help_index.export_manual("general.idx")
        assert text == "Save\thttp://g/save\nSearch\thttp://g/search\n"

    def test_export_unknown(self, help_index):
        assert help_index.export_manual("nope") is None
        assert help_index.last_message == "No manual named 'nope'"

    def test_export_to_file(self, help_index, tmp_path):
        out = tmp_path / "out" / "lib.idx"
        assert help_index.export_manual_to_file("lib.html", str(out)) is True
        assert "open\thttp://x/lib.html#open\n" in out.read_text()

    def test_export_to_file_unknown(self, help_index, tmp_path):
        assert help_index.export_manual_to_file("nope", str(tmp_path / "x")) is False
        assert not (tmp_path / "x").exists()

    def test_delete_manual(self, help_index):
        assert help_index.delete_manual("lib.html") is True
        assert help_index.delete_manual("lib.html") is False
        assert "No manual named" in help_index.last_message

    def test_list_for_context(self, help_index):
        names = {s.name for s in help_index.list_manuals_for_context("python")}
        assert names == {"lib.html", "general.idx"}
        c_only = help_index.list_manuals_for_context("c")
        assert [s.name for s in c_only] == ["general.idx"]
        assert c_only[0].topic_count == 2
        assert c_only[0].modes == ["*"]

    def test_list_all(self, help_index):
        assert len(help_index.list_manuals_for_context()) == 2

    def test_reload(self, help_index, docs):
        with open(docs["idx"], "a") as f:
            f.write("Zoom\thttp://g/zoom\n")
        help_index.reload()
        assert help_index.lookup("c", "Zoom").found
