"""
Tests for Version Spans (fixrepo/consolidation/version_spans.py)

Tests cover:
- VersionSpan properties (first/last presence, deprecation, change versions)
- Span building across the catalog, including aliased versions
- FromVersion / Deprecated annotation of message and component records
"""

import logging

import pytest

from fixrepo.consolidation.diff_engine import COMPONENT, MESSAGE
from fixrepo.consolidation.snapshot import RepoVersions
from fixrepo.consolidation.version_spans import VersionSpan, VersionSpanBuilder

ROWS_A = [{"MsgID": "14", "TagText": "11", "Position": "1", "Reqd": "1"}]
ROWS_B = [
    {"MsgID": "14", "TagText": "11", "Position": "1", "Reqd": "1"},
    {"MsgID": "14", "TagText": "38", "Position": "2", "Reqd": "0"},
]


def message_version(rows=None, msg_id="14", **message):
    """Tables for one version holding message D (without segment when rows is None)."""
    record = {"MsgType": "D", "MessageName": "NewOrderSingle", "MsgID": msg_id}
    record.update(message)
    tables = {"messages": {"D": [record]}}
    if rows is not None:
        tables["segments"] = {msg_id: [dict(r) for r in rows]}
    return tables


class TestVersionSpan:
    """Tests for VersionSpan dataclass."""

    def test_empty_span(self):
        span = VersionSpan(key="D", kind=MESSAGE)
        assert span.slots == []
        assert span.from_index is None
        assert span.to_index is None
        assert span.deprecated_index() is None

    def test_presence_bounds(self):
        span = VersionSpan(key="D", kind=MESSAGE, slots=[None, 1, 1, 3, None])
        assert span.from_index == 1
        assert span.to_index == 3
        assert span.deprecated_index() == 4
        assert span.contents_version_at(2) == 1
        assert span.change_versions() == [1, 3]

    def test_reaches_newest_not_deprecated(self):
        span = VersionSpan(key="D", kind=MESSAGE, slots=[0, 0, 2])
        assert span.deprecated_index() is None


class TestBuildSpan:
    """Tests for VersionSpanBuilder.build_span."""

    def test_present_everywhere_unchanged(self, small_catalog):
        repo = RepoVersions.from_tables(small_catalog, {
            label: message_version(ROWS_A) for label in ("V.1", "V.2", "V.3", "V.4")
        })
        span = VersionSpanBuilder(repo).build_span(MESSAGE, "D")
        assert span.slots == [0, 0, 0, 0]

    def test_change_resets_contents_version(self, small_catalog):
        repo = RepoVersions.from_tables(small_catalog, {
            "V.1": message_version(ROWS_A),
            "V.2": message_version(ROWS_B),
            "V.3": message_version(ROWS_B),
            "V.4": message_version(ROWS_A),
        })
        span = VersionSpanBuilder(repo).build_span(MESSAGE, "D")
        assert span.slots == [0, 1, 1, 3]

    def test_gap_counts_as_reappearance(self, small_catalog):
        """Test contents after an absence are a change even if equal to older contents."""
        repo = RepoVersions.from_tables(small_catalog, {
            "V.1": message_version(ROWS_A),
            "V.3": message_version(ROWS_A),
            "V.4": message_version(ROWS_A),
        })
        span = VersionSpanBuilder(repo).build_span(MESSAGE, "D")
        assert span.slots == [0, None, 2, 2]

    def test_changed_then_dropped(self, nine_catalog):
        """Test a message unchanged from V.2, changed in V.6 and gone from V.7."""
        tables = {f"V.{i}": message_version(ROWS_A) for i in range(2, 6)}
        tables["V.6"] = message_version(ROWS_B)
        tables["V.8"] = message_version(None, msg_id="999")
        repo = RepoVersions.from_tables(nine_catalog, tables)

        builder = VersionSpanBuilder(repo)
        span = builder.build_span(MESSAGE, "D")
        assert span.slots == [None, None, 2, 2, 2, 2, 6, None, None]
        assert len(span.slots) == len(nine_catalog)

        record = repo.latest.messages["D"][0]
        builder.apply_span(record, span)
        assert record["FromVersion"] == "V.2"
        assert record["Deprecated"] == "V.7"

    def test_component_span(self, small_catalog):
        component = {"ComponentName": "Instrument", "MsgID": "1003"}
        repo = RepoVersions.from_tables(small_catalog, {
            "V.2": {"components": {"Instrument": [dict(component)]}, "segments": {"1003": ROWS_A}},
            "V.3": {"components": {"Instrument": [dict(component)]}, "segments": {"1003": ROWS_A}},
            "V.4": {"components": {"Instrument": [dict(component)]}, "segments": {"1003": ROWS_B}},
        })
        span = VersionSpanBuilder(repo).build_span(COMPONENT, "Instrument")
        assert span.slots == [None, 1, 1, 3]


class TestAliasedVersions:
    """Tests for spans across an aliased (transport) version."""

    def test_alias_continues_predecessor_run(self, aliased_catalog):
        repo = RepoVersions.from_tables(aliased_catalog, {
            "V.2": message_version(ROWS_A),
            "V.3": message_version(ROWS_B),
            "V.4": message_version(ROWS_A),
        })
        span = VersionSpanBuilder(repo).build_span(MESSAGE, "D")
        assert span.slots == [None, 1, 1, 1]
        assert span.from_index == 1

    def test_alias_first_version_resolves_to_predecessor(self, aliased_catalog):
        """Test an entity the aliased version's own table adds only counts from the next version."""
        repo = RepoVersions.from_tables(aliased_catalog, {
            "V.2": {},
            "V.3": message_version(ROWS_A),
            "V.4": message_version(ROWS_A),
        })
        span = VersionSpanBuilder(repo).build_span(MESSAGE, "D")
        assert span.slots == [None, None, None, 3]


class TestApplySpan:
    """Tests for FromVersion / Deprecated annotation."""

    @pytest.fixture
    def builder(self, small_catalog):
        repo = RepoVersions.from_tables(small_catalog, {"V.4": message_version(ROWS_A)})
        return VersionSpanBuilder(repo)

    def test_present_everywhere_has_no_deprecation(self, builder):
        record = {}
        builder.apply_span(record, VersionSpan(key="D", kind=MESSAGE, slots=[0, 0, 0, 0]))
        assert record == {"FromVersion": "V.1"}

    def test_matching_deprecation_kept_silently(self, builder, caplog):
        record = {"Deprecated": "V.3"}
        with caplog.at_level(logging.WARNING, logger="fixrepo.consolidation.version_spans"):
            builder.apply_span(record, VersionSpan(key="D", kind=MESSAGE, slots=[0, 0, None, None]))
        assert record["Deprecated"] == "V.3"
        assert caplog.text == ""

    def test_stale_deprecation_replaced_with_warning(self, builder, caplog):
        record = {"Deprecated": "V.4"}
        with caplog.at_level(logging.WARNING, logger="fixrepo.consolidation.version_spans"):
            builder.apply_span(record, VersionSpan(key="D", kind=MESSAGE, slots=[0, 0, None, None]))
        assert record["Deprecated"] == "V.3"
        assert "does not match contents" in caplog.text

    def test_never_present_warns(self, builder, caplog):
        record = {}
        with caplog.at_level(logging.WARNING, logger="fixrepo.consolidation.version_spans"):
            builder.apply_span(record, VersionSpan(key="D", kind=MESSAGE, slots=[None] * 4))
        assert record == {}
        assert "no contents in any version" in caplog.text


class TestBuildAndApply:
    """Tests for VersionSpanBuilder.build_and_apply."""

    def test_annotates_latest_records(self, small_catalog):
        repo = RepoVersions.from_tables(small_catalog, {
            "V.1": message_version(ROWS_A),
            "V.2": message_version(ROWS_A),
            "V.3": message_version(ROWS_A),
            "V.4": message_version(ROWS_A),
        })
        spans = VersionSpanBuilder(repo).build_and_apply(MESSAGE)
        assert list(spans) == ["D"]
        assert repo.latest.messages["D"][0]["FromVersion"] == "V.1"
        assert "Deprecated" not in repo.latest.messages["D"][0]
