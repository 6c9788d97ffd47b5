from __future__ import annotations

import pytest

from docmeta.domain.metadata import MetadataMap
from docmeta.models.extraction import FailureKind, OperationSelector, SourceNotFound
from docmeta.services.path_resolver import SettingsPathResolver


def test_add_makes_key_multi_valued_and_set_replaces():
    meta = MetadataMap()
    meta.add("Content-Type", "text/html")
    meta.add("Content-Type", "application/xhtml+xml")
    assert meta.is_multi_valued("Content-Type")
    assert meta.get("Content-Type") == "text/html"

    meta.set("Content-Type", "text/plain")
    assert meta.get_values("Content-Type") == ["text/plain"]
    meta.set("Content-Type", None)
    assert "Content-Type" not in meta


def test_merge_skips_values_already_present():
    meta = MetadataMap({"Content-Type": "application/pdf"})
    meta.merge({"Content-Type": "application/pdf", "dc:creator": ["A", "B"], "ignored": None})
    assert meta.to_dict() == {"Content-Type": "application/pdf", "dc:creator": ["A", "B"]}


def test_operation_selector_parsing():
    assert OperationSelector.parse("METADATA") is OperationSelector.METADATA
    assert OperationSelector.parse(" text ") is OperationSelector.TEXT
    assert OperationSelector.parse("fullData") is OperationSelector.FULLDATA
    assert OperationSelector.parse("summary") is None
    assert FailureKind.NOT_FOUND.status_code == 404


def test_path_resolver_unknown_key_is_not_found():
    resolver = SettingsPathResolver({"docs": "/srv/docs/"})
    assert resolver.resolve("docs") == "/srv/docs/"
    with pytest.raises(SourceNotFound):
        resolver.resolve("other")
