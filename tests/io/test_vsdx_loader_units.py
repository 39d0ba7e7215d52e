"""Unit tests for .vsdx loading (VsdxLoader and helpers)"""

import zipfile
from pathlib import Path

import pytest

from vsdx2json.io.vsdx_loader import (
    InvalidDocumentError,
    VsdxError,
    VsdxLoader,
    is_shape_page_part,
    natural_key,
)
from vsdx2json.io.xml_utils import parse_xml

NS = 'xmlns="http://schemas.microsoft.com/office/visio/2012/main"'


# ---- helpers ----

def test_natural_key_orders_numbers() -> None:
    names = ["page10.xml", "page2.xml", "Page1.xml"]
    assert sorted(names, key=natural_key) == ["Page1.xml", "page2.xml", "page10.xml"]


def test_is_shape_page_part() -> None:
    assert is_shape_page_part("visio/pages/page1.xml")
    assert is_shape_page_part("visio/pages/background.xml")
    assert not is_shape_page_part("visio/pages/pages.xml")


def test_invalid_document_error_is_vsdx_error() -> None:
    assert issubclass(InvalidDocumentError, VsdxError)


# ---- validation ----

def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(InvalidDocumentError, match="does not exist"):
        VsdxLoader().load_file(tmp_path / "nope.vsdx")


def test_tiny_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "tiny.vsdx"
    path.write_bytes(b"PK")
    with pytest.raises(InvalidDocumentError, match="too small"):
        VsdxLoader().load_file(path)


def test_non_zip_raises(tmp_path: Path) -> None:
    path = tmp_path / "text.vsdx"
    path.write_text("this is not a zip archive at all, just text " * 4)
    with pytest.raises(InvalidDocumentError, match="not a valid ZIP"):
        VsdxLoader().load_file(path)


def test_zip_without_pages_raises(make_vsdx) -> None:
    path = make_vsdx("empty.vsdx", masters={"masters.xml": f"<Masters {NS}/>"})
    with pytest.raises(InvalidDocumentError, match="no pages"):
        VsdxLoader().load_file(path)


def test_pages_index_only_raises(make_vsdx) -> None:
    path = make_vsdx("index.vsdx", pages={"pages.xml": f"<Pages {NS}/>"})
    with pytest.raises(InvalidDocumentError):
        VsdxLoader().load_file(path)


# ---- loading ----

def test_load_file_discovers_parts(scenario_vsdx: Path) -> None:
    document = VsdxLoader().load_file(scenario_vsdx)
    assert document.document_id == str(scenario_vsdx)
    assert list(document.master_parts) == ["visio/masters/masters.xml"]
    assert sorted(document.page_parts) == ["visio/pages/page1.xml", "visio/pages/pages.xml"]
    assert list(document.shape_page_parts()) == ["visio/pages/page1.xml"]
    assert document.page_names == {"visio/pages/page1.xml": "Overview"}


def test_load_file_orders_pages_naturally(make_vsdx) -> None:
    page = f"<PageContents {NS}><Shapes/></PageContents>"
    path = make_vsdx("many.vsdx", pages={"page10.xml": page, "page2.xml": page, "page1.xml": page})
    document = VsdxLoader().load_file(path)
    assert list(document.shape_page_parts()) == [
        "visio/pages/page1.xml", "visio/pages/page2.xml", "visio/pages/page10.xml",
    ]


def test_dump_xml(scenario_vsdx: Path) -> None:
    target = VsdxLoader().dump_xml(scenario_vsdx)
    assert target == scenario_vsdx.with_name("scenario_XML")
    assert (target / "visio" / "pages" / "page1.xml").exists()
    assert (target / "visio" / "masters" / "masters.xml").exists()
    assert (target / "[Content_Types].xml").exists()


def test_dump_xml_skips_entries_outside_target(make_vsdx, tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    path = make_vsdx(
        "sub/evil.vsdx",
        pages={"page1.xml": f"<PageContents {NS}><Shapes/></PageContents>"},
        extra={"../../escaped.xml": "<x/>", "visio/../../up.xml": "<x/>"},
    )
    target = VsdxLoader().dump_xml(path)
    assert target == tmp_path / "sub" / "evil_XML"
    assert (target / "visio" / "pages" / "page1.xml").exists()
    assert not (tmp_path / "escaped.xml").exists()
    assert not (tmp_path / "sub" / "up.xml").exists()
    assert sorted(p.name for p in target.rglob("*.xml")) == ["[Content_Types].xml", "page1.xml"]


def test_dump_destination_rejects_unsafe_names(tmp_path: Path) -> None:
    assert VsdxLoader._dump_destination(tmp_path, "/etc/evil.xml") is None
    assert VsdxLoader._dump_destination(tmp_path, "..\\evil.xml") is None
    assert VsdxLoader._dump_destination(tmp_path, "a/../../evil.xml") is None
    assert VsdxLoader._dump_destination(tmp_path, "visio/pages/page1.xml") == tmp_path / "visio" / "pages" / "page1.xml"


def test_corrupt_entry_raises_invalid_document(corrupt_vsdx: Path) -> None:
    with pytest.raises(InvalidDocumentError, match="Invalid ZIP archive"):
        VsdxLoader().load_file(corrupt_vsdx)


def test_dump_xml_corrupt_entry_raises(corrupt_vsdx: Path, tmp_path: Path) -> None:
    with pytest.raises(InvalidDocumentError, match="Invalid ZIP archive"):
        VsdxLoader().dump_xml(corrupt_vsdx, tmp_path / "out")


# ---- extraction ----

def test_extract_scenario(scenario_vsdx: Path) -> None:
    loader = VsdxLoader()
    result = loader.extract(loader.load_file(scenario_vsdx))
    assert sorted(result.masters) == ["2", "3"]
    assert [(r.shape_id, r.parent_shape_id) for r in result.records] == [("1", ""), ("2", "1"), ("3", "1")]
    assert {r.page_name for r in result.records} == {"Overview"}


def test_page_name_from_page_element() -> None:
    document = VsdxLoader.from_parts(
        "mem.vsdx",
        page_parts={"visio/pages/page1.xml": f'<Page {NS} Name="Named"><Shapes><Shape ID="1"/></Shapes></Page>'},
    )
    result = VsdxLoader().extract(document)
    assert result.records[0].page_name == "Named"


def test_page_name_defaults_to_part_stem() -> None:
    loader = VsdxLoader()
    root = parse_xml(f"<PageContents {NS}/>")
    assert loader.page_name("visio/pages/page3.xml", root) == "page3"


def test_connects_are_scoped_per_page() -> None:
    page_1 = f"""<PageContents {NS}>
      <Shapes><Shape ID="5" Master="3"/><Shape ID="1"/></Shapes>
      <Connects><Connect FromSheet="5" ToSheet="1" FromPart="9" ToPart="3"/></Connects>
    </PageContents>"""
    page_2 = f"""<PageContents {NS}>
      <Shapes><Shape ID="5" Master="3"/><Shape ID="2"/></Shapes>
      <Connects><Connect FromSheet="5" ToSheet="2" FromPart="9" ToPart="3"/></Connects>
    </PageContents>"""
    document = VsdxLoader.from_parts(
        "mem.vsdx",
        master_parts={"visio/masters/masters.xml": f'<Masters {NS}><Master ID="3" Name="Dynamic connector"/></Masters>'},
        page_parts={"visio/pages/page1.xml": page_1, "visio/pages/page2.xml": page_2},
    )
    records = VsdxLoader().extract(document).records
    connectors = [r for r in records if r.is_1d_shape]
    assert [(r.page_name, r.begin_connected_to, r.end_connected_to) for r in connectors] == [
        ("page1", "1", ""),
        ("page2", "2", ""),
    ]


def test_malformed_part_raises() -> None:
    document = VsdxLoader.from_parts("bad.vsdx", page_parts={"visio/pages/page1.xml": "<PageContents><Shapes>"})
    with pytest.raises(InvalidDocumentError, match="Malformed XML part"):
        VsdxLoader().extract(document)


def test_non_xml_entries_ignored(make_vsdx) -> None:
    path = make_vsdx(
        "media.vsdx",
        pages={"page1.xml": f"<PageContents {NS}><Shapes><Shape ID='1'/></Shapes></PageContents>"},
        extra={"visio/media/image1.png": "binary", "visio/masters/_rels/masters.xml.rels": "<x/>"},
    )
    with zipfile.ZipFile(path) as archive:
        assert "visio/media/image1.png" in archive.namelist()
    document = VsdxLoader().load_file(path)
    assert document.master_parts == {}
    assert list(document.page_parts) == ["visio/pages/page1.xml"]
