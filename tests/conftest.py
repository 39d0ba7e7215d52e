"""Shared fixtures: scenario XML parts and a minimal .vsdx archive factory."""

import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

VISIO_NS = "http://schemas.microsoft.com/office/visio/2012/main"

CONTENT_TYPES_XML = """<?xml version="1.0" encoding="utf-8"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
  <Default Extension="xml" ContentType="application/xml"/>
</Types>"""

# Rectangle master (ID 2) with four edge connection points in Row format,
# and a connector master (ID 3).
SCENARIO_MASTERS_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<Masters xmlns="{VISIO_NS}">
  <Master ID="2" Name="Rectangle" BaseID="{{B-2}}" UniqueID="{{U-2}}">
    <Shapes>
      <Shape ID="5" Type="Shape">
        <XForm><PinX>5</PinX><PinY>5</PinY><Width>10</Width><Height>10</Height></XForm>
        <Cell N="FillColor" V="#FF0000"/>
        <Prop Name="Vendor" Value="Acme"/>
        <Connections>
          <Row IX="0" Name="Left"><Cell N="X" V="0"/><Cell N="Y" V="5"/></Row>
          <Row IX="1" Name="Right"><Cell N="X" V="10"/><Cell N="Y" V="5"/></Row>
          <Row IX="2" Name="Top"><Cell N="X" V="5"/><Cell N="Y" V="10"/></Row>
          <Row IX="3" Name="Bottom"><Cell N="X" V="5"/><Cell N="Y" V="0"/></Row>
        </Connections>
      </Shape>
    </Shapes>
  </Master>
  <Master ID="3" Name="Dynamic connector" BaseID="{{B-3}}" UniqueID="{{U-3}}">
    <Shapes>
      <Shape ID="6" Type="Shape"><Cell N="Type" V="1"/><Cell N="EndArrow" V="13"/></Shape>
    </Shapes>
  </Master>
</Masters>"""

# Group G (no master) holding rectangle A and connector K; K is glued to A.
SCENARIO_PAGE_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<PageContents xmlns="{VISIO_NS}">
  <Shapes>
    <Shape ID="1" Name="G" Type="Group">
      <XForm><PinX>5</PinX><PinY>5</PinY><Width>12</Width><Height>12</Height></XForm>
      <Shapes>
        <Shape ID="2" Name="A" Type="Shape" Master="2">
          <XForm><PinX>5</PinX><PinY>5</PinY><Width>10</Width><Height>10</Height></XForm>
          <Text>Box A</Text>
        </Shape>
        <Shape ID="3" Name="K" Type="Shape" Master="3">
          <XForm1D><BeginX>0</BeginX><BeginY>0</BeginY><EndX>10</EndX><EndY>10</EndY></XForm1D>
        </Shape>
      </Shapes>
    </Shape>
  </Shapes>
  <Connects>
    <Connect FromSheet="3" ToSheet="2" FromPart="9" ToPart="3"/>
  </Connects>
</PageContents>"""

PAGES_INDEX_XML = f"""<?xml version="1.0" encoding="utf-8"?>
<Pages xmlns="{VISIO_NS}" xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">
  <Page ID="0" Name="Overview"><Rel r:id="rId1"/></Page>
</Pages>"""

PAGES_RELS_XML = """<?xml version="1.0" encoding="utf-8"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.microsoft.com/visio/2010/relationships/page" Target="page1.xml"/>
</Relationships>"""


@pytest.fixture
def scenario_masters_xml() -> str:
    return SCENARIO_MASTERS_XML


@pytest.fixture
def scenario_page_xml() -> str:
    return SCENARIO_PAGE_XML


@pytest.fixture
def make_vsdx(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a minimal .vsdx archive into tmp_path"""

    def _make(
        name: str = "sample.vsdx",
        pages: Optional[Dict[str, str]] = None,
        masters: Optional[Dict[str, str]] = None,
        extra: Optional[Dict[str, str]] = None,
    ) -> Path:
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("[Content_Types].xml", CONTENT_TYPES_XML)
            for part_name, xml in (masters or {}).items():
                archive.writestr(f"visio/masters/{part_name}", xml)
            for part_name, xml in (pages or {}).items():
                archive.writestr(f"visio/pages/{part_name}", xml)
            for part_name, xml in (extra or {}).items():
                archive.writestr(part_name, xml)
        return path

    return _make


@pytest.fixture
def scenario_vsdx(make_vsdx) -> Path:
    """Scenario document whose pages index names page1.xml "Overview" """
    return make_vsdx(
        "scenario.vsdx",
        pages={"page1.xml": SCENARIO_PAGE_XML},
        masters={"masters.xml": SCENARIO_MASTERS_XML},
        extra={
            "visio/pages/pages.xml": PAGES_INDEX_XML,
            "visio/pages/_rels/pages.xml.rels": PAGES_RELS_XML,
        },
    )


@pytest.fixture
def corrupt_vsdx(tmp_path: Path) -> Path:
    """Deflated archive whose page1.xml entry holds an invalid deflate stream"""
    path = tmp_path / "corrupt.vsdx"
    part_name = "visio/pages/page1.xml"
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("[Content_Types].xml", CONTENT_TYPES_XML)
        archive.writestr(part_name, SCENARIO_PAGE_XML)
    with zipfile.ZipFile(path) as archive:
        offset = archive.getinfo(part_name).header_offset
    data = bytearray(path.read_bytes())
    name_length = int.from_bytes(data[offset + 26:offset + 28], "little")
    extra_length = int.from_bytes(data[offset + 28:offset + 30], "little")
    start = offset + 30 + name_length + extra_length
    # BTYPE 11 is a reserved deflate block type
    data[start:start + 8] = b"\xff" * 8
    path.write_bytes(bytes(data))
    return path
