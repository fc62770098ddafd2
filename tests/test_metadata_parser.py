#!/usr/bin/env python3
"""
Metadata parser tests
"""

import pytest

from legislation_mcp.exceptions import StructureError
from legislation_mcp.metadata_parser import MetadataParser

PRIMARY_XML = """
<Legislation xmlns="http://www.legislation.gov.uk/namespaces/legislation"
    DocumentURI="http://www.legislation.gov.uk/ukpga/2020/2"
    RestrictExtent="E+W+S+N.I." RestrictStartDate="2024-01-01">
    <ukm:Metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:dct="http://purl.org/dc/terms/"
        xmlns:ukm="http://www.legislation.gov.uk/namespaces/metadata"
        xmlns:atom="http://www.w3.org/2005/Atom">
        <dc:identifier>http://www.legislation.gov.uk/ukpga/2020/2</dc:identifier>
        <dc:title>Direct Payments to Farmers (Legislative Continuity) Act 2020</dc:title>
        <dc:language>en</dc:language>
        <dc:modified>2024-03-02</dc:modified>
        <dct:valid>2024-01-01</dct:valid>
        <atom:link rel="http://www.legislation.gov.uk/def/navigation/introduction" href="x"/>
        <atom:link rel="http://www.legislation.gov.uk/def/navigation/note" href="x"/>
        <atom:link rel="alternate" href="x"/>
        <ukm:PrimaryMetadata>
            <ukm:DocumentClassification>
                <ukm:DocumentCategory Value="primary"/>
                <ukm:DocumentMainType Value="UnitedKingdomPublicGeneralAct"/>
                <ukm:DocumentStatus Value="revised"/>
            </ukm:DocumentClassification>
            <ukm:Year Value="2020"/>
            <ukm:Number Value="2"/>
            <ukm:EnactmentDate Date="2020-01-30"/>
            <ukm:ISBN Value="9780105700746"/>
        </ukm:PrimaryMetadata>
    </ukm:Metadata>
</Legislation>
"""

SECONDARY_XML = """
<Legislation xmlns="http://www.legislation.gov.uk/namespaces/legislation"
    DocumentURI="http://www.legislation.gov.uk/uksi/2024/123"
    RestrictExtent="E" RestrictEndDate="2025-06-30">
    <ukm:Metadata xmlns:dc="http://purl.org/dc/elements/1.1/"
        xmlns:ukm="http://www.legislation.gov.uk/namespaces/metadata">
        <dc:title>The Example Regulations 2024</dc:title>
        <ukm:SecondaryMetadata>
            <ukm:DocumentClassification>
                <ukm:DocumentMainType Value="UnitedKingdomStatutoryInstrument"/>
                <ukm:DocumentStatus Value="final"/>
            </ukm:DocumentClassification>
            <ukm:Year Value="2024"/>
            <ukm:Number Value="123"/>
            <ukm:MadeDate Date="2024-01-01"/>
        </ukm:SecondaryMetadata>
    </ukm:Metadata>
</Legislation>
"""


@pytest.fixture
def parser():
    return MetadataParser()


class TestMetadataParser:

    def test_primary_legislation(self, parser):
        result = parser.parse(PRIMARY_XML)

        assert result == {
            "id": "ukpga/2020/2",
            "type": "ukpga",
            "year": 2020,
            "number": 2,
            "title": "Direct Payments to Farmers (Legislative Continuity) Act 2020",
            "status": "revised",
            "extent": ["E", "W", "S", "NI"],
            "enactmentDate": "2020-01-30",
            "startDate": "2024-01-01",
            "isbn": "9780105700746",
        }

    def test_secondary_legislation_uses_made_date(self, parser):
        result = parser.parse(SECONDARY_XML)

        assert result["type"] == "uksi"
        assert result["madeDate"] == "2024-01-01"
        assert "enactmentDate" not in result
        assert result["endDate"] == "2025-06-30"
        assert result["extent"] == ["E"]

    def test_extent_normalization(self, parser):
        result = parser.parse(PRIMARY_XML.replace('RestrictExtent="E+W+S+N.I."', 'RestrictExtent="N.I."'))
        assert result["extent"] == ["NI"]

    def test_missing_extent(self, parser):
        result = parser.parse(PRIMARY_XML.replace('RestrictExtent="E+W+S+N.I."', ""))
        assert "extent" not in result

    @pytest.mark.parametrize("document_uri", [
        "http://www.legislation.gov.uk/ukpga/2020/2",
        "https://www.legislation.gov.uk/ukpga/2020/2",
        "http://www.legislation.gov.uk/id/ukpga/2020/2",
    ])
    def test_id_prefix_stripped(self, parser, document_uri):
        xml = PRIMARY_XML.replace('DocumentURI="http://www.legislation.gov.uk/ukpga/2020/2"',
                                  f'DocumentURI="{document_uri}"')
        assert parser.parse(xml)["id"] == "ukpga/2020/2"

    def test_unknown_document_type(self, parser):
        xml = PRIMARY_XML.replace("UnitedKingdomPublicGeneralAct", "SomethingElse")
        assert parser.parse(xml)["type"] == ""

    def test_navigation_links(self, parser):
        assert parser.parse_navigation_links(PRIMARY_XML) == {
            "has_introduction": True,
            "has_signature": False,
            "has_explanatory_note": True,
            "has_earlier_orders": False,
        }

    def test_wrong_root(self, parser):
        with pytest.raises(StructureError, match="Unable to find Legislation element"):
            parser.parse("<feed/>")
