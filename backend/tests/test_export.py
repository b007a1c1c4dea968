"""
Tests for export.py - pagination and CSV rendering.
"""
import csv
import io

import pytest

from nexsearch.schemas.search import (
    CompanyRecord,
    CompanyResponse,
    ContactConfidence,
    ContactPerson,
    GeneralResponse,
    PersonResponse,
)
from nexsearch.services.export import COMPANY_CSV_HEADER, CONTACT_CSV_HEADER, paginate, to_csv


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


class TestPaginate:
    """1-based slicing with clamped page numbers."""

    @pytest.mark.parametrize("page,expected_page,expected_items,start,end", [
        (1, 1, [1, 2, 3], 1, 3),
        (3, 3, [7], 7, 7),
        (0, 1, [1, 2, 3], 1, 3),
        (99, 3, [7], 7, 7),
    ])
    def test_slices_and_clamps(self, page, expected_page, expected_items, start, end):
        """Out-of-range pages land on the first or last page."""
        result = paginate([1, 2, 3, 4, 5, 6, 7], page, per_page=3)

        assert result.items == expected_items
        assert result.meta.page == expected_page
        assert result.meta.total == 7
        assert result.meta.total_pages == 3
        assert (result.meta.start, result.meta.end) == (start, end)

    def test_empty_list(self):
        """An empty list is one empty page showing 0-0."""
        result = paginate([], 5)
        assert result.items == []
        assert result.meta.page == 1
        assert result.meta.total_pages == 1
        assert (result.meta.start, result.meta.end) == (0, 0)


class TestToCsv:
    """CSV layouts for the three response types."""

    def test_company_rows_are_quoted(self):
        """Values containing commas are quoted."""
        response = CompanyResponse(
            results=[CompanyRecord(company_name="Acme, Inc.", domain="acme.com", revenue="$1.2B")],
            total_companies=1,
            processed_companies=1,
        )
        header, row = _rows(to_csv(response))

        assert header == COMPANY_CSV_HEADER
        assert row[0] == "Acme, Inc."
        assert row[1] == "acme.com"
        assert row[-1] == "not_found"
        assert to_csv(response).splitlines()[1].startswith('"Acme, Inc."')

    def test_contacts(self):
        """One row per contact, confidence as its wire value."""
        response = PersonResponse(
            results=[
                ContactPerson(
                    name="Jane Doe",
                    title="CEO",
                    email="jane@acme.com",
                    confidence=ContactConfidence.HIGH,
                    verification_source="apollo, company_enrich",
                )
            ],
            confidence=ContactConfidence.HIGH,
        )
        header, row = _rows(to_csv(response))
        assert header == CONTACT_CSV_HEADER
        assert row == ["Jane Doe", "CEO", "jane@acme.com", "", "high", "apollo, company_enrich"]

    def test_general_answer(self):
        """A general answer is a single Answer column."""
        rows = _rows(to_csv(GeneralResponse(text='Line one\nsays "hi"')))
        assert rows == [["Answer"], ['Line one\nsays "hi"']]
