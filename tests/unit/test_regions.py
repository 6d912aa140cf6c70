"""
Region directory unit tests

Covers:
- search(): case-insensitive substring over "[CODE] Name", catalog order
- is_valid()/get(): exact, case-insensitive code lookup
- catalog integrity
"""
import pytest

from pitor.lib.regions import DIRECTORY, Region, RegionDirectory
from pitor.lib.regions.catalog import CATALOG


class TestCatalog:

    def test_codes_are_unique_two_letter_uppercase(self):
        codes = [code for code, _ in CATALOG]
        assert len(codes) == len(set(codes))
        assert all(len(code) == 2 and code.isalpha() and code.isupper() for code in codes)

    def test_catalog_size(self):
        assert 240 <= len(DIRECTORY) <= 260

    def test_duplicate_codes_rejected(self):
        with pytest.raises(ValueError, match="duplicate"):
            RegionDirectory([("AA", "One"), ("aa", "Two")])


class TestSearch:

    def test_bul_matches_only_bulgaria(self):
        matches = DIRECTORY.search("bul")
        assert len(matches) == 1
        assert matches[0].code == "BG"
        assert "Bulgaria" in matches[0].name

    @pytest.mark.parametrize("keyword", ["UNITED", "united", "UnItEd"])
    def test_case_insensitive(self, keyword):
        codes = [r.code for r in DIRECTORY.search(keyword)]
        assert {"GB", "US", "AE"} <= set(codes)

    def test_matches_bracketed_code(self):
        """The rendered form includes the code, so "[de]" finds Germany"""
        matches = DIRECTORY.search("[de]")
        assert [r.code for r in matches] == ["DE"]

    def test_results_keep_catalog_order(self):
        matches = DIRECTORY.search("island")
        order = [code for code, _ in CATALOG]
        positions = [order.index(r.code) for r in matches]
        assert positions == sorted(positions)
        assert len(matches) > 1

    def test_every_match_contains_keyword_exactly_once(self):
        keyword = "an"
        matches = DIRECTORY.search(keyword)
        assert all(keyword in r.rendered.casefold() for r in matches)
        assert len({r.code for r in matches}) == len(matches)
        expected = [r for r in DIRECTORY if keyword in r.rendered.casefold()]
        assert matches == expected

    def test_empty_keyword_lists_everything(self):
        assert len(DIRECTORY.search("")) == len(DIRECTORY)

    def test_no_match_is_empty_list(self):
        assert DIRECTORY.search("zzzz") == []


class TestIsValid:

    @pytest.mark.parametrize("code", ["us", "US", "Us", "de", "bg"])
    def test_catalog_codes_are_valid(self, code):
        assert DIRECTORY.is_valid(code)

    @pytest.mark.parametrize("code", ["xx", "", "usa", "u", " us", "[us]", "United", "ß", "ﬁ", "ﬆ", "ｕｓ"])
    def test_non_catalog_strings_are_invalid(self, code):
        assert not DIRECTORY.is_valid(code)

    def test_get_returns_region(self):
        assert DIRECTORY.get("bg") == Region("BG", "Bulgaria")

    def test_rendered_form(self):
        assert Region("BG", "Bulgaria").rendered == "[BG] Bulgaria"
        assert str(Region("BG", "Bulgaria")) == "[BG] Bulgaria"
