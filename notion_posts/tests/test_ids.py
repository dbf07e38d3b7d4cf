"""Page id helper tests"""

import pytest

from notion_posts.core.ids import parse_page_id, to_uuid

UNDASHED = "0123456789ABCDEF0123456789abcdef"
DASHED = "01234567-89ab-cdef-0123-456789abcdef"


class TestToUuid:
    def test_undashed(self):
        assert to_uuid(UNDASHED) == DASHED

    def test_already_dashed(self):
        assert to_uuid(DASHED) == DASHED

    def test_non_id_passes_through(self):
        assert to_uuid("  not-an-id ") == "not-an-id"


class TestParsePageId:
    @pytest.mark.parametrize(
        "value",
        [
            UNDASHED,
            DASHED,
            f"https://www.notion.so/My-Blog-{UNDASHED.lower()}",
            f"https://www.notion.so/workspace/{UNDASHED.lower()}?v=abc#section",
            f"cafe-{UNDASHED.lower()}",
        ],
    )
    def test_recognised_forms(self, value):
        assert parse_page_id(value) == DASHED

    @pytest.mark.parametrize("value", ["", "   ", None, 123, "https://www.notion.so/no-id-here"])
    def test_unrecognised(self, value):
        assert parse_page_id(value) is None
