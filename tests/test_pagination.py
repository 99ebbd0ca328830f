from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import Settings
from app.shared.pagination import build_page, get_pagination_params


def test_page_reports_whether_more_rows_follow() -> None:
    first = build_page(["a", "b"], total=5, params=get_pagination_params(limit=2, offset=0))
    last = build_page(["e"], total=5, params=get_pagination_params(limit=2, offset=4))
    empty = build_page([], total=0, params=get_pagination_params(limit=50, offset=0))

    assert first.has_more is True
    assert last.has_more is False
    assert empty.has_more is False
    assert (last.limit, last.offset, last.total) == (2, 4, 5)


def test_page_size_settings() -> None:
    settings = Settings(_env_file=None)
    assert (settings.page_size_default, settings.page_size_max) == (50, 500)

    with pytest.raises(ValidationError):
        Settings(_env_file=None, page_size_default=600, page_size_max=500)
