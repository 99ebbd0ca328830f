from __future__ import annotations

from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_default_secret_key_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", secret_key="change-me")
    assert settings.secret_key == "change-me"


def test_default_secret_key_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", secret_key="change-me")


def test_placeholder_secret_key_prefix_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="prod", secret_key="change-me-in-production")


def test_custom_secret_key_allowed_in_production() -> None:
    settings = Settings(_env_file=None, app_env="production", secret_key="super-secure-value")
    assert settings.secret_key == "super-secure-value"


def test_business_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.business_tz == ZoneInfo("Asia/Dhaka")
    assert settings.default_session_hours == Decimal("1.5")
    assert settings.default_hourly_rate == Decimal("600")
    assert settings.create_upload_task_on_confirm is True


def test_unknown_business_timezone_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, business_timezone="Mars/Olympus_Mons")


def test_session_defaults_validated() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_session_hours=Decimal("0"))
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_hourly_rate=Decimal("-1"))
    with pytest.raises(ValidationError):
        Settings(_env_file=None, bulk_paid_chunk_size=0)
