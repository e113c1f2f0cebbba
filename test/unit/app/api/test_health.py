"""Tests for the health endpoint."""

from app.api.health import health_report
from app.core.settings import settings as st


def test_health_reports_upload_ceiling() -> None:
    result = health_report()

    assert result.status == "healthy"
    assert result.service == st.API_NAME
    assert result.max_file_size == st.MAX_FILE_SIZE
