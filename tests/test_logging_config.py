"""
Unit tests for logging helpers.
"""
import logging

from recode.core.logging_config import sanitize_log_data, setup_logging


def test_sanitize_log_data_redacts_secrets():
    data = {
        "database_url": "postgresql://user:pw@db/recode",
        "redis_url": "redis://:pw@cache:6379/0",
        "admin_password": "hunter2",
        "cache_ttl_seconds": 604800,
    }

    sanitized = sanitize_log_data(data)

    assert sanitized["database_url"] == "***REDACTED***"
    assert sanitized["redis_url"] == "***REDACTED***"
    assert sanitized["admin_password"] == "***REDACTED***"
    assert sanitized["cache_ttl_seconds"] == 604800
    # Original is untouched
    assert data["admin_password"] == "hunter2"


def test_setup_logging_writes_rotating_file(tmp_path):
    setup_logging("DEBUG", log_dir=str(tmp_path))
    try:
        logging.getLogger("recode.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello" in (tmp_path / "recode.log").read_text()
        assert logging.getLogger("redis").level == logging.WARNING
    finally:
        logging.getLogger().handlers.clear()
