import logging

import pytest

from subfusion.logging_config import SensitiveDataFilter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop the handlers installed by setup_logging and restore the root level."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def log_record():
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="",
        args=(),
        exc_info=None,
    )


def test_masks_uuid(log_record):
    log_record.msg = "node uuid a1b2c3d4-e5f6-7890-1234-567890abcdef is up"
    SensitiveDataFilter().filter(log_record)
    assert "[MASKED_UUID]" in log_record.msg
    assert "a1b2c3d4" not in log_record.msg


def test_masks_key_value_credentials(log_record):
    log_record.msg = "request with token=abc123&password: hunter2"
    SensitiveDataFilter().filter(log_record)
    assert "abc123" not in log_record.msg
    assert "hunter2" not in log_record.msg
    assert log_record.msg.count("[MASKED_CREDENTIAL]") == 2


def test_masks_link_userinfo(log_record):
    log_record.msg = "parsing trojan://s3cret@host.example.com:443"
    SensitiveDataFilter().filter(log_record)
    assert log_record.msg == "parsing trojan://[MASKED_USERINFO]@host.example.com:443"


def test_masks_email(log_record):
    log_record.msg = "Contact admin@example.com"
    SensitiveDataFilter().filter(log_record)
    assert log_record.msg == "Contact [MASKED_EMAIL]"


def test_formats_args_before_masking(log_record):
    log_record.msg = "profile %s via %s"
    log_record.args = ("p1", "vless://a1b2c3d4-e5f6-7890-1234-567890abcdef@h.example.com:443")
    SensitiveDataFilter().filter(log_record)
    assert log_record.args == ()
    assert log_record.msg.startswith("profile p1 via vless://")
    assert "a1b2c3d4" not in log_record.msg


def test_leaves_plain_messages_alone(log_record):
    log_record.msg = "Connecting to 192.168.1.1:443"
    SensitiveDataFilter().filter(log_record)
    assert log_record.msg == "Connecting to 192.168.1.1:443"


def test_setup_logging_installs_filtered_handlers(tmp_path):
    log_file = tmp_path / "subfusion.log"
    setup_logging("debug", mask_sensitive=True, log_file=log_file)
    root = logging.getLogger()

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert all(
        any(isinstance(f, SensitiveDataFilter) for f in h.filters) for h in root.handlers
    )

    logging.getLogger("subfusion.test").info("token=topsecret")
    for handler in root.handlers:
        handler.flush()
    content = log_file.read_text()
    assert "topsecret" not in content
    assert "[MASKED_CREDENTIAL]" in content


def test_setup_logging_without_masking():
    setup_logging("WARNING", mask_sensitive=False)
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert not root.handlers[0].filters
