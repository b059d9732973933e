import logging
import re

import pytest

from common.core_utils import (
    REDACTED,
    SecretRedactingFilter,
    setup_logging,
    teardown_logging,
)

AUDIT_LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} : (.*)$")


@pytest.fixture
def audit_log(tmp_path):
    log_file = tmp_path / "audit" / "install.log"
    yield log_file
    teardown_logging()


def _audit_messages(log_file):
    lines = log_file.read_text(encoding="utf-8").splitlines()
    messages = []
    for line in lines:
        match = AUDIT_LINE_RE.match(line)
        assert match, f"unexpected audit line: {line!r}"
        messages.append(match.group(1))
    return messages


def test_audit_log_line_format(audit_log):
    setup_logging(logging.INFO, log_file=str(audit_log), log_to_console=False)
    logger = logging.getLogger("test.audit")

    logger.info("Starting step 'install_php': Install PHP")
    logger.warning("Default password in use")
    logger.error("Step 'install_php' failed: rc 100")
    logger.debug("not recorded at INFO")

    assert _audit_messages(audit_log) == [
        "Starting step 'install_php': Install PHP",
        "WARNING: Default password in use",
        "ERROR: Step 'install_php' failed: rc 100",
    ]


def test_audit_log_is_appended(audit_log):
    audit_log.parent.mkdir(parents=True)
    audit_log.write_text("2024-01-01 00:00:00 : earlier run\n", encoding="utf-8")

    setup_logging(logging.INFO, log_file=str(audit_log), log_to_console=False)
    logging.getLogger("test.audit").info("this run")
    teardown_logging()

    assert _audit_messages(audit_log) == ["earlier run", "this run"]


def test_secrets_are_redacted_on_every_handler(audit_log, capsys):
    redaction = SecretRedactingFilter()
    setup_logging(logging.INFO, log_file=str(audit_log), redaction_filter=redaction)
    redaction.register("hunter2")

    logging.getLogger("test.audit").info("password is %s", "hunter2")

    assert _audit_messages(audit_log) == [f"password is {REDACTED}"]
    assert "hunter2" not in capsys.readouterr().out


def test_longest_secret_is_masked_first():
    redaction = SecretRedactingFilter()
    redaction.register("abc")
    redaction.register("abcdef")
    redaction.register("")
    assert redaction.redact("x abcdef y abc") == f"x {REDACTED} y {REDACTED}"


def test_secret_is_masked_only_as_a_whole_token():
    redaction = SecretRedactingFilter()
    redaction.register("wordpress")
    assert redaction.redact("db wordpress_db created") == "db wordpress_db created"
    assert redaction.redact("IDENTIFIED BY 'wordpress'") == f"IDENTIFIED BY '{REDACTED}'"
    assert redaction.redact("password=wordpress") == f"password={REDACTED}"


def test_secret_with_punctuation_edges():
    redaction = SecretRedactingFilter()
    redaction.register("R00t-S3cret!")
    assert redaction.redact("pw R00t-S3cret!xyz") == f"pw {REDACTED}xyz"


def test_unwritable_log_file_raises(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(OSError):
        setup_logging(logging.INFO, log_file=str(blocker / "install.log"), log_to_console=False)
    teardown_logging()


def test_teardown_leaves_foreign_handlers(audit_log):
    foreign = logging.NullHandler()
    root = logging.getLogger()
    root.addHandler(foreign)
    try:
        setup_logging(logging.INFO, log_file=str(audit_log), log_to_console=False)
        teardown_logging()
        assert foreign in root.handlers
    finally:
        root.removeHandler(foreign)
