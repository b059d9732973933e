import pytest

from common.command_utils import CommandResult
from configure.certbot_configurator import (
    certbot_arguments,
    certbot_domain_precondition,
    is_public_fqdn,
    run_certbot_nginx,
    setup_ssl_renewal,
)


@pytest.mark.parametrize(
    "domain, expected",
    [
        ("example.org", True),
        ("blog.example.org.", True),
        ("localhost", False),
        ("app.localhost", False),
        ("192.0.2.10", False),
        ("2001:db8::1", False),
        ("intranet", False),
    ],
)
def test_is_public_fqdn(domain, expected):
    assert is_public_fqdn(domain) is expected


def test_certbot_arguments(app_settings, site_params):
    assert certbot_arguments(site_params, app_settings) == [
        "--nginx",
        "--non-interactive",
        "--agree-tos",
        "--redirect",
        "--hsts",
        "-m",
        "ops@example.org",
        "-d",
        "example.org",
        "-d",
        "www.example.org",
    ]


def test_certbot_arguments_respect_settings(app_settings, site_params):
    app_settings.certbot.use_hsts = False
    app_settings.certbot.include_www = False
    args = certbot_arguments(site_params, app_settings)
    assert "--hsts" not in args
    assert "www.example.org" not in args


def test_precondition_rejects_non_public_domain(app_settings, site_params, caplog):
    local = site_params.model_copy(update={"domain": "localhost"})
    assert certbot_domain_precondition(site_params, app_settings)
    assert not certbot_domain_precondition(local, app_settings)
    assert "--no-tls" in caplog.text


def test_certbot_failure_is_raised(app_settings, site_params, executor_factory):
    executor = executor_factory({"certbot": CommandResult(1, "Challenge failed for domain example.org")})
    with pytest.raises(RuntimeError, match="Challenge failed"):
        run_certbot_nginx(executor, site_params, app_settings)


def test_renewal_timer_already_active(app_settings, executor_factory):
    executor = executor_factory({"systemctl": CommandResult(0, "active\n")})
    setup_ssl_renewal(executor, app_settings)
    assert executor.commands() == [["systemctl", "is-active", "certbot.timer"]]


def test_inactive_renewal_timer_is_enabled(app_settings, executor_factory):
    def systemctl(command, args, cmd_input, env):
        return CommandResult(3, "inactive\n") if args[0] == "is-active" else CommandResult(0, "")

    executor = executor_factory({"systemctl": systemctl})
    setup_ssl_renewal(executor, app_settings)
    assert executor.commands() == [
        ["systemctl", "is-active", "certbot.timer"],
        ["systemctl", "enable", "certbot.timer"],
        ["systemctl", "start", "certbot.timer"],
    ]


def test_renewal_timer_is_enabled_when_missing(app_settings, fake_executor):
    setup_ssl_renewal(fake_executor, app_settings)
    assert fake_executor.commands() == [
        ["systemctl", "is-active", "certbot.timer"],
        ["systemctl", "enable", "certbot.timer"],
        ["systemctl", "start", "certbot.timer"],
    ]
