import logging

from provision.cli_handler import format_step_list, list_steps, view_configuration
from provision.pipeline import Pipeline, PreconditionPolicy, Step


def test_view_configuration_masks_passwords(caplog, app_settings):
    presets = {"db_password": "cli-secret-pw", "domain": "example.org"}
    environ = {"MYSQL_ROOT_PASSWORD": "root-secret-pw", "DB_NAME": "env_db"}

    with caplog.at_level(logging.INFO):
        view_configuration(app_settings, presets, environ)

    assert "cli-secret-pw" not in caplog.text
    assert "root-secret-pw" not in caplog.text
    assert "[FROM MYSQL_ROOT_PASSWORD]" in caplog.text
    assert "example.org  [CLI/YAML]" in caplog.text
    assert "env_db  [DB_NAME]" in caplog.text
    assert "wp_user  [default]" in caplog.text


def test_view_configuration_flags_default_password(caplog, app_settings):
    with caplog.at_level(logging.INFO):
        view_configuration(app_settings, {}, {})
    assert "DEFAULT - Insecure!" in caplog.text
    assert "wp_pass_123" not in caplog.text
    assert "[PROMPTED AT RUN TIME]" in caplog.text


def test_step_list_format_and_return_value(capsys):
    pipelines = [
        Pipeline("preflight", [Step(name="check_privileges", description="Root?", action=lambda: None)]),
        Pipeline(
            "provision",
            [
                Step(
                    name="configure_firewall",
                    description="UFW",
                    action=lambda: None,
                    on_precondition_failure=PreconditionPolicy.SKIP,
                )
            ],
        ),
    ]

    assert format_step_list(pipelines) == (
        "preflight:\n"
        "   1. check_privileges - Root?\n"
        "provision:\n"
        "   1. configure_firewall (optional) - UFW"
    )
    listed = list_steps(pipelines)
    assert listed == {"preflight": ["check_privileges"], "provision": ["configure_firewall"]}
    assert "configure_firewall (optional)" in capsys.readouterr().out
