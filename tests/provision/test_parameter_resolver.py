import logging
from pathlib import Path

import pytest
from pydantic import ValidationError
from pytest_mock import MockerFixture

from provision.exceptions import InputError
from provision.parameter_resolver import PARAMETER_DEFINITIONS, ParameterResolver


def _resolver(presets=None, environ=None, **kwargs):
    kwargs.setdefault("input_func", lambda prompt: "")
    kwargs.setdefault("secret_input_func", lambda prompt: "")
    return ParameterResolver(
        presets=presets or {}, environ=environ if environ is not None else {}, **kwargs
    )


def test_parameter_table_covers_every_site_parameter():
    names = [definition.name for definition in PARAMETER_DEFINITIONS]
    assert names == [
        "db_name",
        "db_user",
        "db_password",
        "domain",
        "email",
        "php_version",
        "web_root",
        "mariadb_root_password",
    ]
    assert [definition.name for definition in PARAMETER_DEFINITIONS if definition.secret] == ["mariadb_root_password"]


def test_preset_beats_environment_beats_prompt(mocker: MockerFixture):
    """An explicit preset wins over the environment, which wins over the prompt."""
    prompt = mocker.Mock(return_value="prompted.example.net")
    resolver = _resolver(
        presets={"domain": "cli.example.net"},
        environ={"DOMAIN": "env.example.net", "DB_NAME": "env_db"},
        input_func=prompt,
    )

    assert resolver.resolve("domain") == "cli.example.net"
    assert resolver.resolve("db_name") == "env_db"
    assert resolver.resolve("db_user") == "prompted.example.net"
    prompt.assert_called_once_with("Enter WordPress database user [wp_user]: ")


def test_empty_environment_value_counts_as_unset():
    resolver = _resolver(environ={"DB_USER": ""}, input_func=lambda prompt: "typed_user")
    assert resolver.resolve("db_user") == "typed_user"


def test_empty_prompt_input_selects_default():
    resolver = _resolver(input_func=lambda prompt: "   ")
    assert resolver.resolve("php_version") == "8.0"


def test_eof_on_prompt_selects_default(caplog):
    def eof(prompt):
        raise EOFError

    resolver = _resolver(input_func=eof)
    with caplog.at_level(logging.WARNING):
        assert resolver.resolve("db_name") == "wordpress_db"
    assert "EOF" in caplog.text


def test_resolve_prompts_only_once(mocker: MockerFixture):
    prompt = mocker.Mock(return_value="my_db")
    resolver = _resolver(input_func=prompt)

    assert resolver.resolve("db_name") == "my_db"
    assert resolver.resolve("db_name") == "my_db"
    prompt.assert_called_once()


def test_non_interactive_uses_defaults_without_prompting(mocker: MockerFixture):
    prompt = mocker.Mock()
    resolver = _resolver(
        environ={"MYSQL_ROOT_PASSWORD": "r00t"}, interactive=False, input_func=prompt
    )

    params = resolver.resolve_all()

    prompt.assert_not_called()
    assert params.db_name == "wordpress_db"
    assert params.domain == "example.com"
    assert params.web_root == Path("/var/www/html")
    assert params.mariadb_root_password.get_secret_value() == "r00t"


def test_secret_from_environment():
    resolver = _resolver(environ={"MYSQL_ROOT_PASSWORD": "from-env"})
    assert resolver.resolve("mariadb_root_password") == "from-env"


def test_secret_is_prompted_without_echo(mocker: MockerFixture):
    plain_prompt = mocker.Mock(return_value="")
    hidden_prompt = mocker.Mock(return_value="typed-secret")
    resolver = _resolver(input_func=plain_prompt, secret_input_func=hidden_prompt)

    assert resolver.resolve("mariadb_root_password") == "typed-secret"
    hidden_prompt.assert_called_once_with("Enter MariaDB root password: ")
    plain_prompt.assert_not_called()


def test_missing_secret_in_non_interactive_mode_is_an_input_error():
    resolver = _resolver(interactive=False)
    with pytest.raises(InputError, match="MYSQL_ROOT_PASSWORD is not set"):
        resolver.resolve("mariadb_root_password")


def test_secret_prompt_eof_is_an_input_error():
    def eof(prompt):
        raise EOFError

    resolver = _resolver(secret_input_func=eof)
    with pytest.raises(InputError):
        resolver.resolve("mariadb_root_password")


def test_empty_secret_is_an_input_error():
    resolver = _resolver(secret_input_func=lambda prompt: "")
    with pytest.raises(InputError, match="must not be empty"):
        resolver.resolve("mariadb_root_password")


def test_secret_preset_is_ignored(caplog):
    resolver = _resolver(
        presets={"mariadb_root_password": "from-yaml"},
        environ={"MYSQL_ROOT_PASSWORD": "from-env"},
    )
    assert resolver.resolve("mariadb_root_password") == "from-env"
    assert "Ignoring 'mariadb_root_password'" in caplog.text
    assert "from-yaml" not in caplog.text


def test_unknown_preset_is_rejected():
    with pytest.raises(InputError, match="Unknown site parameter 'db_host'"):
        _resolver(presets={"db_host": "localhost"})


def test_invalid_values_raise_input_error():
    resolver = _resolver(
        presets={"db_name": "bad-name;DROP", "php_version": "eight"},
        environ={"MYSQL_ROOT_PASSWORD": "x"},
        interactive=False,
    )
    with pytest.raises(InputError) as excinfo:
        resolver.resolve_all()
    assert "db_name" in str(excinfo.value)
    assert "php_version" in str(excinfo.value)


def test_relative_web_root_is_rejected():
    resolver = _resolver(
        presets={"web_root": "var/www"},
        environ={"MYSQL_ROOT_PASSWORD": "x"},
        interactive=False,
    )
    with pytest.raises(InputError, match="web_root"):
        resolver.resolve_all()


def test_domain_is_normalised():
    resolver = _resolver(
        presets={"domain": "Blog.Example.ORG."},
        environ={"MYSQL_ROOT_PASSWORD": "x"},
        interactive=False,
    )
    assert resolver.resolve_all().domain == "blog.example.org"


def test_insecure_default_password_warns(caplog):
    resolver = _resolver(environ={"MYSQL_ROOT_PASSWORD": "x"}, interactive=False)
    with caplog.at_level(logging.WARNING):
        params = resolver.resolve_all()
    assert params.uses_insecure_db_password
    assert "insecure default" in caplog.text


def test_custom_password_does_not_warn(caplog):
    resolver = _resolver(
        presets={"db_password": "long-and-random"},
        environ={"MYSQL_ROOT_PASSWORD": "x"},
        interactive=False,
    )
    with caplog.at_level(logging.WARNING):
        resolver.resolve_all()
    assert "insecure default" not in caplog.text


def test_resolved_parameters_are_frozen():
    params = _resolver(
        environ={"MYSQL_ROOT_PASSWORD": "s3cr3t-root"}, interactive=False
    ).resolve_all()
    with pytest.raises(ValidationError):
        params.domain = "other.example.org"
    assert "s3cr3t-root" not in repr(params)
    assert "s3cr3t-root" not in params.model_dump_json()
