from pytest_mock import MockerFixture

from common.command_utils import CommandResult
from common.system_utils import (
    is_running_as_root,
    read_os_release,
    systemd_enable_and_start,
    systemd_reload,
    systemd_unit_active,
)


def test_is_running_as_root(mocker: MockerFixture):
    mocker.patch("common.system_utils.os.geteuid", return_value=0)
    assert is_running_as_root()
    mocker.patch("common.system_utils.os.geteuid", return_value=1000)
    assert not is_running_as_root()


def test_read_os_release(tmp_path):
    os_release = tmp_path / "os-release"
    os_release.write_text(
        '# comment\nID=debian\nVERSION_ID="12"\nPRETTY_NAME="Debian GNU/Linux 12 (bookworm)"\n\nbogus\n'
    )
    assert read_os_release(os_release) == {
        "ID": "debian",
        "VERSION_ID": "12",
        "PRETTY_NAME": "Debian GNU/Linux 12 (bookworm)",
    }


def test_systemd_reload_and_enable(fake_executor):
    systemd_reload(fake_executor, "nginx")
    systemd_enable_and_start(fake_executor, "certbot.timer")
    assert fake_executor.commands() == [
        ["systemctl", "reload", "nginx"],
        ["systemctl", "enable", "certbot.timer"],
        ["systemctl", "start", "certbot.timer"],
    ]


def test_systemd_unit_active(executor_factory):
    active = executor_factory({"systemctl": CommandResult(0, "active\n")})
    assert systemd_unit_active(active, "certbot.timer")
    assert active.commands() == [["systemctl", "is-active", "certbot.timer"]]

    inactive = executor_factory({"systemctl": CommandResult(3, "inactive\n")})
    assert not systemd_unit_active(inactive, "certbot.timer")

    failing = executor_factory({"systemctl": CommandResult(1, "System has not been booted with systemd")})
    assert not systemd_unit_active(failing, "certbot.timer")
