import pytest

from dcos_provision.errors import RemoteCommandError
from dcos_provision.remote.commands import HEREDOC_MARKER, remote_sudo, write_remote_file

from conftest import FakeChannel, make_machine


def test_remote_sudo_returns_output():
    m = make_machine("boot", "boot", "10.0.0.1", channel=FakeChannel(output="hello\n"))
    rc, out, err = remote_sudo(m, "echo hello")
    assert (rc, out, err) == (0, "hello\n", "")
    assert m.channel.commands == ["echo hello"]


def test_remote_sudo_raises_on_non_zero_exit():
    m = make_machine("m1", "master", "10.0.0.2", channel=FakeChannel(failures={"false": 4}))
    with pytest.raises(RemoteCommandError) as exc:
        remote_sudo(m, "false")
    assert exc.value.machine == "m1"
    assert exc.value.exit_status == 4
    assert exc.value.command == "false"


def test_remote_sudo_without_check_reports_status():
    m = make_machine("m1", "master", "10.0.0.2", channel=FakeChannel(failures={"systemctl status": 3}))
    rc, _out, err = remote_sudo(m, "systemctl status dcos-installer", check=False)
    assert rc == 3
    assert "boom" in err


def test_write_remote_file_uses_quoted_heredoc():
    m = make_machine("boot", "boot", "10.0.0.1")
    write_remote_file(m, "/tmp/x.sh", "echo $HOME", mode="u+x")

    cmd, chmod = m.channel.commands
    assert cmd == f"cat << '{HEREDOC_MARKER}' > /tmp/x.sh\necho $HOME\n{HEREDOC_MARKER}"
    assert chmod == "chmod u+x /tmp/x.sh"


def test_write_remote_file_rejects_marker_in_content():
    m = make_machine("boot", "boot", "10.0.0.1")
    with pytest.raises(ValueError):
        write_remote_file(m, "/tmp/x", f"a\n{HEREDOC_MARKER}\nb")
    assert m.channel.commands == []
