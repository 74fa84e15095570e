"""Tests for the wg command dump source, with subprocess faked out."""

import subprocess

import pytest

from wgexporter.collector import wg_command
from wgexporter.collector.wg_command import WgCommandSource
from wgexporter.errors import ExternalToolFailure

WG0_OUTPUT = b"priv\tpub\t51820\toff\nPEER_A=\t(none)\t(none)\t(none)\t0\t0\t0\toff\n"


def _fake_run(stdout=b"", stderr=b"", returncode=0, calls=None):
    def run(cmd, **kwargs):
        if calls is not None:
            calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)
    return run


def test_command_line():
    assert WgCommandSource().command("wg0") == ["wg", "show", "wg0", "dump"]
    assert WgCommandSource(prepend_sudo=True).command("all") == ["sudo", "wg", "show", "all", "dump"]
    assert WgCommandSource(wg_binary="/usr/bin/wg").command("wg0")[0] == "/usr/bin/wg"


def test_named_interface_gets_interface_column(monkeypatch):
    calls = []
    monkeypatch.setattr(wg_command.subprocess, "run", _fake_run(stdout=WG0_OUTPUT, calls=calls))

    text = WgCommandSource(timeout_seconds=2.5).dump("wg0")

    assert text.splitlines() == [
        "wg0\tpriv\tpub\t51820\toff",
        "wg0\tPEER_A=\t(none)\t(none)\t(none)\t0\t0\t0\toff",
    ]
    cmd, kwargs = calls[0]
    assert cmd == ["wg", "show", "wg0", "dump"]
    assert kwargs["timeout"] == 2.5


def test_all_interfaces_output_is_untouched(monkeypatch):
    output = b"wg0\tpriv\tpub\t51820\toff\n"
    monkeypatch.setattr(wg_command.subprocess, "run", _fake_run(stdout=output))
    assert WgCommandSource().dump("all") == output.decode()


def test_non_zero_exit_fails(monkeypatch):
    monkeypatch.setattr(
        wg_command.subprocess, "run",
        _fake_run(stderr=b"Unable to access interface: No such device\n", returncode=1),
    )
    with pytest.raises(ExternalToolFailure) as exc:
        WgCommandSource().dump("wg9")
    assert exc.value.returncode == 1
    assert "No such device" in str(exc.value)


def test_non_utf8_output_fails(monkeypatch):
    monkeypatch.setattr(wg_command.subprocess, "run", _fake_run(stdout=b"wg0\t\xff\xfe\n"))
    with pytest.raises(ExternalToolFailure):
        WgCommandSource().dump("wg0")


def test_timeout_fails(monkeypatch):
    def run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])
    monkeypatch.setattr(wg_command.subprocess, "run", run)

    with pytest.raises(ExternalToolFailure) as exc:
        WgCommandSource(timeout_seconds=1).dump("wg0")
    assert "timed out" in str(exc.value)


def test_missing_binary_fails():
    source = WgCommandSource(wg_binary="/nonexistent/wg-binary-for-tests")
    with pytest.raises(ExternalToolFailure):
        source.dump("wg0")
