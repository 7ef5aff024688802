import pytest

from krill import __version__
from krill.__main__ import UsageError, parse_args, run


def test_parse_args_collects_overrides_and_url() -> None:
    options, overrides, url = parse_args(["-s", "--tor", "-w", "-p", "sdf.org/1/users"])

    assert overrides == {"tls": True, "tor": True, "wide": True}
    assert options["print"] is True
    assert url == "sdf.org/1/users"


def test_parse_args_config_file() -> None:
    options, _, url = parse_args(["-c", "my.conf"])

    assert options["config"] == "my.conf"
    assert url is None


@pytest.mark.parametrize("argv", [["--bogus"], ["-c"], ["a.example", "b.example"]])
def test_parse_args_rejects(argv) -> None:
    with pytest.raises(UsageError):
        parse_args(argv)


def test_usage_error_exit_code(capsys) -> None:
    assert run(["--bogus"]) == 2
    assert "unknown option" in capsys.readouterr().err


def test_version(capsys) -> None:
    assert run(["-v"]) == 0
    assert capsys.readouterr().out.strip() == f"krill {__version__}"


def test_bad_url_exits_before_starting(capsys) -> None:
    assert run(["-C", "gopher://:70/"]) == 1
    assert "krill:" in capsys.readouterr().err


def test_print_builtin_page(capsys) -> None:
    assert run(["-C", "-p", "gopher://help/1/about"]) == 0

    out = capsys.readouterr().out
    assert f"krill {__version__}" in out
    assert "\x1b[" not in out
