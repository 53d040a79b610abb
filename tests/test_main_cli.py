from main import _parse_args


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "0.0.0.0", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "0.0.0.0"
    assert args.port == 8080


def test_users_subcommand_keeps_search_optional() -> None:
    assert _parse_args(["users"]).search is None
    assert _parse_args(["users", "--search", ""]).search == ""


def test_users_command_prints_tables(monkeypatch, capsys, backend) -> None:
    import anyio

    import main
    import userdash.web as web_module
    from userdash.config import Settings

    monkeypatch.setattr(web_module, "build_client", lambda settings: backend.client())

    status = anyio.run(main._print_users, Settings(date_format="%Y-%m-%d"), "reed")

    output = capsys.readouterr().out
    assert status == 0
    assert "2024-03-01" in output
    assert "Total Users: 1" in output
    assert "Reed" in output
    assert "Stone" not in output
