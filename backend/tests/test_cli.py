# tests/test_cli.py

from privchat.cli import main
from privchat.core.security import verify_secret


def test_prints_usable_hash(capsys):
    assert main(["s3cret", "--rounds", "4"]) == 0

    out = capsys.readouterr().out
    line = next(l for l in out.splitlines() if l.startswith("CHAT_PASSWORD="))
    assert verify_secret("s3cret", line.split("=", 1)[1])


def test_rejects_blank_password(capsys):
    assert main(["   "]) == 1
    assert "cannot be empty" in capsys.readouterr().err
