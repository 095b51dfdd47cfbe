import pytest

from config import Config


def test_explicit_credential_file(tmp_path, monkeypatch):
    cred = tmp_path / "service-account.json"
    cred.write_text("{}", encoding="utf-8")
    monkeypatch.setattr(Config, "GOOGLE_APPLICATION_CREDENTIALS", f'"{cred}"')

    assert Config.firebase_cred_path() == str(cred)


def test_missing_credential_file_is_an_error(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "GOOGLE_APPLICATION_CREDENTIALS", str(tmp_path / "nope.json"))

    with pytest.raises(FileNotFoundError):
        Config.firebase_cred_path()


def test_first_file_in_credentials_dir(tmp_path, monkeypatch):
    (tmp_path / "b.json").write_text("{}", encoding="utf-8")
    (tmp_path / "a.json").write_text("{}", encoding="utf-8")
    monkeypatch.setattr(Config, "GOOGLE_APPLICATION_CREDENTIALS", None)
    monkeypatch.setattr(Config, "FIREBASE_CREDENTIALS_DIR", tmp_path)

    assert Config.firebase_cred_path() == str(tmp_path / "a.json")


def test_default_credentials_when_nothing_configured(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "GOOGLE_APPLICATION_CREDENTIALS", None)
    monkeypatch.setattr(Config, "FIREBASE_CREDENTIALS_DIR", tmp_path / "missing")

    assert Config.firebase_cred_path() is None
