import json

import httpx
import pytest
import yaml
from typer.testing import CliRunner

from labportal.commons.types import PatientInfo
from labportal.storage.patient_store import PatientStore
from run import app, load_cfg

runner = CliRunner()


@pytest.fixture
def cfg_env(tmp_path, monkeypatch):
    cfg = {
        "portal": {"base_url": "https://portal.test/"},
        "paths": {
            "logs_root": str(tmp_path / "logs"),
            "downloads": str(tmp_path / "downloads"),
            "store_file": str(tmp_path / "data" / "store.json"),
        },
    }
    cfg_path = tmp_path / "settings.yaml"
    cfg_path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    monkeypatch.setenv("LABPORTAL_CONFIG", str(cfg_path))
    return tmp_path


# ----------------- Almacén -----------------
def test_store_patient_roundtrip(tmp_path):
    store = PatientStore(str(tmp_path / "s.json"))
    assert store.get_patient() is None
    assert store.get_language() == "es"
    p = PatientInfo(name="Rivera", year="1990", month="1", day="2")
    store.set_patient(p)
    store.set_language("en")
    assert store.get_patient() == p
    store.clear_patient()
    assert store.get_patient() is None
    assert store.get_language() == "en"
    store.clear_all()
    assert not (tmp_path / "s.json").exists()


def test_store_session_token(tmp_path):
    store = PatientStore(str(tmp_path / "s.json"))
    store.set_session_token("abc")
    assert store.get_session_token() == "abc"
    store.set_session_token(None)
    assert store.get_session_token() is None


def test_store_corrupt_file_is_ignored(tmp_path):
    f = tmp_path / "s.json"
    f.write_text("{no es json", encoding="utf-8")
    store = PatientStore(str(f))
    assert store.get_patient() is None
    assert store.get_language() == "es"


# ----------------- Configuración -----------------
def test_load_default_settings():
    cfg = load_cfg()
    assert cfg.portal.base_url == "https://www.misresultados.com"
    assert cfg.portal.session_cookie == "ASP.NET_SessionId"
    assert cfg.portal.form_fields["captcha"] == "g-recaptcha-response"


def test_load_settings_from_env(cfg_env):
    cfg = load_cfg()
    assert cfg.portal.base_url == "https://portal.test"
    assert cfg.portal.form_fields["last_name"] == "LastName"


# ----------------- CLI -----------------
def test_cli_save_and_show_patient(cfg_env):
    r = runner.invoke(app, ["save-patient", "--name", "Del Valle", "--day", "7", "--month", "3", "--year", "1985"])
    assert r.exit_code == 0, r.output
    assert "Información del paciente guardada." in r.output

    data = json.loads((cfg_env / "data" / "store.json").read_text(encoding="utf-8"))
    assert data["patient_info"] == {"name": "Del Valle", "year": "1985", "month": "03", "day": "07"}

    r = runner.invoke(app, ["show-patient"])
    assert r.exit_code == 0
    assert "07/03/1985" in r.output


def test_cli_invalid_patient(cfg_env):
    r = runner.invoke(app, ["save-patient", "--name", "X", "--day", "7", "--month", "3", "--year", "85"])
    assert r.exit_code == 1
    assert not (cfg_env / "data" / "store.json").exists()


def test_cli_language_switch(cfg_env):
    r = runner.invoke(app, ["set-language", "en"])
    assert r.exit_code == 0
    assert "Language updated." in r.output
    r = runner.invoke(app, ["show-patient"])
    assert "No patient information saved." in r.output
    r = runner.invoke(app, ["set-language", "fr"])
    assert r.exit_code == 1


def test_cli_clear_patient(cfg_env):
    runner.invoke(app, ["save-patient", "--name", "Ortiz", "--day", "1", "--month", "1", "--year", "2000"])
    r = runner.invoke(app, ["clear-patient"])
    assert r.exit_code == 0
    assert PatientStore(str(cfg_env / "data" / "store.json")).get_patient() is None


def test_cli_fetch_requires_patient(cfg_env):
    r = runner.invoke(app, ["fetch", "--control", "1", "--license", "2"])
    assert r.exit_code == 1
    assert "save-patient" in r.output


def test_cli_fetch_requires_key(cfg_env):
    runner.invoke(app, ["save-patient", "--name", "Ortiz", "--day", "1", "--month", "1", "--year", "2000"])
    r = runner.invoke(app, ["fetch", "--control", "1"])
    assert r.exit_code == 1
    assert "Por favor complete todos los campos." in r.output


def test_cli_fetch_invalid_link(cfg_env):
    runner.invoke(app, ["save-patient", "--name", "Ortiz", "--day", "1", "--month", "1", "--year", "2000"])
    r = runner.invoke(app, ["fetch", "--link", "esto no es un enlace"])
    assert r.exit_code == 1
    assert "El enlace no contiene" in r.output


def _portal_client(html):
    # Portal de pruebas: la cookie de sesión llega solo en el GET
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, headers={"Set-Cookie": "ASP.NET_SessionId=fromget; path=/"}, text="<form></form>")
        return httpx.Response(200, text=html)

    def build(portal, transport=None):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return build


ONE_RESULT_HTML = """<table>
<tr><td><a href="/pdf/9.pdf">Ver</a></td><td>009</td><td>LAB09</td><td>2024-05-05</td></tr>
</table>"""


def test_cli_fetch_saves_session_from_jar(cfg_env, monkeypatch):
    monkeypatch.setattr("labportal.services.results_service.build_client", _portal_client(ONE_RESULT_HTML))
    runner.invoke(app, ["save-patient", "--name", "Ortiz", "--day", "1", "--month", "1", "--year", "2000"])
    r = runner.invoke(app, ["fetch", "--control", "009", "--license", "LAB09"])
    assert r.exit_code == 0, r.output
    assert "009" in r.output
    assert PatientStore(str(cfg_env / "data" / "store.json")).get_session_token() == "fromget"


def test_cli_fetch_json_without_results(cfg_env, monkeypatch):
    monkeypatch.setattr("labportal.services.results_service.build_client", _portal_client("<p>nada</p>"))
    runner.invoke(app, ["save-patient", "--name", "Ortiz", "--day", "1", "--month", "1", "--year", "2000"])
    r = runner.invoke(app, ["fetch", "--control", "1", "--license", "2", "--json"])
    assert r.exit_code == 0, r.output
    assert "[]" in r.output
    assert "No se encontraron resultados." not in r.output

    r = runner.invoke(app, ["fetch", "--control", "1", "--license", "2"])
    assert r.exit_code == 0
    assert "No se encontraron resultados." in r.output
