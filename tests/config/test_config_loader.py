from pathlib import Path
import textwrap

import pytest
from pydantic import ValidationError

from agent_acceptance.config.loader import load_config

ROSTER = textwrap.dedent("""
    files_dir: files
    project_root: ..
    hosts:
      - name: master
        address: 10.0.0.10
        platform: el-7-x86_64
        roles: [master]
        use_service_scripts: true
        puppetservice: puppetserver
      - name: agent
        platform: debian-8-amd64
""")


@pytest.fixture(autouse=True)
def _no_secrets_env(monkeypatch):
    monkeypatch.delenv("AGENT_ACCEPTANCE_SECRETS_FILE", raising=False)


def test_load_config_minimal_ok(tmp_path: Path):
    f = tmp_path / "roster.yaml"
    f.write_text(ROSTER)

    cfg = load_config(f)
    roster = cfg.roster()

    assert roster.master.name == "master"
    assert roster.master.puppetservice == "puppetserver"
    assert [h.name for h in roster.agents] == ["agent"]
    # address defaults to the roster name
    assert roster.get("agent").address == "agent"
    assert cfg.files_dir == (tmp_path / "files").resolve()
    assert cfg.project_root == tmp_path.parent.resolve()
    assert cfg.templates_dir is None
    assert cfg.broker_port == 61614


def test_secrets_merged_by_host_name(tmp_path: Path):
    (tmp_path / "roster.yaml").write_text(ROSTER)
    (tmp_path / "secrets.yaml").write_text(textwrap.dedent("""
        keystore_password: s3cret
        hosts:
          - name: agent
            password: hunter2
    """))

    cfg = load_config(tmp_path / "roster.yaml")

    assert cfg.keystore_password == "s3cret"
    assert cfg.roster().get("agent").password == "hunter2"
    assert cfg.roster().get("agent").platform == "debian-8-amd64"
    assert cfg.roster().master.password is None


def test_secrets_file_from_env(tmp_path: Path, monkeypatch):
    (tmp_path / "roster.yaml").write_text(ROSTER)
    elsewhere = tmp_path / "vault" / "s.yaml"
    elsewhere.parent.mkdir()
    elsewhere.write_text("sudo: true\n")
    monkeypatch.setenv("AGENT_ACCEPTANCE_SECRETS_FILE", str(elsewhere))

    assert load_config(tmp_path / "roster.yaml").sudo is True


def test_env_vars_expanded(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("MASTER_IP", "192.168.50.4")
    f = tmp_path / "roster.yaml"
    f.write_text(ROSTER.replace("10.0.0.10", "${MASTER_IP}"))

    assert load_config(f).roster().master.address == "192.168.50.4"


def test_two_masters_rejected(tmp_path: Path):
    f = tmp_path / "roster.yaml"
    f.write_text(ROSTER.replace("platform: debian-8-amd64", "platform: debian-8-amd64\n    roles: [master]"))

    with pytest.raises(ValidationError, match="exactly one host must have the 'master' role"):
        load_config(f)


def test_unknown_role_rejected(tmp_path: Path):
    f = tmp_path / "roster.yaml"
    f.write_text(ROSTER.replace("roles: [master]", "roles: [master, dashboard]"))

    with pytest.raises(ValidationError):
        load_config(f)
