import subprocess

from config import policy as policy_module
from config.policy import build_policy, is_loopback, probe_local_accelerator
from config.settings import Settings


def _settings(**overrides):
    values = dict(
        OLLAMA_HOST="http://127.0.0.1:11434",
        HOSTED_AI_ENDPOINT="",
        HOSTED_API_KEY="",
        FORCE_HOSTED=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.OLLAMA_ENDPOINT == "/api/chat"
    assert settings.MAX_REPAIR_ROUNDS == 2
    assert settings.MAX_LIST_ITEMS == 10


def test_is_loopback():
    assert is_loopback("http://127.0.0.1:11434")
    assert is_loopback("http://localhost:11434/")
    assert is_loopback("http://[::1]:11434")
    assert not is_loopback("http://10.0.0.7:11434")
    assert not is_loopback("https://api.example.com")


def test_local_route_built_from_settings():
    policy = build_policy(_settings(MODEL_NAME="llama3"), accelerator_available=True)
    assert policy.local.url == "http://127.0.0.1:11434/api/chat"
    assert policy.local.model == "llama3"
    assert policy.hosted is None
    assert not policy.prefer_hosted


def test_cpu_only_loopback_prefers_configured_hosted():
    cfg = _settings(HOSTED_AI_ENDPOINT="https://hosted.example/v1/chat", HOSTED_API_KEY="k")
    policy = build_policy(cfg, accelerator_available=False)
    assert policy.hosted_configured
    assert policy.prefer_hosted
    assert policy.hosted.url == "https://hosted.example/v1/chat"


def test_cpu_only_loopback_without_hosted_stays_local():
    policy = build_policy(_settings(), accelerator_available=False)
    assert not policy.prefer_hosted


def test_accelerator_keeps_local_first():
    cfg = _settings(HOSTED_AI_ENDPOINT="https://hosted.example/v1/chat", HOSTED_API_KEY="k")
    assert not build_policy(cfg, accelerator_available=True).prefer_hosted


def test_remote_local_host_is_not_rerouted():
    cfg = _settings(
        OLLAMA_HOST="http://10.0.0.7:11434",
        HOSTED_AI_ENDPOINT="https://hosted.example/v1/chat",
        HOSTED_API_KEY="k",
    )
    assert not build_policy(cfg, accelerator_available=False).prefer_hosted


def test_force_hosted_requires_credentials():
    forced = _settings(FORCE_HOSTED=True, HOSTED_AI_ENDPOINT="https://hosted.example/v1/chat", HOSTED_API_KEY="k")
    assert build_policy(forced, accelerator_available=True).prefer_hosted

    no_key = _settings(FORCE_HOSTED=True, HOSTED_AI_ENDPOINT="https://hosted.example/v1/chat")
    policy = build_policy(no_key, accelerator_available=True)
    assert not policy.hosted_configured
    assert not policy.prefer_hosted


def test_probe_failure_means_no_accelerator(monkeypatch):
    def boom(*args, **kwargs):
        raise FileNotFoundError("lspci")

    monkeypatch.setattr(policy_module.platform, "system", lambda: "Linux")
    monkeypatch.setattr(policy_module.os.path, "exists", lambda path: False)
    monkeypatch.setattr(policy_module.subprocess, "run", boom)
    assert probe_local_accelerator() is False


def test_probe_reads_lspci_output(monkeypatch):
    output = "01:00.0 VGA compatible controller [0300]: NVIDIA Corporation GA104\n"
    monkeypatch.setattr(policy_module.platform, "system", lambda: "Linux")
    monkeypatch.setattr(policy_module.os.path, "exists", lambda path: False)
    monkeypatch.setattr(
        policy_module.subprocess,
        "run",
        lambda *args, **kwargs: subprocess.CompletedProcess(args, 0, stdout=output, stderr=""),
    )
    assert probe_local_accelerator() is True
