import pytest


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep app logs and metric events out of the working directory."""
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("APP_LOG_DIR", str(log_dir))
    monkeypatch.delenv("APP_LOG_PATH", raising=False)
    monkeypatch.delenv("APP_METRICS_LOG_PATH", raising=False)
    return log_dir
