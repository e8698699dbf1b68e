import base64

import pytest

from oxford import Client, Region, host_from_region, make_buffer
from oxford.core.config import DEFAULT_TEXT_HOST, ClientConfig, get_settings
from oxford.core.errors import ConfigurationError


@pytest.fixture
def clean_settings(monkeypatch):
    for name in ("OXFORD_KEY", "OXFORD_HOST", "OXFORD_TEXT_HOST", "POLL_MAX_WAIT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def test_missing_key_is_rejected():
    with pytest.raises(ConfigurationError):
        Client("")
    with pytest.raises(ConfigurationError):
        Client(None, Region.WEST_EUROPE)


def test_region_selects_regional_host():
    c = Client("k", Region.WEST_EUROPE)
    assert c.config.host == "https://westeurope.api.cognitive.microsoft.com"
    assert c.config.text_host == DEFAULT_TEXT_HOST

    assert Client("k").config.host == host_from_region(Region.WEST_US)
    assert Client("k", "southeastasia").config.host == "https://southeastasia.api.cognitive.microsoft.com"


def test_full_host_is_used_for_every_service():
    c = Client("k", "https://proxy.example.com/")
    assert c.config.host == "https://proxy.example.com"
    assert c.config.text_host == "https://proxy.example.com"


def test_key_is_not_in_repr():
    config = ClientConfig(api_key="super-secret", host="https://h")
    assert "super-secret" not in repr(config)


def test_make_buffer_decodes_data_urls():
    payload = base64.b64encode(b"\x89PNG").decode()
    assert make_buffer(f"data:image/png;base64,{payload}") == b"\x89PNG"
    with pytest.raises(ValueError):
        make_buffer("data:text/plain,hello")


@pytest.mark.asyncio
async def test_from_settings_reads_environment(clean_settings):
    clean_settings.setenv("OXFORD_KEY", "env-key")
    clean_settings.setenv("OXFORD_HOST", "westeurope")
    clean_settings.setenv("POLL_MAX_WAIT", "60")

    async with Client.from_settings() as c:
        assert c.config.api_key == "env-key"
        assert c.config.host == "https://westeurope.api.cognitive.microsoft.com"
        assert c.poller.policy.max_wait == 60


def test_from_settings_without_key_fails(clean_settings, tmp_path):
    clean_settings.chdir(tmp_path)
    with pytest.raises(ConfigurationError):
        Client.from_settings()


def test_from_settings_full_host_also_serves_spell_check(clean_settings):
    clean_settings.setenv("OXFORD_KEY", "env-key")
    clean_settings.setenv("OXFORD_HOST", "https://proxy.example.com/")

    c = Client.from_settings()
    assert c.config.host == "https://proxy.example.com"
    assert c.config.text_host == "https://proxy.example.com"
    assert c.config.text_host == Client("k", "https://proxy.example.com").config.text_host


def test_from_settings_explicit_text_host_wins(clean_settings):
    clean_settings.setenv("OXFORD_KEY", "env-key")
    clean_settings.setenv("OXFORD_HOST", "https://proxy.example.com")
    clean_settings.setenv("OXFORD_TEXT_HOST", "https://bing.example.com")

    assert Client.from_settings().config.text_host == "https://bing.example.com"


def test_from_settings_region_keeps_default_text_host(clean_settings):
    clean_settings.setenv("OXFORD_KEY", "env-key")
    clean_settings.setenv("OXFORD_HOST", "westeurope")

    assert Client.from_settings().config.text_host == DEFAULT_TEXT_HOST
