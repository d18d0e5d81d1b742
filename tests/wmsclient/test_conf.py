from wmsclient import conf


def test_settings_override(settings):
    """Prove that the settings can be changed at runtime, e.g. in tests."""
    assert conf.WMSCLIENT_DEFAULT_TIMEOUT == 2000  # from tests/settings.py

    settings.WMSCLIENT_DEFAULT_TIMEOUT = 500
    assert conf.WMSCLIENT_DEFAULT_TIMEOUT == 500


def test_settings_restored():
    assert conf.WMSCLIENT_DEFAULT_TIMEOUT == 2000


def test_defaults():
    assert conf.WMSCLIENT_PROXIES is None
    assert conf.WMSCLIENT_USER_AGENT.startswith("django-wmsclient/")
    assert conf.WMSCLIENT_SCHEMA_LOCATIONS["1.3.0"].endswith("capabilities_1_3_0.xsd")
    assert conf.WMSCLIENT_SCHEMA_LOCATIONS["1.1.1"].endswith(".dtd")
