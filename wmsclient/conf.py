from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from wmsclient import __version__

_originals = {}

# -- transport

# The time to wait for the server (in milliseconds), unless a Client is given its own timeout.
WMSCLIENT_DEFAULT_TIMEOUT = getattr(settings, "WMSCLIENT_DEFAULT_TIMEOUT", 10000)

# The proxies to use for outgoing requests, in the format that python-requests accepts.
# For example: {"http": "http://proxy:3128", "https": "http://proxy:3128"}
WMSCLIENT_PROXIES = getattr(settings, "WMSCLIENT_PROXIES", None)

# The User-Agent header to send, some servers block the default python-requests agent.
WMSCLIENT_USER_AGENT = getattr(
    settings, "WMSCLIENT_USER_AGENT", f"django-wmsclient/{__version__}"
)

# -- validation

# Where the DTD (WMS 1.0 - 1.1.1) or XSD (WMS 1.3) for each version can be found.
# These can be URLs or local file paths, e.g. to avoid downloading the schemas each run.
WMSCLIENT_SCHEMA_LOCATIONS = getattr(
    settings,
    "WMSCLIENT_SCHEMA_LOCATIONS",
    {
        "1.0.0": "http://schemas.opengis.net/wms/1.0.0/capabilities_1_0_0.dtd",
        "1.1.0": "http://schemas.opengis.net/wms/1.1.0/capabilities_1_1_0.dtd",
        "1.1.1": "http://schemas.opengis.net/wms/1.1.1/WMS_MS_Capabilities.dtd",
        "1.3.0": "http://schemas.opengis.net/wms/1.3.0/capabilities_1_3_0.xsd",
    },
)


@receiver(setting_changed)
def _on_settings_change(setting, value, enter, **kwargs):
    if not setting.startswith("WMSCLIENT_"):
        return

    conf_module = globals()
    if value is None and not enter:
        # override_settings().disable() returns what the django settings module had.
        # Revert to our defaults here instead.
        value = _originals.get(setting)
    else:
        # Track defaults of this file for reverting to them
        _originals.setdefault(setting, conf_module[setting])

    conf_module[setting] = value
