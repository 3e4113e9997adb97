# --- Standard library imports ---
import locale
import platform
from dataclasses import dataclass
from typing import Optional


# --- Fallbacks for absent metadata ---
DEFAULT_LANGUAGE = "en"
DEFAULT_REGION = "US"
UNKNOWN = "unknown"

# Locales that carry no language information
_NEUTRAL_LOCALES = {"C", "POSIX"}

@dataclass(frozen=True)
class DeviceFingerprint:
    """
    Static device/locale metadata sent with the resolution request.

    Read once at startup; never mutated.
    """
    os_version: str
    language: str
    region: str
    model: str

    def as_query_params(self) -> dict[str, str]:
        return {
            "os": self.os_version,
            "lng": self.language,
            "devicemodel": self.model,
            "country": self.region,
        }

def read_device_fingerprint() -> DeviceFingerprint:
    """
    Read OS version, locale and hardware model of the running device.

    Never raises; every absent value falls back to a fixed default.
    """
    language, region = parse_locale_tag(_current_locale_tag())
    return DeviceFingerprint(
        os_version=_os_version(),
        language=language,
        region=region,
        model=platform.machine() or UNKNOWN,
    )

def parse_locale_tag(tag: Optional[str]) -> tuple[str, str]:
    """
    Split a locale tag into (language, region).

    Accepts POSIX (`pt_BR.UTF-8`) and BCP 47 (`pt-BR`) spellings.

    Examples:
        'en_GB.UTF-8' → ('en', 'GB')
        'de'          → ('de', 'US')
        None / 'C'    → ('en', 'US')
    """
    if not tag:
        return DEFAULT_LANGUAGE, DEFAULT_REGION

    # Drop encoding and modifier (`.UTF-8`, `@euro`)
    base = tag.split(".", 1)[0].split("@", 1)[0]
    if not base or base in _NEUTRAL_LOCALES:
        return DEFAULT_LANGUAGE, DEFAULT_REGION

    parts = base.replace("-", "_").split("_")
    language = parts[0].lower() or DEFAULT_LANGUAGE
    region = DEFAULT_REGION

    # Region is the last two-letter (or three-digit) subtag, skipping scripts like `Hant`
    for subtag in parts[1:]:
        if len(subtag) == 2 and subtag.isalpha():
            region = subtag.upper()
        elif len(subtag) == 3 and subtag.isdigit():
            region = subtag

    return language, region

def _current_locale_tag() -> Optional[str]:
    try:
        tag, _encoding = locale.getlocale()
    except ValueError:
        return None
    return tag

def _os_version() -> str:
    # macOS reports the product version (e.g. 14.5) separately from the kernel
    mac_version = platform.mac_ver()[0]
    if mac_version:
        return mac_version
    return platform.release() or UNKNOWN
