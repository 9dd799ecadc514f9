"""Pre-flight check of the external network identity.

Used to make sure downloads go out through the expected connection, for
example a VPN exit in a particular country.
"""

import structlog
from pydantic import BaseModel, ConfigDict

from podarchive.config import NetworkSettings
from podarchive.errors import PodarchiveError, ValidationError
from podarchive.fetch import FetchClient
from podarchive.fetch.cache import JSON_EXTENSION

logger = structlog.get_logger(__name__)

IPINFO_URL = "https://ipinfo.io/json"


class IpInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ip: str
    city: str | None = None
    region: str | None = None
    country: str | None = None


def check_network(client: FetchClient, settings: NetworkSettings) -> IpInfo | None:
    """Compare the external IP address and country with the expected values.

    Returns:
        The looked up details, or None if nothing is expected.

    Raises:
        ValidationError: Listing every mismatch, or the lookup failure.
    """
    if not settings.expect_ip and not settings.expect_country:
        return None

    # Always look up the current identity
    client.cache.invalidate(IPINFO_URL, JSON_EXTENSION)
    try:
        info = client.get_json(IPINFO_URL, IpInfo)
    except PodarchiveError as e:
        raise ValidationError([f"Unable to look up network identity: {e}"]) from e

    expectations = [
        ("IP address", settings.expect_ip, info.ip),
        ("Geolocated country", settings.expect_country, info.country),
    ]
    problems = [
        f"{name} expected {expected} but was {actual}"
        for name, expected, actual in expectations
        if expected and expected != actual
    ]
    if problems:
        raise ValidationError(problems)

    logger.debug("Network identity", ip=info.ip, city=info.city, country=info.country)
    return info
