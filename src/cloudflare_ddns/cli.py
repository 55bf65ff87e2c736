#!/usr/bin/env python3
"""cloudflare-ddns - Dynamic DNS for Cloudflare

Periodically determines the current public IPv4/IPv6 addresses of this host
and keeps a set of Cloudflare DNS records (A/AAAA) pointing at them, creating
records when allowed.

Environment variables:

    Cloudflare:
        CF_DNS_ZONE_ID               Zone identifier (required)
        CF_DNS_API_TOKEN             API token with DNS edit permission (required)
        CF_DNS_HOSTS                 ";"-separated host names (required)
                                     Example: "example.com;www.example.com"
        CF_DNS_CREATE_HOST_RECORDS   Create missing records: true/false (default: false)
        CF_API_URL                   API base URL (default: https://api.cloudflare.com/client/v4)

    IP discovery (at least one required):
        IPV4_ENDPOINT          URL returning the public IPv4 as plain text
                               Example: https://api.ipify.org
        IPV6_ENDPOINT          URL returning the public IPv6 as plain text
                               Example: https://api6.ipify.org

    Runtime:
        REPEAT_INTERVAL_SECONDS  Seconds between passes, 0 = run once (default: 0)
        REQUEST_TIMEOUT_SECONDS  HTTP timeout per request (default: 10)
        LOG_LEVEL                DEBUG, INFO, WARNING, ERROR (default: INFO)
        CF_DDNS_CONFIG_PATH      Optional YAML settings file
                                 (default: /config/cloudflare-ddns.yaml)
                                 Example config file:
                                   zone_id: "023e105f4ecef8ad9ca31a8372d0c353"
                                   api_token: "..."
                                   hosts:
                                     - example.com
                                     - www.example.com
                                   ipv4_endpoint: "https://api.ipify.org"
                                   repeat_interval_seconds: 300
                                   create_host_records: true
                                 Environment variables take precedence over the file;
                                 a variable set to an empty value clears the file value.
"""

from __future__ import annotations

import ipaddress
import json
import logging
import os
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

import requests
import yaml

# =============================================================================
# Configuration
# =============================================================================

DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"
DEFAULT_TIMEOUT_SECONDS = 10.0

CF_DDNS_CONFIG_PATH = os.getenv("CF_DDNS_CONFIG_PATH", "/config/cloudflare-ddns.yaml")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Settings file key -> environment variable
SETTING_ENV_VARS = {
    "zone_id": "CF_DNS_ZONE_ID",
    "api_token": "CF_DNS_API_TOKEN",
    "hosts": "CF_DNS_HOSTS",
    "ipv4_endpoint": "IPV4_ENDPOINT",
    "ipv6_endpoint": "IPV6_ENDPOINT",
    "repeat_interval_seconds": "REPEAT_INTERVAL_SECONDS",
    "create_host_records": "CF_DNS_CREATE_HOST_RECORDS",
    "request_timeout_seconds": "REQUEST_TIMEOUT_SECONDS",
    "api_url": "CF_API_URL",
}

# =============================================================================
# Logging Setup
# =============================================================================

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(ValueError):
    """Raised when the process configuration is missing or malformed."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class InvalidTtl(ValueError):
    """TTL outside of the accepted range."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid TTL value: {value!r} (expected 1 or 60..86400)")


class UnrecognizedRecordType(ValueError):
    """Record type other than A/AAAA."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unrecognized record type: {value!r}")


# =============================================================================
# Enums
# =============================================================================

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@total_ordering
class RecordType(Enum):
    """Address record kinds.

    A:    maps a host name to an IPv4 address.
    AAAA: maps a host name to an IPv6 address.

    Members are ordered by declaration so iteration (and logging) over a set
    of record types is deterministic.
    """

    A = "A"
    AAAA = "AAAA"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RecordType):
            return NotImplemented
        members = list(RecordType)
        return members.index(self) < members.index(other)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_ip(cls, address: IPAddress) -> RecordType:
        if isinstance(address, ipaddress.IPv4Address):
            return cls.A
        if isinstance(address, ipaddress.IPv6Address):
            return cls.AAAA
        raise TypeError(f"Not an IP address: {address!r}")

    @classmethod
    def parse(cls, raw: str) -> RecordType:
        """Parse the provider's string form. Matching is exact and case-sensitive."""
        for member in cls:
            if raw == member.value:
                return member
        raise UnrecognizedRecordType(raw)

    @property
    def ip_label(self) -> str:
        return "IPv4" if self is RecordType.A else "IPv6"

    def parse_address(self, text: str) -> IPAddress:
        """Parse an address of this record type's family; raises ValueError otherwise."""
        if self is RecordType.A:
            return ipaddress.IPv4Address(text)
        return ipaddress.IPv6Address(text)


# =============================================================================
# Data Classes
# =============================================================================

TTL_AUTO_VALUE = 1
TTL_MIN_SECONDS = 60
TTL_MAX_SECONDS = 86400


@dataclass(frozen=True)
class Ttl:
    """Record TTL: automatic (wire value 1) or explicit seconds in [60, 86400]."""

    value: int = TTL_AUTO_VALUE

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidTtl(self.value)
        if self.value != TTL_AUTO_VALUE and not (
            TTL_MIN_SECONDS <= self.value <= TTL_MAX_SECONDS
        ):
            raise InvalidTtl(self.value)

    @property
    def is_auto(self) -> bool:
        return self.value == TTL_AUTO_VALUE

    @property
    def seconds(self) -> Optional[int]:
        """Explicit seconds, or None when automatic."""
        return None if self.is_auto else self.value

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return "auto" if self.is_auto else f"{self.value}s"


TTL_AUTO = Ttl()


def validate_ttl(raw: int) -> Ttl:
    """Validate a raw TTL integer, raising InvalidTtl for out-of-range values."""
    return Ttl(raw)


@dataclass(frozen=True)
class AddressRecord:
    """Desired or actual DNS state for one host and address family.

    The record type is always derived from ``address`` and never stored.
    """

    name: str
    address: IPAddress
    ttl: Ttl = TTL_AUTO
    proxied: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Record name must be a non-empty string")
        if not isinstance(self.address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            raise TypeError(f"Record address must be an IP address, got {self.address!r}")
        if not isinstance(self.ttl, Ttl):
            raise TypeError(f"Record ttl must be a Ttl, got {self.ttl!r}")

    @property
    def record_type(self) -> RecordType:
        return RecordType.from_ip(self.address)


@dataclass(frozen=True)
class ProviderRecord:
    """A record as stored by the provider, with its opaque identifier."""

    id: str
    record: AddressRecord

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def record_type(self) -> RecordType:
        return self.record.record_type

    @property
    def address(self) -> IPAddress:
        return self.record.address


@dataclass(frozen=True)
class Settings:
    """Validated process configuration."""

    zone_id: str
    api_token: str
    hosts: Tuple[str, ...]
    endpoints: Dict[RecordType, str]
    repeat_interval_seconds: int = 0
    create_host_records: bool = False
    request_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    api_url: str = DEFAULT_API_URL


@dataclass
class PassSummary:
    """Outcome counters for one reconciliation pass."""

    updated: int = 0
    created: int = 0
    unchanged: int = 0
    missing: int = 0
    failed: int = 0
    aborted: bool = False
    resolved: List[RecordType] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"updated={self.updated} created={self.created} unchanged={self.unchanged} "
            f"missing={self.missing} failed={self.failed}"
        )


# =============================================================================
# IP Resolver Interface and Implementations
# =============================================================================


class AddressResolver(ABC):
    """Abstract base class for external IP discovery."""

    @abstractmethod
    def resolve(self, record_type: RecordType, endpoint: str) -> Optional[IPAddress]:
        """Return the external address of ``record_type``'s family, or None on failure."""
        pass


class HTTPAddressResolver(AddressResolver):
    """Resolves the external address from a plain-text HTTP endpoint."""

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS, session=None):
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    def resolve(self, record_type: RecordType, endpoint: str) -> Optional[IPAddress]:
        try:
            response = self._session.get(endpoint, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Could not get external IP from endpoint '{endpoint}': {e}")
            return None

        if not response.ok:
            logger.error(
                f"Could not connect to IP API endpoint '{endpoint}': "
                f"HTTP {response.status_code}"
            )
            return None

        body = (response.text or "").strip()
        try:
            return record_type.parse_address(body)
        except ValueError as e:
            logger.error(
                f"Could not parse {record_type.ip_label} '{body}' "
                f"from endpoint '{endpoint}' response: {e}"
            )
            return None


# =============================================================================
# DNS Provider Interface and Implementations
# =============================================================================


class DNSProvider(ABC):
    """Abstract base class for DNS providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name for logging."""
        pass

    def test_connection(self) -> bool:
        """Check credentials/connectivity. Providers without a check report success."""
        return True

    @abstractmethod
    def get_records(self, zone_id: str) -> Optional[List[ProviderRecord]]:
        """Get all A/AAAA records of a zone, or None if the listing failed."""
        pass

    @abstractmethod
    def add_record(self, zone_id: str, record: AddressRecord) -> bool:
        """Create a new address record."""
        pass

    @abstractmethod
    def update_record_address(self, zone_id: str, record_id: str, address: IPAddress) -> bool:
        """Change only the address of an existing record."""
        pass


def parse_provider_record(data: Any) -> Optional[ProviderRecord]:
    """Parse one entry of a Cloudflare record listing.

    Returns None for entries that are not usable address records: other
    record types are skipped quietly, malformed A/AAAA entries are logged.
    """
    if not isinstance(data, dict):
        logger.warning(f"Skipping malformed record: {data}")
        return None

    raw_type = data.get("type")
    try:
        record_type = RecordType.parse(raw_type)
    except UnrecognizedRecordType:
        logger.debug(f"Skipping record '{data.get('name')}' of type '{raw_type}'")
        return None

    record_id = data.get("id")
    name = data.get("name")
    ttl = data.get("ttl")
    content = data.get("content")
    proxied = data.get("proxied")
    if (
        not isinstance(record_id, str)
        or not isinstance(name, str)
        or not name
        or not isinstance(content, str)
        or not isinstance(proxied, bool)
    ):
        logger.warning(f"Skipping malformed record: {data}")
        return None

    try:
        parsed_ttl = validate_ttl(ttl)
    except InvalidTtl:
        logger.error(f"Record '{name}' with id '{record_id}': could not parse TTL value '{ttl}'")
        return None

    try:
        address = record_type.parse_address(content)
    except ValueError as e:
        logger.error(
            f"Record '{name}' with id '{record_id}' of type '{record_type}': "
            f"could not parse {record_type.ip_label} value '{content}': {e}"
        )
        return None

    return ProviderRecord(
        id=record_id,
        record=AddressRecord(name=name, address=address, ttl=parsed_ttl, proxied=proxied),
    )


class CloudflareDNSProvider(DNSProvider):
    """Cloudflare DNS provider implementation (API v4, bearer token auth)."""

    PER_PAGE = 100

    def __init__(
        self,
        api_token: str,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._url = api_url.rstrip("/")
        self._timeout = timeout_seconds
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            }
        )

    @property
    def name(self) -> str:
        return "Cloudflare"

    def _records_url(self, zone_id: str) -> str:
        return f"{self._url}/zones/{zone_id}/dns_records"

    def test_connection(self) -> bool:
        try:
            response = self._session.get(f"{self._url}/user/tokens/verify", timeout=self._timeout)
            response.raise_for_status()
            logger.info(f"{self.name} token verification successful")
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to verify {self.name} API token: {e}")
            return False

    def get_records(self, zone_id: str) -> Optional[List[ProviderRecord]]:
        url = self._records_url(zone_id)
        records: List[ProviderRecord] = []
        page = 1

        while True:
            try:
                response = self._session.get(
                    url,
                    params={"page": page, "per_page": self.PER_PAGE},
                    timeout=self._timeout,
                )
            except requests.exceptions.RequestException as e:
                logger.error(f"Could not get DNS records: {e}")
                return None

            if not response.ok:
                logger.error(
                    f"Could not get DNS records: HTTP {response.status_code}: {response.text}"
                )
                return None

            try:
                data = response.json()
            except ValueError as e:
                logger.error(f"Could not parse DNS records: {e}")
                return None

            results = data.get("result") if isinstance(data, dict) else None
            if not isinstance(results, list):
                logger.error("Could not parse array of DNS records")
                return None

            for item in results:
                record = parse_provider_record(item)
                if record is not None:
                    records.append(record)

            info = data.get("result_info")
            total_pages = info.get("total_pages") if isinstance(info, dict) else None
            if not isinstance(total_pages, int) or page >= total_pages:
                break
            page += 1

        return records

    def add_record(self, zone_id: str, record: AddressRecord) -> bool:
        url = self._records_url(zone_id)
        body = {
            "name": record.name,
            "type": str(record.record_type),
            "content": str(record.address),
            "ttl": int(record.ttl),
            "proxied": record.proxied,
        }
        try:
            response = self._session.post(url, json=body, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Could not create DNS record for host '{record.name}' "
                f"with ip '{record.address}': {e}"
            )
            return False

        if not response.ok:
            logger.error(
                f"Failed to create DNS record for host '{record.name}' "
                f"with ip '{record.address}': {response.text}"
            )
            logger.error(f"\tRequest URL: {url}")
            logger.error(f"\tRequest body: {json.dumps(body)}")
            return False
        return True

    def update_record_address(self, zone_id: str, record_id: str, address: IPAddress) -> bool:
        url = f"{self._records_url(zone_id)}/{record_id}"
        try:
            response = self._session.patch(
                url, json={"content": str(address)}, timeout=self._timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to update record '{record_id}': {e}")
            return False

        if not response.ok:
            logger.error(f"Failed to update record '{record_id}': {response.text}")
            return False
        return True


# =============================================================================
# Utility Functions
# =============================================================================


def _parse_bool(value: Any, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"expected true or false, got '{value}'")


def _parse_hosts(value: Any) -> Tuple[str, ...]:
    """Parse host names from a ";"-separated string or a list.

    Entries are trimmed, empty or null ones dropped and duplicates collapsed,
    keeping first-seen order.
    """
    if not value:
        return ()
    if isinstance(value, str):
        items = value.split(";")
    else:
        items = [str(v) for v in value if v is not None]
    return tuple(dict.fromkeys(item.strip() for item in items if item.strip()))


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _read_config_file(config_path: str) -> Dict[str, Any]:
    """Load the optional YAML settings file. A missing file yields no settings."""
    if not config_path:
        return {}
    path = Path(config_path)
    if not path.is_file():
        return {}

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError([f"Failed to read config file {config_path}: {e}"]) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError([f"Config file {config_path} must contain a mapping"])

    unknown = sorted(set(data) - set(SETTING_ENV_VARS))
    if unknown:
        logger.warning(f"Ignoring unknown keys in {config_path}: {', '.join(map(str, unknown))}")
    return {k: v for k, v in data.items() if k in SETTING_ENV_VARS}


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[str] = None,
) -> Settings:
    """Build validated settings from the settings file and the environment.

    Environment variables override file values. All problems are collected
    and raised together as a ConfigError.
    """
    environ = os.environ if environ is None else environ
    config_path = CF_DDNS_CONFIG_PATH if config_path is None else config_path

    raw = _read_config_file(config_path)
    for key, env_var in SETTING_ENV_VARS.items():
        env_value = environ.get(env_var)
        if env_value is not None:
            raw[key] = env_value

    errors: List[str] = []

    def _text(key: str) -> str:
        value = raw.get(key)
        return "" if value is None else str(value).strip()

    zone_id = _text("zone_id")
    if not zone_id:
        errors.append("CF_DNS_ZONE_ID is required")

    api_token = _text("api_token")
    if not api_token:
        errors.append("CF_DNS_API_TOKEN is required")

    hosts = _parse_hosts(raw.get("hosts"))
    if not hosts:
        errors.append("CF_DNS_HOSTS is required and must contain at least one host name")

    endpoints: Dict[RecordType, str] = {}
    for record_type, key in ((RecordType.A, "ipv4_endpoint"), (RecordType.AAAA, "ipv6_endpoint")):
        endpoint = _text(key)
        if not endpoint:
            continue
        if not _is_http_url(endpoint):
            errors.append(f"{SETTING_ENV_VARS[key]} must be an http(s) URL, got '{endpoint}'")
            continue
        endpoints[record_type] = endpoint
    if not endpoints and not any(_text(k) for k in ("ipv4_endpoint", "ipv6_endpoint")):
        errors.append("At least one IP API endpoint must be defined (IPV4_ENDPOINT or IPV6_ENDPOINT)")

    repeat_interval = 0
    raw_interval = _text("repeat_interval_seconds")
    if raw_interval:
        try:
            repeat_interval = int(raw_interval)
            if repeat_interval < 0:
                raise ValueError(raw_interval)
        except ValueError:
            errors.append(
                "Could not parse the value of REPEAT_INTERVAL_SECONDS. Make sure it is an "
                f"unsigned value in the form REPEAT_INTERVAL_SECONDS=60 (got '{raw_interval}')"
            )

    create_host_records = False
    try:
        create_host_records = _parse_bool(raw.get("create_host_records"), default=False)
    except ValueError as e:
        errors.append(f"CF_DNS_CREATE_HOST_RECORDS should be either true or false: {e}")

    timeout = DEFAULT_TIMEOUT_SECONDS
    raw_timeout = _text("request_timeout_seconds")
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
            if timeout <= 0:
                raise ValueError(raw_timeout)
        except ValueError:
            errors.append(
                f"REQUEST_TIMEOUT_SECONDS must be a positive number (got '{raw_timeout}')"
            )

    api_url = _text("api_url") or DEFAULT_API_URL
    if not _is_http_url(api_url):
        errors.append(f"CF_API_URL must be an http(s) URL, got '{api_url}'")

    if errors:
        raise ConfigError(errors)

    return Settings(
        zone_id=zone_id,
        api_token=api_token,
        hosts=hosts,
        endpoints=endpoints,
        repeat_interval_seconds=repeat_interval,
        create_host_records=create_host_records,
        request_timeout_seconds=timeout,
        api_url=api_url,
    )


# =============================================================================
# Core Reconciler
# =============================================================================


class DynamicDNSReconciler:
    def __init__(
        self,
        *,
        resolver: AddressResolver,
        dns_provider: DNSProvider,
        zone_id: str,
        hosts: Iterable[str],
        endpoints: Mapping[RecordType, str],
        create_records: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not endpoints:
            raise ValueError("At least one IP API endpoint must be defined")
        self.resolver = resolver
        self.dns_provider = dns_provider
        self.zone_id = zone_id
        self.hosts = tuple(dict.fromkeys(hosts))
        self.endpoints = dict(sorted(endpoints.items()))
        self.create_records = create_records
        self._sleep = sleep

    def _resolve_addresses(self, current: Dict[RecordType, IPAddress]) -> None:
        for record_type, endpoint in self.endpoints.items():
            address = self.resolver.resolve(record_type, endpoint)
            if address is None:
                continue
            if RecordType.from_ip(address) is not record_type:
                logger.error(
                    f"Endpoint '{endpoint}' returned '{address}' "
                    f"which is not an {record_type.ip_label} address"
                )
                continue
            current[record_type] = address

    def _log_address_change(
        self,
        record_type: RecordType,
        address: IPAddress,
        previous: Mapping[RecordType, IPAddress],
    ) -> None:
        prev_address = previous.get(record_type)
        if prev_address is None:
            logger.info(f"{record_type.ip_label} changed from 'None' to '{address}'")
        elif prev_address != address:
            logger.info(f"{record_type.ip_label} changed from '{prev_address}' to '{address}'")

    def _reconcile_host(
        self,
        host: str,
        record_type: RecordType,
        address: IPAddress,
        records: List[ProviderRecord],
        summary: PassSummary,
    ) -> None:
        existing = next(
            (r for r in records if r.name == host and r.record_type is record_type), None
        )

        if existing is not None:
            if existing.address == address:
                summary.unchanged += 1
                return
            if self.dns_provider.update_record_address(self.zone_id, existing.id, address):
                summary.updated += 1
                logger.info(
                    f"Updated '{record_type}' record '{host}' "
                    f"from IP '{existing.address}' to '{address}'"
                )
            else:
                summary.failed += 1
                logger.error(
                    f"Failed to update '{record_type}' record '{host}' "
                    f"from IP '{existing.address}' to '{address}'"
                )
            return

        if not self.create_records:
            summary.missing += 1
            logger.error(
                f"No {self.dns_provider.name} record found with name '{host}' "
                f"of type '{record_type}'"
            )
            return

        record = AddressRecord(name=host, address=address, ttl=TTL_AUTO, proxied=False)
        if self.dns_provider.add_record(self.zone_id, record):
            summary.created += 1
            logger.info(f"Created '{record_type}' record '{host}' with IP '{address}'")
        else:
            summary.failed += 1
            logger.error(f"Failed to create '{record_type}' record '{host}' with IP '{address}'")

    def reconcile_once(
        self,
        previous: Dict[RecordType, IPAddress],
        current: Dict[RecordType, IPAddress],
    ) -> PassSummary:
        """Run one reconciliation pass.

        ``current`` is filled with the addresses resolved in this pass;
        ``previous`` holds the last pass's addresses and is only read.
        """
        summary = PassSummary()
        self._resolve_addresses(current)
        summary.resolved = sorted(current)

        if not current:
            logger.warning("No external IP address could be resolved in this pass")

        records = self.dns_provider.get_records(self.zone_id)
        if records is None:
            logger.error(
                f"Could not fetch DNS records from {self.dns_provider.name}, skipping this pass"
            )
            summary.aborted = True
            return summary

        for record_type in sorted(current):
            address = current[record_type]
            self._log_address_change(record_type, address, previous)
            for host in self.hosts:
                self._reconcile_host(host, record_type, address, records, summary)

        logger.info(f"Pass complete: {summary}")
        return summary

    def run(self, repeat_interval: int = 0) -> None:
        """Run passes until stopped; a single pass when ``repeat_interval`` is 0."""
        previous: Dict[RecordType, IPAddress] = {}
        current: Dict[RecordType, IPAddress] = {}

        while True:
            self.reconcile_once(previous, current)
            if repeat_interval <= 0:
                return

            previous, current = current, previous
            current.clear()
            self._sleep(repeat_interval)


# =============================================================================
# Main
# =============================================================================


def create_reconciler(settings: Settings) -> DynamicDNSReconciler:
    """Wire the HTTP resolver and Cloudflare provider into a reconciler."""
    return DynamicDNSReconciler(
        resolver=HTTPAddressResolver(timeout_seconds=settings.request_timeout_seconds),
        dns_provider=CloudflareDNSProvider(
            settings.api_token,
            api_url=settings.api_url,
            timeout_seconds=settings.request_timeout_seconds,
        ),
        zone_id=settings.zone_id,
        hosts=settings.hosts,
        endpoints=settings.endpoints,
        create_records=settings.create_host_records,
    )


def main():
    """Main entry point."""
    try:
        settings = load_settings()
    except ConfigError as e:
        for error in e.errors:
            logger.error(error)
        logger.error("Configuration validation failed")
        sys.exit(1)

    reconciler = create_reconciler(settings)

    logger.info(f"Monitoring {len(settings.hosts)} hosts:")
    for host in settings.hosts:
        logger.info(f"\t{host}")
    logger.info(f"For DNS {len(settings.endpoints)} record types:")
    for record_type, endpoint in sorted(settings.endpoints.items()):
        logger.info(f"\t{record_type} ({endpoint})")
    if settings.repeat_interval_seconds:
        logger.info(f"Repeat interval: {settings.repeat_interval_seconds}s")
    else:
        logger.info("Running a single pass")
    logger.info(f"Record creation: {'enabled' if settings.create_host_records else 'disabled'}")

    reconciler.dns_provider.test_connection()

    try:
        reconciler.run(settings.repeat_interval_seconds)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
