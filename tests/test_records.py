"""Unit tests for the record model: RecordType, Ttl, AddressRecord."""

import ipaddress

import pytest

from cloudflare_ddns.cli import (
    TTL_AUTO,
    AddressRecord,
    InvalidTtl,
    ProviderRecord,
    RecordType,
    Ttl,
    UnrecognizedRecordType,
    validate_ttl,
)

# =============================================================================
# RecordType
# =============================================================================


class TestRecordType:
    @pytest.mark.parametrize("record_type", list(RecordType))
    def test_parse_is_inverse_of_str(self, record_type: RecordType) -> None:
        assert RecordType.parse(str(record_type)) is record_type

    @pytest.mark.parametrize("raw", ["CNAME", "TXT", "MX", "a", "aaaa", "", " A", None])
    def test_parse_rejects_other_types(self, raw) -> None:
        with pytest.raises(UnrecognizedRecordType) as exc_info:
            RecordType.parse(raw)
        assert exc_info.value.value == raw

    def test_unrecognized_type_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            RecordType.parse("CNAME")

    def test_from_ip_ipv4(self) -> None:
        assert RecordType.from_ip(ipaddress.ip_address("1.2.3.4")) is RecordType.A

    def test_from_ip_ipv6(self) -> None:
        assert RecordType.from_ip(ipaddress.ip_address("2001:db8::1")) is RecordType.AAAA

    def test_from_ip_rejects_strings(self) -> None:
        with pytest.raises(TypeError):
            RecordType.from_ip("1.2.3.4")

    def test_ordering_is_a_before_aaaa(self) -> None:
        assert RecordType.A < RecordType.AAAA
        assert sorted([RecordType.AAAA, RecordType.A]) == [RecordType.A, RecordType.AAAA]

    def test_parse_address_enforces_family(self) -> None:
        assert RecordType.A.parse_address("1.2.3.4") == ipaddress.IPv4Address("1.2.3.4")
        with pytest.raises(ValueError):
            RecordType.A.parse_address("2001:db8::1")
        with pytest.raises(ValueError):
            RecordType.AAAA.parse_address("1.2.3.4")


# =============================================================================
# Ttl
# =============================================================================


class TestTtl:
    @pytest.mark.parametrize("raw", [1, 60, 300, 86400])
    def test_valid_values_accepted(self, raw: int) -> None:
        assert int(validate_ttl(raw)) == raw

    @pytest.mark.parametrize("raw", [0, 2, 59, 86401, -1, -60])
    def test_invalid_values_rejected(self, raw: int) -> None:
        with pytest.raises(InvalidTtl) as exc_info:
            validate_ttl(raw)
        assert exc_info.value.value == raw

    @pytest.mark.parametrize("raw", [True, "300", 300.0, None])
    def test_non_integers_rejected(self, raw) -> None:
        with pytest.raises(InvalidTtl):
            validate_ttl(raw)

    def test_one_means_automatic(self) -> None:
        ttl = validate_ttl(1)
        assert ttl.is_auto
        assert ttl.seconds is None
        assert ttl == TTL_AUTO

    def test_explicit_seconds(self) -> None:
        ttl = validate_ttl(3600)
        assert not ttl.is_auto
        assert ttl.seconds == 3600

    def test_default_is_automatic(self) -> None:
        assert Ttl().is_auto
        assert int(TTL_AUTO) == 1


# =============================================================================
# AddressRecord / ProviderRecord
# =============================================================================


class TestAddressRecord:
    def test_record_type_follows_address(self) -> None:
        v4 = AddressRecord(name="www.example.com", address=ipaddress.ip_address("1.2.3.4"))
        v6 = AddressRecord(name="www.example.com", address=ipaddress.ip_address("2001:db8::1"))

        assert v4.record_type is RecordType.A
        assert v6.record_type is RecordType.AAAA

    def test_defaults(self) -> None:
        record = AddressRecord(name="www.example.com", address=ipaddress.ip_address("1.2.3.4"))

        assert record.ttl == TTL_AUTO
        assert record.proxied is False

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            AddressRecord(name="", address=ipaddress.ip_address("1.2.3.4"))

    def test_string_address_rejected(self) -> None:
        with pytest.raises(TypeError):
            AddressRecord(name="www.example.com", address="1.2.3.4")

    def test_raw_ttl_rejected(self) -> None:
        with pytest.raises(TypeError):
            AddressRecord(name="www.example.com", address=ipaddress.ip_address("1.2.3.4"), ttl=300)

    def test_provider_record_exposes_record_fields(self) -> None:
        record = AddressRecord(name="www.example.com", address=ipaddress.ip_address("2001:db8::1"))
        provider_record = ProviderRecord(id="abc123", record=record)

        assert provider_record.name == "www.example.com"
        assert provider_record.record_type is RecordType.AAAA
        assert provider_record.address == ipaddress.ip_address("2001:db8::1")
