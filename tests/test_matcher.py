import pytest

from core.address import parse_address
from core.errors import InvalidAddressError, InvalidRangeError, MatchContractError
from core.matcher import MatchDecision, address_in_range, is_ip_in_cidr
from core.ranges import parse_range


class TestAddressInRange:
    def test_full_byte_prefix(self):
        network = parse_range("192.168.1.0/24")
        assert address_in_range(parse_address("192.168.1.100"), network)
        assert address_in_range(parse_address("192.168.1.254"), network)
        assert not address_in_range(parse_address("192.168.2.1"), network)

    def test_partial_byte_prefix(self):
        network = parse_range("172.16.0.0/12")
        assert address_in_range(parse_address("172.16.0.1"), network)
        assert address_in_range(parse_address("172.31.255.255"), network)
        assert not address_in_range(parse_address("172.32.0.0"), network)
        assert not address_in_range(parse_address("172.15.255.255"), network)

    def test_single_bit_difference_inside_prefix(self):
        network = parse_range("10.0.0.0/31")
        assert address_in_range(parse_address("10.0.0.1"), network)
        assert not address_in_range(parse_address("10.0.0.2"), network)

    def test_zero_prefix_matches_everything(self):
        network = parse_range("0.0.0.0/0")
        for ip in ["0.0.0.0", "8.8.8.8", "255.255.255.255"]:
            assert address_in_range(parse_address(ip), network)

    def test_full_prefix_matches_only_exact(self):
        network = parse_range("192.168.1.1/32")
        assert address_in_range(parse_address("192.168.1.1"), network)
        assert not address_in_range(parse_address("192.168.1.0"), network)

    def test_host_bits_in_base_are_ignored(self):
        assert address_in_range(parse_address("10.9.8.7"), parse_range("10.1.2.3/8"))

    def test_family_mismatch_is_no_match(self):
        assert not address_in_range(parse_address("::1"), parse_range("0.0.0.0/0"))

    def test_ipv6_prefix(self):
        network = parse_range("2001:db8::/33", allow_ipv6=True)
        assert address_in_range(parse_address("2001:db8:7fff::1"), network)
        assert not address_in_range(parse_address("2001:db8:8000::1"), network)

    def test_none_is_contract_violation(self):
        with pytest.raises(MatchContractError):
            address_in_range(None, parse_range("10.0.0.0/8"))
        with pytest.raises(MatchContractError):
            address_in_range(parse_address("10.0.0.1"), None)


class TestIsIpInCidr:
    def test_match(self):
        assert is_ip_in_cidr("10.20.30.40", "10.0.0.0/8")
        assert not is_ip_in_cidr("11.20.30.40", "10.0.0.0/8")

    def test_none_raises(self):
        with pytest.raises(MatchContractError):
            is_ip_in_cidr(None, "10.0.0.0/8")

    def test_unparsable_raises(self):
        with pytest.raises(InvalidAddressError):
            is_ip_in_cidr("10.0.0", "10.0.0.0/8")
        with pytest.raises(InvalidRangeError):
            is_ip_in_cidr("10.0.0.1", "10.0.0.0")


def test_decision_truthiness():
    assert MatchDecision(matched=True)
    assert not MatchDecision(matched=False)
