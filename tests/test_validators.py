"""Tests for input validation."""
import pytest

from siemforward.core.exceptions import PrivilegeError, ValidationError
from siemforward.utils import validators
from siemforward.utils.validators import (
    validate_address, validate_port, validate_privileges,
    validate_protocol_prefix, validate_selectors
)


class TestValidateAddress:
    """Test IPv4 address validation."""

    @pytest.mark.parametrize("address", ["10.0.0.5", "192.168.100.254", "0.0.0.0"])
    def test_valid(self, address):
        validate_address(address)

    @pytest.mark.parametrize("address", ["", "10.0.0", "10.0.0.256", "siem.local", "10.0.0.5:514", "1.2.3.4.5"])
    def test_invalid(self, address):
        with pytest.raises(ValidationError, match="looks invalid"):
            validate_address(address)


class TestValidatePort:
    """Test port validation."""

    def test_numeric_string(self):
        assert validate_port("514") == 514

    @pytest.mark.parametrize("port", [1, 65535])
    def test_bounds(self, port):
        assert validate_port(port) == port

    @pytest.mark.parametrize("port", [0, 65536, -1, "abc", ""])
    def test_invalid(self, port):
        with pytest.raises(ValidationError, match="between 1 and 65535"):
            validate_port(port)


class TestValidateOther:
    """Test prefix, selector and privilege checks."""

    def test_prefix(self):
        validate_protocol_prefix("@")
        validate_protocol_prefix("@@")
        with pytest.raises(ValidationError):
            validate_protocol_prefix("@@@")

    def test_selectors(self):
        validate_selectors(["kern.*"])
        with pytest.raises(ValidationError):
            validate_selectors([])
        with pytest.raises(ValidationError):
            validate_selectors(["  "])
        with pytest.raises(ValidationError, match="single line"):
            validate_selectors(["kern.*\n*.* @evil:514"])

    def test_privileges(self, monkeypatch):
        monkeypatch.setattr(validators.os, "geteuid", lambda: 0, raising=False)
        validate_privileges()

    def test_non_root(self, monkeypatch):
        monkeypatch.setattr(validators.os, "geteuid", lambda: 1000, raising=False)
        with pytest.raises(PrivilegeError, match="root"):
            validate_privileges()
