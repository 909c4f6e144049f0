"""
Tests for the Script class and hashing helpers.
"""

import pytest
from trampoline_types.hashing import (
    ZERO_HASH,
    blake2b_256,
    calc_data_hash,
    from_hex,
    random_hash,
    to_hex,
)
from trampoline_types.script import Script, ScriptHashType

@pytest.fixture
def code_hash():
    """Content hash of a small code blob."""
    return calc_data_hash(b"\x7fELF always success")

def test_blake2b_is_personalised():
    """Test that the digest differs from unpersonalised blake2b."""
    import hashlib
    plain = hashlib.blake2b(b"abc", digest_size=32).digest()
    assert len(blake2b_256(b"abc")) == 32
    assert blake2b_256(b"abc") != plain
    assert blake2b_256(b"abc") == blake2b_256(b"abc")

def test_data_hash_of_empty_data_is_zero():
    """Test the empty-data convention."""
    assert calc_data_hash(b"") == ZERO_HASH
    assert calc_data_hash(b"\x00") != ZERO_HASH

def test_random_hash():
    """Test random hashes are 32 bytes and distinct."""
    assert len(random_hash()) == 32
    assert random_hash() != random_hash()

def test_hex_helpers():
    """Test hex conversion round trip and error handling."""
    assert to_hex(b"\x01\xff") == "0x01ff"
    assert from_hex("0x01ff") == b"\x01\xff"
    assert from_hex("01ff") == b"\x01\xff"
    with pytest.raises(ValueError, match="Invalid hex"):
        from_hex("0xzz")

def test_default_script():
    """Test the default script is all zeros with data hash type."""
    script = Script()
    assert script.code_hash == ZERO_HASH
    assert script.hash_type == ScriptHashType.DATA
    assert script.args == b""
    assert script.size_bytes() == 33

def test_script_validation():
    """Test code hash length is enforced."""
    with pytest.raises(ValueError, match="32 bytes"):
        Script(code_hash=b"\x01" * 31)
    with pytest.raises(ValueError):
        Script(hash_type=7)

def test_script_hash_is_deterministic(code_hash):
    """Test equal triples hash equally and any field change alters the hash."""
    a = Script(code_hash, ScriptHashType.DATA1, b"\x01")
    b = Script(code_hash, ScriptHashType.DATA1, b"\x01")
    assert a == b
    assert hash(a) == hash(b)
    assert a.calc_script_hash() == b.calc_script_hash()

    assert a.calc_script_hash() != Script(code_hash, ScriptHashType.DATA, b"\x01").calc_script_hash()
    assert a.calc_script_hash() != a.with_args(b"\x02").calc_script_hash()
    assert a.calc_script_hash() != Script(ZERO_HASH, ScriptHashType.DATA1, b"\x01").calc_script_hash()

def test_script_serialization_layout(code_hash):
    """Test the table layout: size, three offsets, fields."""
    script = Script(code_hash, ScriptHashType.DATA1, b"\xaa\xbb")
    raw = script.serialize()
    assert int.from_bytes(raw[0:4], "little") == len(raw)
    assert int.from_bytes(raw[4:8], "little") == 16
    assert int.from_bytes(raw[8:12], "little") == 48
    assert int.from_bytes(raw[12:16], "little") == 49
    assert raw[16:48] == code_hash
    assert raw[48] == 2
    assert raw[49:53] == (2).to_bytes(4, "little")
    assert raw[53:] == b"\xaa\xbb"

def test_script_dict_round_trip(code_hash):
    """Test JSON-friendly representation."""
    script = Script(code_hash, ScriptHashType.TYPE, b"\x10")
    data = script.to_dict()
    assert data["hash_type"] == "type"
    assert data["args"] == "0x10"
    assert Script.from_dict(data) == script

def test_hash_type_addressing():
    """Test which hash types address code by content."""
    assert ScriptHashType.DATA.is_content_addressed()
    assert ScriptHashType.DATA1.is_content_addressed()
    assert not ScriptHashType.TYPE.is_content_addressed()
    with pytest.raises(ValueError, match="Unknown hash type"):
        ScriptHashType.from_json_name("data9")
