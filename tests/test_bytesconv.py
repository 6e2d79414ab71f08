import random
import string

from ginchain.bytesconv import bytes_to_string, string_to_bytes

TEST_STRING = (
    "Albert Einstein: Logic will get you from A to B. Imagination will take you everywhere."
)


def test_bytes_to_string_round_trip_random():
    rng = random.Random(1234)
    for _ in range(100):
        data = rng.randbytes(1024)
        assert string_to_bytes(bytes_to_string(data)) == data


def test_string_to_bytes_round_trip_random():
    rng = random.Random(4321)
    letters = string.ascii_letters
    for _ in range(100):
        text = "".join(rng.choice(letters) for _ in range(64))
        data = string_to_bytes(text)
        assert len(data) == 64
        assert bytes_to_string(data) == text


def test_known_text():
    assert string_to_bytes(TEST_STRING) == (
        b"Albert Einstein: Logic will get you from A to B. "
        b"Imagination will take you everywhere."
    )
    assert bytes_to_string(b"Albert Einstein") == "Albert Einstein"


def test_utf8_text():
    assert string_to_bytes("\u00e9") == b"\xc3\xa9"
    assert bytes_to_string(b"\xc3\xa9") == "\u00e9"
    assert bytes_to_string(bytearray(b"abc")) == "abc"