import random

import pytest

from quiz_portal.constants.quiz_constants import ACCESS_CODE_ALPHABET
from quiz_portal.core.access_codes import AccessCodeGenerator, normalize_code, validate_manual_code
from quiz_portal.core.errors import ValidationError


def test_generated_codes_use_alphabet_and_length():
    generator = AccessCodeGenerator(random.Random(1234))
    for _ in range(500):
        code = generator.generate()
        assert len(code) == 6
        assert set(code) <= set(ACCESS_CODE_ALPHABET)


def test_alphabet_excludes_ambiguous_characters():
    for ambiguous in "IO01":
        assert ambiguous not in ACCESS_CODE_ALPHABET


def test_normalize_code_uppercases_and_trims():
    assert normalize_code("  math01 ") == "MATH01"


def test_manual_code_accepts_four_to_six_alphanumerics():
    assert validate_manual_code("abcd") == "ABCD"
    assert validate_manual_code("sci001") == "SCI001"


@pytest.mark.parametrize("code", ["abc", "", "ABCDEFG", "AB-12", "AB 12"])
def test_manual_code_rejects_bad_format(code):
    with pytest.raises(ValidationError):
        validate_manual_code(code)
