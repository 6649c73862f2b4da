import pytest

from matchtrust.utils.phone import mask_phone_number


def test_mask_keeps_first_five_and_last_four():
    assert mask_phone_number("+44 20 7946 0958") == "+44207 *** 0958"


def test_mask_strips_formatting():
    assert mask_phone_number("+1 (555) 010-2000") == "+15550 ** 2000"


def test_mask_length_depends_on_digit_count():
    masked = mask_phone_number("0912345678")
    assert masked == "+09123 * 5678"


@pytest.mark.parametrize("phone", ["", "12345", "555-1234", "+1 234 567 89"])
def test_short_numbers_are_returned_unchanged(phone):
    assert mask_phone_number(phone) == phone


def test_mask_is_idempotent():
    once = mask_phone_number("+44 20 7946 0958")
    assert mask_phone_number(once) == once
