"""Unit tests for coupon code generation."""

import random
import re

from asmr.coupons.codes import (
    COUPON_ALPHABET,
    COUPON_LENGTH,
    generate_coupon_code,
    normalize_coupon_code,
)

CODE_PATTERN = re.compile(r"^[23456789ABCDEFGHJKLMNPQRSTUVWXYZ]{4}(-[23456789ABCDEFGHJKLMNPQRSTUVWXYZ]{4}){3}$")


class TestCouponCodes:
    def test_alphabet_has_32_unambiguous_symbols(self):
        assert len(COUPON_ALPHABET) == 32
        assert len(set(COUPON_ALPHABET)) == 32
        for ambiguous in "01OI":
            assert ambiguous not in COUPON_ALPHABET

    def test_code_shape(self):
        for _ in range(200):
            code = generate_coupon_code()
            assert CODE_PATTERN.match(code), code
            assert len(code.replace("-", "")) == COUPON_LENGTH

    def test_codes_are_practically_unique(self):
        codes = {generate_coupon_code() for _ in range(1000)}
        assert len(codes) == 1000

    def test_seeded_rng_is_deterministic(self):
        assert generate_coupon_code(random.Random(7)) == generate_coupon_code(random.Random(7))

    def test_normalize(self):
        assert normalize_coupon_code("  abcd-efgh-jkmn-pqrs ") == "ABCD-EFGH-JKMN-PQRS"
