"""
Square root by Newton's method and integer powers.
"""

import logging
import math
import random

import pytest

import arbitrary_decimal
from arbitrary_decimal import ArbitraryDecimal, DivisionByZero, DomainError
from tests.test_compare import fixed


class TestSqrt:
	"""sqrt truncated to the requested scale"""

	@pytest.mark.parametrize(
		"value, scale, expected",
		[
			(2, 0, "1"),
			(2, 1, "1.4"),
			(2, 5, "1.41421"),
			(2, 10, "1.4142135623"),
			(4, 0, "2"),
			(16, 1, "4.0"),
			("9.99", 5, "3.16069"),
			("33333333333333333333333333", 10, "5773502691896.2576450914"),
			(1, 3, "1.000"),
			("0.25", 2, "0.50"),
			("0.0001", 2, "0.01"),
			("0.0001", 0, "0"),
		],
	)
	def test_cases(self, value, scale: int, expected: str) -> None:
		assert str(ArbitraryDecimal(value).sqrt(scale)) == expected

	@pytest.mark.parametrize("value", [0, -4, "-0.01", "0.000"])
	def test_domain(self, value) -> None:
		with pytest.raises(DomainError):
			ArbitraryDecimal(value).sqrt(1)

	def test_domain_error_is_value_error(self) -> None:
		with pytest.raises(ValueError, match="negative or zero"):
			ArbitraryDecimal(-1).sqrt(0)

	def test_random_against_isqrt(self) -> None:
		rnd = random.Random(8)
		for _ in range(60):
			a = rnd.randint(1, 10**rnd.randint(1, 30))
			sa = rnd.randint(0, 6)
			s = rnd.randint(0, 12)
			expected = math.isqrt(a * 10**(2 * s) // 10**sa)
			assert str(ArbitraryDecimal(fixed(a, sa)).sqrt(s)) == fixed(expected, s)

	def test_perfect_squares(self) -> None:
		for n in (9, 144, 10**20, 12345678987654321**2):
			assert ArbitraryDecimal(n).sqrt(0) == math.isqrt(n)

	def test_logs_iterations(self, caplog) -> None:
		with caplog.at_level(logging.DEBUG, logger="arbitrary_decimal"):
			ArbitraryDecimal(2).sqrt(5)
		assert any("iterations" in r.getMessage() for r in caplog.records)

	def test_iteration_cap(self, caplog, monkeypatch) -> None:
		# limit works out to a single iteration for a one-digit value at scale 1
		monkeypatch.setattr(arbitrary_decimal, "SQRT_ITERATION_LIMIT", -7)
		with caplog.at_level(logging.WARNING, logger="arbitrary_decimal"):
			result = ArbitraryDecimal(2).sqrt(1)
		assert str(result) == "1.4"
		assert any("did not settle" in r.getMessage() for r in caplog.records)


class TestPow:
	"""pow with an explicit scale"""

	@pytest.mark.parametrize(
		"value, exponent, scale, expected",
		[
			(2, 3, 0, "8"),
			("5.0", 4, 0, "625.0"),
			("1.234", 5, 0, "2.861"),
			("1.234", 5, 10, "2.8613817210"),
			("1.234", 5, 20, "2.861381721051424"),
			(2, -3, 0, "0"),
			(2, -3, 1, "0.1"),
			(2, -3, 5, "0.12500"),
			("5.0000000", -4, 0, "0"),
			("5.0000000", -4, 10, "0.0016000000"),
		],
	)
	def test_cases(self, value, exponent: int, scale: int, expected: str) -> None:
		assert ArbitraryDecimal(value).pow(exponent, scale) == ArbitraryDecimal(expected)

	def test_scale_rule(self) -> None:
		assert str(ArbitraryDecimal("5.0").pow(4, 0)) == "625.0"
		assert str(ArbitraryDecimal("1.234").pow(5, 20)) == "2.861381721051424"
		assert str(ArbitraryDecimal("1.5").pow(2, 1)) == "2.2"

	def test_zero_exponent(self) -> None:
		assert str(ArbitraryDecimal("-3.75").pow(0, 5)) == "1"

	def test_negative_base(self) -> None:
		assert str(ArbitraryDecimal(-2).pow(3, 0)) == "-8"
		assert str(ArbitraryDecimal(-2).pow(4, 0)) == "16"

	def test_zero_to_negative(self) -> None:
		with pytest.raises(DivisionByZero):
			ArbitraryDecimal(0).pow(-1, 2)

	def test_exponent_type(self) -> None:
		with pytest.raises(TypeError):
			ArbitraryDecimal(2).pow(1.5, 0)
		with pytest.raises(TypeError):
			ArbitraryDecimal(2).pow(True, 0)

	def test_random_against_ints(self) -> None:
		rnd = random.Random(9)
		for _ in range(100):
			a = rnd.randint(-10**6, 10**6)
			e = rnd.randint(1, 40)
			assert ArbitraryDecimal(a).pow(e, 0) == a**e

	def test_exact_fraction_powers(self) -> None:
		rnd = random.Random(10)
		for _ in range(50):
			a = rnd.randint(1, 10**4)
			sa = rnd.randint(1, 3)
			e = rnd.randint(1, 12)
			result = ArbitraryDecimal(fixed(a, sa)).pow(e, sa * e)
			assert str(result) == fixed(a**e, sa * e)


class TestPowOperator:
	"""** keeps the base's scale"""

	def test_int(self) -> None:
		assert ArbitraryDecimal(2) ** 10 == 1024

	def test_fraction(self) -> None:
		assert str(ArbitraryDecimal("1.5") ** 2) == "2.2"

	def test_negative_exponent(self) -> None:
		assert str(ArbitraryDecimal("2.00") ** -2) == "0.25"

	def test_rejects_non_int(self) -> None:
		with pytest.raises(TypeError):
			ArbitraryDecimal(2) ** ArbitraryDecimal(2)
