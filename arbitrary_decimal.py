import logging
import os

from bits import bits
import digits as digits_module

logger = logging.getLogger(__name__)

color = os.getenv("ARBITRARY_DECIMAL_COLOR", "1") != "0"

BASE = digits_module.BASE
WORD_BITS = 64
# digits per half-word: two halves of this size multiply without overflowing a signed machine word
MAX_BASE_SIZE = len(str(2**(WORD_BITS-1) - 1)) // 2
SQRT_ITERATION_LIMIT = 100


class ArbitraryDecimalError(Exception):
	pass

class ParseError(ArbitraryDecimalError, ValueError):
	def __init__(self, text, position):
		self.text = text
		self.position = position
		self.character = text[position]
		super().__init__("illegal character: %s (at %d in %r)" % (self.character, position, text))

class DivisionByZero(ArbitraryDecimalError, ZeroDivisionError):
	pass

class DomainError(ArbitraryDecimalError, ValueError):
	pass

class ConversionOverflow(ArbitraryDecimalError, OverflowError):
	pass


class IntegerType:
	"A fixed-width machine integer that ArbitraryDecimal.to can narrow a value to"
	def __init__(self, width, signed=True):
		if not isinstance(width, int) or width <= 0:
			raise ValueError("width must be a positive int, not %r" % (width,))
		self.width = width
		self.signed = signed
	@property
	def min(self):
		return -2**(self.width-1) if self.signed else 0
	@property
	def max(self):
		return 2**(self.width-1) - 1 if self.signed else 2**self.width - 1
	def __repr__(self):
		return "IntegerType(%d, signed=%r)" % (self.width, self.signed)

Byte = IntegerType(8)
UByte = IntegerType(8, False)
Short = IntegerType(16)
UShort = IntegerType(16, False)
Int = IntegerType(32)
UInt = IntegerType(32, False)
Long = IntegerType(64)
ULong = IntegerType(64, False)


def _check_scale(scale):
	if not isinstance(scale, int) or isinstance(scale, bool):
		raise TypeError("scale must be int, not %r" % type(scale))
	if scale < 0:
		raise ValueError("scale must be non-negative, not %d" % scale)

def _parse(text):
	"Split text into (sign, scale, digits) following ['+'|'-'] digits* ['.' digits+]"
	p = 0
	sign = False
	# a lone "+" or "-" is not a number, so a sign needs something after it
	if len(text) > 1 and text[0] in "+-":
		sign = text[0] == "-"
		p = 1
	while p < len(text) and text[p] == "0":
		p += 1

	ds = []
	scale = 0
	while p < len(text):
		d = digits_module.digit_value(text[p])
		if d >= 0:
			ds.append(d)
			p += 1
		elif text[p] == "." and p + 1 < len(text):
			p += 1
			break
		else:
			raise ParseError(text, p)
	while p < len(text):
		d = digits_module.digit_value(text[p])
		if d < 0:
			raise ParseError(text, p)
		ds.append(d)
		scale += 1
		p += 1
	return sign, scale, ds


# comparator
def _cmp(lhs, rhs, ignore_sign=False):
	"1 if lhs > rhs, -1 if lhs < rhs, 0 if they are the same value whatever their scales"
	if not ignore_sign and lhs._sign != rhs._sign:
		return -1 if lhs._sign else 1
	sign = -1 if lhs._sign and not ignore_sign else 1

	l_digits, r_digits = lhs._digits, rhs._digits
	l_lead = digits_module.count_leading_zeros(l_digits, lhs.int_len)
	r_lead = digits_module.count_leading_zeros(r_digits, rhs.int_len)
	l_len = lhs.int_len - l_lead
	r_len = rhs.int_len - r_lead
	if l_len > r_len:
		return sign
	elif l_len < r_len:
		return -sign

	for i in range(l_len):
		if l_digits[l_lead + i] != r_digits[r_lead + i]:
			return sign if l_digits[l_lead + i] > r_digits[r_lead + i] else -sign

	for i in range(min(lhs._scale, rhs._scale)):
		l, r = l_digits[lhs.int_len + i], r_digits[rhs.int_len + i]
		if l != r:
			return sign if l > r else -sign

	if lhs._scale > rhs._scale:
		return sign if any(l_digits[lhs.int_len + rhs._scale:]) else 0
	elif lhs._scale < rhs._scale:
		return -sign if any(r_digits[rhs.int_len + lhs._scale:]) else 0
	return 0


# additive engine
def _add_digits(a, b):
	"Sum of two unsigned digit lists aligned at their last digit"
	if len(a) < len(b):
		a, b = b, a
	b = [0] * (len(a) - len(b)) + list(b)
	buf = [0] * len(a)
	carry = 0
	for i in range(len(a) - 1, -1, -1):
		d = a[i] + b[i] + carry
		if d >= BASE:
			d -= BASE
			carry = 1
		else:
			carry = 0
		buf[i] = d
	if carry:
		buf.insert(0, 1)
	return buf

def _sub_digits(a, b):
	"a - b for unsigned digit lists aligned at their last digit, a >= b; keeps len(a) digits"
	b = [0] * (len(a) - len(b)) + list(b)
	buf = list(a)
	borrow = 0
	for i in range(len(a) - 1, -1, -1):
		d = buf[i] - b[i] - borrow
		if d < 0:
			d += BASE
			borrow = 1
		else:
			borrow = 0
		buf[i] = d
	return buf

def _align_fraction(lhs, rhs):
	scale = max(lhs._scale, rhs._scale)
	a = list(lhs._digits) + [0] * (scale - lhs._scale)
	b = list(rhs._digits) + [0] * (scale - rhs._scale)
	return a, b, scale

def _add(lhs, rhs):
	"(scale, digits) of |lhs| + |rhs|"
	a, b, scale = _align_fraction(lhs, rhs)
	return scale, _add_digits(a, b)

def _sub(lhs, rhs):
	"(scale, digits) of |lhs| - |rhs|, |lhs| must be >= |rhs|"
	a, b, scale = _align_fraction(lhs, rhs)
	if len(a) < len(b): # lhs integer part was shorter only by leading zeros
		a = [0] * (len(b) - len(a)) + a
	return scale, _sub_digits(a, b)


# multiplicative engine
def _strip(ds):
	lead = digits_module.count_leading_zeros(ds)
	return ds[lead:] or [0]

def _split_word(ds, size):
	"(high, low) machine integers of ds split so low holds its last size digits"
	cut = max(len(ds) - size, 0)
	return digits_module.from_digits(ds[:cut]), digits_module.from_digits(ds[cut:])

def _mul_split(big, other):
	# big = high || low, so big * other = (high * other) shifted by len(low) + low * other
	half = len(big) // 2
	high, low = big[:half], big[half:]
	high_result = _mul(high, other) + [0] * len(low)
	low_result = _mul(low, other)
	return _add_digits(high_result, low_result)

def _mul(lhs, rhs):
	"""
	Magnitude product of two digit lists, most significant digit first.
	Sign and scale are the caller's business.
	"""
	lhs_size = (len(lhs) + 1) // 2
	rhs_size = (len(rhs) + 1) // 2
	if lhs_size > MAX_BASE_SIZE:
		return _strip(_mul_split(lhs, rhs))
	if rhs_size > MAX_BASE_SIZE:
		return _strip(_mul_split(rhs, lhs))

	if len(lhs) + len(rhs) <= 2 * MAX_BASE_SIZE: # fits a single machine word
		return digits_module.to_digits(digits_module.from_digits(lhs) * digits_module.from_digits(rhs))

	base_size = max(lhs_size, rhs_size)
	x1, x0 = _split_word(lhs, base_size)
	y1, y0 = _split_word(rhs, base_size)
	z0 = x0 * y0
	z2 = x1 * y1
	z1 = z2 + z0 - (x1 - x0) * (y1 - y0)
	total = _add_digits(digits_module.to_digits(z2) + [0] * (2 * base_size),
						digits_module.to_digits(z1) + [0] * base_size)
	total = _add_digits(total, digits_module.to_digits(z0))
	return _strip(total)

def _mul_by_digit(ds, d):
	"ds * d for a single digit d, always len(ds) + 1 digits long (leading carry may be 0)"
	buf = [0] * (len(ds) + 1)
	carry = 0
	for i in range(len(ds) - 1, -1, -1):
		carry, buf[i + 1] = divmod(ds[i] * d + carry, BASE)
	buf[0] = carry
	return buf


# division engine
def _div(num, den):
	"""
	Quotient digits of num // den using Knuth's Algorithm D in base 10.

	Both arguments are unsigned digit lists, most significant first, and den
	must not be zero. The quotient is truncated.
	"""
	num = _strip(list(num))
	den = _strip(list(den))
	if len(num) < len(den) or (len(num) == len(den) and num < den):
		return [0]

	# the digit guess looks two digits past the divisor's leading one
	pad = max(3 - len(den), 0)
	num = num + [0] * pad
	den = den + [0] * pad

	# normalize so the divisor's leading digit is at least BASE/2
	d = BASE // (den[0] + 1)
	v = _mul_by_digit(den, d)[1:]
	u = _mul_by_digit(num, d)
	n = len(v)
	m = len(u) - n

	q = []
	for j in range(m):
		qguess, rguess = divmod(u[j] * BASE + u[j + 1], v[0])
		while rguess < BASE and (qguess >= BASE or qguess * v[1] > rguess * BASE + u[j + 2]):
			qguess -= 1
			rguess += v[0]

		window = u[j:j + n + 1]
		product = _mul_by_digit(v, qguess)
		while window < product: # guess still one too large
			qguess -= 1
			product = _mul_by_digit(v, qguess)
		u[j:j + n + 1] = _sub_digits(window, product)
		q.append(qguess)

		# once the remainder is below the unshifted divisor every later digit is zero
		if not any(u[j + 1:m]) and u[m:] < v:
			q.extend([0] * (m - j - 1))
			break

	return _strip(q)


class ArbitraryDecimal:
	"""
	Signed decimal number with an unbounded digit count and an explicit scale
	(number of digits after the decimal point).

	Values are immutable; every operation returns a new ArbitraryDecimal.
	"""
	def __init_helper__(self, sign, scale, ds):
		"Init self from raw parts, stripping leading integer zeros and the sign of zero"
		if not isinstance(sign, bool):
			raise TypeError("sign must be bool, not %r" % type(sign))
		_check_scale(scale)
		ds = bytes(ds)
		if ds and max(ds) >= BASE:
			raise ValueError("digits must be in [0, %d], not %r" % (BASE - 1, list(ds)))
		if len(ds) < scale:
			raise ValueError("%d digits cannot hold scale %d" % (len(ds), scale))

		ds = ds[digits_module.count_leading_zeros(ds, len(ds) - scale):]
		if not ds:
			ds = bytes(1)
		self._sign = sign and any(ds)
		self._scale = scale
		self._digits = ds

	def __init__(self, *args):
		if len(args) == 1:
			val = args[0]
			if isinstance(val, ArbitraryDecimal):
				self._sign = val._sign
				self._scale = val._scale
				self._digits = val._digits
			elif isinstance(val, int):
				self.__init_helper__(val < 0, 0, digits_module.to_digits(val))
			elif isinstance(val, str):
				self.__init_helper__(*_parse(val))
			else:
				raise TypeError("%s cannot be built from %r" % (type(self).__name__, type(val)))
		elif len(args) == 3:
			self.__init_helper__(*args)
		elif len(args) == 0:
			self.__init_helper__(False, 0, [0])
		else:
			raise TypeError("%s takes 0, 1 or 3 arguments" % type(self).__name__)

	@property
	def sign(self):
		"True when negative"
		return self._sign
	@property
	def scale(self):
		return self._scale
	@property
	def digits(self):
		return tuple(self._digits)
	@property
	def int_len(self):
		"Number of digits before the decimal point"
		return len(self._digits) - self._scale
	@property
	def iszero(self):
		return not any(self._digits)
	@property
	def isnegative(self):
		return self._sign
	@property
	def ispositive(self):
		return not self._sign and not self.iszero
	@property
	def isint(self):
		return not any(self._digits[self.int_len:])

	def __str__(self):
		s = "-" * self._sign
		n = self.int_len
		s += digits_module.to_string(self._digits[:n]) if n else "0"
		if self._scale:
			s += "." + digits_module.to_string(self._digits[n:])
		return s
	def __repr__(self):
		if not color:
			return "%s('%s')" % (type(self).__name__, self)
		n = self.int_len
		int_part = digits_module.to_string(self._digits[:n]) if n else "0"
		frac_part = "." + digits_module.to_string(self._digits[n:]) if self._scale else ""
		return "%s('\x1b[31m%s\x1b[32m%s\x1b[33m%s\x1b[0m')" % (type(self).__name__, "-" * self._sign, int_part, frac_part)

	def __int__(self):
		val = digits_module.from_digits(self._digits[:self.int_len])
		return -val if self._sign else val
	def __float__(self):
		return float(str(self))
	def __bool__(self):
		return not self.iszero
	def __hash__(self):
		frac_zeros = digits_module.count_trailing_zeros(self._digits, self._scale)
		if frac_zeros == self._scale: # integral values hash like the int they equal
			return hash(int(self))
		return hash((self._sign, self._digits[:len(self._digits) - frac_zeros], self._scale - frac_zeros))

	def to(self, int_type):
		"Narrow to a fixed-width integer, truncating any fraction"
		if self._sign and not int_type.signed:
			raise ConversionOverflow("Cannot convert negative %s to %r" % (self, int_type))
		try:
			encoded = bits.encode_int(int(self), int_type.width, int_type.signed)
		except ValueError as e:
			raise ConversionOverflow("%s does not fit in %r" % (self, int_type)) from e
		return encoded.decode_int(int_type.signed)

	def rescale(self, scale):
		"""
		Same value with exactly scale fraction digits.
		Extra digits are zeros; dropped digits are truncated, not rounded.
		"""
		_check_scale(scale)
		if scale >= self._scale:
			ds = self._digits + bytes(scale - self._scale)
		else:
			ds = self._digits[:len(self._digits) - (self._scale - scale)]
		return type(self)(self._sign, scale, ds)

	def compare(self, other, ignore_sign=False):
		return _cmp(self, _operand(other), ignore_sign)

	def __equals_int__(self, n):
		"Digit walk against a native int, without building a second value"
		if self._sign != (n < 0) or not self.isint:
			return False
		n = abs(n)
		i = self.int_len - 1
		while n:
			if i < 0 or n % BASE != self._digits[i]:
				return False
			n //= BASE
			i -= 1
		return not any(self._digits[:i + 1])

	def __eq__(self, other):
		if isinstance(other, int):
			return self.__equals_int__(other)
		if not isinstance(other, ArbitraryDecimal):
			return NotImplemented
		return _cmp(self, other) == 0
	def __lt__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return _cmp(self, other) < 0
	def __le__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return _cmp(self, other) <= 0
	def __gt__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return _cmp(self, other) > 0
	def __ge__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return _cmp(self, other) >= 0

	def __neg__(self):
		return type(self)(not self._sign, self._scale, self._digits)
	def __pos__(self):
		return self
	def __abs__(self):
		return type(self)(False, self._scale, self._digits)

	def __add__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		if self._sign == other._sign:
			return type(self)(self._sign, *_add(self, other))
		order = _cmp(self, other, True)
		if order > 0:
			return type(self)(self._sign, *_sub(self, other))
		elif order < 0:
			return type(self)(other._sign, *_sub(other, self))
		return type(self)(0)
	def __sub__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		if self._sign != other._sign: # -5 - +6 == -(5 + 6), +5 - -6 == +(5 + 6)
			return type(self)(self._sign, *_add(self, other))
		order = _cmp(self, other, True)
		if order > 0:
			return type(self)(self._sign, *_sub(self, other))
		elif order < 0:
			return type(self)(not other._sign, *_sub(other, self))
		return type(self)(0)
	def __rsub__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return other - self

	def mul(self, other, scale):
		"""
		Product truncated to scale digits.

		The result never keeps more than the exact lhs.scale + rhs.scale digits
		and never fewer than min(lhs.scale, rhs.scale).
		"""
		other = _operand(other)
		_check_scale(scale)
		if self.iszero or other.iszero:
			return type(self)(0)

		product = _mul(list(self._digits), list(other._digits))
		full_scale = self._scale + other._scale
		if len(product) < full_scale:
			product = [0] * (full_scale - len(product)) + product
		new_scale = min(full_scale, max(scale, min(self._scale, other._scale)))
		product = product[:len(product) - (full_scale - new_scale)]
		return type(self)(self._sign != other._sign, new_scale, product)
	def __mul__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return self.mul(other, self._scale + other._scale)

	def div(self, other, scale):
		"Quotient truncated toward zero to exactly scale digits"
		other = _operand(other)
		_check_scale(scale)
		if other.iszero:
			raise DivisionByZero("%s division by zero" % type(self).__name__)
		if self.iszero:
			return type(self)(0)

		# shift so the integer quotient already carries scale fraction digits
		dividend = list(self._digits) + [0] * (scale + other._scale)
		quotient = _div(dividend, other._digits)
		quotient = quotient[:len(quotient) - self._scale] if len(quotient) > self._scale else []
		if len(quotient) < scale:
			quotient = [0] * (scale - len(quotient)) + quotient
		return type(self)(self._sign != other._sign, scale, quotient)
	def __truediv__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return self.div(other, max(self._scale, other._scale))
	def __rtruediv__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return other / self

	def mod(self, other, scale):
		"""
		self - self.div(other, scale) * other

		The remainder follows the truncated quotient at the given scale, so it
		takes the dividend's sign: ArbitraryDecimal(-2).mod("1.60", 0) is -0.40.
		"""
		other = _operand(other)
		return self - self.div(other, scale) * other
	def __mod__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return self.mod(other, max(self._scale, other._scale))
	def __rmod__(self, other):
		other = _coerce(other)
		if other is None:
			return NotImplemented
		return other % self

	def sqrt(self, scale):
		"Square root by Newton's method, truncated to scale digits"
		_check_scale(scale)
		if not self.ispositive:
			raise DomainError("negative or zero value given for sqrt: %s" % self)

		one = type(self)(1)
		order = _cmp(self, one)
		if order == 0:
			return one.rescale(scale)
		elif order < 0:
			guess = one
		else: # 1 followed by half as many zeros as self has integer digits
			guess = type(self)(False, 0, [1] + [0] * (self.int_len // 2))

		half = type(self)(False, 1, [5])
		limit = SQRT_ITERATION_LIMIT + 4 * (len(self._digits) + scale)
		previous = None
		iteration = 0
		for iteration in range(1, limit + 1):
			new_guess = (self.div(guess, scale + 1) + guess).mul(half, scale)
			if new_guess.iszero: # root is below one unit at this scale
				guess = new_guess
				break
			diff = new_guess - guess
			if diff.iszero:
				break
			if diff.ispositive and previous is not None and previous.isnegative:
				# stepped back up past the truncated root, the lower estimate is the answer
				break
			previous = diff
			guess = new_guess
		else:
			logger.warning("sqrt(%s) did not settle within %d iterations at scale %d", self, limit, scale)
		logger.debug("sqrt(%s) at scale %d took %d iterations", self, scale, iteration)

		# truncation inside the iteration can leave the estimate one unit off
		root = guess.rescale(scale)
		step = type(self)(False, scale, [0] * scale + [1])
		while root.mul(root, 2 * scale) > self:
			root -= step
		while (root + step).mul(root + step, 2 * scale) <= self:
			root += step
		return root.rescale(scale)

	def pow(self, exponent, scale):
		"""
		self raised to an integer exponent by binary exponentiation.

		Positive exponents keep min(self.scale * exponent, max(self.scale, scale))
		digits; negative exponents return 1 / self**-exponent at scale digits.
		"""
		if not isinstance(exponent, int) or isinstance(exponent, bool):
			raise TypeError("exponent must be int, not %r" % type(exponent))
		_check_scale(scale)
		if exponent == 0:
			return type(self)(1)

		negative = exponent < 0
		if negative:
			exponent = -exponent
		else:
			scale = min(self._scale * exponent, max(self._scale, scale))

		exponent_bits = bits.encode_int(exponent)[::-1] # least significant bit first
		logger.debug("pow: walking exponent bits %s", exponent_bits)
		power = self
		power_scale = self._scale
		trailing = exponent_bits.find(1)
		for _ in range(trailing):
			power_scale *= 2
			power = power.mul(power, power_scale)

		result = power
		result_scale = power_scale
		for bit in exponent_bits[trailing + 1:]:
			power_scale *= 2
			power = power.mul(power, power_scale)
			if bit:
				result_scale += power_scale
				result = result.mul(power, result_scale)

		if negative:
			return type(self)(1).div(result, scale)
		return result.rescale(scale)
	def __pow__(self, other):
		if not isinstance(other, int):
			return NotImplemented
		return self.pow(other, self._scale)

	# Commutative right-side operators
	__radd__ = __add__
	__rmul__ = __mul__


def _coerce(val):
	"Operand for the operators: ArbitraryDecimal or int, otherwise None"
	if isinstance(val, ArbitraryDecimal):
		return val
	if isinstance(val, int):
		return ArbitraryDecimal(val)
	return None

def _operand(val):
	if isinstance(val, ArbitraryDecimal):
		return val
	return ArbitraryDecimal(val)
