digits: str = "0123456789"
BASE: int = len(digits)

def to_digits(i: int) -> list:
	"Most-significant-first decimal digits of abs(i); zero is [0]"
	if i < 0:
		i = -i
	if i == 0:
		return [0]
	ret = []
	while i:
		ret.append(i % BASE)
		i //= BASE
	ret.reverse()
	return ret

def from_digits(ds) -> int:
	val = 0
	for d in ds:
		val = val * BASE + d
	return val

def to_string(ds) -> str:
	return "".join(digits[d] for d in ds)

def digit_value(c: str) -> int:
	"Value of a single decimal digit character, or -1 if c is not one"
	if len(c) == 1 and "0" <= c <= "9":
		return ord(c) - ord("0")
	return -1

def count_leading_zeros(ds, limit=None) -> int:
	"Number of leading zero digits, looking at no more than limit digits"
	if limit is None:
		limit = len(ds)
	n = 0
	while n < limit and ds[n] == 0:
		n += 1
	return n

def count_trailing_zeros(ds, limit=None) -> int:
	if limit is None:
		limit = len(ds)
	n = 0
	while n < limit and ds[len(ds) - 1 - n] == 0:
		n += 1
	return n
