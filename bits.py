from bitarray import bitarray
from bitarray.util import ba2int, int2ba

class bits:
	"Read-only bit string over bitarray, most significant bit first"
	def __init__(self, val=0):
		if isinstance(val, bits):
			val = val._val
		if isinstance(val, int):
			self._val = bitarray(val, endian="big")
			self._val.setall(0)
		else:
			self._val = bitarray(val, endian="big")
	def __getitem__(self, index):
		if isinstance(index, slice):
			return bits(self._val[index])
		return self._val[index]
	def __iter__(self):
		return iter(self._val)
	def __len__(self):
		return len(self._val)
	def __str__(self):
		return self._val.to01()
	def __repr__(self):
		return "%s('%s')" % (type(self).__name__, self)
	def __eq__(self, other):
		return self._val == bits(other)._val

	def find(self, bit, start=0):
		"Position of the first bit equal to bit at or after start, -1 when there is none"
		return self._val.find(bitarray([bool(bit)]), start)

	@classmethod
	def encode_int(cls, val, length=None, signed=False):
		"Two's complement (or plain binary when unsigned) of val in exactly length bits"
		if val < 0 and not signed:
			raise ValueError("Cannot encode %d as unsigned" % val)
		if length is None:
			length = (val if val >= 0 else ~val).bit_length() + signed
		low, high = (-2**(length-1), 2**(length-1)) if signed else (0, 2**length)
		if not low <= val < high:
			raise ValueError("Cannot encode %d as a %d-bit %s integer" % (val, length, "signed" if signed else "unsigned"))
		if not length:
			return cls()
		return cls(int2ba(val, length, endian="big", signed=signed))
	def decode_int(self, signed=False):
		if not self._val:
			return 0
		return ba2int(self._val, signed=signed)
