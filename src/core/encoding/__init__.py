"""Pure, synchronous codecs: proof strings and signed envelopes."""
