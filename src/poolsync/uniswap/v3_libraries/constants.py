Q96_RESOLUTION = 96
Q96 = 1 << Q96_RESOLUTION
Q128 = 1 << 128
Q192 = 1 << 192

FEE_PIPS_DENOMINATOR = 1_000_000

# Size of the memo caches on the hot-path pure functions
V3_LIB_CACHE_SIZE = 4096
