type BlockNumber = int
type ChainId = int
type Tick = int
type Word = int
type SqrtPriceX96 = int
type Liquidity = int
type LiquidityNet = int
