"""
Curated fungible tokens probed directly with balanceOf.

Indexers lag or miss tokens on test networks, so the well-known
stablecoins and wrapped natives are always asked for explicitly.
"""

from typing import Dict, Tuple

from convoyeur.domain.entities import KnownToken

SEPOLIA_TOKENS: Tuple[KnownToken, ...] = (
    KnownToken("0x1c7d4b196cb0c7b01d743fbc6116a902379c7238", "USDC", "USD Coin", 6),
    KnownToken("0xfff9976782d46cc05630d1f6ebab18b2324d6b14", "WETH", "Wrapped Ether", 18),
    KnownToken("0x3e622317f8c93f7328350cf0b56d9ed4c620c5d6", "DAI", "Dai Stablecoin", 18),
)

POLYGON_TOKENS: Tuple[KnownToken, ...] = (
    KnownToken("0x3c499c542cef5e3811e1192ce70d8cc03d5c3359", "USDC", "USD Coin", 6),
    KnownToken("0x2791bca1f2de4661ed88a30c99a7a9449aa84174", "USDC.e", "USD Coin (PoS)", 6),
    KnownToken("0xc2132d05d31c914a87c6611c10748aeb04b58e8f", "USDT", "Tether USD", 6),
    KnownToken("0x8f3cf7ad23cd3cadbd9735aff958023239c6a063", "DAI", "Dai Stablecoin", 18),
    KnownToken("0x0d500b1d8e8ef31e21c99d1db9a6444d3adf1270", "WMATIC", "Wrapped Matic", 18),
)

CELO_TOKENS: Tuple[KnownToken, ...] = (
    KnownToken("0x765de816845861e75a25fca122bb6898b8b1282a", "CUSD", "Celo Dollar", 18),
    KnownToken("0xd8763cba276a3738e6de85b4b3bf5fded6d6ca73", "CEUR", "Celo Euro", 18),
)

FLOW_TOKENS: Tuple[KnownToken, ...] = (
    KnownToken("0x1c7d4b196cb0c7b01d743fbc6116a902379c7238", "USDC", "USD Coin", 6),
    KnownToken("0x5566af9817cd58b79f29e3d9e8a989c0c0ef9da8", "WFLOW", "Wrapped Flow", 18),
    KnownToken("0x6f0469e7f0ef36b1c86421ade1e142fd47cdb727", "FUSD", "Flow USD", 8),
    KnownToken("0x7c8dff8f1c7c89b09c6b05a8d29f3d3e0c4db0c0", "USDT", "Tether USD", 6),
    KnownToken("0x21c718c22d52d0f3a789b752d4c2fd5908a8a733", "BLT", "Blocto Token", 18),
    KnownToken("0x6365a1a2c4d73b2f5a9dc6d838b2be85c9f69e7f", "STFLOW", "Staked Flow", 8),
    KnownToken("0x6c7fe21c99a982ed0b301414a1eee4761d97d1c5", "REVV", "REVV", 18),
)

KNOWN_TOKENS: Dict[str, Tuple[KnownToken, ...]] = {
    "sepolia": SEPOLIA_TOKENS,
    "polygon": POLYGON_TOKENS,
    "celo": CELO_TOKENS,
    "flow": FLOW_TOKENS,
}
