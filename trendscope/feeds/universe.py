"""Tradable instrument universe — USDT-quoted spot symbols."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Instrument:
    """A tradable symbol and its human-readable coin name."""

    symbol: str
    name: str


SUPPORTED_INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument("BTCUSDT", "Bitcoin"),
    Instrument("ETHUSDT", "Ethereum"),
    Instrument("BNBUSDT", "Binance Coin"),
    Instrument("SOLUSDT", "Solana"),
    Instrument("XRPUSDT", "Ripple"),
    Instrument("ADAUSDT", "Cardano"),
    Instrument("DOGEUSDT", "Dogecoin"),
    Instrument("AVAXUSDT", "Avalanche"),
    Instrument("TRXUSDT", "Tron"),
    Instrument("DOTUSDT", "Polkadot"),
    Instrument("LINKUSDT", "Chainlink"),
    Instrument("POLUSDT", "Polygon"),
    Instrument("SHIBUSDT", "Shiba Inu"),
    Instrument("LTCUSDT", "Litecoin"),
    Instrument("BCHUSDT", "Bitcoin Cash"),
    Instrument("NEARUSDT", "NEAR Protocol"),
    Instrument("UNIUSDT", "Uniswap"),
    Instrument("ICPUSDT", "Internet Computer"),
    Instrument("APTUSDT", "Aptos"),
    Instrument("SUIUSDT", "Sui"),
    Instrument("HBARUSDT", "Hedera"),
    Instrument("XLMUSDT", "Stellar"),
    Instrument("ATOMUSDT", "Cosmos"),
    Instrument("FILUSDT", "Filecoin"),
    Instrument("OPUSDT", "Optimism"),
    Instrument("INJUSDT", "Injective"),
    Instrument("ARBUSDT", "Arbitrum"),
    Instrument("AAVEUSDT", "Aave"),
)


def find_instrument(symbol: str) -> Instrument:
    """Look up a supported instrument by symbol.

    Unknown symbols get an instrument named after their base asset.
    """
    for inst in SUPPORTED_INSTRUMENTS:
        if inst.symbol == symbol:
            return inst
    return Instrument(symbol, symbol.replace("USDT", ""))
